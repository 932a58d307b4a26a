"""Tests for core.settings module.

Covers:
- JobSpineSettings instantiation with defaults
- Environment variable and .env override
- Field validation
- get_settings caching
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from jobspine.core.errors import ErrorCategory, MissingConfigError
from jobspine.core.settings import JobSpineSettings, clear_settings_cache, get_settings


class TestJobSpineSettingsDefaults:
    def test_default_database_url(self):
        assert JobSpineSettings().database_url == "sqlite:///jobspine.db"

    def test_overwrite_app_jobs_off(self):
        assert JobSpineSettings().allow_overwrite_app_jobs is False

    def test_min_job_number_disabled(self):
        assert JobSpineSettings().min_job_number == 0

    def test_watch_interval_two_minutes(self):
        assert JobSpineSettings().watch_interval_seconds == 120.0

    def test_no_default_workbook(self):
        s = JobSpineSettings()
        assert s.excel_path is None
        assert s.sheet_name is None

    def test_logging_defaults(self):
        s = JobSpineSettings()
        assert s.log_level == "INFO"
        assert s.log_format == "json"


class TestJobSpineSettingsEnvOverride:
    def test_allow_overwrite_from_env(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_ALLOW_OVERWRITE_APP_JOBS", "true")
        assert JobSpineSettings().allow_overwrite_app_jobs is True

    def test_min_job_number_from_env(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_MIN_JOB_NUMBER", "4000")
        assert JobSpineSettings().min_job_number == 4000

    def test_excel_path_from_env(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_EXCEL_PATH", "/data/Contract Data.xlsx")
        s = JobSpineSettings()
        assert s.excel_path == Path("/data/Contract Data.xlsx")

    def test_unprefixed_variable_ignored(self, monkeypatch):
        monkeypatch.setenv("MIN_JOB_NUMBER", "4000")
        assert JobSpineSettings().min_job_number == 0

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("JOBSPINE_SHEET_NAME=Proj Data\n", encoding="utf-8")
        s = get_settings(env_file=env_file)
        assert s.sheet_name == "Proj Data"


class TestJobSpineSettingsValidation:
    def test_negative_min_job_number_rejected(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_MIN_JOB_NUMBER", "-1")
        with pytest.raises(ValidationError):
            JobSpineSettings()

    def test_zero_interval_rejected(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_WATCH_INTERVAL_SECONDS", "0")
        with pytest.raises(ValidationError):
            JobSpineSettings()

    def test_log_format_normalized(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_LOG_FORMAT", "CONSOLE")
        assert JobSpineSettings().log_format == "console"

    def test_unknown_log_format_rejected(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            JobSpineSettings()


class TestRequireExcelPath:
    def test_explicit_path_wins(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_EXCEL_PATH", "/data/Contract Data.xlsx")
        assert JobSpineSettings().require_excel_path(Path("jobs.xlsx")) == Path("jobs.xlsx")

    def test_falls_back_to_setting(self, monkeypatch):
        monkeypatch.setenv("JOBSPINE_EXCEL_PATH", "/data/Contract Data.xlsx")
        assert JobSpineSettings().require_excel_path() == Path("/data/Contract Data.xlsx")

    def test_missing_raises_config_error(self):
        with pytest.raises(MissingConfigError) as exc_info:
            JobSpineSettings().require_excel_path()
        assert exc_info.value.key == "JOBSPINE_EXCEL_PATH"
        assert exc_info.value.category == ErrorCategory.CONFIG


class TestGetSettingsCache:
    def test_cached_instance(self):
        assert get_settings() is get_settings()

    def test_force_reload_reads_environment(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("JOBSPINE_MIN_JOB_NUMBER", "10")
        assert get_settings().min_job_number == 0
        reloaded = get_settings(_force_reload=True)
        assert reloaded is not first
        assert reloaded.min_job_number == 10

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
