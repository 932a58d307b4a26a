"""
Centralized settings for job-spine.

Manifesto:
    One validated, cached settings object instead of each entry point reading
    ``os.environ`` on its own. The overwrite override in particular is read
    here once and handed to the conflict policy as a plain argument, so the
    reconciliation code never consults the environment itself.

All fields can be set through ``JOBSPINE_*`` environment variables (e.g.
``JOBSPINE_ALLOW_OVERWRITE_APP_JOBS=true``) or a ``.env`` file.

Tags:
    job-spine, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jobspine.core.errors import MissingConfigError


class JobSpineSettings(BaseSettings):
    """job-spine configuration.

    Fields
    ──────
    database_url              : SQLAlchemy URL of the record store
    database_echo             : Log every SQL statement
    allow_overwrite_app_jobs  : Let the feed overwrite application-authored jobs
    min_job_number            : Skip rows whose job number is below this (0 = off)
    excel_path                : Default workbook for ``sync run``/``sync watch``
    sheet_name                : Default worksheet name
    watch_interval_seconds    : Periodic re-sync interval for the watcher
    log_level / log_format    : Structlog level and renderer (json/console)
    """

    model_config = SettingsConfigDict(
        env_prefix="JOBSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///jobspine.db")
    database_echo: bool = Field(default=False)

    # ── Reconciliation ───────────────────────────────────────────
    allow_overwrite_app_jobs: bool = Field(
        default=False,
        description="Overwrite jobs created or edited inside the application",
    )
    min_job_number: int = Field(default=0, ge=0)

    # ── Feed location ────────────────────────────────────────────
    excel_path: Path | None = Field(default=None)
    sheet_name: str | None = Field(default=None)
    watch_interval_seconds: float = Field(default=120.0, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return value

    def require_excel_path(self, path: Path | None = None) -> Path:
        """Return *path*, else ``excel_path``.

        Raises:
            MissingConfigError: Neither is set
        """
        resolved = path or self.excel_path
        if resolved is None:
            raise MissingConfigError(
                "JOBSPINE_EXCEL_PATH",
                "No workbook given and JOBSPINE_EXCEL_PATH is not set",
            )
        return resolved


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, JobSpineSettings] = {}


def get_settings(
    *,
    env_file: Path | str | None = None,
    _force_reload: bool = False,
) -> JobSpineSettings:
    """Load, validate, and cache a :class:`JobSpineSettings` instance.

    Parameters
    ----------
    env_file:
        Explicit ``.env`` file to read instead of ``./.env``.
    _force_reload:
        Bypass cache and reload from the environment.
    """
    cache_key = str(env_file or "")
    if not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    if env_file is not None:
        settings = JobSpineSettings(_env_file=env_file)  # type: ignore[call-arg]
    else:
        settings = JobSpineSettings()

    _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "JobSpineSettings",
    "get_settings",
    "clear_settings_cache",
]
