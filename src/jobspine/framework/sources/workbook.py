"""
Workbook source adapter for Excel job feeds.

Reads ``.xlsx``/``.xlsm`` workbooks from a filesystem path or from an
in-memory byte buffer (an upload), lists their sheets and returns the selected
sheet as a plain grid of cell values.

Design Principles:
- #6 Idempotency: Content hash for change detection
- #7 Explicit over Implicit: Sheet fallback rules are spelled out below

Sheet selection:
    A requested sheet that exists is used; otherwise the first sheet is used.
    Only a workbook with no sheets, or a resolved sheet that cannot be read as
    a worksheet, is an error.

Usage:
    from jobspine.framework.sources.workbook import WorkbookSource

    source = WorkbookSource.from_path("/data/Contract Data.xlsx")
    sheet = source.read_sheet("Proj Data")
    sheet.sheet_name, sheet.rows[0]

    upload = WorkbookSource.from_bytes(payload, file_name="jobs.xlsx")
"""

from __future__ import annotations

import hashlib
import io
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from jobspine.core.errors import ParseError, SourceError, SourceNotFoundError
from jobspine.core.logging import get_logger
from jobspine.framework.sources.protocol import (
    BaseSource,
    SourceMetadata,
    SourceType,
)

logger = get_logger(__name__)

DEFAULT_UPLOAD_NAME = "uploaded.xlsx"


@dataclass
class SheetData:
    """One worksheet read out of a workbook."""

    file_name: str
    sheet_names: list[str]
    sheet_name: str
    rows: list[tuple[Any, ...]] = field(default_factory=list)
    metadata: SourceMetadata | None = None


class WorkbookSource(BaseSource):
    """
    Source for reading job worksheets.

    Exactly one of ``path`` or ``data`` must be given.
    """

    def __init__(
        self,
        *,
        path: str | Path | None = None,
        data: bytes | None = None,
        file_name: str | None = None,
    ):
        if (path is None) == (data is None):
            raise SourceError("Provide a workbook path or a byte buffer, not both")

        self._path = Path(path) if path is not None else None
        self._data = data
        if file_name:
            name = file_name
        elif self._path is not None:
            name = self._path.name
        else:
            name = DEFAULT_UPLOAD_NAME

        super().__init__(
            name=name,
            source_type=SourceType.FILE if self._path is not None else SourceType.BYTES,
        )

    @classmethod
    def from_path(cls, path: str | Path, file_name: str | None = None) -> WorkbookSource:
        return cls(path=path, file_name=file_name)

    @classmethod
    def from_bytes(cls, data: bytes, file_name: str | None = None) -> WorkbookSource:
        return cls(data=data, file_name=file_name)

    @property
    def path(self) -> Path | None:
        """Workbook path (``None`` for byte buffers)."""
        return self._path

    @property
    def file_name(self) -> str:
        return self._name

    # -------------------------------------------------------------------------
    # CHANGE DETECTION
    # -------------------------------------------------------------------------

    def _raw_bytes(self) -> bytes:
        if self._data is not None:
            return self._data
        if self._path is None:
            raise SourceError("Workbook has no path or byte buffer").with_context(file_name=self._name)
        if not self._path.exists():
            raise SourceNotFoundError(
                f"File not found: {self._path}",
            ).with_context(file_name=self._name, path=str(self._path))
        try:
            return self._path.read_bytes()
        except OSError as e:
            raise self._wrap_error(e, f"Failed to read Excel: {e}")

    def content_hash(self) -> str:
        """Compute SHA-256 hash of the workbook bytes."""
        return hashlib.sha256(self._raw_bytes()).hexdigest()

    # -------------------------------------------------------------------------
    # READING
    # -------------------------------------------------------------------------

    def read_sheet(self, sheet_name: str | None = None) -> SheetData:
        """
        Read the selected worksheet as a grid of values.

        Raises:
            SourceNotFoundError: The workbook path does not exist
            ParseError: The bytes are not a readable workbook
            SourceError: No sheets, or the selected sheet is not a worksheet
        """
        start_time = datetime.now()
        raw = self._raw_bytes()

        try:
            wb = load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
        except Exception as e:
            # openpyxl surfaces corrupt input as zipfile, KeyError or its own errors
            raise ParseError(
                f"Failed to read Excel: {e}", cause=e
            ).with_context(file_name=self._name)

        try:
            sheet_names = list(wb.sheetnames)
            if not sheet_names:
                raise SourceError("Workbook has no sheets").with_context(file_name=self._name)

            selected = sheet_name if sheet_name in sheet_names else sheet_names[0]
            if sheet_name and selected != sheet_name:
                logger.info(
                    "sheet_not_found_using_first",
                    file_name=self._name,
                    requested=sheet_name,
                    selected=selected,
                )

            ws = wb[selected]
            # Chartsheets are listed in sheetnames but hold no cells
            if not hasattr(ws, "iter_rows"):
                raise SourceError("Selected sheet not found").with_context(
                    file_name=self._name, sheet_name=selected
                )

            try:
                rows = [tuple(row) for row in ws.iter_rows(values_only=True)]
            except Exception as e:
                raise ParseError(
                    f"Failed to read Excel: {e}", cause=e
                ).with_context(file_name=self._name, sheet_name=selected)
        finally:
            wb.close()

        duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)
        metadata = self._create_metadata(
            content_hash=hashlib.sha256(raw).hexdigest(),
            bytes_fetched=len(raw),
            row_count=len(rows),
            duration_ms=duration_ms,
            path=str(self._path) if self._path is not None else None,
        )
        logger.debug("sheet_read", **metadata.to_dict(), sheet_name=selected)

        return SheetData(
            file_name=self._name,
            sheet_names=sheet_names,
            sheet_name=selected,
            rows=rows,
            metadata=metadata,
        )


__all__ = [
    "DEFAULT_UPLOAD_NAME",
    "SheetData",
    "WorkbookSource",
]
