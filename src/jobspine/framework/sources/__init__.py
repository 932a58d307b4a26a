"""
Worksheet feed sources.

Provides a common interface for reading the job feed workbook.
"""

from jobspine.framework.sources.protocol import (
    BaseSource,
    SourceMetadata,
    SourceType,
)
from jobspine.framework.sources.workbook import (
    DEFAULT_UPLOAD_NAME,
    SheetData,
    WorkbookSource,
)

__all__ = [
    # Types
    "SourceType",
    "SourceMetadata",
    # Base class
    "BaseSource",
    # Workbook
    "DEFAULT_UPLOAD_NAME",
    "SheetData",
    "WorkbookSource",
]
