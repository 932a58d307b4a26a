"""
Base class for worksheet feed sources.

Provides the common pieces every feed source shares: a source type, fetch
metadata for auditing and change detection, and a base class that builds
that metadata and wraps foreign exceptions into ``SourceError``.

Design Principles:
- #6 Idempotency: Fetch metadata carries a content hash for change detection
- #13 Observable: Metadata is loggable via ``to_dict()``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from jobspine.core.errors import SourceError


class SourceType(str, Enum):
    """Standard source types."""

    FILE = "file"
    BYTES = "bytes"


@dataclass
class SourceMetadata:
    """
    Metadata about a source fetch operation.

    Used for change detection and auditing.
    """

    # Identity
    source_name: str
    source_type: SourceType

    # Timing
    fetched_at: datetime = field(default_factory=datetime.now)
    duration_ms: int | None = None

    # Change detection
    content_hash: str | None = None

    # Size
    bytes_fetched: int | None = None
    row_count: int | None = None

    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {
            "source_name": self.source_name,
            "source_type": self.source_type.value,
            "fetched_at": self.fetched_at.isoformat(),
        }
        for attr in ["duration_ms", "content_hash", "bytes_fetched",
                     "row_count", "path"]:
            val = getattr(self, attr)
            if val is not None:
                result[attr] = val
        return result



class BaseSource(ABC):
    """
    Base class for source implementations.

    Provides common functionality:
    - Metadata creation
    - Error wrapping
    """

    def __init__(self, name: str, source_type: SourceType):
        self._name = name
        self._source_type = source_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def source_type(self) -> SourceType:
        return self._source_type

    def _create_metadata(self, **kwargs: Any) -> SourceMetadata:
        """Create metadata for a fetch operation."""
        return SourceMetadata(
            source_name=self._name,
            source_type=self._source_type,
            **kwargs,
        )

    def _wrap_error(
        self,
        error: Exception,
        message: str | None = None,
    ) -> SourceError:
        """Wrap an exception in SourceError with context."""
        if isinstance(error, SourceError):
            return error
        return SourceError(
            message or str(error),
            cause=error,
        ).with_context(file_name=self._name, source_type=self._source_type.value)

    @abstractmethod
    def content_hash(self) -> str:
        """Fingerprint of the current content."""
        raise NotImplementedError


__all__ = [
    "SourceType",
    "SourceMetadata",
    "BaseSource",
]
