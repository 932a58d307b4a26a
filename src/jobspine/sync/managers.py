"""
Manager name resolution.

Matches the free-text manager name typed into the worksheet against the
manager directory. Matching is exact after whitespace normalization and
ignores letter case; there is no fuzzy or partial matching and no new
manager is ever created. When nothing matches, the typed text is kept so
the job can still show who was intended.
"""

from __future__ import annotations

from dataclasses import dataclass

from jobspine.core.logging import get_logger
from jobspine.core.protocols import ManagerDirectory
from jobspine.core.text import normalize_name

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ManagerMatch:
    """Outcome of one lookup.

    ``raw_name`` is the normalized worksheet text (``None`` when the cell was
    empty); ``manager_id`` is set only on a directory hit.
    """

    manager_id: str | None
    raw_name: str | None

    @property
    def matched(self) -> bool:
        return self.manager_id is not None


NO_MANAGER = ManagerMatch(manager_id=None, raw_name=None)


class ManagerResolver:
    """
    Resolve worksheet manager names for one run.

    Results are cached per normalized name for the lifetime of the resolver,
    so a sheet listing the same supervisor on every row queries the
    directory once. Create a new resolver per run to see directory changes.
    """

    def __init__(self, directory: ManagerDirectory):
        self._directory = directory
        self._cache: dict[str, str | None] = {}

    def resolve(self, raw: str | None) -> ManagerMatch:
        name = normalize_name(raw)
        if not name:
            return NO_MANAGER

        key = name.lower()
        if key not in self._cache:
            # Lookup errors propagate to the caller's row handling, uncached
            self._cache[key] = self._directory.find_manager_id_by_exact_name(
                name, case_insensitive=True
            )
            if self._cache[key] is None:
                logger.debug("manager_not_found", manager_name=name)

        return ManagerMatch(manager_id=self._cache[key], raw_name=name)


__all__ = [
    "ManagerMatch",
    "NO_MANAGER",
    "ManagerResolver",
]
