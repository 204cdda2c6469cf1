"""
CDR Tracking Store

Per-encounter, in-memory state of every matched CDR. One store belongs to
one encounter session; it is handed the latest persisted snapshot on load
and only performs in-memory transitions from there.

Entries are never deleted. Dismissal and exclusion are flags that leave
component answers, score and stored status untouched.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from app import config
from app.utils.exceptions import InvalidSectionError, TrackingEntryNotFoundError
from .base import CdrStatus, ComponentState, IdentifiedCdr, TrackingEntry

logger = logging.getLogger(__name__)


def _check_section(section: Any) -> int:
    if isinstance(section, bool) or not isinstance(section, int):
        raise InvalidSectionError(section)
    if not config.MIN_SECTION <= section <= config.MAX_SECTION:
        raise InvalidSectionError(section)
    return section


class CdrTrackingStore:
    """
    Arena of TrackingEntry objects keyed by CDR id.

    Usage:
        store = CdrTrackingStore()
        store.initialize(identify_cdrs(differential, catalog))
        store.dismiss("heart")
        store.undismiss("heart")
    """

    def __init__(
        self,
        entries: Optional[Mapping[str, TrackingEntry]] = None,
        current_section: int = config.DEFAULT_SECTION,
    ):
        self._entries: Dict[str, TrackingEntry] = dict(entries or {})
        self._current_section = _check_section(current_section)

    # ── Section ────────────────────────────────────────────────────────────

    @property
    def current_section(self) -> int:
        return self._current_section

    def advance_section(self, section: int) -> None:
        """Record the documentation section subsequent events belong to."""
        self._current_section = _check_section(section)

    # ── Lookup ─────────────────────────────────────────────────────────────

    def get(self, entry_id: str) -> TrackingEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise TrackingEntryNotFoundError(entry_id)
        return entry

    def entries(self) -> Dict[str, TrackingEntry]:
        return dict(self._entries)

    def items(self) -> Iterator[Tuple[str, TrackingEntry]]:
        return iter(list(self._entries.items()))

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def initialize(
        self,
        identified: Iterable[IdentifiedCdr],
        existing: Optional[Mapping[str, TrackingEntry]] = None,
    ) -> Dict[str, TrackingEntry]:
        """
        Create a pending entry for every identified CDR not yet tracked.

        Existing entries (already in the store, or passed in ``existing``)
        are never replaced, so re-identifying on every re-render keeps the
        clinician's progress.

        Returns:
            The full tracking map after initialization.
        """
        for entry_id, entry in (existing or {}).items():
            self._entries.setdefault(entry_id, entry)

        created = []
        for item in identified:
            cdr = item.cdr
            if cdr.id in self._entries:
                continue
            self._entries[cdr.id] = TrackingEntry(
                name=cdr.name,
                status=CdrStatus.PENDING,
                identified_in_section=self._current_section,
                components={comp.id: ComponentState() for comp in cdr.components},
            )
            created.append(cdr.id)

        if created:
            logger.info(
                f"TrackingStore: tracking {len(created)} new CDR(s) in section "
                f"{self._current_section}: " + ", ".join(created)
            )
        return self.entries()

    def dismiss(self, entry_id: str) -> TrackingEntry:
        entry = self.get(entry_id)
        entry.dismissed = True
        logger.info(f"TrackingStore: '{entry_id}' dismissed")
        return entry

    def undismiss(self, entry_id: str) -> TrackingEntry:
        entry = self.get(entry_id)
        entry.dismissed = False
        logger.info(f"TrackingStore: '{entry_id}' restored")
        return entry

    def toggle_excluded(self, entry_id: str) -> bool:
        """Flip the exclusion flag; returns the new value."""
        entry = self.get(entry_id)
        entry.excluded = not entry.excluded
        logger.info(f"TrackingStore: '{entry_id}' excluded={entry.excluded}")
        return entry.excluded

    @staticmethod
    def effective_status(entry: TrackingEntry) -> CdrStatus:
        return entry.effective_status

    # ── Persistence shape ──────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, dict]:
        return {entry_id: entry.to_dict() for entry_id, entry in self._entries.items()}

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Optional[Mapping[str, Mapping[str, Any]]],
        current_section: int = config.DEFAULT_SECTION,
    ) -> "CdrTrackingStore":
        entries = {
            entry_id: TrackingEntry.from_dict(dict(data))
            for entry_id, data in (snapshot or {}).items()
        }
        return cls(entries, current_section=current_section)
