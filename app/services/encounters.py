"""
Encounter Session Registry

Process-local map of encounter id → tracking store + reconciler. Nothing is
persisted; a restart starts every encounter from an empty store.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from app import config
from app.core.cdr.catalog import CdrCatalog, TestCatalog, load_cdr_catalog, load_test_catalog
from app.core.cdr.reconciler import CdrReconciler
from app.core.cdr.scoring import ScoringEngine
from app.core.cdr.tracking import CdrTrackingStore
from app.utils.exceptions import EncounterNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class EncounterSession:
    encounter_id: str
    store: CdrTrackingStore
    reconciler: CdrReconciler


class EncounterRegistry:
    """
    Owns the catalogs and one session per encounter.

    Catalogs load on first use so the registry works with or without the
    application lifespan having run.
    """

    def __init__(
        self,
        cdr_catalog: Optional[CdrCatalog] = None,
        test_catalog: Optional[TestCatalog] = None,
    ):
        self._cdr_catalog = cdr_catalog
        self._test_catalog = test_catalog
        self._engine = ScoringEngine()
        self._sessions: Dict[str, EncounterSession] = {}

    @property
    def cdr_catalog(self) -> CdrCatalog:
        if self._cdr_catalog is None:
            self._cdr_catalog = load_cdr_catalog()
        return self._cdr_catalog

    @property
    def test_catalog(self) -> TestCatalog:
        if self._test_catalog is None:
            self._test_catalog = load_test_catalog()
        return self._test_catalog

    def load_catalogs(self) -> None:
        """Eagerly load both catalogs (startup)."""
        logger.info(
            f"EncounterRegistry: {len(self.cdr_catalog)} CDRs, "
            f"{len(self.test_catalog)} tests loaded"
        )

    def get(self, encounter_id: str) -> EncounterSession:
        session = self._sessions.get(encounter_id)
        if session is None:
            raise EncounterNotFoundError(encounter_id)
        return session

    def get_or_create(self, encounter_id: str, section: Optional[int] = None) -> EncounterSession:
        """
        Session for an encounter, opened on first use.

        The section is validated before a new session is registered, so an
        invalid request never leaves an empty session behind.
        """
        session = self._sessions.get(encounter_id)
        if session is not None:
            if section is not None:
                session.store.advance_section(section)
            return session

        store = CdrTrackingStore(
            current_section=config.DEFAULT_SECTION if section is None else section
        )
        session = EncounterSession(
            encounter_id=encounter_id,
            store=store,
            reconciler=CdrReconciler(store, self.cdr_catalog, self._engine),
        )
        self._sessions[encounter_id] = session
        logger.debug("EncounterRegistry: session opened", extra={"encounter_id": encounter_id})
        return session

    def __contains__(self, encounter_id: object) -> bool:
        return encounter_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()
