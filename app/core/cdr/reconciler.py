"""
Component Answer Reconciler

Applies component answers from the three provenance channels to a
tracking store and re-scores the entry after every accepted write.

Overwrite precedence:
    user_input            always writes
    section1 / section2   write when the component is unanswered or its
                          current value came from the same channel; a
                          clinician's value is never replaced by an
                          automated update
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from app.utils.exceptions import ComponentNotFoundError, InvalidComponentValueError
from .base import (
    CdrComponent,
    CdrDefinition,
    CdrStatus,
    ComponentSource,
    ComponentState,
    ComponentType,
    IdentifiedCdr,
    Number,
    TrackingEntry,
    derive_status,
)
from .catalog import CdrCatalog
from .scoring import ScoringEngine
from .tracking import CdrTrackingStore

logger = logging.getLogger(__name__)

# Proposal batches: {cdr_id: {component_id: value | {"value": value}}}
Proposals = Mapping[str, Mapping[str, Any]]


def may_overwrite(current: ComponentState, incoming: ComponentSource) -> bool:
    """Whether a write from ``incoming`` may replace the current answer."""
    if incoming == ComponentSource.USER_INPUT:
        return True
    if not current.answered or current.source is None:
        return True
    return current.source == incoming


def coerce_value(component: CdrComponent, value: Any) -> Number:
    """
    Validate an answer against its component definition.

    Booleans become the component weight (True) or 0 (False).
    """
    if component.type == ComponentType.BOOLEAN and isinstance(value, bool):
        return component.weight if value else 0

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidComponentValueError(
            f"Component '{component.id}' needs a numeric value, got {value!r}",
            component_id=component.id,
        )

    if component.type == ComponentType.SELECT:
        if value not in component.option_values():
            raise InvalidComponentValueError(
                f"{value!r} is not an option of component '{component.id}'",
                component_id=component.id,
                details={"allowed": component.option_values()},
            )
    elif component.type == ComponentType.BOOLEAN:
        if value not in (0, component.weight):
            raise InvalidComponentValueError(
                f"Boolean component '{component.id}' takes 0 or {component.weight}",
                component_id=component.id,
                details={"allowed": [0, component.weight]},
            )
    elif component.type == ComponentType.NUMBER_RANGE:
        below = component.min is not None and value < component.min
        above = component.max is not None and value > component.max
        if below or above:
            raise InvalidComponentValueError(
                f"{value!r} is outside [{component.min}, {component.max}] for '{component.id}'",
                component_id=component.id,
                details={"min": component.min, "max": component.max},
            )
    return value


class CdrReconciler:
    """
    Writes answers into a tracking store under precedence rules.

    The store, catalog and scoring engine are injected so each encounter
    session (or test) works on an isolated store.
    """

    def __init__(
        self,
        store: CdrTrackingStore,
        catalog: CdrCatalog,
        engine: Optional[ScoringEngine] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.engine = engine or ScoringEngine()

    # ── Initialization ─────────────────────────────────────────────────────

    def initialize(
        self,
        identified: Iterable[IdentifiedCdr],
        auto_populated: Optional[Proposals] = None,
    ) -> Dict[str, TrackingEntry]:
        """
        Track newly identified CDRs and seed extraction values.

        Auto-populated values are applied through the section1 channel, so
        they never replace a clinician's answer on a re-run.
        """
        self.store.initialize(identified)
        if auto_populated:
            self.apply_proposals(auto_populated, ComponentSource.SECTION1)
        return self.store.entries()

    # ── Answers ────────────────────────────────────────────────────────────

    def answer_component(
        self,
        entry_id: str,
        component_id: str,
        value: Any,
        source: Union[ComponentSource, str] = ComponentSource.USER_INPUT,
    ) -> TrackingEntry:
        """
        Apply one answer and re-score the entry.

        Returns:
            The entry; unchanged when the write lost on precedence.

        Raises:
            TrackingEntryNotFoundError: the CDR is not being tracked
            ComponentNotFoundError:     the CDR has no such component
            InvalidComponentValueError: the value does not fit the component
        """
        entry = self.store.get(entry_id)
        self._write(entry_id, entry, component_id, value, ComponentSource(source))
        return entry

    def apply_proposals(
        self,
        proposals: Proposals,
        source: Union[ComponentSource, str],
    ) -> Dict[str, TrackingEntry]:
        """
        Apply a batch of automated proposals.

        CDRs that are not tracked and components that fail validation are
        skipped with a warning; the rest of the batch still applies.

        Returns:
            {cdr_id: entry} for entries where at least one write was
            accepted, in proposal order. Writes lost on precedence do not
            count.
        """
        source = ComponentSource(source)
        touched: Dict[str, TrackingEntry] = {}
        for entry_id, values in proposals.items():
            if entry_id not in self.store:
                logger.warning(f"Reconciler: proposal for untracked CDR '{entry_id}' skipped")
                continue
            entry = self.store.get(entry_id)
            for component_id, proposal in values.items():
                value = proposal.get("value") if isinstance(proposal, Mapping) else proposal
                try:
                    written = self._write(entry_id, entry, component_id, value, source)
                except (ComponentNotFoundError, InvalidComponentValueError) as exc:
                    logger.warning(
                        f"Reconciler: proposal skipped: {exc.message}",
                        extra={"cdr_id": entry_id, "component_id": component_id, "source": source.value},
                    )
                    continue
                if written:
                    touched.setdefault(entry_id, entry)
        return touched

    def rescore(self, entry_id: str) -> TrackingEntry:
        """Recompute status and score, e.g. after a catalog reload."""
        entry = self.store.get(entry_id)
        self._refresh(entry_id, entry, self.catalog.get(entry_id))
        return entry

    # ── Internals ──────────────────────────────────────────────────────────

    def _write(
        self,
        entry_id: str,
        entry: TrackingEntry,
        component_id: str,
        value: Any,
        source: ComponentSource,
    ) -> bool:
        """Validate and store one answer; False when precedence rejected it."""
        definition = self.catalog.get(entry_id)

        if definition is not None:
            component = definition.component(component_id)
            if component is None:
                raise ComponentNotFoundError(entry_id, component_id)
            value = coerce_value(component, value)
        elif component_id not in entry.components:
            raise ComponentNotFoundError(entry_id, component_id)

        state = entry.components.setdefault(component_id, ComponentState())
        if not may_overwrite(state, source):
            logger.debug(
                f"Reconciler: {source.value} update ignored, value set by {state.source.value}",
                extra={"cdr_id": entry_id, "component_id": component_id, "source": source.value},
            )
            return False

        state.value = value
        state.answered = True
        state.source = source
        self._refresh(entry_id, entry, definition)
        return True

    def _refresh(
        self,
        entry_id: str,
        entry: TrackingEntry,
        definition: Optional[CdrDefinition],
    ) -> None:
        if definition is not None:
            tracked = {
                comp.id: entry.components.get(comp.id, ComponentState())
                for comp in definition.components
            }
        else:
            tracked = entry.components
        status = derive_status(tracked)

        result = self.engine.score(entry, definition)
        entry.score = result.score
        entry.interpretation = result.interpretation

        previous = entry.status
        entry.status = status
        if status == CdrStatus.COMPLETED and entry.completed_in_section is None:
            entry.completed_in_section = self.store.current_section
        if status != previous:
            logger.info(
                f"Reconciler: {previous.value} → {status.value}"
                + (f", score {entry.score}" if entry.score is not None else ""),
                extra={"cdr_id": entry_id},
            )
