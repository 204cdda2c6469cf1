"""
Clinical Decision Rules: Base Types

Defines the data contracts shared by the matcher, the tracking store,
the reconciler and the scoring engine.

Catalog types (CdrDefinition, CdrComponent, TestDefinition) are immutable
and loaded once per session. Tracking types (TrackingEntry, ComponentState)
are mutable and owned by a single encounter's tracking store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

Number = Union[int, float]


class ComponentSource(str, Enum):
    """
    Channel a component answer comes from.

    SECTION1   – automated narrative extraction (shown with an "(AI)" badge)
    SECTION2   – lab / imaging result pipeline
    USER_INPUT – clinician entered or overrode the value
    """
    SECTION1   = "section1"
    SECTION2   = "section2"
    USER_INPUT = "user_input"


class ComponentType(str, Enum):
    SELECT       = "select"
    BOOLEAN      = "boolean"
    NUMBER_RANGE = "number_range"
    ALGORITHM    = "algorithm"


class ScoringMethod(str, Enum):
    SUM       = "sum"
    THRESHOLD = "threshold"
    ALGORITHM = "algorithm"


class CdrStatus(str, Enum):
    PENDING   = "pending"
    PARTIAL   = "partial"
    COMPLETED = "completed"
    DISMISSED = "dismissed"   # effective status only, never stored


class Readiness(str, Enum):
    """Whether a CDR can be scored now or needs section-2 results."""
    COMPLETABLE   = "completable"
    NEEDS_RESULTS = "needs_results"


class TestCategory(str, Enum):
    __test__ = False

    LABS           = "labs"
    IMAGING        = "imaging"
    PROCEDURES_POC = "procedures_poc"


# ── Catalog definitions ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class ComponentOption:
    """One selectable answer of a ``select`` component."""
    label: str
    value: Number


@dataclass(frozen=True)
class CdrComponent:
    """One scored question within a CDR."""
    id: str
    label: str
    type: ComponentType
    source: ComponentSource                 # where an answer is *expected* from
    options: Tuple[ComponentOption, ...] = ()
    weight: Number = 1                      # points for a positive boolean
    min: Optional[Number] = None            # number_range bounds
    max: Optional[Number] = None
    auto_populate_from: Optional[str] = None

    def option_values(self) -> List[Number]:
        return [opt.value for opt in self.options]

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "type": self.type.value,
            "source": self.source.value,
        }
        if self.type == ComponentType.SELECT:
            data["options"] = [{"label": o.label, "value": o.value} for o in self.options]
        if self.type == ComponentType.BOOLEAN:
            data["weight"] = self.weight
        if self.type == ComponentType.NUMBER_RANGE:
            data["min"] = self.min
            data["max"] = self.max
        if self.auto_populate_from:
            data["auto_populate_from"] = self.auto_populate_from
        return data


@dataclass(frozen=True)
class ScoringRange:
    min: Number
    max: Number
    risk: str
    interpretation: str

    def contains(self, score: Number) -> bool:
        return self.min <= score <= self.max


@dataclass(frozen=True)
class ScoringSpec:
    method: ScoringMethod
    ranges: Tuple[ScoringRange, ...] = ()

    def find_range(self, score: Number) -> Optional[ScoringRange]:
        """First listed range containing ``score``; None when the catalog has a gap."""
        for rng in self.ranges:
            if rng.contains(score):
                return rng
        return None


@dataclass(frozen=True)
class CdrDefinition:
    """
    A Clinical Decision Rule as published in the catalog.

    ``applicable_chief_complaints`` drive complaint-based matching;
    ``name`` / ``full_name`` drive context-based matching.
    """
    id: str
    name: str
    full_name: str
    applicable_chief_complaints: Tuple[str, ...]
    components: Tuple[CdrComponent, ...]
    scoring: ScoringSpec
    suggested_treatments: Dict[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)
    category: str = ""
    application: str = ""
    keywords: Tuple[str, ...] = ()
    required_tests: Tuple[str, ...] = ()

    def component(self, component_id: str) -> Optional[CdrComponent]:
        for comp in self.components:
            if comp.id == component_id:
                return comp
        return None

    @property
    def needs_results(self) -> bool:
        return any(c.source == ComponentSource.SECTION2 for c in self.components)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "full_name": self.full_name,
            "category": self.category,
            "application": self.application,
            "applicable_chief_complaints": list(self.applicable_chief_complaints),
            "components": [c.to_dict() for c in self.components],
            "scoring": {
                "method": self.scoring.method.value,
                "ranges": [
                    {
                        "min": r.min,
                        "max": r.max,
                        "risk": r.risk,
                        "interpretation": r.interpretation,
                    }
                    for r in self.scoring.ranges
                ],
            },
            "suggested_treatments": {k: list(v) for k, v in self.suggested_treatments.items()},
        }


@dataclass(frozen=True)
class TestDefinition:
    """Orderable test from the test catalog."""
    __test__ = False

    id: str
    name: str
    category: TestCategory
    subcategory: str = ""
    common_indications: Tuple[str, ...] = ()
    unit: Optional[str] = None
    normal_range: Optional[str] = None
    quick_findings: Optional[Tuple[str, ...]] = None
    feeds_cdrs: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "subcategory": self.subcategory,
            "common_indications": list(self.common_indications),
            "unit": self.unit,
            "normal_range": self.normal_range,
            "quick_findings": list(self.quick_findings) if self.quick_findings is not None else None,
            "feeds_cdrs": list(self.feeds_cdrs),
        }


# ── Differential input ───────────────────────────────────────────────────────

@dataclass
class DifferentialItem:
    """One diagnosis of the upstream differential (worst-first order)."""
    diagnosis: str = ""
    reasoning: str = ""
    cdr_context: Optional[str] = None      # e.g. "HEART score applicable"
    urgency: Optional[str] = None
    regional_context: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DifferentialItem":
        return cls(
            diagnosis=data.get("diagnosis") or "",
            reasoning=data.get("reasoning") or "",
            cdr_context=data.get("cdr_context", data.get("cdrContext")),
            urgency=data.get("urgency"),
            regional_context=data.get("regional_context", data.get("regionalContext")),
        )


@dataclass(frozen=True)
class IdentifiedCdr:
    cdr: CdrDefinition
    readiness: Readiness

    def to_dict(self) -> dict:
        return {
            "cdr_id": self.cdr.id,
            "name": self.cdr.name,
            "full_name": self.cdr.full_name,
            "readiness": self.readiness.value,
        }


# ── Tracking state ───────────────────────────────────────────────────────────

@dataclass
class ComponentState:
    """Current answer of one component and the channel that produced it."""
    value: Optional[Number] = None
    answered: bool = False
    source: Optional[ComponentSource] = None

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "answered": self.answered,
            "source": self.source.value if self.source else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentState":
        source = data.get("source")
        return cls(
            value=data.get("value"),
            answered=bool(data.get("answered", False)),
            source=ComponentSource(source) if source else None,
        )


def derive_status(components: Dict[str, ComponentState]) -> CdrStatus:
    """pending / partial / completed from the answered flags alone."""
    if not components:
        return CdrStatus.PENDING
    answered = sum(1 for c in components.values() if c.answered)
    if answered == 0:
        return CdrStatus.PENDING
    if answered == len(components):
        return CdrStatus.COMPLETED
    return CdrStatus.PARTIAL


@dataclass
class TrackingEntry:
    """
    Per-encounter state of one matched CDR.

    Dismissal is a flag: the stored ``status``, every component answer and
    the score survive a dismiss/undismiss round trip untouched.
    """
    name: str
    status: CdrStatus = CdrStatus.PENDING
    identified_in_section: int = 1
    completed_in_section: Optional[int] = None
    dismissed: bool = False
    excluded: bool = False
    components: Dict[str, ComponentState] = field(default_factory=dict)
    score: Optional[Number] = None
    interpretation: Optional[str] = None

    @property
    def effective_status(self) -> CdrStatus:
        return CdrStatus.DISMISSED if self.dismissed else self.status

    @property
    def answered_count(self) -> int:
        return sum(1 for c in self.components.values() if c.answered)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "identified_in_section": self.identified_in_section,
            "completed_in_section": self.completed_in_section,
            "dismissed": self.dismissed,
            "excluded": self.excluded,
            "components": {cid: c.to_dict() for cid, c in self.components.items()},
            "score": self.score,
            "interpretation": self.interpretation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackingEntry":
        components = {
            cid: ComponentState.from_dict(c)
            for cid, c in (data.get("components") or {}).items()
        }
        dismissed = bool(data.get("dismissed", False))
        raw_status = data.get("status") or CdrStatus.PENDING.value
        if raw_status == CdrStatus.DISMISSED.value:
            # Older snapshots stored dismissal in the status field.
            dismissed = True
            status = derive_status(components)
        else:
            status = CdrStatus(raw_status)
        return cls(
            name=data.get("name", ""),
            status=status,
            identified_in_section=data.get("identified_in_section", 1),
            completed_in_section=data.get("completed_in_section"),
            dismissed=dismissed,
            excluded=bool(data.get("excluded", False)),
            components=components,
            score=data.get("score"),
            interpretation=data.get("interpretation"),
        )
