"""
CDR Documentation Helpers

Derives what generated MDM documentation needs from a tracking store:
a compact summary, one text line per included CDR, and treatment
suggestions from completed CDR risk levels.

Dismissed and excluded entries are left out of generated text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .base import CdrStatus, Number
from .catalog import CdrCatalog
from .scoring import extract_risk_level
from .tracking import CdrTrackingStore

# Words kept in a fixed case when turning treatment ids into labels
_LABEL_FIXUPS = {
    "Icu": "ICU",
    "Iv": "IV",
    "Ctpa": "CTPA",
    "Ct": "CT",
    "Doac": "DOAC",
    "Ml": "mL",
    "Kg": "kg",
    "If": "if",
    "Or": "or",
    "And": "and",
    "Of": "of",
    "With": "with",
    "For": "for",
}


def format_treatment_label(treatment_id: str) -> str:
    """snake_case treatment id → display label ("iv_fluids_30ml_kg" → "IV Fluids 30ml kg")."""
    words = treatment_id.replace("_", " ").split()
    return " ".join(_LABEL_FIXUPS.get(w.capitalize(), w.capitalize()) for w in words)


@dataclass
class TreatmentGroup:
    """Suggested treatments derived from one completed CDR."""
    cdr_id: str
    cdr_name: str
    risk_level: str
    score: Number
    treatments: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "cdr_id": self.cdr_id,
            "cdr_name": self.cdr_name,
            "risk_level": self.risk_level,
            "score": self.score,
            "treatments": self.treatments,
        }


def summarise_tracking(store: CdrTrackingStore) -> Dict:
    """
    Compact summary suitable for JSON API responses.

    Example output:
    {
        "total": 2,
        "completed_count": 1,
        "pending_count": 1,
        "dismissed_count": 0,
        "excluded_count": 0,
        "entries": {"heart": {..., "effective_status": "completed"}}
    }
    """
    entries = dict(store.items())
    effective = {cid: e.effective_status for cid, e in entries.items()}
    return {
        "total": len(entries),
        "completed_count": sum(1 for s in effective.values() if s == CdrStatus.COMPLETED),
        "pending_count": sum(
            1 for s in effective.values() if s in (CdrStatus.PENDING, CdrStatus.PARTIAL)
        ),
        "dismissed_count": sum(1 for s in effective.values() if s == CdrStatus.DISMISSED),
        "excluded_count": sum(1 for e in entries.values() if e.excluded),
        "entries": {
            cid: {**e.to_dict(), "effective_status": effective[cid].value}
            for cid, e in entries.items()
        },
    }


def build_mdm_cdr_lines(store: CdrTrackingStore) -> List[str]:
    """One documentation line per CDR that is neither dismissed nor excluded."""
    lines: List[str] = []
    for _, entry in store.items():
        if entry.dismissed or entry.excluded:
            continue
        if entry.status == CdrStatus.COMPLETED:
            if entry.score is None:
                lines.append(f"{entry.name}: completed")
            elif entry.interpretation:
                lines.append(f"{entry.name}: {entry.score} ({entry.interpretation})")
            else:
                lines.append(f"{entry.name}: {entry.score}")
        else:
            lines.append(
                f"{entry.name}: pending ({entry.answered_count}/{len(entry.components)} components)"
            )
    return lines


def suggest_treatments(store: CdrTrackingStore, catalog: CdrCatalog) -> List[TreatmentGroup]:
    """
    Treatment suggestions for completed, non-dismissed CDRs.

    Treatment ids are namespaced "{cdr_id}:{treatment_id}" so the same
    treatment suggested by two CDRs stays separately selectable.
    """
    groups: List[TreatmentGroup] = []
    for cdr_id, entry in store.items():
        if entry.status != CdrStatus.COMPLETED or entry.dismissed:
            continue
        if entry.score is None or not entry.interpretation:
            continue
        definition = catalog.get(cdr_id)
        if definition is None or not definition.suggested_treatments:
            continue
        risk_level = extract_risk_level(entry.interpretation)
        treatment_ids = definition.suggested_treatments.get(risk_level or "", ())
        if not treatment_ids:
            continue
        groups.append(TreatmentGroup(
            cdr_id=cdr_id,
            cdr_name=entry.name,
            risk_level=risk_level,
            score=entry.score,
            treatments=[
                {"id": f"{cdr_id}:{tid}", "label": format_treatment_label(tid)}
                for tid in treatment_ids
            ],
        ))
    return groups
