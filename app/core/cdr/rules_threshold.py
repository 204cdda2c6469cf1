"""
Threshold CDR Evaluators

Rule-out criteria sets scored by counting positive criteria. The count is
matched against the catalog ranges, where 0 is the "Low" band and any
positive criterion falls into "Not Low".

Rules covered:
    perc          Pulmonary Embolism Rule-out Criteria (8 criteria)
    nexus         NEXUS cervical-spine criteria (5 criteria)
    ottawa_ankle  Ottawa Ankle Rules (4 criteria)
    ottawa_knee   Ottawa Knee Rules (5 criteria)
"""
from __future__ import annotations

from typing import Dict, Optional

from .base import CdrDefinition, ComponentState, Number


def is_positive(components: Dict[str, ComponentState], component_id: str) -> bool:
    """True when the component is answered with a non-zero value."""
    state = components.get(component_id)
    return bool(state and state.answered and state.value)


def evaluate_criteria_count(
    definition: CdrDefinition,
    components: Dict[str, ComponentState],
) -> Optional[Number]:
    """Number of criteria present; each criterion counts once whatever its weight."""
    return sum(1 for comp in definition.components if is_positive(components, comp.id))


evaluate_perc = evaluate_criteria_count
evaluate_nexus = evaluate_criteria_count
evaluate_ottawa_ankle = evaluate_criteria_count
evaluate_ottawa_knee = evaluate_criteria_count
