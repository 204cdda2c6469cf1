"""
Algorithm CDR Evaluators

Decision-tree rules whose result is a branch of the algorithm rather than a
point total. Each evaluator returns the band index used by the catalog's
scoring ranges.

PECARN head injury (catalog ranges 0 = Very Low, 1 = Intermediate, 2 = High):
    High          GCS <= 14, altered mental status, or palpable / basilar
                  skull fracture signs
    Intermediate  scalp hematoma / history of LOC, LOC >= 5 s, severe
                  mechanism, or not acting normally / severe headache
    Very Low      none of the above

Canadian C-Spine (catalog ranges 0 = Low, 1 = Not Low):
    1. Any high-risk factor (age >= 65, dangerous mechanism, paresthesias)
       → imaging.
    2. No low-risk factor allowing safe range-of-motion assessment
       → imaging.
    3. Unable to actively rotate the neck 45° left and right → imaging.
    Otherwise no imaging.
"""
from __future__ import annotations

from typing import Dict, Optional

from .base import CdrDefinition, ComponentState, Number
from .rules_threshold import is_positive

# ── PECARN ────────────────────────────────────────────────────────────────────

PECARN_HIGH_RISK = ("gcs_lte_14", "altered_mental_status", "palpable_skull_fracture")
PECARN_INTERMEDIATE_RISK = (
    "scalp_hematoma",
    "loss_of_consciousness",
    "severe_mechanism",
    "acting_abnormally",
)

PECARN_VERY_LOW = 0
PECARN_INTERMEDIATE = 1
PECARN_HIGH = 2


def evaluate_pecarn(
    definition: CdrDefinition,
    components: Dict[str, ComponentState],
) -> Optional[Number]:
    if any(is_positive(components, cid) for cid in PECARN_HIGH_RISK):
        return PECARN_HIGH
    if any(is_positive(components, cid) for cid in PECARN_INTERMEDIATE_RISK):
        return PECARN_INTERMEDIATE
    return PECARN_VERY_LOW


# ── Canadian C-Spine ──────────────────────────────────────────────────────────

CSPINE_HIGH_RISK = ("age_gte_65", "dangerous_mechanism", "paresthesias")
CSPINE_LOW_RISK = (
    "simple_rear_end_mvc",
    "sitting_in_ed",
    "ambulatory_at_any_time",
    "delayed_onset_neck_pain",
    "midline_tenderness_absent",
)
CSPINE_ROTATION = "able_to_rotate_neck"

CSPINE_NO_IMAGING = 0
CSPINE_IMAGING = 1


def evaluate_canadian_cspine(
    definition: CdrDefinition,
    components: Dict[str, ComponentState],
) -> Optional[Number]:
    if any(is_positive(components, cid) for cid in CSPINE_HIGH_RISK):
        return CSPINE_IMAGING
    if not any(is_positive(components, cid) for cid in CSPINE_LOW_RISK):
        return CSPINE_IMAGING
    if not is_positive(components, CSPINE_ROTATION):
        return CSPINE_IMAGING
    return CSPINE_NO_IMAGING
