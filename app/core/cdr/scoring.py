"""
CDR Scoring Engine

Pure scoring: component answers → score → risk interpretation.

    sum        total of the answered component values, produced once every
               component is answered
    threshold  criteria count from the evaluator registered for the CDR id
    algorithm  decision-tree band from the evaluator registered for the CDR id

A threshold or algorithm rule with no registered evaluator has no score.

Adding a rule-specific evaluator:
    1. Implement ``evaluate_<rule>(definition, components) -> Optional[Number]``
       in rules_threshold.py or rules_algorithm.py
    2. Register it in _RULE_EVALUATORS below (or call register_evaluator()).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .base import (
    CdrDefinition,
    ComponentState,
    Number,
    ScoringMethod,
    ScoringSpec,
    TrackingEntry,
)
from .rules_algorithm import evaluate_canadian_cspine, evaluate_pecarn
from .rules_threshold import (
    evaluate_nexus,
    evaluate_ottawa_ankle,
    evaluate_ottawa_knee,
    evaluate_perc,
)

logger = logging.getLogger(__name__)

RuleEvaluator = Callable[[CdrDefinition, Dict[str, ComponentState]], Optional[Number]]

# ── Registry: CDR id → rule-specific evaluator ───────────────────────────────
# Only consulted for threshold/algorithm rules; sum rules are scored generically.
_RULE_EVALUATORS: Dict[str, RuleEvaluator] = {
    "perc":            evaluate_perc,
    "nexus":           evaluate_nexus,
    "ottawa_ankle":    evaluate_ottawa_ankle,
    "ottawa_knee":     evaluate_ottawa_knee,
    "pecarn":          evaluate_pecarn,
    "canadian_cspine": evaluate_canadian_cspine,
}


def register_evaluator(cdr_id: str, evaluator: RuleEvaluator) -> None:
    """Plug in an evaluator for a threshold/algorithm CDR."""
    _RULE_EVALUATORS[cdr_id] = evaluator


def registered_evaluators() -> Dict[str, RuleEvaluator]:
    return dict(_RULE_EVALUATORS)


@dataclass(frozen=True)
class ScoreResult:
    score: Optional[Number] = None
    interpretation: Optional[str] = None


def interpret(scoring: ScoringSpec, score: Number) -> Optional[str]:
    """
    "{risk}: {interpretation}" for the first range containing the score.

    Returns None when the score falls in a catalog gap or the range lacks
    either text.
    """
    rng = scoring.find_range(score)
    if rng is None or not rng.risk or not rng.interpretation:
        return None
    return f"{rng.risk}: {rng.interpretation}"


def extract_risk_level(interpretation: Optional[str]) -> Optional[str]:
    """Risk label of an interpretation string ("Moderate: 12-16.6% ..." → "Moderate")."""
    if not interpretation:
        return None
    colon = interpretation.find(":")
    if colon > 0:
        return interpretation[:colon].strip()
    return None


class ScoringEngine:
    """
    Computes a tracking entry's score from its component answers.

    Stateless apart from the evaluator registry it was built with.
    """

    def __init__(self, evaluators: Optional[Dict[str, RuleEvaluator]] = None):
        self._evaluators = dict(_RULE_EVALUATORS if evaluators is None else evaluators)

    def score(self, entry: TrackingEntry, definition: Optional[CdrDefinition]) -> ScoreResult:
        """
        Score one tracking entry.

        Args:
            entry:      The tracking entry (not modified).
            definition: Its catalog definition, or None when the catalog no
                        longer carries the rule.

        Returns:
            ScoreResult. A missing definition or a failing evaluator yields
            the entry's last known score and interpretation.
        """
        if definition is None:
            logger.warning(
                f"ScoringEngine: no definition for '{entry.name}', keeping last known score"
            )
            return ScoreResult(entry.score, entry.interpretation)

        components = entry.components
        all_answered = all(
            components.get(comp.id) is not None and components[comp.id].answered
            for comp in definition.components
        )
        if not all_answered:
            return ScoreResult()

        method = definition.scoring.method
        if method == ScoringMethod.SUM:
            score = sum(
                components[comp.id].value or 0
                for comp in definition.components
            )
        else:
            evaluator = self._evaluators.get(definition.id)
            if evaluator is None:
                logger.debug(
                    f"ScoringEngine [{definition.id}]: no evaluator for {method.value} scoring"
                )
                return ScoreResult()
            try:
                score = evaluator(definition, components)
            except Exception as exc:
                logger.error(
                    f"ScoringEngine [{definition.id}]: evaluator raised {exc}",
                    exc_info=True
                )
                return ScoreResult(entry.score, entry.interpretation)
            if score is None:
                return ScoreResult()

        interpretation = interpret(definition.scoring, score)
        if interpretation is None:
            logger.warning(
                f"ScoringEngine [{definition.id}]: score {score} outside all scoring ranges"
            )
        return ScoreResult(score, interpretation)
