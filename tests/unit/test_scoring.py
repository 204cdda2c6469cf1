"""
Unit Tests for the Scoring Engine and Rule Evaluators
"""
import pytest

from app.core.cdr.base import ComponentSource, ComponentState, TrackingEntry
from app.core.cdr.scoring import (
    ScoreResult,
    ScoringEngine,
    extract_risk_level,
    interpret,
    registered_evaluators,
)
from app.core.cdr.rules_algorithm import evaluate_canadian_cspine, evaluate_pecarn


def _entry(values, name="rule"):
    return TrackingEntry(
        name=name,
        components={
            cid: ComponentState(value=v, answered=True, source=ComponentSource.USER_INPUT)
            for cid, v in values.items()
        },
    )


def _answer_all(definition, positives=(), default=0):
    values = {}
    for comp in definition.components:
        values[comp.id] = comp.weight if comp.id in positives else default
    return _entry(values, definition.name)


class TestSumScoring:
    """Tests for sum-method scoring."""

    def test_moderate_example(self, heart_like):
        """Test a moderate-risk sum score."""
        entry = _entry({"history": 1, "ecg": 0, "age": 2, "troponin": 2})
        result = ScoringEngine().score(entry, heart_like)

        assert result.score == 5
        assert result.interpretation == "Moderate: 12-16.6% MACE"

    def test_partial_entry_has_no_score(self, heart_like):
        """Test a partial entry is not scored."""
        entry = _entry({"history": 1, "ecg": 0, "age": 2})
        entry.components["troponin"] = ComponentState()
        assert ScoringEngine().score(entry, heart_like) == ScoreResult()

    def test_out_of_range_score_has_no_interpretation(self, heart_like):
        """Test a score outside every range."""
        entry = _entry({"history": 2, "ecg": 2, "age": 2, "troponin": 2})
        result = ScoringEngine().score(entry, heart_like)

        assert result.score == 8
        assert result.interpretation is None

    def test_negative_weights(self, cdr_catalog):
        """Test sums with negative weights."""
        wells_dvt = cdr_catalog.get("wells_dvt")
        entry = _answer_all(wells_dvt, positives={"alternative_diagnosis"})
        result = ScoringEngine().score(entry, wells_dvt)

        assert result.score == -2
        assert result.interpretation.startswith("Low:")

    def test_fractional_weights(self, cdr_catalog):
        """Test sums with fractional weights."""
        wells_pe = cdr_catalog.get("wells_pe")
        entry = _answer_all(wells_pe, positives={"hr_gt_100", "hemoptysis"})
        result = ScoringEngine().score(entry, wells_pe)

        assert result.score == pytest.approx(2.5)
        assert result.interpretation.startswith("Moderate:")

    def test_bundled_heart(self, cdr_catalog):
        """Test the bundled HEART score."""
        heart = cdr_catalog.get("heart")
        entry = _entry({"history": 2, "ecg": 1, "age": 2, "risk_factors": 2, "troponin": 1})
        result = ScoringEngine().score(entry, heart)

        assert result.score == 8
        assert extract_risk_level(result.interpretation) == "High"


class TestMissingDefinition:
    """Tests for stale catalogs."""

    def test_keeps_prior_values(self):
        """Test scoring without a definition keeps prior values."""
        entry = _entry({"a": 1})
        entry.score = 4
        entry.interpretation = "Moderate: something"

        result = ScoringEngine().score(entry, None)

        assert result == ScoreResult(4, "Moderate: something")


class TestEvaluatorRegistry:
    """Tests for threshold/algorithm evaluator dispatch."""

    def test_builtin_evaluators_registered(self):
        """Test the built-in evaluators are registered."""
        assert {"perc", "nexus", "ottawa_ankle", "ottawa_knee", "pecarn", "canadian_cspine"} <= set(
            registered_evaluators()
        )

    def test_no_evaluator_gives_no_score(self, cdr_catalog):
        """Test a rule with no evaluator has no score."""
        perc = cdr_catalog.get("perc")
        result = ScoringEngine(evaluators={}).score(_answer_all(perc), perc)
        assert result == ScoreResult()

    def test_failing_evaluator_keeps_prior_values(self, cdr_catalog):
        """Test a crashing evaluator keeps prior values."""
        def broken(definition, components):
            raise RuntimeError("boom")

        perc = cdr_catalog.get("perc")
        entry = _answer_all(perc)
        entry.score = 0
        entry.interpretation = "Low: prior"

        result = ScoringEngine(evaluators={"perc": broken}).score(entry, perc)

        assert result == ScoreResult(0, "Low: prior")

    def test_custom_evaluator(self, cdr_catalog):
        """Test an injected evaluator."""
        perc = cdr_catalog.get("perc")
        engine = ScoringEngine(evaluators={"perc": lambda definition, components: 1})
        result = engine.score(_answer_all(perc), perc)
        assert result.score == 1
        assert result.interpretation.startswith("Not Low:")


class TestThresholdRules:
    """Tests for criteria-count rules."""

    def test_perc_negative(self, cdr_catalog):
        """Test PERC with no criteria present."""
        perc = cdr_catalog.get("perc")
        result = ScoringEngine().score(_answer_all(perc), perc)
        assert result.score == 0
        assert extract_risk_level(result.interpretation) == "Low"

    def test_perc_positive(self, cdr_catalog):
        """Test PERC with a criterion present."""
        perc = cdr_catalog.get("perc")
        entry = _answer_all(perc, positives={"hemoptysis", "hormone_use"})
        result = ScoringEngine().score(entry, perc)
        assert result.score == 2
        assert extract_risk_level(result.interpretation) == "Not Low"

    def test_ottawa_ankle(self, cdr_catalog):
        """Test the Ottawa Ankle criteria count."""
        ankle = cdr_catalog.get("ottawa_ankle")
        entry = _answer_all(ankle, positives={"inability_to_bear_weight"})
        assert ScoringEngine().score(entry, ankle).score == 1


class TestAlgorithmRules:
    """Tests for decision-tree rules."""

    def test_pecarn_high(self, cdr_catalog):
        """Test PECARN high-risk branch."""
        pecarn = cdr_catalog.get("pecarn")
        entry = _answer_all(pecarn, positives={"gcs_lte_14", "scalp_hematoma"})
        assert evaluate_pecarn(pecarn, entry.components) == 2

    def test_pecarn_intermediate(self, cdr_catalog):
        """Test PECARN intermediate branch."""
        pecarn = cdr_catalog.get("pecarn")
        entry = _answer_all(pecarn, positives={"severe_mechanism"})
        result = ScoringEngine().score(entry, pecarn)
        assert result.score == 1
        assert extract_risk_level(result.interpretation) == "Intermediate"

    def test_pecarn_very_low(self, cdr_catalog):
        """Test PECARN very-low-risk branch."""
        pecarn = cdr_catalog.get("pecarn")
        assert evaluate_pecarn(pecarn, _answer_all(pecarn).components) == 0

    def test_cspine_high_risk_factor(self, cdr_catalog):
        """Test C-Spine with a high-risk factor."""
        rule = cdr_catalog.get("canadian_cspine")
        entry = _answer_all(rule, positives={"age_gte_65", "sitting_in_ed", "able_to_rotate_neck"})
        assert evaluate_canadian_cspine(rule, entry.components) == 1

    def test_cspine_no_low_risk_factor(self, cdr_catalog):
        """Test C-Spine without a low-risk factor."""
        rule = cdr_catalog.get("canadian_cspine")
        entry = _answer_all(rule, positives={"able_to_rotate_neck"})
        assert evaluate_canadian_cspine(rule, entry.components) == 1

    def test_cspine_cannot_rotate(self, cdr_catalog):
        """Test C-Spine when the neck cannot rotate."""
        rule = cdr_catalog.get("canadian_cspine")
        entry = _answer_all(rule, positives={"sitting_in_ed"})
        assert evaluate_canadian_cspine(rule, entry.components) == 1

    def test_cspine_cleared(self, cdr_catalog):
        """Test C-Spine clearance."""
        rule = cdr_catalog.get("canadian_cspine")
        entry = _answer_all(rule, positives={"ambulatory_at_any_time", "able_to_rotate_neck"})
        result = ScoringEngine().score(entry, rule)
        assert result.score == 0
        assert extract_risk_level(result.interpretation) == "Low"


class TestInterpretationHelpers:
    """Tests for interpret / extract_risk_level."""

    def test_first_listed_range_wins(self, heart_like):
        """Test overlapping ranges resolve to the first listed."""
        assert interpret(heart_like.scoring, 3).startswith("Low:")
        assert interpret(heart_like.scoring, 4).startswith("Moderate:")

    def test_gap(self, heart_like):
        """Test scores that fall between ranges."""
        assert interpret(heart_like.scoring, 3.5) is None

    @pytest.mark.parametrize("text,expected", [
        ("Moderate: 12-16.6% MACE", "Moderate"),
        ("Not Low: imaging", "Not Low"),
        ("no colon here", None),
        (None, None),
        ("", None),
    ])
    def test_extract_risk_level(self, text, expected):
        """Test risk level extraction from interpretations."""
        assert extract_risk_level(text) == expected
