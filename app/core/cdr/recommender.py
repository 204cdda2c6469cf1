"""
Test Recommender

Suggests orderable tests for a differential with the same pass-based
matching the CDR matcher uses. Containment runs the other way round:

    Pass 1  the test's name appears in the combined reasoning text
    Pass 2  a common-indication keyword appears in a diagnosis name

False positives are acceptable; the physician reviews the selection.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .base import DifferentialItem, TestDefinition
from .matching import MatchCorpus, MatchPredicate, contains, normalise, run_passes

logger = logging.getLogger(__name__)


def matches_name_in_reasoning(test: TestDefinition, corpus: MatchCorpus) -> bool:
    return contains(corpus.reasoning, normalise(test.name))


def matches_indication(test: TestDefinition, corpus: MatchCorpus) -> bool:
    for indication in test.common_indications:
        keyword = normalise(indication)
        if any(contains(dx, keyword) for dx in corpus.diagnoses):
            return True
    return False


TEST_MATCH_PASSES: Tuple[MatchPredicate, ...] = (
    matches_name_in_reasoning,
    matches_indication,
)


def recommend_test_ids(
    differential: Sequence[DifferentialItem],
    test_catalog: Iterable[TestDefinition],
    trusted_ids: Optional[Sequence[str]] = None,
    passes: Sequence[MatchPredicate] = TEST_MATCH_PASSES,
) -> List[str]:
    """
    Recommend test ids for a differential.

    Trusted ids (from an external recommendation list) are validated against
    the catalog and kept verbatim, first and in their given order. Heuristic
    matches are appended only when not already present.
    """
    tests = list(test_catalog)
    if not tests:
        return []
    known_ids = {t.id for t in tests}

    recommended: List[str] = []
    for test_id in trusted_ids or ():
        if test_id not in known_ids:
            logger.warning(f"Recommender: trusted test id '{test_id}' not in catalog, dropped")
            continue
        if test_id not in recommended:
            recommended.append(test_id)

    if differential:
        corpus = MatchCorpus.from_differential(differential)
        for test_id in run_passes(tests, corpus, passes, key=lambda t: t.id):
            if test_id not in recommended:
                recommended.append(test_id)

    logger.debug(f"Recommender: {len(recommended)} test(s) recommended")
    return recommended
