"""
CDR Matcher

Determines which Clinical Decision Rules apply to a differential diagnosis.

Matching is a union of independent passes. Each pass is a predicate
``(definition, corpus) -> bool``; a rule is identified by the first pass
that accepts it and is never reported twice.

    Pass A  cdr_context narrative mentions the rule's name or full name
    Pass B  a chief-complaint keyword appears in a diagnosis name

Adding a strategy:
    1. Write ``def matches_<strategy>(cdr, corpus) -> bool``
    2. Append it to CDR_MATCH_PASSES below.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, TypeVar

from .base import CdrDefinition, DifferentialItem, IdentifiedCdr, Readiness

logger = logging.getLogger(__name__)

D = TypeVar("D")


def normalise(text: str) -> str:
    """Lower-case text and read snake_case keywords as words."""
    return (text or "").lower().replace("_", " ").strip()


def contains(haystack: str, needle: str) -> bool:
    """Substring test that never lets an empty needle match everything."""
    return bool(needle) and needle in haystack


@dataclass(frozen=True)
class MatchCorpus:
    """Normalised text of a differential, built once per matching run."""
    diagnoses: Tuple[str, ...]
    cdr_contexts: Tuple[str, ...]
    reasoning: str

    @classmethod
    def from_differential(cls, differential: Sequence[DifferentialItem]) -> "MatchCorpus":
        return cls(
            diagnoses=tuple(normalise(item.diagnosis) for item in differential if item.diagnosis),
            cdr_contexts=tuple(normalise(item.cdr_context) for item in differential if item.cdr_context),
            reasoning=" ".join(normalise(item.reasoning) for item in differential if item.reasoning),
        )


MatchPredicate = Callable[[D, MatchCorpus], bool]


def run_passes(
    candidates: Iterable[D],
    corpus: MatchCorpus,
    passes: Sequence[MatchPredicate],
    key: Callable[[D], str],
) -> Dict[str, D]:
    """
    Apply ordered predicate passes to candidates.

    Returns matched candidates keyed by id, in order of discovery.
    """
    candidates = list(candidates)
    matched: Dict[str, D] = {}
    for predicate in passes:
        for candidate in candidates:
            candidate_id = key(candidate)
            if candidate_id in matched:
                continue
            if predicate(candidate, corpus):
                matched[candidate_id] = candidate
                logger.debug(f"Matcher: '{candidate_id}' accepted by {predicate.__name__}")
    return matched


# ── CDR passes ───────────────────────────────────────────────────────────────

def matches_cdr_context(cdr: CdrDefinition, corpus: MatchCorpus) -> bool:
    """Pass A: the rule's short or full name appears in a cdr_context narrative."""
    name = normalise(cdr.name)
    full_name = normalise(cdr.full_name)
    return any(
        contains(ctx, name) or contains(ctx, full_name)
        for ctx in corpus.cdr_contexts
    )


def matches_chief_complaint(cdr: CdrDefinition, corpus: MatchCorpus) -> bool:
    """Pass B: a chief-complaint keyword appears in any diagnosis name."""
    for complaint in cdr.applicable_chief_complaints:
        keyword = normalise(complaint)
        if any(contains(dx, keyword) for dx in corpus.diagnoses):
            return True
    return False


CDR_MATCH_PASSES: Tuple[MatchPredicate, ...] = (
    matches_cdr_context,
    matches_chief_complaint,
)


def compute_readiness(cdr: CdrDefinition) -> Readiness:
    """needs_results when any component waits on the result pipeline."""
    return Readiness.NEEDS_RESULTS if cdr.needs_results else Readiness.COMPLETABLE


def identify_cdrs(
    differential: Sequence[DifferentialItem],
    catalog: Iterable[CdrDefinition],
    passes: Sequence[MatchPredicate] = CDR_MATCH_PASSES,
) -> List[IdentifiedCdr]:
    """
    Identify the CDRs applicable to a differential diagnosis.

    Args:
        differential: Diagnosis items from the upstream narrative analysis.
                      Missing text fields simply never match.
        catalog:      CDR definitions (a Catalog or any iterable).
        passes:       Ordered matching predicates.

    Returns:
        One IdentifiedCdr per matched rule, deduplicated by rule id.
        Empty differential or catalog yields an empty list.
    """
    definitions = list(catalog)
    if not differential or not definitions:
        return []

    corpus = MatchCorpus.from_differential(differential)
    matched = run_passes(definitions, corpus, passes, key=lambda cdr: cdr.id)

    identified = [IdentifiedCdr(cdr=cdr, readiness=compute_readiness(cdr)) for cdr in matched.values()]
    if identified:
        logger.info(
            f"Matcher: {len(identified)} CDR(s) identified: "
            + ", ".join(i.cdr.id for i in identified)
        )
    return identified
