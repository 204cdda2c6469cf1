"""
Clinical Decision Rule Layer

Matches CDRs to a differential, tracks component answers per encounter and
scores them as soon as enough data exists.

Usage:
    from app.core.cdr import (
        CdrReconciler, CdrTrackingStore, identify_cdrs, load_cdr_catalog,
    )

    catalog = load_cdr_catalog()
    store = CdrTrackingStore()
    reconciler = CdrReconciler(store, catalog)
    reconciler.initialize(identify_cdrs(differential, catalog))
    reconciler.answer_component("heart", "history", 1, "user_input")
"""
from .base import (
    CdrComponent,
    CdrDefinition,
    CdrStatus,
    ComponentSource,
    ComponentState,
    ComponentType,
    DifferentialItem,
    IdentifiedCdr,
    Readiness,
    ScoringMethod,
    TestDefinition,
    TrackingEntry,
)
from .catalog import Catalog, load_cdr_catalog, load_test_catalog
from .matching import identify_cdrs
from .recommender import recommend_test_ids
from .scoring import ScoreResult, ScoringEngine, register_evaluator
from .tracking import CdrTrackingStore
from .reconciler import CdrReconciler, may_overwrite
from .documentation import build_mdm_cdr_lines, suggest_treatments, summarise_tracking

__all__ = [
    "CdrComponent",
    "CdrDefinition",
    "CdrStatus",
    "ComponentSource",
    "ComponentState",
    "ComponentType",
    "DifferentialItem",
    "IdentifiedCdr",
    "Readiness",
    "ScoringMethod",
    "TestDefinition",
    "TrackingEntry",
    "Catalog",
    "load_cdr_catalog",
    "load_test_catalog",
    "identify_cdrs",
    "recommend_test_ids",
    "ScoreResult",
    "ScoringEngine",
    "register_evaluator",
    "CdrTrackingStore",
    "CdrReconciler",
    "may_overwrite",
    "build_mdm_cdr_lines",
    "suggest_treatments",
    "summarise_tracking",
]
