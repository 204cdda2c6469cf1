"""
Pytest Configuration and Fixtures

Shared fixtures for CDR core tests.
"""
import pytest
from pathlib import Path
import sys
from typing import Any, Dict, List

# Add app to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.cdr.base import DifferentialItem
from app.core.cdr.catalog import (
    CdrCatalog,
    TestCatalog,
    load_cdr_catalog,
    load_test_catalog,
    parse_cdr_definitions,
)
from app.core.cdr.reconciler import CdrReconciler
from app.core.cdr.tracking import CdrTrackingStore


def _select(component_id: str, source: str) -> Dict[str, Any]:
    return {
        "id": component_id,
        "label": component_id.replace("_", " ").title(),
        "type": "select",
        "source": source,
        "options": [
            {"label": "Low", "value": 0},
            {"label": "Moderate", "value": 1},
            {"label": "High", "value": 2},
        ],
    }


@pytest.fixture
def heart_like_document() -> Dict[str, Any]:
    """Sum rule with three section1 components and one section2 component."""
    return {
        "id": "heart_like",
        "name": "HEART-like",
        "fullName": "History ECG Age Troponin",
        "applicableChiefComplaints": ["chest_pain"],
        "components": [
            _select("history", "section1"),
            _select("ecg", "section1"),
            _select("age", "section1"),
            _select("troponin", "section2"),
        ],
        "scoring": {
            "method": "sum",
            "ranges": [
                {"min": 0, "max": 3, "risk": "Low", "interpretation": "0.9-1.7% MACE"},
                {"min": 4, "max": 6, "risk": "Moderate", "interpretation": "12-16.6% MACE"},
            ],
        },
        "suggestedTreatments": {
            "Moderate": ["aspirin_325", "serial_troponins"],
        },
    }


@pytest.fixture
def heart_like_catalog(heart_like_document) -> CdrCatalog:
    return parse_cdr_definitions([heart_like_document])


@pytest.fixture
def heart_like(heart_like_catalog):
    return heart_like_catalog.get("heart_like")


@pytest.fixture(scope="session")
def cdr_catalog() -> CdrCatalog:
    """Bundled CDR library."""
    return load_cdr_catalog()


@pytest.fixture(scope="session")
def test_catalog() -> TestCatalog:
    """Bundled test library."""
    return load_test_catalog()


@pytest.fixture
def store() -> CdrTrackingStore:
    return CdrTrackingStore()


@pytest.fixture
def reconciler(store, heart_like_catalog) -> CdrReconciler:
    return CdrReconciler(store, heart_like_catalog)


@pytest.fixture
def chest_pain_differential() -> List[DifferentialItem]:
    return [
        DifferentialItem(
            diagnosis="Acute coronary syndrome",
            reasoning="Exertional chest pressure; obtain ECG and troponin",
            cdr_context="HEART score applicable for chest pain risk stratification",
            urgency="emergent",
        ),
        DifferentialItem(
            diagnosis="Atypical chest pain",
            reasoning="Reproducible on palpation",
        ),
    ]
