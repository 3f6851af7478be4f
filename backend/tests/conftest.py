"""
conftest.py — Shared pytest fixtures for the rate card estimator test suite.

No database or external service fixtures are defined here. The service
tests are pure unit tests; the API tests drive the FastAPI app in-process
through TestClient.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``estimator.*`` imports resolve correctly regardless of where pytest is
    invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any estimator imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Catalogue fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def catalogue():
    """(entries, categories) for the built-in rate card."""
    from estimator.services.rate_catalogue import RATE_CATEGORIES, flatten_catalogue
    return flatten_catalogue(RATE_CATEGORIES)


@pytest.fixture
def small_catalogue():
    """
    Two categories, three entries — small enough to assert on exactly.

    "Decoration" is declared first, so it must come first in both the
    entry list and the category list.
    """
    return {
        "Decoration": {
            "walls": {"description": "Walls: mist + two coats emulsion", "rate": 10.31, "unit": "m²"},
            "door": {"description": "Prime, undercoat and paint single DOOR", "rate": 214.38, "unit": "each"},
        },
        "Flooring": {
            "lvt": {"description": "LVT click flooring", "rate": 102.5, "unit": "m²", "source": "TEC1096MH"},
        },
    }


# ---------------------------------------------------------------------------
# Line item fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def example_items():
    """
    2 m² metal stud partition @ 106.51 + 1 flush door @ 798.40.
    main contract = 213.02 + 798.40 = 1011.42
    """
    from estimator.services.estimate_engine import LineItem
    return [
        LineItem(description="Metal stud partition", quantity=2, unit="m²", rate=106.51),
        LineItem(description="Standard flush door", quantity=1, unit="each", rate=798.40),
    ]


@pytest.fixture
def example_summary(example_items):
    """Summary of example_items at 8 % prelims."""
    from estimator.services.estimate_engine import calculate_estimate
    return calculate_estimate(example_items, 8)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client(tmp_path, monkeypatch):
    """TestClient running from a per-test temp directory (exports must leave it empty)."""
    from fastapi.testclient import TestClient
    from estimator.main import app
    from estimator.services.perf_monitor import tracker

    monkeypatch.chdir(tmp_path)
    tracker.reset()
    with TestClient(app) as client:
        yield client
    tracker.reset()
