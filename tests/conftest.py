"""
Shared fixtures: a throwaway SQLite document store per test, and a
WorkflowService on top of it.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from document_store import DocumentStore  # noqa: E402
from models import Variant  # noqa: E402
from workflow_service import WorkflowService  # noqa: E402

TODAY = "10/05/2024"


@pytest.fixture
def store(tmp_path):
    return DocumentStore(str(tmp_path / "visionary_test.db"))


@pytest.fixture
def service(store):
    svc = WorkflowService(store)
    yield svc
    svc.close()


@pytest.fixture
def make_variant():
    """Builds an in-memory Variant with sensible defaults."""
    def _make(**overrides):
        fields = {
            "id": "1700000000000",
            "header_id": "1600000000000",
            "name": "Hook A",
            "status": "In Progress",
            "created_date": "01/05/2024",
            "landing_page": "Product page",
            "concept": "Before / after",
        }
        fields.update(overrides)
        return Variant(**fields)
    return _make
