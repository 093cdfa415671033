"""
pytest configuration for workflow engine tests.

Adds the repository root to sys.path so that
'from project_workflow.engine.xxx import ...' works without an install.
"""

import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from project_workflow.engine.persistence import InMemoryPersistence, JsonFilePersistence  # noqa: E402
from project_workflow.engine.store import WorkflowStore  # noqa: E402


@pytest.fixture
def memory_persistence():
    return InMemoryPersistence()


@pytest.fixture
def store(memory_persistence):
    """Store over an empty in-memory backend."""
    return WorkflowStore(memory_persistence)


@pytest.fixture
def json_path(tmp_path):
    return tmp_path / "data" / "workflows.json"


@pytest.fixture
def json_store(json_path):
    """Store over a workflows.json file that does not exist yet."""
    return WorkflowStore(JsonFilePersistence(json_path))
