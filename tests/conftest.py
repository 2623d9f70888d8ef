"""
Pytest fixtures and configuration for tests.
"""

import pytest
import pytest_asyncio

from workflow_builder.config import Environment, Settings
from workflow_builder.config.settings import EditorSettings, SimulationSettings, StorageSettings
from workflow_builder.core.models import Edge, Node, NodeKind
from workflow_builder.editor.engine import WorkflowEditor
from workflow_builder.simulation.simulator import MockSimulator
from workflow_builder.storage.memory import MemoryWorkflowStore

from factories import make_edge, make_node


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        environment=Environment.TEST,
        debug=True,
        log_level="DEBUG",
        storage=StorageSettings(backend="memory"),
        editor=EditorSettings(focus_flash_seconds=0.01),
        simulation=SimulationSettings(delay_seconds=0.0),
    )


@pytest.fixture
def linear_graph() -> tuple[list[Node], list[Edge]]:
    """Start -> Task -> End."""
    nodes = [
        make_node("start", NodeKind.START),
        make_node("task", NodeKind.TASK),
        make_node("end", NodeKind.END),
    ]
    edges = [make_edge("start", "task"), make_edge("task", "end")]
    return nodes, edges


@pytest.fixture
def diamond_graph() -> tuple[list[Node], list[Edge]]:
    """
    Diamond with a long and a short branch:

        a -> b -> d
        a -> c -> e -> d
    """
    nodes = [
        make_node("a", NodeKind.START),
        make_node("b"),
        make_node("c"),
        make_node("e", NodeKind.APPROVAL),
        make_node("d", NodeKind.END),
    ]
    edges = [
        make_edge("a", "c"),
        make_edge("c", "e"),
        make_edge("e", "d"),
        make_edge("a", "b"),
        make_edge("b", "d"),
    ]
    return nodes, edges


@pytest.fixture
def memory_store() -> MemoryWorkflowStore:
    return MemoryWorkflowStore()


@pytest_asyncio.fixture
async def editor(test_settings, memory_store) -> WorkflowEditor:
    """Hydrated editor over an empty in-memory store."""
    editor = WorkflowEditor(
        memory_store,
        simulator=MockSimulator(delay=0),
        settings=test_settings,
    )
    await editor.hydrate()
    return editor
