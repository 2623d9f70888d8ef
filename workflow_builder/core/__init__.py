"""Core domain models and graph logic."""

from workflow_builder.core.models import (
    DEFAULT_NODE_DATA,
    Edge,
    Node,
    NodeKind,
    NodeStatus,
    Position,
    StyleHint,
    Workflow,
    create_node,
)
from workflow_builder.core.graph_store import GraphStore
from workflow_builder.core.history import HistoryManager
from workflow_builder.core.layout import auto_layout
from workflow_builder.core.validation import StructuralIssue, check_workflow, validate_graph

__all__ = [
    "DEFAULT_NODE_DATA",
    "Edge",
    "Node",
    "NodeKind",
    "NodeStatus",
    "Position",
    "StyleHint",
    "Workflow",
    "create_node",
    "GraphStore",
    "HistoryManager",
    "auto_layout",
    "StructuralIssue",
    "check_workflow",
    "validate_graph",
]
