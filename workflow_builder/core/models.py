"""
Domain models for the workflow builder.

All models use Pydantic for validation and serialization with full Python 3.10+ type hints.
"""

import copy
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class NodeKind(str, Enum):
    """Closed set of node kinds a workflow can contain."""

    START = "start"
    TASK = "task"
    APPROVAL = "approval"
    AUTOMATED = "automated"
    END = "end"


class NodeStatus(str, Enum):
    """Structural verdict for a node."""

    VALID = "valid"
    INVALID = "invalid"


class StyleHint(str, Enum):
    """Display hint derived from a node's status."""

    NEUTRAL = "neutral"
    INVALID = "invalid"

    @property
    def border(self) -> str:
        """CSS border a renderer should draw for this hint."""
        return _BORDERS[self]


_BORDERS = {
    StyleHint.NEUTRAL: "2px solid #999",
    StyleHint.INVALID: "2px solid red",
}


# Default data shape for each node kind; keeps editor forms free of missing fields.
DEFAULT_NODE_DATA: dict[NodeKind, dict[str, Any]] = {
    NodeKind.START: {
        "label": "Start",
        "description": "",
    },
    NodeKind.TASK: {
        "label": "Task",
        "description": "",
        "assignee": "",
    },
    NodeKind.APPROVAL: {
        "label": "Approval",
        "approver": "",
        "condition": "",
    },
    NodeKind.AUTOMATED: {
        "label": "Automated",
        "actionId": "",
        "params": {},
    },
    NodeKind.END: {
        "label": "End",
        "summary": "",
    },
}


def new_id() -> str:
    """Mint an opaque, globally unique node or edge id."""
    return str(uuid4())


def default_node_data(kind: NodeKind) -> dict[str, Any]:
    """Get an independent copy of the default data for a node kind."""
    return copy.deepcopy(DEFAULT_NODE_DATA[kind])


class Position(BaseModel):
    """Canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0


class Node(BaseModel):
    """A single node placed on the workflow canvas."""

    id: str = Field(default_factory=new_id, min_length=1, description="Unique, immutable node identifier")
    kind: NodeKind = Field(..., description="Node kind")
    position: Position = Field(default_factory=Position)
    data: dict[str, Any] = Field(default_factory=dict, description="Kind-specific free-form data")
    status: NodeStatus = Field(default=NodeStatus.VALID)
    selected: bool = Field(default=False)
    display_hint: StyleHint = Field(default=StyleHint.NEUTRAL)

    # Transient focus flash; never persisted or captured in history
    highlighted: bool = Field(default=False, exclude=True)

    @property
    def label(self) -> str:
        """Human-readable label, falling back to the id."""
        return str(self.data.get("label") or self.id)


class Edge(BaseModel):
    """A directed edge between two nodes."""

    id: str = Field(default_factory=new_id, min_length=1)
    source: str = Field(..., min_length=1, description="Source node id")
    target: str = Field(..., min_length=1, description="Target node id")


class Workflow(BaseModel):
    """
    Complete graph document.

    Unit of persistence, import, export and simulation input.
    """

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @field_validator("nodes")
    @classmethod
    def validate_unique_node_ids(cls, v: list[Node]) -> list[Node]:
        """Ensure all node IDs are unique."""
        ids = [node.id for node in v]
        if len(ids) != len(set(ids)):
            duplicates = [x for x in ids if ids.count(x) > 1]
            raise ValueError(f"Duplicate node IDs found: {set(duplicates)}")
        return v

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}


def create_node(
    kind: NodeKind,
    position: Optional[Position] = None,
    data: Optional[dict[str, Any]] = None,
    node_id: Optional[str] = None,
) -> Node:
    """
    Build a freshly dropped node.

    Args:
        kind: Node kind; selects the default data shape
        position: Canvas position (origin if omitted)
        data: Values overlaid on the kind's default data
        node_id: Explicit id, minted when omitted

    Returns:
        New Node with a neutral, valid annotation
    """
    merged = default_node_data(kind)
    if data:
        merged.update(copy.deepcopy(data))

    return Node(
        id=node_id or new_id(),
        kind=kind,
        position=position or Position(),
        data=merged,
    )


def clone_node(node: Node) -> Node:
    """Structural deep copy that shares nothing with the original."""
    return Node.model_validate(node.model_dump(mode="json"))


def clone_edge(edge: Edge) -> Edge:
    return Edge.model_validate(edge.model_dump(mode="json"))
