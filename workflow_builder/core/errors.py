"""
Exception hierarchy for the workflow builder.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workflow_builder.core.validation import StructuralIssue


class WorkflowBuilderError(Exception):
    """Base class for all workflow builder errors."""


class NodeNotFoundError(WorkflowBuilderError):
    """Raised when an operation references a node that is not in the graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class EdgeNotFoundError(WorkflowBuilderError):
    """Raised when an operation references an edge that is not in the graph."""

    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Edge not found: {edge_id}")


class DuplicateNodeError(WorkflowBuilderError):
    """Raised when a node id is already taken."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node id already exists: {node_id}")


class InvalidNodeKindError(WorkflowBuilderError):
    """Raised when an operation does not apply to the node's kind."""

    def __init__(self, node_id: str, kind: str, message: str = ""):
        self.node_id = node_id
        self.kind = kind
        super().__init__(
            f"Operation not supported for {kind} node {node_id}"
            + (f": {message}" if message else "")
        )


class WorkflowParseError(WorkflowBuilderError):
    """Raised when workflow text cannot be parsed into a Workflow."""


class PersistenceError(WorkflowBuilderError):
    """Raised by storage adapters when a workflow cannot be loaded or saved."""


class WorkflowValidationError(WorkflowBuilderError):
    """Raised when a workflow fails the structural precheck."""

    def __init__(self, issues: list["StructuralIssue"]):
        self.issues = issues
        super().__init__(
            "Workflow validation failed: " + "; ".join(i.message for i in issues)
        )

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]


class SimulationInProgressError(WorkflowBuilderError):
    """Raised when a simulation is requested while another is outstanding."""

    def __init__(self):
        super().__init__("A simulation is already running")


class EditorNotHydratedError(WorkflowBuilderError):
    """Raised when the editor is mutated before the saved workflow is loaded."""

    def __init__(self):
        super().__init__("Editor has not been hydrated yet; call hydrate() first")
