"""
Structural validation of workflow graphs.

Annotates every node with a status and display hint, and produces the
human-readable precheck run before a simulation.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from workflow_builder.core.models import Edge, Node, NodeKind, NodeStatus, StyleHint, Workflow


@dataclass
class StructuralIssue:
    """Represents a single structural problem in a workflow."""

    code: str
    message: str
    node_id: Optional[str] = None


def _incident_ids(edges: Iterable[Edge]) -> tuple[set[str], set[str]]:
    """Get (ids with an outgoing edge, ids with an incoming edge)."""
    sources: set[str] = set()
    targets: set[str] = set()
    for edge in edges:
        sources.add(edge.source)
        targets.add(edge.target)
    return sources, targets


def _invalidate(node: Node) -> None:
    node.status = NodeStatus.INVALID
    node.display_hint = StyleHint.INVALID


def validate_graph(nodes: list[Node], edges: list[Edge]) -> list[Node]:
    """
    Compute the structural verdict for every node.

    Rules, in order:
    1. Reset every node to valid with a neutral hint
    2. Anything other than exactly one Start node marks every Start invalid
    3. A single Start node without an outgoing edge is invalid
    4. Any node with no incident edge at all is invalid

    An invalid verdict is never reverted within one pass.

    Args:
        nodes: Current nodes (left untouched)
        edges: Current edges

    Returns:
        New node objects carrying the computed status and hint
    """
    updated = [
        node.model_copy(update={"status": NodeStatus.VALID, "display_hint": StyleHint.NEUTRAL})
        for node in nodes
    ]
    sources, targets = _incident_ids(edges)

    starts = [node for node in updated if node.kind == NodeKind.START]
    if len(starts) != 1:
        for start in starts:
            _invalidate(start)
    elif starts[0].id not in sources:
        _invalidate(starts[0])

    for node in updated:
        if node.id not in sources and node.id not in targets:
            _invalidate(node)

    return updated


def needs_update(current: list[Node], validated: list[Node]) -> bool:
    """
    Check whether applying a validation pass would change anything.

    Gating the replace on this keeps the post-commit validation hook from
    looping forever.
    """
    by_id = {node.id: node for node in current}
    for node in validated:
        existing = by_id.get(node.id)
        if existing is None:
            return True
        if existing.status != node.status or existing.display_hint != node.display_hint:
            return True
    return False


def check_workflow(workflow: Workflow) -> list[StructuralIssue]:
    """
    Structural precheck run before handing a workflow to the simulator.

    Returns:
        List of issues; empty when the workflow may be simulated
    """
    issues: list[StructuralIssue] = []
    sources, targets = _incident_ids(workflow.edges)

    starts = [node for node in workflow.nodes if node.kind == NodeKind.START]
    if len(starts) != 1:
        issues.append(StructuralIssue(
            code="START_COUNT",
            message="There must be exactly one Start node.",
        ))
    elif starts[0].id not in sources:
        issues.append(StructuralIssue(
            code="START_NO_OUTGOING",
            message="Start node must have an outgoing edge.",
            node_id=starts[0].id,
        ))

    for node in workflow.nodes:
        if node.id not in sources and node.id not in targets:
            issues.append(StructuralIssue(
                code="ISOLATED_NODE",
                message=f'Node "{node.label}" is isolated.',
                node_id=node.id,
            ))

    return issues
