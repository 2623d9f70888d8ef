"""
Structural graph transformations.

Every function here is pure: it computes the complete next generation of
nodes/edges from the current one and leaves its inputs untouched, so the
caller can apply the result with a single atomic replace. Functions that
can be no-ops return None instead of an unchanged copy.
"""

import copy
from typing import Any, Iterable, Optional

from workflow_builder.core.errors import DuplicateNodeError, NodeNotFoundError
from workflow_builder.core.models import Edge, Node, Position, clone_edge, clone_node, new_id

DUPLICATE_OFFSET = 24

GraphState = tuple[list[Node], list[Edge]]


def _require_node(nodes: list[Node], node_id: str) -> Node:
    for node in nodes:
        if node.id == node_id:
            return node
    raise NodeNotFoundError(node_id)


def _without_nodes(nodes: list[Node], edges: list[Edge], removed: set[str]) -> GraphState:
    """Drop the given nodes and cascade to every incident edge."""
    return (
        [node for node in nodes if node.id not in removed],
        [edge for edge in edges if edge.source not in removed and edge.target not in removed],
    )


def selected_ids(nodes: list[Node]) -> set[str]:
    return {node.id for node in nodes if node.selected}


def duplicate_selected(nodes: list[Node], edges: list[Edge]) -> Optional[GraphState]:
    """
    Duplicate the selected nodes and the edges among them.

    Each clone gets a fresh id, a position offset by +24/+24, a deep copy of
    the data and is left unselected. Only edges whose both endpoints are
    selected are cloned, with fresh ids and remapped endpoints.

    Returns:
        (nodes, edges) with the clones appended, or None if nothing is selected
    """
    selected = [node for node in nodes if node.selected]
    if not selected:
        return None

    id_map: dict[str, str] = {}
    new_nodes: list[Node] = []
    for node in selected:
        clone = clone_node(node)
        clone.id = new_id()
        clone.position = Position(
            x=node.position.x + DUPLICATE_OFFSET,
            y=node.position.y + DUPLICATE_OFFSET,
        )
        clone.selected = False
        id_map[node.id] = clone.id
        new_nodes.append(clone)

    new_edges: list[Edge] = []
    for edge in edges:
        if edge.source in id_map and edge.target in id_map:
            clone = clone_edge(edge)
            clone.id = new_id()
            clone.source = id_map[edge.source]
            clone.target = id_map[edge.target]
            new_edges.append(clone)

    return [*nodes, *new_nodes], [*edges, *new_edges]


def delete_selected(nodes: list[Node], edges: list[Edge]) -> Optional[GraphState]:
    """
    Delete the selected nodes and every edge touching them.

    Returns:
        Remaining (nodes, edges), or None if nothing is selected
    """
    removed = selected_ids(nodes)
    if not removed:
        return None
    return _without_nodes(nodes, edges, removed)


def delete_node(nodes: list[Node], edges: list[Edge], node_id: str) -> GraphState:
    """Delete one node and cascade to its incident edges."""
    _require_node(nodes, node_id)
    return _without_nodes(nodes, edges, {node_id})


def edit_node(nodes: list[Node], node_id: str, data: dict[str, Any]) -> list[Node]:
    """Replace the data payload of one node; id, position and status are kept."""
    _require_node(nodes, node_id)
    payload = copy.deepcopy(data)
    return [
        node.model_copy(update={"data": payload}) if node.id == node_id else node
        for node in nodes
    ]


def add_node(nodes: list[Node], node: Node) -> list[Node]:
    """Append a newly dropped node."""
    if any(existing.id == node.id for existing in nodes):
        raise DuplicateNodeError(node.id)
    return [*nodes, node]


def connect(
    nodes: list[Node],
    edges: list[Edge],
    source: str,
    target: str,
) -> Optional[list[Edge]]:
    """
    Append an edge source -> target.

    Returns:
        New edge list, or None if an identical connection already exists

    Raises:
        NodeNotFoundError: If either endpoint is not in the graph
    """
    _require_node(nodes, source)
    _require_node(nodes, target)

    if any(edge.source == source and edge.target == target for edge in edges):
        return None

    return [*edges, Edge(id=new_id(), source=source, target=target)]


def remove_edges(edges: list[Edge], edge_ids: Iterable[str]) -> Optional[list[Edge]]:
    """Remove edges by id; None if none of them exist."""
    doomed = set(edge_ids)
    remaining = [edge for edge in edges if edge.id not in doomed]
    if len(remaining) == len(edges):
        return None
    return remaining


def set_selection(nodes: list[Node], node_ids: Iterable[str]) -> list[Node]:
    """Select exactly the given nodes."""
    wanted = set(node_ids)
    return [
        node.model_copy(update={"selected": node.id in wanted})
        if node.selected != (node.id in wanted) else node
        for node in nodes
    ]


def move_node(nodes: list[Node], node_id: str, position: Position) -> list[Node]:
    """Reposition one node."""
    _require_node(nodes, node_id)
    return [
        node.model_copy(update={"position": position.model_copy()}) if node.id == node_id else node
        for node in nodes
    ]
