"""
Automatic layout of workflow graphs.

Levels nodes with a multi-source breadth-first search from every root and
lays each level out as a row.
"""

from collections import defaultdict, deque

from workflow_builder.core.models import Edge, Node, Position

HORIZONTAL_SPACING = 220
VERTICAL_SPACING = 140
X_OFFSET = 100
Y_OFFSET = 80


def compute_levels(nodes: list[Node], edges: list[Edge]) -> dict[str, int]:
    """
    Compute the BFS depth of each node from the nearest root.

    Roots are nodes with no incoming edge. A node is leveled once, when it
    is first discovered, so diamonds get the shortest-path level. Nodes not
    reachable from any root (e.g. pure cycles) get level 0.
    """
    node_ids = [node.id for node in nodes]
    known = set(node_ids)

    adjacency: dict[str, list[str]] = defaultdict(list)
    has_incoming: set[str] = set()
    for edge in edges:
        if edge.source not in known:
            continue
        adjacency[edge.source].append(edge.target)
        has_incoming.add(edge.target)

    levels: dict[str, int] = {}
    queue: deque[str] = deque()
    for node_id in node_ids:
        if node_id not in has_incoming:
            levels[node_id] = 0
            queue.append(node_id)

    while queue:
        current = queue.popleft()
        for neighbor in adjacency[current]:
            if neighbor in known and neighbor not in levels:
                levels[neighbor] = levels[current] + 1
                queue.append(neighbor)

    for node_id in node_ids:
        levels.setdefault(node_id, 0)

    return levels


def auto_layout(nodes: list[Node], edges: list[Edge]) -> list[Node]:
    """
    Reposition nodes in rows by level.

    Only positions change; kind, data, status and selection are kept. Within
    a level, nodes keep their order in the current node sequence.

    Returns:
        New node objects with updated positions (empty for an empty graph)
    """
    if not nodes:
        return []

    levels = compute_levels(nodes, edges)

    slots: dict[int, int] = defaultdict(int)
    laid_out: list[Node] = []
    for node in nodes:
        level = levels[node.id]
        index = slots[level]
        slots[level] += 1
        laid_out.append(node.model_copy(update={
            "position": Position(
                x=index * HORIZONTAL_SPACING + X_OFFSET,
                y=level * VERTICAL_SPACING + Y_OFFSET,
            ),
        }))

    return laid_out
