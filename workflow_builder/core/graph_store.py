"""
Graph store: the single source of truth for the edited workflow.
"""

import logging
from typing import Callable, Optional

from workflow_builder.core.models import Edge, Node, Workflow, clone_edge, clone_node

logger = logging.getLogger(__name__)

# Called synchronously after every committed replace
CommitHook = Callable[["GraphStore"], None]


class GraphStore:
    """
    Owns the canonical nodes/edges collections.

    Mutation is always expressed as "compute the next collections, then
    replace". Each replace is atomic and is followed by the registered
    post-commit hooks, in registration order, before control returns to the
    caller.
    """

    def __init__(
        self,
        nodes: Optional[list[Node]] = None,
        edges: Optional[list[Edge]] = None,
    ):
        self._nodes: list[Node] = list(nodes or [])
        self._edges: list[Edge] = list(edges or [])
        self._index: dict[str, Node] = {}
        self._hooks: list[CommitHook] = []
        self._generation = 0

        self._reindex()

    @property
    def nodes(self) -> list[Node]:
        """Current nodes. Treat as read-only; mutate through replace."""
        return self._nodes

    @property
    def edges(self) -> list[Edge]:
        """Current edges. Treat as read-only; mutate through replace."""
        return self._edges

    @property
    def generation(self) -> int:
        """Number of commits applied so far."""
        return self._generation

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get node by ID."""
        return self._index.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self._edges:
            if edge.id == edge_id:
                return edge
        return None

    def add_hook(self, hook: CommitHook) -> None:
        """Register a post-commit hook."""
        self._hooks.append(hook)

    def replace_nodes(self, nodes: list[Node]) -> None:
        """Atomically replace the node collection."""
        self._nodes = list(nodes)
        self._commit()

    def replace_edges(self, edges: list[Edge]) -> None:
        """Atomically replace the edge collection."""
        self._edges = list(edges)
        self._commit()

    def replace(self, nodes: list[Node], edges: list[Edge]) -> None:
        """Atomically replace both collections; hooks see them together."""
        self._nodes = list(nodes)
        self._edges = list(edges)
        self._commit()

    def snapshot(self) -> Workflow:
        """Deep, independent copy of the current state."""
        return Workflow(
            nodes=[clone_node(node) for node in self._nodes],
            edges=[clone_edge(edge) for edge in self._edges],
        )

    def _reindex(self) -> None:
        self._index = {node.id: node for node in self._nodes}

    def _commit(self) -> None:
        self._reindex()
        self._generation += 1
        logger.debug(
            f"Graph committed: generation={self._generation}, "
            f"nodes={len(self._nodes)}, edges={len(self._edges)}"
        )
        for hook in self._hooks:
            hook(self)
