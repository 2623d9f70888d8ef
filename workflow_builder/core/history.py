"""
Undo/redo history over the graph store.

Snapshots are structural deep copies, so later in-place edits of live
nodes never leak into history. Replaying a snapshot raises a short-lived
flag that makes push() a no-op until every post-commit consumer has
settled.
"""

import asyncio
import logging
from collections import deque
from typing import Optional

from workflow_builder.core.graph_store import GraphStore
from workflow_builder.core.models import Edge, Node, Workflow, clone_edge, clone_node

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 60


def take_snapshot(nodes: list[Node], edges: list[Edge]) -> Workflow:
    """
    Deep-copy a graph state.

    Raises:
        ValueError, TypeError, RecursionError: If the data cannot be serialized
    """
    return Workflow.model_construct(
        nodes=[clone_node(node) for node in nodes],
        edges=[clone_edge(edge) for edge in edges],
    )


class HistoryManager:
    """
    Bounded undo/redo snapshot stacks.

    The undo stack holds at most `capacity` snapshots; the oldest one is
    evicted on overflow. Any push clears the redo stack (no branching).
    """

    def __init__(self, store: GraphStore, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")

        self.store = store
        self.capacity = capacity
        self._undo_stack: deque[Workflow] = deque(maxlen=capacity)
        self._redo_stack: list[Workflow] = []
        self._is_applying = False

    @property
    def is_applying(self) -> bool:
        """True while a replayed snapshot is settling."""
        return self._is_applying

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    def push(self, nodes: list[Node], edges: list[Edge]) -> bool:
        """
        Record a pre-mutation state.

        No-op while a replay is in progress. Snapshot failures are logged
        and the push is skipped.

        Returns:
            True if a snapshot was recorded
        """
        if self._is_applying:
            logger.debug("History push ignored during replay")
            return False

        try:
            snapshot = take_snapshot(nodes, edges)
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning(f"History snapshot failed, push skipped: {e}")
            return False

        self._undo_stack.append(snapshot)
        self._redo_stack.clear()
        logger.debug(f"History pushed: depth={len(self._undo_stack)}")
        return True

    def push_current(self) -> bool:
        """Record the store's current state."""
        return self.push(self.store.nodes, self.store.edges)

    def undo(self) -> bool:
        """
        Restore the most recent snapshot.

        The current state moves onto the redo stack.

        Returns:
            False if there was nothing to undo
        """
        if not self._undo_stack:
            return False
        return self._replay(self._undo_stack.pop(), self._redo_stack.append)

    def redo(self) -> bool:
        """
        Re-apply the most recently undone state.

        Returns:
            False if there was nothing to redo
        """
        if not self._redo_stack:
            return False
        return self._replay(self._redo_stack.pop(), self._undo_stack.append)

    def clear(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    def discard_redo(self) -> None:
        """Drop forward history without recording a snapshot."""
        self._redo_stack.clear()

    def _replay(self, snapshot: Workflow, save_current) -> bool:
        try:
            current = take_snapshot(self.store.nodes, self.store.edges)
        except (ValueError, TypeError, RecursionError) as e:
            logger.warning(f"Could not snapshot current state for replay: {e}")
            current = None

        if current is not None:
            save_current(current)

        self._is_applying = True
        try:
            self.store.replace(list(snapshot.nodes), list(snapshot.edges))
        finally:
            self._schedule_release()
        return True

    def _schedule_release(self) -> None:
        """
        Clear the replay flag once downstream consumers have settled.

        Under a running event loop this happens one scheduling tick later.
        Without a loop every post-commit hook has already run synchronously,
        so the flag is cleared right away.
        """
        loop: Optional[asyncio.AbstractEventLoop]
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            self._release()
        else:
            loop.call_soon(self._release)

    def _release(self) -> None:
        self._is_applying = False
