"""
Workflow editor engine.

Owns the live graph of one editing session and coordinates:
- History capture before every user-originated structural change
- Re-validation after every committed change (post-hydration)
- Persistence of committed state (post-hydration)
- Import/export, simulation hand-off and node focus
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

from workflow_builder.config import Settings, get_settings
from workflow_builder.core import transforms
from workflow_builder.core.automations import build_action_params
from workflow_builder.core.errors import (
    EdgeNotFoundError,
    EditorNotHydratedError,
    InvalidNodeKindError,
    NodeNotFoundError,
    PersistenceError,
    SimulationInProgressError,
    WorkflowValidationError,
)
from workflow_builder.core.graph_store import GraphStore
from workflow_builder.core.history import HistoryManager
from workflow_builder.core.layout import auto_layout
from workflow_builder.core.models import (
    Edge,
    Node,
    NodeKind,
    Position,
    Workflow,
    clone_edge,
    clone_node,
    create_node,
)
from workflow_builder.core.serialization import drop_dangling_edges, export_workflow, parse_workflow
from workflow_builder.core.validation import check_workflow, needs_update, validate_graph
from workflow_builder.editor.events import FormEvent
from workflow_builder.simulation.simulator import MockSimulator, SimulationResult, Simulator
from workflow_builder.storage.base import WorkflowStore

logger = logging.getLogger(__name__)


class Camera(Protocol):
    """Optional canvas capability used to center the view on a node."""

    def set_center(self, x: float, y: float, zoom: float, duration: int) -> None:
        ...


class WorkflowEditor:
    """
    Graph engine for one editing session.

    Structural operations are synchronous: each one computes the next
    state with a pure transform, records history, and applies it with one
    atomic replace whose post-commit hook re-validates before control
    returns. Persisting the result is a separate awaitable step (save()).
    """

    def __init__(
        self,
        store: WorkflowStore,
        simulator: Optional[Simulator] = None,
        camera: Optional[Camera] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.simulator = simulator or MockSimulator(delay=self.settings.simulation.delay_seconds)
        self.camera = camera

        self.graph = GraphStore()
        self.history = HistoryManager(self.graph, capacity=self.settings.editor.history_capacity)
        self.graph.add_hook(self._on_commit)

        self._hydrated = False
        self._pending_save = False
        self._save_lock = asyncio.Lock()
        self._simulating = False
        self._highlight_only = False

    # ==================== Lifecycle ====================

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    @property
    def has_pending_save(self) -> bool:
        return self._pending_save

    @property
    def is_simulating(self) -> bool:
        return self._simulating

    async def hydrate(self) -> None:
        """
        Load the saved workflow once, before any mutation is accepted.

        A missing or unreadable saved workflow hydrates an empty graph.
        """
        if self._hydrated:
            return

        workflow: Optional[Workflow] = None
        try:
            workflow = await self.store.load()
        except PersistenceError as e:
            logger.warning(f"Failed to restore workflow: {e}")

        if workflow is not None:
            self.graph.replace(
                [clone_node(node) for node in workflow.nodes],
                [clone_edge(edge) for edge in workflow.edges],
            )

        self._hydrated = True
        logger.info(
            f"Editor hydrated: nodes={len(self.graph.nodes)}, edges={len(self.graph.edges)}"
        )

        # First validation pass over the restored graph
        self._revalidate(self.graph)

    async def save(self) -> bool:
        """
        Persist the latest committed state if it has not been saved yet.

        Saves are serialized and always write the newest state. Failures are
        logged; the live graph is never touched.

        Returns:
            True if a save was written
        """
        if not self._hydrated:
            return False

        async with self._save_lock:
            if not self._pending_save:
                return False

            self._pending_save = False
            workflow = self.graph.snapshot()
            try:
                await self.store.save(workflow)
            except PersistenceError as e:
                self._pending_save = True
                logger.warning(f"Failed to save workflow: {e}")
                return False

        return True

    def _require_hydrated(self) -> None:
        if not self._hydrated:
            raise EditorNotHydratedError()

    def _on_commit(self, graph: GraphStore) -> None:
        """Post-commit hook: re-validate and mark the state for saving."""
        if not self._hydrated:
            return

        # Highlight is never persisted, so a flash leaves nothing to save
        if not self._highlight_only:
            self._pending_save = True
        self._revalidate(graph)

    def _revalidate(self, graph: GraphStore) -> None:
        validated = validate_graph(graph.nodes, graph.edges)
        if needs_update(graph.nodes, validated):
            logger.debug("Validation changed node annotations")
            graph.replace_nodes(validated)

    def _record_history(self) -> None:
        """
        Record the pre-mutation state.

        While an undo/redo replay is settling, history ignores pushes. An edit
        landing in that window is applied but cannot be undone, and it still
        invalidates the redo stack.
        """
        if self.history.is_applying:
            logger.warning("Edit applied while undo/redo is settling; it is not recorded in history")
            self.history.discard_redo()
            return
        self.history.push_current()

    # ==================== Reads ====================

    def get_workflow(self) -> Workflow:
        """Deep copy of the current workflow, safe to hand to collaborators."""
        return self.graph.snapshot()

    def get_node(self, node_id: str) -> Node:
        node = self.graph.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node.model_copy(deep=True)

    def export_text(self) -> str:
        """Pretty-printed JSON of the current workflow."""
        return export_workflow(self.get_workflow())

    # ==================== Structural operations ====================

    def add_node(
        self,
        kind: NodeKind,
        position: Optional[Position] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Node:
        """Drop a new node of the given kind onto the canvas."""
        self._require_hydrated()

        node = create_node(kind, position=position, data=data)
        next_nodes = transforms.add_node(self.graph.nodes, node)

        self._record_history()
        self.graph.replace_nodes(next_nodes)
        logger.debug(f"Node added: {node.id} ({kind.value})")
        return self.get_node(node.id)

    def connect(self, source: str, target: str) -> Optional[Edge]:
        """
        Connect source -> target.

        Returns:
            The new edge, or None if the connection already existed
        """
        self._require_hydrated()

        next_edges = transforms.connect(self.graph.nodes, self.graph.edges, source, target)
        if next_edges is None:
            return None

        self._record_history()
        self.graph.replace_edges(next_edges)
        return next_edges[-1].model_copy()

    def remove_edge(self, edge_id: str) -> None:
        self._require_hydrated()

        next_edges = transforms.remove_edges(self.graph.edges, [edge_id])
        if next_edges is None:
            raise EdgeNotFoundError(edge_id)

        self._record_history()
        self.graph.replace_edges(next_edges)

    def edit_node(self, node_id: str, data: dict[str, Any]) -> Node:
        """Replace a node's data; status is re-derived by validation."""
        self._require_hydrated()

        next_nodes = transforms.edit_node(self.graph.nodes, node_id, data)

        self._record_history()
        self.graph.replace_nodes(next_nodes)
        return self.get_node(node_id)

    def delete_node(self, node_id: str) -> None:
        """Delete a node together with its incident edges."""
        self._require_hydrated()

        next_nodes, next_edges = transforms.delete_node(self.graph.nodes, self.graph.edges, node_id)

        self._record_history()
        self.graph.replace(next_nodes, next_edges)
        logger.debug(f"Node deleted: {node_id}")

    def apply_form_event(self, event: FormEvent) -> Optional[Node]:
        """
        Dispatch a message from the property form.

        Returns:
            The edited node, or None for a delete
        """
        if event.delete:
            self.delete_node(event.id)
            return None
        return self.edit_node(event.id, event.data or {})

    def set_automation_action(self, node_id: str, action_id: str) -> Node:
        """Choose the external action of an Automated node and reshape its params."""
        self._require_hydrated()

        node = self.graph.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        if node.kind != NodeKind.AUTOMATED:
            raise InvalidNodeKindError(node_id, node.kind.value, "only automated nodes have actions")

        data = dict(node.data)
        data["actionId"] = action_id
        data["params"] = build_action_params(action_id, node.data.get("params"))
        return self.edit_node(node_id, data)

    def duplicate_selected(self) -> list[str]:
        """
        Duplicate the selected nodes and the edges among them.

        Returns:
            Ids of the new nodes (empty when nothing is selected)
        """
        self._require_hydrated()

        before = len(self.graph.nodes)
        result = transforms.duplicate_selected(self.graph.nodes, self.graph.edges)
        if result is None:
            return []

        next_nodes, next_edges = result
        self._record_history()
        self.graph.replace(next_nodes, next_edges)

        new_ids = [node.id for node in next_nodes[before:]]
        logger.info(f"Duplicated {len(new_ids)} node(s)")
        return new_ids

    def delete_selected(self) -> bool:
        """Delete the selected nodes and their incident edges."""
        self._require_hydrated()

        result = transforms.delete_selected(self.graph.nodes, self.graph.edges)
        if result is None:
            return False

        self._record_history()
        self.graph.replace(*result)
        return True

    def auto_layout(self) -> bool:
        """Arrange nodes in rows by BFS level."""
        self._require_hydrated()

        if not self.graph.nodes:
            return False

        laid_out = auto_layout(self.graph.nodes, self.graph.edges)

        self._record_history()
        self.graph.replace_nodes(laid_out)
        logger.info(f"Auto-layout applied to {len(laid_out)} node(s)")
        return True

    def load_workflow(self, workflow: Workflow) -> None:
        """Replace the whole graph (loader path); the previous graph stays undoable."""
        self._require_hydrated()

        workflow = drop_dangling_edges(workflow)
        self._record_history()
        self.graph.replace(
            [clone_node(node) for node in workflow.nodes],
            [clone_edge(edge) for edge in workflow.edges],
        )
        logger.info(
            f"Workflow loaded: nodes={len(workflow.nodes)}, edges={len(workflow.edges)}"
        )

    def import_text(self, text: str | bytes) -> Workflow:
        """
        Parse workflow JSON and load it.

        Raises:
            WorkflowParseError: If the text is malformed; the graph is unchanged
        """
        self._require_hydrated()

        workflow = parse_workflow(text)
        self.load_workflow(workflow)
        return self.get_workflow()

    # ==================== Non-structural operations ====================

    def move_node(self, node_id: str, position: Position) -> Node:
        """Reposition a node. Plain movement is not recorded in history."""
        self._require_hydrated()

        self.graph.replace_nodes(transforms.move_node(self.graph.nodes, node_id, position))
        return self.get_node(node_id)

    def select(self, node_ids: list[str]) -> None:
        """Set the selection to exactly the given nodes."""
        self._require_hydrated()

        self.graph.replace_nodes(transforms.set_selection(self.graph.nodes, node_ids))

    # ==================== History ====================

    def undo(self) -> bool:
        self._require_hydrated()
        return self.history.undo()

    def redo(self) -> bool:
        self._require_hydrated()
        return self.history.redo()

    # ==================== Focus ====================

    def focus(self, node_id: str) -> bool:
        """
        Center the camera on a node (if supported) and flash it.

        The flash reverts after settings.editor.focus_flash_seconds when an
        event loop is running; otherwise call clear_highlight() to revert.

        Returns:
            False if the node does not exist
        """
        self._require_hydrated()

        node = self.graph.get_node(node_id)
        if node is None:
            return False

        self._center_camera(node)

        self._set_highlight(node_id, True)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return True

        loop.call_later(self.settings.editor.focus_flash_seconds, self.clear_highlight, node_id)
        return True

    def clear_highlight(self, node_id: str) -> None:
        """Revert a focus flash; no-op if the node is gone or not highlighted."""
        node = self.graph.get_node(node_id)
        if node is None or not node.highlighted:
            return

        self._set_highlight(node_id, False)

    def _set_highlight(self, node_id: str, highlighted: bool) -> None:
        self._highlight_only = True
        try:
            self.graph.replace_nodes([
                n.model_copy(update={"highlighted": highlighted}) if n.id == node_id else n
                for n in self.graph.nodes
            ])
        finally:
            self._highlight_only = False

    def _center_camera(self, node: Node) -> None:
        set_center = getattr(self.camera, "set_center", None)
        if not callable(set_center):
            return

        try:
            set_center(
                node.position.x,
                node.position.y,
                zoom=self.settings.editor.focus_zoom,
                duration=self.settings.editor.focus_duration_ms,
            )
        except Exception as e:
            logger.warning(f"Camera centering failed: {e}")

    # ==================== Simulation ====================

    async def simulate(self) -> SimulationResult:
        """
        Validate the workflow structurally and hand a copy to the simulator.

        Only one simulation may be outstanding at a time; graph editing is
        never blocked while it runs.

        Raises:
            SimulationInProgressError: If a simulation is already running
            WorkflowValidationError: If the structural precheck fails
        """
        self._require_hydrated()

        if self._simulating:
            raise SimulationInProgressError()

        workflow = self.get_workflow()
        issues = check_workflow(workflow)
        if issues:
            raise WorkflowValidationError(issues)

        self._simulating = True
        try:
            logger.info(f"Simulation started: nodes={len(workflow.nodes)}")
            result = await self.simulator.simulate(workflow.model_dump(mode="json"))
        finally:
            self._simulating = False

        if not result.success:
            logger.warning(f"Simulation failed: {result.error}")
        return result
