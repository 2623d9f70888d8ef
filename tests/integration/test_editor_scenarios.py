"""
End-to-end scenarios for the workflow editor.

Each test drives a hydrated WorkflowEditor over an in-memory store the way
a canvas front end would: structural edits, history, persistence, focus
and simulation.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from workflow_builder.core.errors import (
    EdgeNotFoundError,
    EditorNotHydratedError,
    InvalidNodeKindError,
    NodeNotFoundError,
    PersistenceError,
    SimulationInProgressError,
    WorkflowParseError,
    WorkflowValidationError,
)
from workflow_builder.core.models import NodeKind, NodeStatus, Position, StyleHint, Workflow
from workflow_builder.editor import FormEvent, WorkflowEditor
from workflow_builder.simulation import MockSimulator, SimulationResult, Simulator
from workflow_builder.storage.memory import MemoryWorkflowStore

from factories import make_edge, make_node


class GatedSimulator(Simulator):
    """Simulator that blocks until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def simulate(self, workflow):
        self.calls += 1
        await self.release.wait()
        return SimulationResult(success=True)


def status_of(editor: WorkflowEditor, node_id: str) -> NodeStatus:
    return editor.get_node(node_id).status


def build_start_task(editor: WorkflowEditor) -> tuple[str, str]:
    """Start A -> Task B."""
    a = editor.add_node(NodeKind.START).id
    b = editor.add_node(NodeKind.TASK, Position(x=0, y=140)).id
    editor.connect(a, b)
    return a, b


async def settle() -> None:
    """Let the history replay guard clear."""
    await asyncio.sleep(0)


# ==================== Structure and history ====================


class TestStructuralScenarios:
    """Editing, validation and undo working together."""

    @pytest.mark.asyncio
    async def test_delete_then_undo_restores_validity(self, editor):
        a, b = build_start_task(editor)
        assert status_of(editor, a) == NodeStatus.VALID
        assert status_of(editor, b) == NodeStatus.VALID

        editor.delete_node(b)

        assert status_of(editor, a) == NodeStatus.INVALID
        assert editor.get_node(a).display_hint == StyleHint.INVALID
        assert editor.get_workflow().edges == []

        assert editor.undo()

        assert status_of(editor, a) == NodeStatus.VALID
        assert status_of(editor, b) == NodeStatus.VALID
        edges = editor.get_workflow().edges
        assert [(e.source, e.target) for e in edges] == [(a, b)]

    @pytest.mark.asyncio
    async def test_redo_after_undo(self, editor):
        a, b = build_start_task(editor)
        editor.delete_node(b)
        editor.undo()
        await settle()

        assert editor.redo()

        assert [n.id for n in editor.get_workflow().nodes] == [a]

    @pytest.mark.asyncio
    async def test_empty_selection_is_noop(self, editor):
        build_start_task(editor)
        depth = editor.history.undo_depth
        generation = editor.graph.generation

        assert editor.duplicate_selected() == []
        assert editor.delete_selected() is False

        assert editor.history.undo_depth == depth
        assert editor.graph.generation == generation

    @pytest.mark.asyncio
    async def test_duplicate_selection(self, editor):
        a, b = build_start_task(editor)
        editor.select([a, b])

        new_ids = editor.duplicate_selected()

        workflow = editor.get_workflow()
        assert len(new_ids) == 2
        assert len(workflow.nodes) == 4
        assert len(workflow.edges) == 2
        clone = editor.get_node(new_ids[1])
        assert clone.position == Position(x=24, y=164)
        assert clone.selected is False
        # Two Start nodes now exist
        assert status_of(editor, a) == NodeStatus.INVALID

    @pytest.mark.asyncio
    async def test_delete_selected_cascades(self, editor):
        a, b = build_start_task(editor)
        editor.select([a])

        assert editor.delete_selected()

        workflow = editor.get_workflow()
        assert [n.id for n in workflow.nodes] == [b]
        assert workflow.edges == []

    @pytest.mark.asyncio
    async def test_selection_and_movement_not_in_history(self, editor):
        a, _ = build_start_task(editor)
        depth = editor.history.undo_depth

        editor.select([a])
        editor.move_node(a, Position(x=300, y=300))

        assert editor.history.undo_depth == depth
        assert editor.get_node(a).position == Position(x=300, y=300)

    @pytest.mark.asyncio
    async def test_duplicate_connect_records_nothing(self, editor):
        a, b = build_start_task(editor)
        depth = editor.history.undo_depth

        assert editor.connect(a, b) is None
        assert editor.history.undo_depth == depth

    @pytest.mark.asyncio
    async def test_remove_edge(self, editor):
        a, b = build_start_task(editor)
        edge_id = editor.get_workflow().edges[0].id

        editor.remove_edge(edge_id)

        assert editor.get_workflow().edges == []
        assert status_of(editor, a) == NodeStatus.INVALID
        with pytest.raises(EdgeNotFoundError):
            editor.remove_edge(edge_id)

    @pytest.mark.asyncio
    async def test_unknown_node(self, editor):
        with pytest.raises(NodeNotFoundError):
            editor.delete_node("missing")
        with pytest.raises(NodeNotFoundError):
            editor.connect("missing", "other")
        assert editor.history.undo_depth == 0

    @pytest.mark.asyncio
    async def test_undo_never_records_revalidation(self, editor):
        build_start_task(editor)
        depth = editor.history.undo_depth

        editor.undo()
        await settle()

        assert editor.history.undo_depth == depth - 1
        assert editor.history.redo_depth == 1

    @pytest.mark.asyncio
    async def test_edit_while_undo_settles(self, editor, caplog):
        a, b = build_start_task(editor)
        editor.undo()
        depth = editor.history.undo_depth

        with caplog.at_level("WARNING", logger="workflow_builder.editor.engine"):
            editor.delete_node(a)

        assert editor.history.undo_depth == depth
        assert editor.history.can_redo is False
        assert editor.redo() is False
        assert "not recorded in history" in caplog.text
        assert [n.id for n in editor.get_workflow().nodes] == [b]

    @pytest.mark.asyncio
    async def test_edit_after_settling_is_recorded(self, editor):
        build_start_task(editor)
        editor.undo()
        await settle()
        depth = editor.history.undo_depth

        editor.add_node(NodeKind.END)

        assert editor.history.undo_depth == depth + 1
        assert editor.history.can_redo is False

    @pytest.mark.asyncio
    async def test_auto_layout(self, editor):
        a, b = build_start_task(editor)
        c = editor.add_node(NodeKind.END, Position(x=900, y=5)).id
        editor.connect(a, c)

        assert editor.auto_layout()

        assert editor.get_node(a).position == Position(x=100, y=80)
        assert editor.get_node(b).position == Position(x=100, y=220)
        assert editor.get_node(c).position == Position(x=320, y=220)

        editor.undo()
        assert editor.get_node(c).position == Position(x=900, y=5)

    @pytest.mark.asyncio
    async def test_auto_layout_empty_graph(self, editor):
        assert editor.auto_layout() is False
        assert editor.history.undo_depth == 0


# ==================== Form channel and automations ====================


class TestFormEvents:
    """Messages coming back from the property form."""

    @pytest.mark.asyncio
    async def test_edit_event(self, editor):
        _, b = build_start_task(editor)

        node = editor.apply_form_event(FormEvent(id=b, data={"label": "Review", "assignee": "ops"}))

        assert node.data == {"label": "Review", "assignee": "ops"}
        assert status_of(editor, b) == NodeStatus.VALID

    @pytest.mark.asyncio
    async def test_delete_event(self, editor):
        a, b = build_start_task(editor)

        event = FormEvent.model_validate({"id": b, "__delete": True})
        assert editor.apply_form_event(event) is None

        assert [n.id for n in editor.get_workflow().nodes] == [a]

    def test_event_without_data_rejected(self):
        with pytest.raises(ValueError):
            FormEvent(id="x")

    @pytest.mark.asyncio
    async def test_automation_action_reshapes_params(self, editor):
        node = editor.add_node(NodeKind.AUTOMATED)

        editor.set_automation_action(node.id, "send_email")
        editor.edit_node(node.id, {
            **editor.get_node(node.id).data,
            "params": {"to": "ops@example.com", "subject": "Hi"},
        })
        updated = editor.set_automation_action(node.id, "generate_doc")

        assert updated.data["actionId"] == "generate_doc"
        assert updated.data["params"] == {"template": "", "user": ""}

    @pytest.mark.asyncio
    async def test_automation_action_wrong_kind(self, editor):
        a, _ = build_start_task(editor)
        with pytest.raises(InvalidNodeKindError):
            editor.set_automation_action(a, "send_email")


# ==================== Import / export ====================


class TestImportExport:
    """Whole-graph replacement from JSON text."""

    @pytest.mark.asyncio
    async def test_malformed_import_leaves_graph(self, editor):
        build_start_task(editor)
        before = editor.get_workflow()
        depth = editor.history.undo_depth

        with pytest.raises(WorkflowParseError):
            editor.import_text("{definitely not json")

        assert editor.get_workflow() == before
        assert editor.history.undo_depth == depth

    @pytest.mark.asyncio
    async def test_export_import_round_trip(self, editor):
        build_start_task(editor)
        text = editor.export_text()
        original = editor.get_workflow()

        editor.import_text('{"nodes": [], "edges": []}')
        assert editor.get_workflow() == Workflow()

        editor.import_text(text)
        assert editor.get_workflow() == original

    @pytest.mark.asyncio
    async def test_import_is_undoable(self, editor):
        a, b = build_start_task(editor)

        editor.import_text("{}")
        editor.undo()

        assert [n.id for n in editor.get_workflow().nodes] == [a, b]

    @pytest.mark.asyncio
    async def test_import_revalidates(self, editor):
        workflow = Workflow(nodes=[make_node("s", NodeKind.START)], edges=[make_edge("s", "gone")])

        editor.import_text(workflow.model_dump_json())

        assert editor.get_workflow().edges == []
        assert status_of(editor, "s") == NodeStatus.INVALID

    @pytest.mark.asyncio
    async def test_loaded_workflow_is_copied(self, editor, linear_graph):
        nodes, edges = linear_graph
        workflow = Workflow(nodes=nodes, edges=edges)

        editor.load_workflow(workflow)
        workflow.nodes[1].data["label"] = "changed outside"
        workflow.nodes[0].kind = NodeKind.END
        workflow.edges[0].target = "end"

        live = editor.get_workflow()
        assert live.nodes[1].data["label"] == "Task"
        assert live.nodes[0].kind == NodeKind.START
        assert live.edges[0].target == "task"

    @pytest.mark.asyncio
    async def test_hydrated_workflow_is_copied(self, test_settings, linear_graph):
        nodes, edges = linear_graph
        restored = Workflow(nodes=nodes, edges=edges)
        store = MemoryWorkflowStore()
        store.load = AsyncMock(return_value=restored)
        editor = WorkflowEditor(store, settings=test_settings)
        await editor.hydrate()

        restored.nodes[0].data["label"] = "changed outside"

        assert editor.get_node("start").data["label"] == "Start"


# ==================== Persistence ====================


class TestPersistence:
    """Hydration gate and saving."""

    @pytest.mark.asyncio
    async def test_mutation_before_hydration_rejected(self, test_settings):
        editor = WorkflowEditor(MemoryWorkflowStore(), settings=test_settings)

        with pytest.raises(EditorNotHydratedError):
            editor.add_node(NodeKind.START)
        assert await editor.save() is False

    @pytest.mark.asyncio
    async def test_hydrate_restores_and_validates(self, test_settings, linear_graph):
        nodes, edges = linear_graph
        nodes.append(make_node("lonely"))
        store = MemoryWorkflowStore(initial=Workflow(nodes=nodes, edges=edges).model_dump_json())
        editor = WorkflowEditor(store, settings=test_settings)

        await editor.hydrate()

        assert editor.is_hydrated
        assert [n.id for n in editor.get_workflow().nodes] == ["start", "task", "end", "lonely"]
        assert status_of(editor, "lonely") == NodeStatus.INVALID
        assert status_of(editor, "start") == NodeStatus.VALID
        assert editor.history.undo_depth == 0

    @pytest.mark.asyncio
    async def test_corrupt_saved_workflow_hydrates_empty(self, test_settings):
        store = MemoryWorkflowStore(initial="{oops")
        editor = WorkflowEditor(store, settings=test_settings)

        await editor.hydrate()

        assert editor.is_hydrated
        assert editor.get_workflow() == Workflow()
        assert store.payload == "{oops"

    @pytest.mark.asyncio
    async def test_deeply_nested_saved_workflow_hydrates_empty(self, test_settings):
        editor = WorkflowEditor(MemoryWorkflowStore(initial="[" * 100000), settings=test_settings)

        await editor.hydrate()

        assert editor.is_hydrated
        assert editor.get_workflow() == Workflow()

    @pytest.mark.asyncio
    async def test_hydrate_does_not_save(self, editor, memory_store):
        assert editor.has_pending_save is False
        assert await editor.save() is False
        assert memory_store.save_count == 0

    @pytest.mark.asyncio
    async def test_save_writes_latest_state(self, editor, memory_store):
        a, b = build_start_task(editor)
        assert editor.has_pending_save

        assert await editor.save() is True
        assert await editor.save() is False

        assert memory_store.save_count == 1
        saved = await memory_store.load()
        assert [n.id for n in saved.nodes] == [a, b]

    @pytest.mark.asyncio
    async def test_concurrent_saves_write_once(self, editor, memory_store):
        build_start_task(editor)

        results = await asyncio.gather(editor.save(), editor.save())

        assert sorted(results) == [False, True]
        assert memory_store.save_count == 1

    @pytest.mark.asyncio
    async def test_save_failure_keeps_graph_and_retries(self, editor, memory_store):
        a, b = build_start_task(editor)
        memory_store.save = AsyncMock(side_effect=PersistenceError("disk full"))

        assert await editor.save() is False

        assert editor.has_pending_save
        assert [n.id for n in editor.get_workflow().nodes] == [a, b]


# ==================== Focus ====================


class TestFocus:
    """Camera centering and the transient flash."""

    @pytest.mark.asyncio
    async def test_flash_reverts(self, editor):
        a, _ = build_start_task(editor)

        assert editor.focus(a)
        assert editor.get_node(a).highlighted is True

        await asyncio.sleep(0.05)

        assert editor.get_node(a).highlighted is False

    @pytest.mark.asyncio
    async def test_flash_not_persisted_or_recorded(self, editor):
        a, _ = build_start_task(editor)
        depth = editor.history.undo_depth

        editor.focus(a)

        assert editor.history.undo_depth == depth
        assert '"highlighted"' not in editor.export_text()

    @pytest.mark.asyncio
    async def test_flash_does_not_trigger_save(self, editor, memory_store):
        a, _ = build_start_task(editor)
        await editor.save()
        saves = memory_store.save_count

        editor.focus(a)
        assert editor.has_pending_save is False

        await asyncio.sleep(0.05)

        assert editor.get_node(a).highlighted is False
        assert editor.has_pending_save is False
        assert await editor.save() is False
        assert memory_store.save_count == saves

    @pytest.mark.asyncio
    async def test_node_deleted_mid_flash(self, editor):
        a, b = build_start_task(editor)
        editor.focus(b)

        editor.delete_node(b)
        await asyncio.sleep(0.05)

        assert [n.id for n in editor.get_workflow().nodes] == [a]

    @pytest.mark.asyncio
    async def test_flash_survives_revalidation(self, editor):
        a, b = build_start_task(editor)
        editor.focus(a)

        editor.delete_node(b)

        node = editor.get_node(a)
        assert node.highlighted is True
        assert node.status == NodeStatus.INVALID

    @pytest.mark.asyncio
    async def test_unknown_node(self, editor):
        assert editor.focus("missing") is False

    @pytest.mark.asyncio
    async def test_camera_centered(self, test_settings):
        camera = MagicMock()
        editor = WorkflowEditor(MemoryWorkflowStore(), camera=camera, settings=test_settings)
        await editor.hydrate()
        node = editor.add_node(NodeKind.TASK, Position(x=40, y=60))

        editor.focus(node.id)

        camera.set_center.assert_called_once_with(40, 60, zoom=1.35, duration=450)

    @pytest.mark.asyncio
    async def test_camera_failure_degrades_to_flash(self, test_settings):
        camera = MagicMock()
        camera.set_center.side_effect = RuntimeError("no viewport")
        editor = WorkflowEditor(MemoryWorkflowStore(), camera=camera, settings=test_settings)
        await editor.hydrate()
        node = editor.add_node(NodeKind.TASK)

        assert editor.focus(node.id)
        assert editor.get_node(node.id).highlighted is True

    def test_without_loop_caller_clears(self, test_settings):
        editor = WorkflowEditor(MemoryWorkflowStore(), camera=object(), settings=test_settings)
        asyncio.run(editor.hydrate())
        node = editor.add_node(NodeKind.TASK)

        assert editor.focus(node.id)
        assert editor.get_node(node.id).highlighted is True

        editor.clear_highlight(node.id)
        assert editor.get_node(node.id).highlighted is False


# ==================== Simulation ====================


class TestSimulation:
    """Structural precheck and the single-in-flight contract."""

    @pytest.mark.asyncio
    async def test_success_trace(self, editor):
        a, b = build_start_task(editor)
        c = editor.add_node(NodeKind.END).id
        editor.connect(b, c)

        result = await editor.simulate()

        assert result.success
        assert [s.node_id for s in result.trace] == [a, b, c]
        assert result.trace[0].message == "Executed start (Start)"
        assert editor.is_simulating is False

    @pytest.mark.asyncio
    async def test_precheck_blocks_invalid_graph(self, editor):
        editor.add_node(NodeKind.TASK)

        with pytest.raises(WorkflowValidationError) as exc_info:
            await editor.simulate()

        assert "There must be exactly one Start node." in exc_info.value.messages
        assert any("is isolated" in m for m in exc_info.value.messages)

    @pytest.mark.asyncio
    async def test_single_in_flight(self, test_settings):
        simulator = GatedSimulator()
        editor = WorkflowEditor(MemoryWorkflowStore(), simulator=simulator, settings=test_settings)
        await editor.hydrate()
        build_start_task(editor)

        first = asyncio.create_task(editor.simulate())
        await asyncio.sleep(0)
        assert editor.is_simulating

        with pytest.raises(SimulationInProgressError):
            await editor.simulate()

        # Editing is not blocked while the simulation is outstanding
        editor.add_node(NodeKind.END)

        simulator.release.set()
        result = await first

        assert result.success
        assert simulator.calls == 1
        assert editor.is_simulating is False

    @pytest.mark.asyncio
    async def test_simulator_receives_copy(self, test_settings):
        received = {}

        class Recorder(Simulator):
            async def simulate(self, workflow):
                workflow["nodes"][0]["data"]["label"] = "tampered"
                received.update(workflow)
                return SimulationResult(success=True)

        editor = WorkflowEditor(MemoryWorkflowStore(), simulator=Recorder(), settings=test_settings)
        await editor.hydrate()
        a, _ = build_start_task(editor)

        await editor.simulate()

        assert received["nodes"][0]["id"] == a
        assert editor.get_node(a).data["label"] == "Start"

    @pytest.mark.asyncio
    async def test_failed_simulation_leaves_graph(self, test_settings):
        class Failing(Simulator):
            async def simulate(self, workflow):
                return SimulationResult(success=False, error="Backend unavailable")

        editor = WorkflowEditor(MemoryWorkflowStore(), simulator=Failing(), settings=test_settings)
        await editor.hydrate()
        build_start_task(editor)
        before = editor.get_workflow()

        result = await editor.simulate()

        assert result.error == "Backend unavailable"
        assert editor.get_workflow() == before

    @pytest.mark.asyncio
    async def test_default_simulator_from_settings(self, test_settings):
        editor = WorkflowEditor(MemoryWorkflowStore(), settings=test_settings)
        assert isinstance(editor.simulator, MockSimulator)
        assert editor.simulator.delay == 0.0
