"""
FastAPI routes through which an external canvas drives the editor.

Every mutating route applies one editor operation, persists the result and
returns the resulting editor state.

- GET  /v1/editor/workflow    - Current workflow and history flags
- GET  /v1/editor/export      - Download workflow.json
- POST /v1/editor/import      - Load workflow JSON (raw body)
- POST /v1/editor/nodes       - Drop a new node
- POST /v1/editor/edges       - Connect two nodes
- POST /v1/editor/undo, /redo - History
- POST /v1/editor/simulate    - Validate and simulate
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field

from workflow_builder import __version__
from workflow_builder.core.automations import AUTOMATIONS, Automation
from workflow_builder.core.errors import NodeNotFoundError
from workflow_builder.core.models import Edge, Node, NodeKind, Position, Workflow
from workflow_builder.core.serialization import EXPORT_FILENAME
from workflow_builder.editor.engine import WorkflowEditor
from workflow_builder.editor.events import FormEvent
from workflow_builder.simulation.simulator import SimulationResult

router = APIRouter(prefix="/v1/editor", tags=["editor"])


# ==================== Request/Response Models ====================

class AddNodeRequest(BaseModel):
    """Request body for dropping a node onto the canvas."""

    kind: NodeKind = Field(..., description="Node kind")
    position: Position = Field(default_factory=Position)
    data: Optional[dict[str, Any]] = Field(default=None, description="Overrides for the default data")

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "task",
                "position": {"x": 240, "y": 120},
                "data": {"label": "Review contract"},
            }
        }


class EditNodeRequest(BaseModel):
    """Request body for replacing a node's data."""

    data: dict[str, Any] = Field(..., description="Replacement node data")


class ConnectRequest(BaseModel):
    """Request body for connecting two nodes."""

    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)


class SelectionRequest(BaseModel):
    """Request body for setting the current selection."""

    node_ids: list[str] = Field(default_factory=list)


class ActionRequest(BaseModel):
    """Request body for choosing an Automated node's action."""

    action_id: str = Field(..., description="Automation id from the catalog")


class EditorStateResponse(BaseModel):
    """Workflow plus the history flags a toolbar needs."""

    workflow: Workflow
    can_undo: bool
    can_redo: bool


class ConnectResponse(EditorStateResponse):
    """Editor state plus the created edge (null when it already existed)."""

    edge: Optional[Edge] = None


class DuplicateResponse(EditorStateResponse):
    """Editor state plus the ids of the duplicated nodes."""

    new_node_ids: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    hydrated: bool
    simulating: bool


# ==================== Dependency Injection ====================

async def get_editor(request: Request) -> WorkflowEditor:
    """Get editor from app state."""
    return request.app.state.editor


def _state(editor: WorkflowEditor) -> dict[str, Any]:
    return {
        "workflow": editor.get_workflow(),
        "can_undo": editor.history.can_undo,
        "can_redo": editor.history.can_redo,
    }


async def _committed(editor: WorkflowEditor, **extra: Any) -> dict[str, Any]:
    await editor.save()
    return {**_state(editor), **extra}


# ==================== Workflow Routes ====================

@router.get(
    "/workflow",
    response_model=EditorStateResponse,
    summary="Get the current workflow",
)
async def get_workflow(editor: WorkflowEditor = Depends(get_editor)) -> dict[str, Any]:
    """Get the current workflow and history flags."""
    return _state(editor)


@router.get(
    "/export",
    summary="Export the workflow",
    description="Download the current workflow as pretty-printed workflow.json.",
)
async def export_workflow(editor: WorkflowEditor = Depends(get_editor)) -> Response:
    """Serve the workflow as an attachment."""
    return Response(
        content=editor.export_text(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post(
    "/import",
    response_model=EditorStateResponse,
    summary="Import a workflow",
    description="Replace the graph with the workflow JSON sent as the raw request body. "
                "The previous graph remains undoable.",
)
async def import_workflow(
    request: Request,
    editor: WorkflowEditor = Depends(get_editor),
) -> dict[str, Any]:
    """Load workflow JSON from the request body."""
    editor.import_text(await request.body())
    return await _committed(editor)


# ==================== Node Routes ====================

@router.post(
    "/nodes",
    response_model=Node,
    status_code=status.HTTP_201_CREATED,
    summary="Drop a new node",
)
async def add_node(
    body: AddNodeRequest,
    editor: WorkflowEditor = Depends(get_editor),
) -> Node:
    """Create a node of the given kind with its default data."""
    node = editor.add_node(body.kind, position=body.position, data=body.data)
    await editor.save()
    return editor.get_node(node.id)


@router.patch(
    "/nodes/{node_id}",
    response_model=Node,
    summary="Edit a node's data",
)
async def edit_node(
    node_id: str,
    body: EditNodeRequest,
    editor: WorkflowEditor = Depends(get_editor),
) -> Node:
    """Replace the data payload of a node."""
    editor.edit_node(node_id, body.data)
    await editor.save()
    return editor.get_node(node_id)


@router.delete(
    "/nodes/{node_id}",
    response_model=EditorStateResponse,
    summary="Delete a node and its edges",
)
async def delete_node(
    node_id: str,
    editor: WorkflowEditor = Depends(get_editor),
) -> dict[str, Any]:
    editor.delete_node(node_id)
    return await _committed(editor)


@router.post(
    "/nodes/{node_id}/move",
    response_model=Node,
    summary="Move a node",
    description="Plain repositioning; not recorded in undo history.",
)
async def move_node(
    node_id: str,
    body: Position,
    editor: WorkflowEditor = Depends(get_editor),
) -> Node:
    node = editor.move_node(node_id, body)
    await editor.save()
    return node


@router.post(
    "/nodes/{node_id}/action",
    response_model=Node,
    summary="Choose an automation action",
)
async def set_node_action(
    node_id: str,
    body: ActionRequest,
    editor: WorkflowEditor = Depends(get_editor),
) -> Node:
    """Set an Automated node's action and reshape its params."""
    node = editor.set_automation_action(node_id, body.action_id)
    await editor.save()
    return node


@router.post(
    "/nodes/{node_id}/focus",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Focus a node",
    description="Center the camera on the node (when supported) and flash it briefly.",
)
async def focus_node(
    node_id: str,
    editor: WorkflowEditor = Depends(get_editor),
) -> Response:
    if not editor.focus(node_id):
        raise NodeNotFoundError(node_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/form-events",
    response_model=EditorStateResponse,
    summary="Apply a property form event",
    description='Either {"id", "data"} for an edit or {"id", "__delete": true} for a delete.',
)
async def apply_form_event(
    body: FormEvent,
    editor: WorkflowEditor = Depends(get_editor),
) -> dict[str, Any]:
    editor.apply_form_event(body)
    return await _committed(editor)


# ==================== Edge Routes ====================

@router.post(
    "/edges",
    response_model=ConnectResponse,
    summary="Connect two nodes",
)
async def connect(
    body: ConnectRequest,
    editor: WorkflowEditor = Depends(get_editor),
) -> dict[str, Any]:
    edge = editor.connect(body.source, body.target)
    return await _committed(editor, edge=edge)


@router.delete(
    "/edges/{edge_id}",
    response_model=EditorStateResponse,
    summary="Remove an edge",
)
async def remove_edge(
    edge_id: str,
    editor: WorkflowEditor = Depends(get_editor),
) -> dict[str, Any]:
    editor.remove_edge(edge_id)
    return await _committed(editor)


# ==================== Selection & Transform Routes ====================

@router.post(
    "/selection",
    response_model=EditorStateResponse,
    summary="Set the selection",
)
async def set_selection(
    body: SelectionRequest,
    editor: WorkflowEditor = Depends(get_editor),
) -> dict[str, Any]:
    editor.select(body.node_ids)
    return await _committed(editor)


@router.post(
    "/duplicate",
    response_model=DuplicateResponse,
    summary="Duplicate the selected nodes",
)
async def duplicate_selected(editor: WorkflowEditor = Depends(get_editor)) -> dict[str, Any]:
    new_ids = editor.duplicate_selected()
    return await _committed(editor, new_node_ids=new_ids)


@router.post(
    "/delete-selected",
    response_model=EditorStateResponse,
    summary="Delete the selected nodes",
)
async def delete_selected(editor: WorkflowEditor = Depends(get_editor)) -> dict[str, Any]:
    editor.delete_selected()
    return await _committed(editor)


@router.post(
    "/layout",
    response_model=EditorStateResponse,
    summary="Auto-arrange the graph",
)
async def auto_layout(editor: WorkflowEditor = Depends(get_editor)) -> dict[str, Any]:
    editor.auto_layout()
    return await _committed(editor)


# ==================== History Routes ====================

@router.post("/undo", response_model=EditorStateResponse, summary="Undo")
async def undo(editor: WorkflowEditor = Depends(get_editor)) -> dict[str, Any]:
    editor.undo()
    return await _committed(editor)


@router.post("/redo", response_model=EditorStateResponse, summary="Redo")
async def redo(editor: WorkflowEditor = Depends(get_editor)) -> dict[str, Any]:
    editor.redo()
    return await _committed(editor)


# ==================== Simulation Routes ====================

@router.post(
    "/simulate",
    response_model=SimulationResult,
    summary="Simulate the workflow",
    description="Rejects structurally invalid workflows with 422 and concurrent requests with 409.",
)
async def simulate(editor: WorkflowEditor = Depends(get_editor)) -> SimulationResult:
    return await editor.simulate()


@router.get(
    "/automations",
    response_model=list[Automation],
    summary="List automation actions",
)
async def list_automations() -> list[Automation]:
    return AUTOMATIONS


# ==================== Health Check Routes ====================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(editor: WorkflowEditor = Depends(get_editor)) -> HealthResponse:
    return HealthResponse(
        status="healthy" if editor.is_hydrated else "starting",
        version=__version__,
        hydrated=editor.is_hydrated,
        simulating=editor.is_simulating,
    )
