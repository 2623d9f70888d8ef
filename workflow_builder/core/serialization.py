"""
Import/export of workflows as pretty-printed JSON.
"""

import json
import logging

from pydantic import ValidationError

from workflow_builder.core.errors import WorkflowParseError
from workflow_builder.core.models import Workflow

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "workflow.json"


def export_workflow(workflow: Workflow) -> str:
    """Serialize a workflow to indented JSON text."""
    return workflow.model_dump_json(indent=2)


def parse_workflow(text: str | bytes) -> Workflow:
    """
    Parse workflow JSON text.

    Missing "nodes"/"edges" default to empty. Edges whose endpoints are not
    in the node set are dropped so no dangling edge ever reaches the graph.

    Raises:
        WorkflowParseError: If the text is not valid JSON or does not
            describe a workflow
    """
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise WorkflowParseError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise WorkflowParseError("Invalid JSON: nesting too deep") from e

    if not isinstance(payload, dict):
        raise WorkflowParseError(
            f"Workflow must be a JSON object, got {type(payload).__name__}"
        )

    try:
        workflow = Workflow.model_validate({
            "nodes": payload.get("nodes") or [],
            "edges": payload.get("edges") or [],
        })
    except ValidationError as e:
        raise WorkflowParseError(f"Invalid workflow: {e}") from e
    except RecursionError as e:
        raise WorkflowParseError("Invalid workflow: nesting too deep") from e

    return drop_dangling_edges(workflow)


def drop_dangling_edges(workflow: Workflow) -> Workflow:
    node_ids = workflow.node_ids()
    kept = [
        edge for edge in workflow.edges
        if edge.source in node_ids and edge.target in node_ids
    ]
    if len(kept) != len(workflow.edges):
        logger.warning(
            f"Dropped {len(workflow.edges) - len(kept)} dangling edge(s) while loading workflow"
        )
        workflow = workflow.model_copy(update={"edges": kept})
    return workflow
