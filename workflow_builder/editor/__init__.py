"""Editing session engine."""

from workflow_builder.editor.engine import Camera, WorkflowEditor
from workflow_builder.editor.events import FormEvent

__all__ = ["Camera", "FormEvent", "WorkflowEditor"]
