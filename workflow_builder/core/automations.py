"""
Catalog of external actions an Automated node can run.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Automation(BaseModel):
    """An external action and the parameter names it declares."""

    id: str
    label: str
    params: list[str] = Field(default_factory=list)


AUTOMATIONS: list[Automation] = [
    Automation(id="send_email", label="Send Email", params=["to", "subject"]),
    Automation(id="generate_doc", label="Generate Document", params=["template", "user"]),
]


def get_automation(action_id: str) -> Optional[Automation]:
    """Get an automation by ID."""
    for automation in AUTOMATIONS:
        if automation.id == action_id:
            return automation
    return None


def build_action_params(action_id: str, existing: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """
    Derive the params map for a chosen action.

    The key set is exactly the action's declared parameter names; values
    already entered for a kept name survive, new names start empty.
    Unknown actions yield an empty map.
    """
    automation = get_automation(action_id)
    if automation is None:
        return {}

    existing = existing or {}
    return {name: existing.get(name) or "" for name in automation.params}
