"""
Messages emitted by the external property form.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FormEvent(BaseModel):
    """
    Either a field edit ({"id", "data"}) or a delete request
    ({"id", "__delete": true}).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Target node id")
    data: Optional[dict[str, Any]] = Field(default=None, description="Replacement node data")
    delete: bool = Field(default=False, alias="__delete", description="Delete sentinel")

    @model_validator(mode="after")
    def validate_payload(self) -> "FormEvent":
        """An edit must carry data."""
        if not self.delete and self.data is None:
            raise ValueError("Form event must carry data or the __delete sentinel")
        return self
