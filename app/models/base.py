"""JsonModel base class for wire-facing models."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class JsonModel(BaseModel):
    """Base model with camelCase on the wire and snake_case in Python.

    The action protocol, HTTP payloads and workflow trails all use camelCase
    field names (``taskId``, ``isPublic``, ``tokensUsed``), so every model
    accepts either spelling on input and emits camelCase when serialized
    for callers.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize for external callers (camelCase, no None values)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, pretty: bool = False) -> str:
        """Serialize to a camelCase JSON string."""
        return self.model_dump_json(
            indent=2 if pretty else None, exclude_none=True, by_alias=True
        )
