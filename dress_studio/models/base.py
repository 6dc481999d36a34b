"""Shared pydantic base for wire-facing models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model whose JSON form uses camelCase keys.

    Python code uses the snake_case field names; the browser and the
    persisted client state see ``imageUrl``, ``bodyType`` and friends.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump as JSON-ready data with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
