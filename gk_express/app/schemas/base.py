"""
Shared Pydantic base schema.

The mobile client speaks camelCase; models are declared in snake_case and
serialized through aliases. Input accepts either spelling.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel

    def to_payload(self) -> dict:
        """JSON-ready dict using wire (camelCase) keys, for real-time events."""
        return self.model_dump(by_alias=True, mode="json")
