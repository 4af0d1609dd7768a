"""
Base models for the mobile API: camelCase on the wire, snake_case in Python
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model; serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelRequest(BaseModel):
    """Request model; accepts camelCase or snake_case keys and rejects unknown ones."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")
