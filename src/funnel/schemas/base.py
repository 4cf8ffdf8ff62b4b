"""Shared Pydantic base for API payloads.

Field names are snake_case in Python and camelCase on the wire. Input
accepts either spelling; FastAPI serializes responses by alias.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """BaseModel with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    """Plain acknowledgement body."""

    message: str
