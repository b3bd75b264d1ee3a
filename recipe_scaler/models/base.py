"""Shared pydantic base for persisted recipe records."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase document keys.

    Attributes are snake_case in Python; ``model_dump(by_alias=True)``
    produces the field names stored in recipe documents.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
