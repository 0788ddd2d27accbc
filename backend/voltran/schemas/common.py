from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Response/request base: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class Health(APIModel):
    status: str
    timestamp: datetime


class ErrorOut(APIModel):
    error: str
    code: str
