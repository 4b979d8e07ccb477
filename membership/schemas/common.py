"""
Shared schema types
"""

from datetime import datetime
from enum import Enum
from typing import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict
from membership.time_utils import ensure_utc

# Naive datetimes are taken to be UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class EntityModel(BaseModel):
    """Snapshot of a stored document"""
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    created_at: UtcDatetime
    updated_at: UtcDatetime
    version: int = 1


class StatusResponse(BaseModel):
    """Plain acknowledgement"""
    status: str = "success"
    message: str


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def to_document(model: BaseModel, **dump_kwargs) -> dict:
    """Dump a model for the entity store: datetimes kept, enums as values"""
    return _plain(model.model_dump(**dump_kwargs))
