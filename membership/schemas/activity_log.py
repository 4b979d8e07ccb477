"""
Activity Log Schemas
Audit trail of admin actions (tenure changes, admin and college management)
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from membership.schemas.common import UtcDatetime


class ActivityLogEntry(BaseModel):
    """One recorded admin action"""
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    admin_id: Optional[str] = Field(None, description="Admin who acted; empty for scripts and system actions")
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: dict[str, Any] = {}
    created_at: UtcDatetime

    @field_validator("details", mode="before")
    @classmethod
    def empty_details(cls, v):
        return v or {}


class ActivityLogResponse(BaseModel):
    """Page of the audit trail, newest first"""
    logs: list[ActivityLogEntry]
    total: int
    limit: int
    offset: int
    has_more: bool
