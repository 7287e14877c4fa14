"""Pydantic schemas for JoinRequest model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from cohort.models.join_request import RequestStatus
from cohort.schemas.user import UserResponse


class JoinRequestResponse(BaseModel):
    """Schema for join request responses."""
    id: int
    user_id: int
    group_id: int
    status: RequestStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingJoinRequestResponse(JoinRequestResponse):
    """Pending request with the requesting user's details."""
    user: UserResponse
