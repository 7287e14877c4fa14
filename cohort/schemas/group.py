"""Pydantic schemas for Group model."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cohort.models.group import GroupVisibility
from cohort.models.membership import MembershipStatus
from cohort.schemas.user import UserResponse


class GroupBase(BaseModel):
    """Base group schema with common fields."""
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class GroupCreate(GroupBase):
    """Schema for creating a new group."""
    max_capacity: int = Field(ge=2, le=1000)
    visibility: GroupVisibility


class GroupResponse(GroupBase):
    """Schema for group responses."""
    id: int
    max_capacity: int
    visibility: GroupVisibility
    # Present only for PRIVATE groups
    invite_code: Optional[str] = None
    owner_id: int
    member_count: int
    created_at: datetime
    updated_at: datetime
    owner: UserResponse

    model_config = ConfigDict(from_attributes=True)


class GroupPage(BaseModel):
    """One page of public group search results."""
    items: List[GroupResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class PrivateGroupJoin(BaseModel):
    """Schema for joining a private group via invite code."""
    invite_code: str = Field(min_length=1, max_length=20)


class InviteUser(BaseModel):
    """Schema for inviting a user to a private group."""
    email: EmailStr


class InviteResponse(BaseModel):
    """Invite code to hand to the invitee."""
    message: str = "Invitation sent successfully"
    group_id: int
    invitee_email: str
    invite_code: str


class GroupMemberResponse(BaseModel):
    """Schema for group member information."""
    id: int
    email: str
    name: str
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    """Schema for a user's membership in a group."""
    user_id: int
    group_id: int
    status: MembershipStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
