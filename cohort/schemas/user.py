"""Pydantic schemas for User model."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, ConfigDict


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: str


class UserResponse(UserBase):
    """Schema for user responses."""
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Actor(BaseModel):
    """The authenticated caller of a membership operation."""
    id: int
    email: str

    model_config = ConfigDict(from_attributes=True, frozen=True)
