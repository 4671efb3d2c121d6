"""Pydantic schemas for users."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class UserCreate(BaseModel):
    """Schema for creating a User."""

    username: str

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserResponse(BaseModel):
    """Schema for User API response."""

    id: str
    username: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
