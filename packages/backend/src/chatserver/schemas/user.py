"""Pydantic schemas for users, workspaces, and tokens.

Learn: Pydantic v2 models validate request/response data. Input schemas
carry the password; no output schema has a password field, so a hash can
never be serialized by accident.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from chatserver.db.models import NO_OWNER


# ─── Inputs ─────────────────────────────────────────────

class CreateUser(BaseModel):
    fullname: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=64)
    workspace: str = Field(..., min_length=1, max_length=32)
    password: str = Field(..., min_length=1, max_length=1024)


class SigninUser(BaseModel):
    email: str
    password: str


# ─── Outputs ────────────────────────────────────────────

class UserRead(BaseModel):
    id: int
    ws_id: int
    fullname: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatUser(BaseModel):
    """Password-free member projection used in workspace listings."""
    id: int
    fullname: str
    email: str

    model_config = {"from_attributes": True}


class WorkspaceRead(BaseModel):
    id: int
    name: str
    owner_id: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("owner_id", mode="before")
    @classmethod
    def _unowned_is_null(cls, v):
        return None if v == NO_OWNER else v


class AuthOutput(BaseModel):
    token: str
