"""
schemas/users.py — Pydantic models for the /users admin endpoints

Called by: services/user_service.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, field_validator


def _check_email(v: str) -> str:
    v = v.strip().lower()
    if not v or "@" not in v:
        raise ValueError("Invalid email format")
    return v


class UserResponse(BaseModel, extra="allow"):
    id: str
    name: str
    email: str
    created_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v) -> str:
        return str(v)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username is required")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class UserCreate(BaseModel):
    name: str
    email: str
    role: Literal["USER", "ADMIN"]

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    role: Literal["USER", "ADMIN"] | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Username is required")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return _check_email(v)
