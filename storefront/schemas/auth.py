"""
schemas/auth.py — Pydantic models for login, signup and the current user

Form-facing messages are in Turkish to match the storefront UI; they end up
in FormErrorSplit.field_errors next to the matching input.

Business Rules:
- Email is trimmed, lower-cased and must look like an address
- Login password: at least 6 characters
- Signup password: at least 6 characters with an upper-case letter,
  a lower-case letter and a digit; confirmPassword must match
- Signup name: 2 to 50 characters

Called by: services/auth_service.py
Depends on: pydantic
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _clean_email(v: str) -> str:
    v = v.strip().lower()
    if not v:
        raise ValueError("E-posta adresi gerekli")
    if not _EMAIL_RE.match(v):
        raise ValueError("Geçerli bir e-posta adresi girin")
    return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _clean_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if not v:
            raise ValueError("Şifre gerekli")
        if len(v) < 6:
            raise ValueError("Şifre en az 6 karakter olmalı")
        return v


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str
    password: str
    confirm_password: str = Field(alias="confirmPassword")

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("İsim gerekli")
        if len(v) < 2:
            raise ValueError("İsim en az 2 karakter olmalı")
        if len(v) > 50:
            raise ValueError("İsim en fazla 50 karakter olabilir")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _clean_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not v:
            raise ValueError("Şifre gerekli")
        if len(v) < 6:
            raise ValueError("Şifre en az 6 karakter olmalı")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Şifre en az bir büyük harf içermeli")
        if not re.search(r"[a-z]", v):
            raise ValueError("Şifre en az bir küçük harf içermeli")
        if not re.search(r"[0-9]", v):
            raise ValueError("Şifre en az bir rakam içermeli")
        return v

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError("Şifre tekrarı gerekli")
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Şifreler eşleşmiyor")
        return v


class AuthUser(BaseModel, extra="allow"):
    id: str
    email: str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v) -> str:
        return str(v)


class AuthResponse(BaseModel):
    user: AuthUser
    token: str


class CurrentUserResponse(BaseModel):
    user: AuthUser | None = None
