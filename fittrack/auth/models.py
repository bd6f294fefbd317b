# -*- coding: utf-8 -*-
"""Auth — Pydantic models."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from ..users.storage import normalize_username

_USERNAME_RE = re.compile(r"^[a-z0-9_.-]+$")


class Credentials(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Case-insensitive")
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str) -> str:
        username = normalize_username(value)
        if len(username) < 3 or not _USERNAME_RE.match(username):
            raise ValueError("Username must be at least 3 letters, digits, '.', '_' or '-'")
        return username


class RegisterRequest(Credentials):
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(Credentials):
    pass


class UserPublic(BaseModel):
    id: str
    username: str
    created_at: str


class AuthResponse(BaseModel):
    user: UserPublic
    token: str
