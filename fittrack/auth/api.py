# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..app_db import AppDB, get_db
from ..users.storage import create_user, get_user_by_username
from .models import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from .security import TOKEN_COOKIE_NAME, TokenSigner, get_current_user, hash_password, verify_password

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _user_public(row: dict) -> UserPublic:
    return UserPublic(id=row["id"], username=row["username"], created_at=row["created_at"])


def _issue_token(request: Request, response: Response, user: dict) -> str:
    settings = request.app.state.settings
    token = TokenSigner.from_settings(settings).issue(user["id"], user["username"])
    response.set_cookie(
        TOKEN_COOKIE_NAME,
        token,
        httponly=True,
        secure=bool(settings.cookie_secure),
        samesite="lax",
        max_age=int(settings.token_ttl_days) * 24 * 60 * 60,
        path="/",
    )
    return token


@router.post("/register", response_model=AuthResponse, summary="Register a new user")
def register(body: RegisterRequest, request: Request, response: Response, db: AppDB = Depends(get_db)):
    if get_user_by_username(db, body.username):
        raise HTTPException(status_code=400, detail="Username already taken")

    try:
        user = create_user(db, username=body.username, password_hash=hash_password(body.password))
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=400, detail="Username already taken") from exc

    token = _issue_token(request, response, user)
    return AuthResponse(user=_user_public(user), token=token)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(body: LoginRequest, request: Request, response: Response, db: AppDB = Depends(get_db)):
    user = get_user_by_username(db, body.username)
    if not user or not verify_password(body.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = _issue_token(request, response, user)
    return AuthResponse(user=_user_public(user), token=token)


@router.post("/logout", summary="Logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me", response_model=UserPublic, summary="Get current user")
def me(user: dict = Depends(get_current_user)):
    return _user_public(user)
