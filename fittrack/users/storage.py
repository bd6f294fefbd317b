# -*- coding: utf-8 -*-
"""Users — DB storage helpers."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from ..app_db import AppDB, utc_now

_PROFILE_FIELDS = (
    "gender",
    "height",
    "weight",
    "target_weight",
    "activity_level",
    "workouts_per_week",
    "social_source",
)
_TARGET_FIELDS = ("daily_calories", "daily_protein", "daily_carbs", "daily_fat")


def normalize_username(username: str) -> str:
    return username.strip().lower()


def get_user_by_username(db: AppDB, username: str) -> Optional[Dict[str, Any]]:
    with db.conn() as conn:
        row = conn.execute("SELECT * FROM users WHERE username = ?", (normalize_username(username),)).fetchone()
        return dict(row) if row else None


def get_user_by_id(db: AppDB, user_id: str) -> Optional[Dict[str, Any]]:
    with db.conn() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None


def create_user(db: AppDB, *, username: str, password_hash: str) -> Dict[str, Any]:
    user_id = str(uuid4())
    now = utc_now()
    with db.conn() as conn:
        conn.execute(
            "INSERT INTO users (id, username, password_hash, created_at) VALUES (?, ?, ?, ?)",
            (user_id, normalize_username(username), password_hash, now),
        )
    return get_user_by_id(db, user_id) or {"id": user_id, "username": normalize_username(username), "created_at": now}


def _update_fields(db: AppDB, user_id: str, fields: Dict[str, Any], allowed: tuple) -> Optional[Dict[str, Any]]:
    updates = {k: v for k, v in fields.items() if k in allowed}
    if updates:
        assignments = ", ".join(f"{k} = ?" for k in updates)
        with db.conn() as conn:
            conn.execute(f"UPDATE users SET {assignments} WHERE id = ?", (*updates.values(), user_id))
    return get_user_by_id(db, user_id)


def update_profile(db: AppDB, user_id: str, profile: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _update_fields(db, user_id, profile, _PROFILE_FIELDS)


def update_targets(db: AppDB, user_id: str, targets: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _update_fields(db, user_id, targets, _TARGET_FIELDS)
