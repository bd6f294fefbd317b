# -*- coding: utf-8 -*-
"""Progress — weight log storage."""

from __future__ import annotations

from typing import List, Optional
from uuid import uuid4

from ..app_db import AppDB, utc_now
from .models import ProgressEntry, ProgressResponse


def create_progress(db: AppDB, user_id: str, weight: float) -> ProgressEntry:
    entry = ProgressEntry(id=str(uuid4()), weight=round(float(weight), 1), logged_at=utc_now())
    with db.conn() as conn:
        conn.execute(
            "INSERT INTO progress (id, user_id, weight, logged_at) VALUES (?, ?, ?, ?)",
            (entry.id, user_id, entry.weight, entry.logged_at),
        )
    return entry


def list_progress(db: AppDB, user_id: str) -> List[ProgressEntry]:
    with db.conn() as conn:
        rows = conn.execute(
            "SELECT id, weight, logged_at FROM progress WHERE user_id = ? ORDER BY logged_at DESC, rowid DESC",
            (user_id,),
        ).fetchall()
    return [ProgressEntry(id=r["id"], weight=r["weight"], logged_at=r["logged_at"]) for r in rows]


def progress_summary(entries: List[ProgressEntry], target_weight: Optional[float]) -> ProgressResponse:
    latest = entries[0].weight if entries else None
    remaining = None
    if latest is not None and target_weight is not None:
        remaining = round(latest - float(target_weight), 1)
    return ProgressResponse(
        count=len(entries),
        entries=entries,
        target_weight=target_weight,
        latest_weight=latest,
        remaining_kg=remaining,
    )
