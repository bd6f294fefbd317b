# -*- coding: utf-8 -*-
"""Exercise domain — exercise log storage."""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import uuid4

from ..app_db import AppDB, utc_now
from .models import ExerciseCreateRequest, ExerciseEntry

_COLUMNS = ("type", "intensity", "duration", "description", "sets", "reps", "weight", "distance", "pace")


def create_exercise(db: AppDB, user_id: str, request: ExerciseCreateRequest) -> ExerciseEntry:
    entry = ExerciseEntry(id=str(uuid4()), logged_at=utc_now(), **request.model_dump())
    values = [getattr(entry, c) for c in _COLUMNS]
    values[0] = entry.type.value
    placeholders = ", ".join("?" for _ in range(len(_COLUMNS) + 3))
    with db.conn() as conn:
        conn.execute(
            f"INSERT INTO exercises (id, user_id, {', '.join(_COLUMNS)}, logged_at) VALUES ({placeholders})",
            (entry.id, user_id, *values, entry.logged_at),
        )
    return entry


def list_exercises(
    db: AppDB,
    user_id: str,
    *,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[ExerciseEntry]:
    sql = f"SELECT id, {', '.join(_COLUMNS)}, logged_at FROM exercises WHERE user_id = ?"
    params: List[Any] = [user_id]
    if start:
        sql += " AND substr(logged_at, 1, 10) >= ?"
        params.append(start)
    if end:
        sql += " AND substr(logged_at, 1, 10) <= ?"
        params.append(end)
    sql += " ORDER BY logged_at DESC, rowid DESC"
    with db.conn() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [ExerciseEntry.model_validate(dict(r)) for r in rows]
