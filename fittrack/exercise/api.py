# -*- coding: utf-8 -*-
"""Exercise domain — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..app_db import AppDB, get_db
from ..auth.security import get_current_user
from .models import ExerciseCreateRequest, ExerciseEntry, ExerciseListResponse
from .storage import create_exercise, list_exercises

router = APIRouter(prefix="/api/exercises", tags=["Exercise"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@router.post("", response_model=ExerciseEntry, summary="Log an exercise")
def log_exercise(request: ExerciseCreateRequest, user: dict = Depends(get_current_user), db: AppDB = Depends(get_db)):
    return create_exercise(db, user["id"], request)


@router.get("", response_model=ExerciseListResponse, summary="List exercises")
def get_exercises(
    start: str | None = Query(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD"),
    end: str | None = Query(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD"),
    user: dict = Depends(get_current_user),
    db: AppDB = Depends(get_db),
):
    entries = list_exercises(db, user["id"], start=start, end=end)
    return ExerciseListResponse(count=len(entries), entries=entries)
