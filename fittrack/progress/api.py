# -*- coding: utf-8 -*-
"""Progress — weight tracking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..app_db import AppDB, get_db
from ..auth.security import get_current_user
from .models import ProgressCreateRequest, ProgressEntry, ProgressResponse
from .storage import create_progress, list_progress, progress_summary

router = APIRouter(prefix="/api/progress", tags=["Progress"])


@router.post("", response_model=ProgressEntry, summary="Log a weight measurement")
def log_weight(request: ProgressCreateRequest, user: dict = Depends(get_current_user), db: AppDB = Depends(get_db)):
    return create_progress(db, user["id"], request.weight)


@router.get("", response_model=ProgressResponse, summary="Weight history against target")
def get_progress(user: dict = Depends(get_current_user), db: AppDB = Depends(get_db)):
    entries = list_progress(db, user["id"])
    return progress_summary(entries, user.get("target_weight"))
