# -*- coding: utf-8 -*-
"""Users — profile and daily target endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..app_db import AppDB, get_db
from ..auth.security import get_current_user
from .models import DailyTargets, ProfileUpdateRequest, UserProfile
from .storage import update_profile, update_targets

router = APIRouter(prefix="/api/users", tags=["Users"])


def user_profile(row: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=row["id"],
        username=row["username"],
        created_at=row["created_at"],
        gender=row.get("gender"),
        height=row.get("height"),
        weight=row.get("weight"),
        target_weight=row.get("target_weight"),
        activity_level=row.get("activity_level"),
        workouts_per_week=row.get("workouts_per_week"),
        social_source=row.get("social_source"),
        targets=DailyTargets(
            daily_calories=row.get("daily_calories", 2000),
            daily_protein=row.get("daily_protein", 150),
            daily_carbs=row.get("daily_carbs", 200),
            daily_fat=row.get("daily_fat", 50),
        ),
        onboarded=row.get("gender") is not None,
    )


@router.get("/me", response_model=UserProfile, summary="Get current user's profile")
def me(user: dict = Depends(get_current_user)):
    return user_profile(user)


@router.put("/me/profile", response_model=UserProfile, summary="Save body metrics (onboarding)")
def put_profile(request: ProfileUpdateRequest, user: dict = Depends(get_current_user), db: AppDB = Depends(get_db)):
    row = update_profile(db, user["id"], request.model_dump(mode="json"))
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user_profile(row)


@router.put("/me/targets", response_model=UserProfile, summary="Set daily nutrition targets")
def put_targets(request: DailyTargets, user: dict = Depends(get_current_user), db: AppDB = Depends(get_db)):
    row = update_targets(db, user["id"], request.model_dump())
    if row is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user_profile(row)
