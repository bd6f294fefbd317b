# -*- coding: utf-8 -*-
"""Users — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class ActivityLevel(str, Enum):
    sedentary = "sedentary"
    light = "light"
    moderate = "moderate"
    active = "active"
    very_active = "very_active"


class ProfileUpdateRequest(BaseModel):
    gender: Gender
    height: float = Field(..., ge=50, le=300, description="cm")
    weight: float = Field(..., ge=20, le=500, description="kg")
    target_weight: float = Field(..., ge=20, le=500, description="kg")
    activity_level: ActivityLevel
    workouts_per_week: int = Field(..., ge=0, le=14)
    social_source: str = Field("", max_length=200)


class DailyTargets(BaseModel):
    daily_calories: int = Field(2000, ge=0, le=20000)
    daily_protein: float = Field(150, ge=0, le=2000)
    daily_carbs: float = Field(200, ge=0, le=2000)
    daily_fat: float = Field(50, ge=0, le=2000)


class UserProfile(BaseModel):
    id: str
    username: str
    created_at: str
    gender: Optional[Gender] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    target_weight: Optional[float] = None
    activity_level: Optional[ActivityLevel] = None
    workouts_per_week: Optional[int] = None
    social_source: Optional[str] = None
    targets: DailyTargets
    onboarded: bool = False
