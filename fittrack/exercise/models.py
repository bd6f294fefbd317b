# -*- coding: utf-8 -*-
"""Exercise domain — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class ExerciseType(str, Enum):
    custom = "custom"
    run = "run"
    weightlifting = "weightlifting"


class ExerciseCreateRequest(BaseModel):
    type: ExerciseType
    intensity: Optional[str] = Field(None, max_length=50)
    duration: Optional[int] = Field(None, ge=0, le=24 * 60, description="minutes")
    description: Optional[str] = Field(None, max_length=2000)
    # Weightlifting
    sets: Optional[int] = Field(None, ge=0, le=1000)
    reps: Optional[int] = Field(None, ge=0, le=10000)
    weight: Optional[float] = Field(None, ge=0, le=2000, description="kg")
    # Running
    distance: Optional[float] = Field(None, ge=0, le=1000, description="km")
    pace: Optional[float] = Field(None, ge=0, le=120, description="min/km")

    @model_validator(mode="after")
    def _check_type_fields(self) -> "ExerciseCreateRequest":
        if self.type == ExerciseType.weightlifting:
            if not self.sets or not self.reps or not self.weight:
                raise ValueError("Sets, reps, and weight are required for weightlifting exercises")
        elif self.type == ExerciseType.run:
            if not self.distance or not self.duration:
                raise ValueError("Distance and duration are required for running exercises")
        return self


class ExerciseEntry(BaseModel):
    id: str
    type: ExerciseType
    intensity: Optional[str] = None
    duration: Optional[int] = None
    description: Optional[str] = None
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None
    distance: Optional[float] = None
    pace: Optional[float] = None
    logged_at: str


class ExerciseListResponse(BaseModel):
    count: int
    entries: List[ExerciseEntry]
