# -*- coding: utf-8 -*-
"""Progress — Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ProgressCreateRequest(BaseModel):
    weight: float = Field(..., ge=20, le=500, description="kg")


class ProgressEntry(BaseModel):
    id: str
    weight: float
    logged_at: str


class ProgressResponse(BaseModel):
    count: int
    entries: List[ProgressEntry]
    target_weight: Optional[float] = None
    latest_weight: Optional[float] = None
    remaining_kg: Optional[float] = Field(None, description="latest_weight - target_weight")
