# -*- coding: utf-8 -*-
"""Meals — Pydantic models and capture variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MAX_CALORIES = 5000
MAX_MACRO_G = 500.0


class NutritionFacts(BaseModel):
    """Validated per-meal nutrition. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    calories: int = Field(..., ge=0, le=MAX_CALORIES)
    protein: float = Field(..., ge=0, le=MAX_MACRO_G)
    carbs: float = Field(..., ge=0, le=MAX_MACRO_G)
    fat: float = Field(..., ge=0, le=MAX_MACRO_G)


class ProductNutrition(BaseModel):
    """Nutrition facts from a barcode lookup (per 100 g / unit), not yet normalized."""

    model_config = ConfigDict(allow_inf_nan=False)

    name: str = Field("Unknown Product", max_length=300)
    calories: float
    protein: float
    carbs: float
    fat: float
    image_url: Optional[str] = None


class CaptureKind(str, Enum):
    photo = "photo"
    barcode = "barcode"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PhotoCapture:
    """A meal photo whose nutrition must be estimated by the vision service."""

    image_bytes: bytes
    captured_at: datetime = field(default_factory=_utc_now)
    kind: CaptureKind = field(default=CaptureKind.photo, init=False)


@dataclass(frozen=True)
class BarcodeCapture:
    """A meal photo paired with nutrition already resolved from a barcode."""

    image_bytes: bytes
    known_nutrition: ProductNutrition
    captured_at: datetime = field(default_factory=_utc_now)
    kind: CaptureKind = field(default=CaptureKind.barcode, init=False)


MealCapture = Union[PhotoCapture, BarcodeCapture]


def build_capture(
    image_bytes: bytes,
    known_nutrition: Optional[ProductNutrition] = None,
    captured_at: Optional[datetime] = None,
) -> MealCapture:
    kwargs = {"captured_at": captured_at} if captured_at is not None else {}
    if known_nutrition is not None:
        return BarcodeCapture(image_bytes=image_bytes, known_nutrition=known_nutrition, **kwargs)
    return PhotoCapture(image_bytes=image_bytes, **kwargs)


class MealRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    image_reference: str
    source: CaptureKind
    product_name: Optional[str] = None
    nutrition: NutritionFacts
    logged_at: str


class MealCreateRequest(BaseModel):
    image_base64: str = Field(..., description="Raw base64 without data-url prefix")
    known_nutrition: Optional[ProductNutrition] = Field(
        None, description="Nutrition from a barcode lookup; skips photo analysis"
    )
    captured_at: Optional[datetime] = Field(None, description="ISO8601 timestamp")


class MealCreateResponse(BaseModel):
    meal: MealRecord
    created: bool


class MealListResponse(BaseModel):
    count: int
    meals: List[MealRecord]


class MacroTotals(BaseModel):
    calories: int = 0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class DailySummaryResponse(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    meal_count: int = Field(0, ge=0)
    totals: MacroTotals
    targets: MacroTotals
    remaining: MacroTotals


class BarcodeLookupResponse(BaseModel):
    barcode: str
    found: bool
    product: Optional[ProductNutrition] = None
