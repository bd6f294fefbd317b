# -*- coding: utf-8 -*-
"""Shared helpers for the fittrack tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image

from fittrack.config import Settings
from fittrack.meals.vision import NutritionEstimate


def make_png(color: Tuple[int, int, int] = (200, 120, 40), size: Tuple[int, int] = (8, 8)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_jpeg(color: Tuple[int, int, int] = (10, 200, 90)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, format="JPEG")
    return buf.getvalue()


def make_settings(tmp: Path) -> Settings:
    settings = Settings()
    settings.data_root = tmp / "data"
    settings.app_db_path = tmp / "data" / "fittrack.db"
    settings.jwt_secret = "test-secret"
    settings.vision_api_key = None
    settings.cors_origins = ["*"]
    settings.log_level = "WARNING"
    return settings


class FakeVision:
    """Stands in for the vision service; records every call."""

    def __init__(self, estimate: Optional[NutritionEstimate] = None, error: Optional[Exception] = None) -> None:
        self.estimate = estimate or NutritionEstimate(calories=512.6, protein=30.25, carbs=45.04, fat=12.349)
        self.error = error
        self.calls: List[Tuple[int, str]] = []

    async def analyze(self, image_bytes: bytes, mime: str) -> NutritionEstimate:
        self.calls.append((len(image_bytes), mime))
        if self.error is not None:
            raise self.error
        return self.estimate
