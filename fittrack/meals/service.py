# -*- coding: utf-8 -*-
"""Meals — capture → resolve → persist."""

from __future__ import annotations

import asyncio
import logging
from typing import Tuple

from ..errors import PersistenceFailed
from .images import ImageStore, inspect_image
from .models import BarcodeCapture, MealCapture, MealRecord
from .resolver import NutritionResolver
from .storage import MealRepository

logger = logging.getLogger(__name__)


class MealLoggingService:
    """Logs at most one meal record per photo per user.

    Nothing is written until resolution succeeds; a failed insert removes the
    stored photo again. SQLite and disk work runs in worker threads so a slow
    write only holds up its own request.
    """

    def __init__(self, resolver: NutritionResolver, meals: MealRepository, images: ImageStore) -> None:
        self.resolver = resolver
        self.meals = meals
        self.images = images

    async def log_meal(self, user_id: str, capture: MealCapture) -> Tuple[MealRecord, bool]:
        info = inspect_image(capture.image_bytes)

        existing = await asyncio.to_thread(self.meals.find_by_image, user_id, info.sha256)
        if existing is not None:
            logger.info("photo %s already logged as meal %s", info.sha256[:12], existing.id)
            return existing, False

        nutrition = await self.resolver.resolve(capture)

        product_name = capture.known_nutrition.name if isinstance(capture, BarcodeCapture) else None
        try:
            image_reference = await asyncio.to_thread(self.images.save, user_id, capture.image_bytes, info)
        except OSError as exc:
            logger.exception("failed to store meal photo for user %s", user_id)
            raise PersistenceFailed("Failed to store meal photo", details={"reason": str(exc)}) from exc

        try:
            record = await asyncio.to_thread(
                self.meals.create_meal_record,
                user_id,
                image_reference,
                nutrition,
                image_sha256=info.sha256,
                source=capture.kind,
                product_name=product_name,
            )
        except PersistenceFailed:
            # A concurrent request for the same photo may have won the unique index;
            # its record points at the same file, so the file stays.
            raced = await asyncio.to_thread(self.meals.find_by_image, user_id, info.sha256)
            if raced is not None:
                logger.info("photo %s logged concurrently as meal %s", info.sha256[:12], raced.id)
                return raced, False
            await asyncio.to_thread(self.images.discard, user_id, image_reference)
            raise
        return record, True
