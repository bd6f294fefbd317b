# -*- coding: utf-8 -*-
"""Meals — turn a meal capture into validated nutrition facts.

A barcode capture already carries nutrition from a structured food database;
that value is authoritative and the vision service is never called for it.
A photo capture costs exactly one vision call. Failures are not retried here;
the caller decides whether to ask for a retake.

Both paths go through the same normalization (integer kcal, 0.1 g macros)
and bounds check before a value is handed out.
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from pydantic import ValidationError

from ..errors import AnalysisFailed, EmptyImage, InvalidNutrition
from .images import inspect_image
from .models import MAX_CALORIES, MAX_MACRO_G, BarcodeCapture, MealCapture, NutritionFacts, PhotoCapture
from .vision import VisionAnalyzer

logger = logging.getLogger(__name__)

_ONE = Decimal("1")
_TENTH = Decimal("0.1")


def _round_half_up(value: float, step: Decimal) -> Decimal:
    return Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_UP)


def normalize_nutrition(calories: float, protein: float, carbs: float, fat: float) -> NutritionFacts:
    """Round and bounds-check raw values.

    Raises ``InvalidNutrition`` when any value is non-finite or out of bounds.
    """
    raw: Dict[str, float] = {"calories": calories, "protein": protein, "carbs": carbs, "fat": fat}
    bad = {k: v for k, v in raw.items() if not isinstance(v, (int, float)) or not math.isfinite(v)}
    if bad:
        raise InvalidNutrition("Nutrition values must be finite numbers", details={"fields": sorted(bad)})

    # Values this far out can never round into range; reject before quantizing.
    far_out = [
        name
        for name, value in raw.items()
        if not -1 <= value <= (MAX_CALORIES if name == "calories" else MAX_MACRO_G) + 1
    ]
    if far_out:
        raise InvalidNutrition(
            f"Nutrition values out of bounds: {', '.join(far_out)}",
            details={"fields": far_out, "values": {name: raw[name] for name in far_out}},
        )

    rounded = {
        "calories": int(_round_half_up(float(calories), _ONE)),
        # "or 0.0" folds -0.0 into 0.0
        "protein": float(_round_half_up(float(protein), _TENTH)) or 0.0,
        "carbs": float(_round_half_up(float(carbs), _TENTH)) or 0.0,
        "fat": float(_round_half_up(float(fat), _TENTH)) or 0.0,
    }

    out_of_bounds = []
    if not 0 <= rounded["calories"] <= MAX_CALORIES:
        out_of_bounds.append("calories")
    for name in ("protein", "carbs", "fat"):
        if not 0 <= rounded[name] <= MAX_MACRO_G:
            out_of_bounds.append(name)
    if out_of_bounds:
        raise InvalidNutrition(
            f"Nutrition values out of bounds: {', '.join(out_of_bounds)}",
            details={"fields": out_of_bounds, "values": rounded},
        )

    try:
        return NutritionFacts(**rounded)
    except ValidationError as exc:
        raise InvalidNutrition(details={"errors": exc.errors(include_url=False)}) from exc


class NutritionResolver:
    """Stateless; safe to share across concurrent requests."""

    def __init__(self, vision: VisionAnalyzer) -> None:
        self.vision = vision

    async def resolve(self, capture: MealCapture) -> NutritionFacts:
        if not capture.image_bytes:
            raise EmptyImage()
        info = inspect_image(capture.image_bytes)

        if isinstance(capture, BarcodeCapture):
            known = capture.known_nutrition
            logger.info("using barcode nutrition for %r, skipping photo analysis", known.name)
            return normalize_nutrition(known.calories, known.protein, known.carbs, known.fat)

        if isinstance(capture, PhotoCapture):
            try:
                estimate = await self.vision.analyze(capture.image_bytes, info.mime)
            except AnalysisFailed:
                raise
            except Exception as exc:
                logger.warning("vision analyzer raised %s", type(exc).__name__, exc_info=True)
                raise AnalysisFailed(str(exc) or type(exc).__name__) from exc
            facts = normalize_nutrition(estimate.calories, estimate.protein, estimate.carbs, estimate.fat)
            logger.info(
                "resolved photo nutrition: %d kcal, %.1fg protein, %.1fg carbs, %.1fg fat",
                facts.calories,
                facts.protein,
                facts.carbs,
                facts.fat,
            )
            return facts

        raise TypeError(f"Unsupported meal capture: {type(capture).__name__}")
