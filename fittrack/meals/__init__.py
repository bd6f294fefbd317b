# -*- coding: utf-8 -*-
"""Meal logging: photo/barcode capture, nutrition resolution, meal records."""

from .models import BarcodeCapture, MealCapture, MealRecord, NutritionFacts, PhotoCapture
from .resolver import NutritionResolver, normalize_nutrition

__all__ = [
    "BarcodeCapture",
    "MealCapture",
    "MealRecord",
    "NutritionFacts",
    "NutritionResolver",
    "PhotoCapture",
    "normalize_nutrition",
]
