# -*- coding: utf-8 -*-
"""Meals — barcode nutrition lookup against Open Food Facts."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..errors import BarcodeLookupError
from .models import ProductNutrition

logger = logging.getLogger(__name__)

_BARCODE_RE = re.compile(r"^\d{8,14}$")


def is_valid_barcode(barcode: str) -> bool:
    return bool(_BARCODE_RE.match(barcode or ""))


def _nutriment(nutriments: Dict[str, Any], key: str) -> float:
    value = nutriments.get(key)
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def product_from_payload(data: Dict[str, Any]) -> Optional[ProductNutrition]:
    """Map an Open Food Facts product response to per-100g nutrition.

    Missing nutriments count as 0; returns None when the product is unknown.
    """
    product = data.get("product")
    if data.get("status") in (0, "0") or not isinstance(product, dict):
        return None
    nutriments = product.get("nutriments") or {}
    if not isinstance(nutriments, dict):
        nutriments = {}
    name = product.get("product_name")
    return ProductNutrition(
        name=name.strip() if isinstance(name, str) and name.strip() else "Unknown Product",
        calories=_nutriment(nutriments, "energy-kcal_100g"),
        protein=_nutriment(nutriments, "proteins_100g"),
        carbs=_nutriment(nutriments, "carbohydrates_100g"),
        fat=_nutriment(nutriments, "fat_100g"),
        image_url=product.get("image_url") if isinstance(product.get("image_url"), str) else None,
    )


class OpenFoodFactsClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenFoodFactsClient":
        return cls(base_url=settings.openfoodfacts_base_url, timeout=settings.openfoodfacts_timeout)

    async def lookup(self, barcode: str) -> Optional[ProductNutrition]:
        url = f"{self.base_url}/api/v0/product/{barcode}.json"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport, follow_redirects=True) as client:
                resp = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            logger.warning("barcode lookup for %s failed: %s", barcode, exc)
            raise BarcodeLookupError(details={"reason": str(exc)}) from exc

        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            logger.warning("barcode lookup for %s returned HTTP %s", barcode, resp.status_code)
            raise BarcodeLookupError(details={"status_code": resp.status_code})
        try:
            data = resp.json()
        except ValueError as exc:
            raise BarcodeLookupError("Nutrition lookup returned a non-JSON response") from exc
        if not isinstance(data, dict):
            return None
        return product_from_payload(data)
