# -*- coding: utf-8 -*-
"""Meals — API endpoints."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import FileResponse

from ..app_db import AppDB, get_db
from ..auth.security import get_current_user
from .barcode import OpenFoodFactsClient, is_valid_barcode
from .images import ImageStore
from .models import (
    BarcodeLookupResponse,
    DailySummaryResponse,
    MealCreateRequest,
    MealCreateResponse,
    MealListResponse,
    MealRecord,
    build_capture,
)
from .service import MealLoggingService
from .storage import MealRepository, compute_totals, remaining_against, targets_from_user

router = APIRouter(prefix="/api/meals", tags=["Meals"])
barcode_router = APIRouter(prefix="/api/barcode", tags=["Meals"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _decode_image_or_400(image_base64: str, max_bytes: int) -> bytes:
    try:
        data = base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid base64 image: {exc}") from exc
    if len(data) > max_bytes:
        raise HTTPException(status_code=400, detail=f"Image too large: {len(data)} bytes > {max_bytes}")
    return data


def get_meal_repository(db: AppDB = Depends(get_db)) -> MealRepository:
    return MealRepository(db)


def get_image_store(request: Request) -> ImageStore:
    return ImageStore(request.app.state.settings.meal_images_root)


def get_meal_service(
    request: Request,
    meals: MealRepository = Depends(get_meal_repository),
    images: ImageStore = Depends(get_image_store),
) -> MealLoggingService:
    return MealLoggingService(request.app.state.resolver, meals, images)


def get_barcode_client(request: Request) -> OpenFoodFactsClient:
    return request.app.state.barcode_client


@router.post("", response_model=MealCreateResponse, summary="Log a meal from a photo")
async def create_meal(
    body: MealCreateRequest,
    request: Request,
    user: dict = Depends(get_current_user),
    service: MealLoggingService = Depends(get_meal_service),
):
    image_bytes = _decode_image_or_400(body.image_base64, request.app.state.settings.max_image_bytes)
    capture = build_capture(image_bytes, body.known_nutrition, body.captured_at)
    record, created = await service.log_meal(user["id"], capture)
    return MealCreateResponse(meal=record, created=created)


@router.get("", response_model=MealListResponse, summary="List meals")
def list_meals(
    start: str | None = Query(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD"),
    end: str | None = Query(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD"),
    user: dict = Depends(get_current_user),
    meals: MealRepository = Depends(get_meal_repository),
):
    records = meals.list_meal_records(user["id"], start=start, end=end)
    return MealListResponse(count=len(records), meals=records)


@router.get("/summary", response_model=DailySummaryResponse, summary="Daily totals against targets")
def daily_summary(
    date: str | None = Query(default=None, pattern=DATE_PATTERN, description="YYYY-MM-DD, defaults to today (UTC)"),
    user: dict = Depends(get_current_user),
    meals: MealRepository = Depends(get_meal_repository),
):
    day = date or datetime.now(timezone.utc).date().isoformat()
    records = meals.list_meal_records(user["id"], start=day, end=day)
    totals = compute_totals(records)
    targets = targets_from_user(user)
    return DailySummaryResponse(
        date=day,
        meal_count=len(records),
        totals=totals,
        targets=targets,
        remaining=remaining_against(targets, totals),
    )


@router.get("/{meal_id}", response_model=MealRecord, summary="Get a meal")
def get_meal(
    meal_id: str,
    user: dict = Depends(get_current_user),
    meals: MealRepository = Depends(get_meal_repository),
):
    record = meals.get_meal_record(user["id"], meal_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    return record


@router.get("/{meal_id}/image", summary="Get a meal photo")
def get_meal_image(
    meal_id: str,
    user: dict = Depends(get_current_user),
    meals: MealRepository = Depends(get_meal_repository),
    images: ImageStore = Depends(get_image_store),
):
    record = meals.get_meal_record(user["id"], meal_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    fp = images.path_for(user["id"], record.image_reference)
    if not fp.exists():
        raise HTTPException(status_code=404, detail="Meal image not found")
    return FileResponse(fp)


@barcode_router.get("/{barcode}", response_model=BarcodeLookupResponse, summary="Look up product nutrition by barcode")
async def lookup_barcode(
    barcode: str,
    user: dict = Depends(get_current_user),  # noqa: ARG001
    client: OpenFoodFactsClient = Depends(get_barcode_client),
):
    if not is_valid_barcode(barcode):
        raise HTTPException(status_code=400, detail="Barcode must be 8-14 digits")
    product = await client.lookup(barcode)
    return BarcodeLookupResponse(barcode=barcode, found=product is not None, product=product)
