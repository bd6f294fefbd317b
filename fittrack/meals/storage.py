# -*- coding: utf-8 -*-
"""Meals — DB storage helpers (append-only meal records)."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..app_db import AppDB, utc_now
from ..errors import PersistenceFailed
from .models import CaptureKind, MacroTotals, MealRecord, NutritionFacts

logger = logging.getLogger(__name__)

_MEAL_COLUMNS = "id, user_id, image_reference, image_sha256, source, product_name, calories, protein, carbs, fat, logged_at"


def _row_to_record(row: sqlite3.Row) -> MealRecord:
    return MealRecord(
        id=row["id"],
        user_id=row["user_id"],
        image_reference=row["image_reference"],
        source=CaptureKind(row["source"]),
        product_name=row["product_name"],
        nutrition=NutritionFacts(
            calories=row["calories"],
            protein=row["protein"],
            carbs=row["carbs"],
            fat=row["fat"],
        ),
        logged_at=row["logged_at"],
    )


def _date_range_clause(start: Optional[str], end: Optional[str]) -> tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []
    if start:
        clauses.append("substr(logged_at, 1, 10) >= ?")
        params.append(start)
    if end:
        clauses.append("substr(logged_at, 1, 10) <= ?")
        params.append(end)
    sql = "".join(f" AND {c}" for c in clauses)
    return sql, params


class MealRepository:
    def __init__(self, db: AppDB) -> None:
        self.db = db

    def create_meal_record(
        self,
        user_id: str,
        image_reference: str,
        nutrition: NutritionFacts,
        *,
        image_sha256: str,
        source: CaptureKind = CaptureKind.photo,
        product_name: Optional[str] = None,
        logged_at: Optional[str] = None,
    ) -> MealRecord:
        record = MealRecord(
            id=str(uuid4()),
            user_id=user_id,
            image_reference=image_reference,
            source=source,
            product_name=product_name,
            nutrition=nutrition,
            logged_at=logged_at or utc_now(),
        )
        try:
            with self.db.conn() as conn:
                conn.execute(
                    f"INSERT INTO meals ({_MEAL_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        user_id,
                        image_reference,
                        image_sha256,
                        source.value,
                        product_name,
                        nutrition.calories,
                        nutrition.protein,
                        nutrition.carbs,
                        nutrition.fat,
                        record.logged_at,
                    ),
                )
        except sqlite3.Error as exc:
            logger.exception("failed to insert meal record for user %s", user_id)
            raise PersistenceFailed(details={"reason": str(exc)}) from exc
        return record

    def get_meal_record(self, user_id: str, meal_id: str) -> Optional[MealRecord]:
        with self.db.conn() as conn:
            row = conn.execute(
                f"SELECT {_MEAL_COLUMNS} FROM meals WHERE id = ? AND user_id = ?",
                (meal_id, user_id),
            ).fetchone()
        return _row_to_record(row) if row else None

    def find_by_image(self, user_id: str, image_sha256: str) -> Optional[MealRecord]:
        with self.db.conn() as conn:
            row = conn.execute(
                f"SELECT {_MEAL_COLUMNS} FROM meals WHERE user_id = ? AND image_sha256 = ?",
                (user_id, image_sha256),
            ).fetchone()
        return _row_to_record(row) if row else None

    def list_meal_records(
        self,
        user_id: str,
        *,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> List[MealRecord]:
        """Meals for ``user_id``, newest first; ``start``/``end`` are inclusive YYYY-MM-DD."""
        range_sql, params = _date_range_clause(start, end)
        with self.db.conn() as conn:
            rows = conn.execute(
                f"SELECT {_MEAL_COLUMNS} FROM meals WHERE user_id = ?{range_sql} ORDER BY logged_at DESC, id DESC",
                (user_id, *params),
            ).fetchall()
        return [_row_to_record(r) for r in rows]


def compute_totals(records: List[MealRecord]) -> MacroTotals:
    calories = 0
    protein = 0.0
    carbs = 0.0
    fat = 0.0
    for record in records:
        calories += record.nutrition.calories
        protein += record.nutrition.protein
        carbs += record.nutrition.carbs
        fat += record.nutrition.fat
    return MacroTotals(
        calories=calories,
        protein=round(protein, 1),
        carbs=round(carbs, 1),
        fat=round(fat, 1),
    )


def remaining_against(targets: MacroTotals, totals: MacroTotals) -> MacroTotals:
    return MacroTotals(
        calories=targets.calories - totals.calories,
        protein=round(targets.protein - totals.protein, 1),
        carbs=round(targets.carbs - totals.carbs, 1),
        fat=round(targets.fat - totals.fat, 1),
    )


def targets_from_user(user: Dict[str, Any]) -> MacroTotals:
    return MacroTotals(
        calories=int(user.get("daily_calories") or 0),
        protein=float(user.get("daily_protein") or 0.0),
        carbs=float(user.get("daily_carbs") or 0.0),
        fat=float(user.get("daily_fat") or 0.0),
    )
