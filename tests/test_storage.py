# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from fittrack.app_db import AppDB
from fittrack.errors import PersistenceFailed
from fittrack.meals.models import CaptureKind, NutritionFacts
from fittrack.meals.storage import MealRepository, compute_totals, remaining_against, targets_from_user
from fittrack.users.storage import create_user, get_user_by_id


class TestMealRepository(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="fittrack-test-"))
        self.db = AppDB(self._tmp / "fittrack.db")
        self.db.init()
        self.user = create_user(self.db, username="alice", password_hash="x")
        self.other = create_user(self.db, username="bob", password_hash="x")
        self.repo = MealRepository(self.db)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _create(self, user_id: str, sha: str, logged_at: str, calories: int = 400):
        facts = NutritionFacts(calories=calories, protein=20.5, carbs=40.0, fat=10.1)
        return self.repo.create_meal_record(
            user_id, f"meal-images/{sha}.png", facts, image_sha256=sha, logged_at=logged_at
        )

    def test_create_and_get(self) -> None:
        record = self._create(self.user["id"], "a" * 64, "2026-10-01T08:00:00Z")
        self.assertEqual(record.source, CaptureKind.photo)
        fetched = self.repo.get_meal_record(self.user["id"], record.id)
        self.assertEqual(fetched, record)
        self.assertIsNone(self.repo.get_meal_record(self.other["id"], record.id))

    def test_logged_at_defaults_to_now(self) -> None:
        facts = NutritionFacts(calories=100, protein=1.0, carbs=2.0, fat=3.0)
        record = self.repo.create_meal_record(self.user["id"], "meal-images/x.png", facts, image_sha256="x")
        self.assertTrue(record.logged_at.endswith("Z"))

    def test_list_is_newest_first_and_scoped_to_user(self) -> None:
        self._create(self.user["id"], "1", "2026-10-01T08:00:00Z")
        self._create(self.user["id"], "2", "2026-10-02T12:00:00Z")
        self._create(self.other["id"], "3", "2026-10-02T13:00:00Z")
        records = self.repo.list_meal_records(self.user["id"])
        self.assertEqual([r.logged_at[:10] for r in records], ["2026-10-02", "2026-10-01"])

    def test_list_date_range_is_inclusive(self) -> None:
        self._create(self.user["id"], "1", "2026-09-30T23:59:00Z")
        self._create(self.user["id"], "2", "2026-10-01T00:00:00Z")
        self._create(self.user["id"], "3", "2026-10-03T10:00:00Z")
        self._create(self.user["id"], "4", "2026-10-04T10:00:00Z")
        records = self.repo.list_meal_records(self.user["id"], start="2026-10-01", end="2026-10-03")
        self.assertEqual(len(records), 2)
        only_start = self.repo.list_meal_records(self.user["id"], start="2026-10-03")
        self.assertEqual(len(only_start), 2)

    def test_same_photo_twice_is_rejected(self) -> None:
        self._create(self.user["id"], "dup", "2026-10-01T08:00:00Z")
        with self.assertRaises(PersistenceFailed):
            self._create(self.user["id"], "dup", "2026-10-01T09:00:00Z")
        self.assertIsNotNone(self.repo.find_by_image(self.user["id"], "dup"))
        self.assertIsNone(self.repo.find_by_image(self.other["id"], "dup"))

    def test_totals_and_remaining(self) -> None:
        self._create(self.user["id"], "1", "2026-10-01T08:00:00Z", calories=650)
        self._create(self.user["id"], "2", "2026-10-01T13:00:00Z", calories=820)
        totals = compute_totals(self.repo.list_meal_records(self.user["id"]))
        self.assertEqual(totals.calories, 1470)
        self.assertEqual(totals.protein, 41.0)
        self.assertEqual(totals.fat, 20.2)
        targets = targets_from_user(get_user_by_id(self.db, self.user["id"]))
        self.assertEqual(targets.calories, 2000)
        remaining = remaining_against(targets, totals)
        self.assertEqual(remaining.calories, 530)
        self.assertEqual(remaining.protein, 109.0)


if __name__ == "__main__":
    unittest.main()
