# -*- coding: utf-8 -*-

from __future__ import annotations

import base64
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from fittrack.api import create_app
from fittrack.errors import AnalysisFailed, PersistenceFailed
from fittrack.meals.barcode import OpenFoodFactsClient
from fittrack.meals.images import ImageStore
from fittrack.meals.storage import MealRepository
from fittrack.meals.vision import NutritionEstimate

from support import FakeVision, make_jpeg, make_png, make_settings


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _off_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/5449000000996.json"):
        return httpx.Response(
            200,
            json={
                "status": 1,
                "product": {
                    "product_name": "Cola",
                    "nutriments": {"energy-kcal_100g": 42, "carbohydrates_100g": 10.6},
                },
            },
        )
    return httpx.Response(200, json={"status": 0, "status_verbose": "product not found"})


class MealsApiTestCase(unittest.TestCase):
    vision_estimate = None
    vision_error = None

    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="fittrack-test-"))
        self.settings = make_settings(self._tmp)
        self.vision = FakeVision(estimate=self.vision_estimate, error=self.vision_error)
        barcode_client = OpenFoodFactsClient(
            base_url="https://off.test", timeout=5, transport=httpx.MockTransport(_off_handler)
        )
        self.app = create_app(self.settings, vision=self.vision, barcode_client=barcode_client)
        self.client = TestClient(self.app)
        self.headers = self._register("alice")

    def tearDown(self) -> None:
        self.client.close()
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _register(self, username: str) -> dict:
        resp = self.client.post("/api/auth/register", json={"username": username, "password": "password123"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    def _log(self, image: bytes, **extra) -> httpx.Response:
        return self.client.post("/api/meals", json={"image_base64": _b64(image), **extra}, headers=self.headers)


class TestMealLogging(MealsApiTestCase):
    def test_photo_meal_is_analyzed_and_stored(self) -> None:
        resp = self._log(make_png())
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertTrue(body["created"])
        meal = body["meal"]
        self.assertEqual(meal["source"], "photo")
        self.assertEqual(meal["nutrition"], {"calories": 513, "protein": 30.3, "carbs": 45.0, "fat": 12.3})
        self.assertTrue(meal["image_reference"].startswith("meal-images/"))
        self.assertTrue(meal["image_reference"].endswith(".png"))
        self.assertEqual(self.vision.calls[0][1], "image/png")

    def test_same_photo_is_logged_once(self) -> None:
        image = make_jpeg()
        first = self._log(image).json()
        second = self._log(image).json()
        self.assertTrue(first["created"])
        self.assertFalse(second["created"])
        self.assertEqual(first["meal"]["id"], second["meal"]["id"])
        self.assertEqual(len(self.vision.calls), 1)
        listing = self.client.get("/api/meals", headers=self.headers).json()
        self.assertEqual(listing["count"], 1)

    def test_barcode_meal_skips_vision(self) -> None:
        known = {"name": "Soda", "calories": 139.4, "protein": 0, "carbs": 35, "fat": 0}
        resp = self._log(make_png((1, 2, 3)), known_nutrition=known)
        self.assertEqual(resp.status_code, 200, resp.text)
        meal = resp.json()["meal"]
        self.assertEqual(meal["source"], "barcode")
        self.assertEqual(meal["product_name"], "Soda")
        self.assertEqual(meal["nutrition"]["calories"], 139)
        self.assertEqual(self.vision.calls, [])

    def test_empty_image_is_rejected(self) -> None:
        resp = self._log(b"")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["code"], "empty_image")
        self.assertEqual(self.vision.calls, [])

    def test_undecodable_image_is_rejected(self) -> None:
        resp = self._log(b"not an image at all")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"]["code"], "invalid_image")

    def test_bad_base64_is_rejected(self) -> None:
        resp = self.client.post("/api/meals", json={"image_base64": "%%%not-base64"}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_oversized_image_is_rejected(self) -> None:
        self.settings.max_image_bytes = 10
        resp = self._log(make_png())
        self.assertEqual(resp.status_code, 400)
        self.assertIn("too large", resp.json()["detail"])

    def test_failed_insert_leaves_nothing_behind(self) -> None:
        with patch.object(MealRepository, "create_meal_record", side_effect=PersistenceFailed()):
            resp = self._log(make_png())
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"]["code"], "persistence_failed")
        images = list(self.settings.meal_images_root.rglob("*.png"))
        self.assertEqual(images, [])
        self.assertEqual(self.client.get("/api/meals", headers=self.headers).json()["count"], 0)

    def test_concurrent_insert_returns_winning_record(self) -> None:
        real_create = MealRepository.create_meal_record

        def lose_the_race(repo, *args, **kwargs):
            real_create(repo, *args, **kwargs)
            raise PersistenceFailed()

        with patch.object(MealRepository, "create_meal_record", autospec=True, side_effect=lose_the_race):
            resp = self._log(make_png())
        self.assertEqual(resp.status_code, 200, resp.text)
        meal = resp.json()["meal"]
        self.assertFalse(resp.json()["created"])
        self.assertEqual(self.client.get("/api/meals", headers=self.headers).json()["count"], 1)
        img = self.client.get(f"/api/meals/{meal['id']}/image", headers=self.headers)
        self.assertEqual(img.status_code, 200)
        self.assertEqual(len(list(self.settings.meal_images_root.rglob("*.png"))), 1)

    def test_photo_write_failure_is_persistence_failed(self) -> None:
        with patch.object(ImageStore, "save", side_effect=OSError("No space left on device")):
            resp = self._log(make_png())
        self.assertEqual(resp.status_code, 500)
        detail = resp.json()["detail"]
        self.assertEqual(detail["code"], "persistence_failed")
        self.assertIn("No space left", detail["details"]["reason"])
        self.assertEqual(self.client.get("/api/meals", headers=self.headers).json()["count"], 0)

    def test_absurd_known_nutrition_is_rejected(self) -> None:
        known = {"name": "Typo", "calories": 1e30, "protein": 1, "carbs": 1, "fat": 1}
        resp = self._log(make_png(), known_nutrition=known)
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["detail"]["code"], "invalid_nutrition")
        self.assertEqual(self.client.get("/api/meals", headers=self.headers).json()["count"], 0)

    def test_requires_authentication(self) -> None:
        resp = self.client.post("/api/meals", json={"image_base64": _b64(make_png())})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(self.vision.calls, [])


class TestOutOfBoundsAnalysis(MealsApiTestCase):
    vision_estimate = NutritionEstimate(calories=6000, protein=10, carbs=10, fat=10)

    def test_out_of_bounds_is_rejected_and_not_stored(self) -> None:
        resp = self._log(make_png())
        self.assertEqual(resp.status_code, 422)
        detail = resp.json()["detail"]
        self.assertEqual(detail["code"], "invalid_nutrition")
        self.assertEqual(detail["details"]["fields"], ["calories"])
        self.assertEqual(self.client.get("/api/meals", headers=self.headers).json()["count"], 0)


class TestFailedAnalysis(MealsApiTestCase):
    vision_error = AnalysisFailed("vision service timed out")

    def test_analysis_failure_is_bad_gateway(self) -> None:
        resp = self._log(make_png())
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["detail"]["code"], "analysis_failed")
        self.assertEqual(len(self.vision.calls), 1)
        self.assertEqual(list(self.settings.meal_images_root.rglob("*.png")), [])


class TestMealQueries(MealsApiTestCase):
    def test_get_meal_and_image(self) -> None:
        image = make_png((9, 9, 9))
        meal = self._log(image).json()["meal"]
        resp = self.client.get(f"/api/meals/{meal['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), meal)
        img = self.client.get(f"/api/meals/{meal['id']}/image", headers=self.headers)
        self.assertEqual(img.status_code, 200)
        self.assertEqual(img.content, image)

    def test_other_users_meal_is_not_found(self) -> None:
        meal = self._log(make_png()).json()["meal"]
        bob = self._register("bob")
        self.assertEqual(self.client.get(f"/api/meals/{meal['id']}", headers=bob).status_code, 404)
        self.assertEqual(self.client.get(f"/api/meals/{meal['id']}/image", headers=bob).status_code, 404)
        self.assertEqual(self.client.get("/api/meals", headers=bob).json()["count"], 0)

    def test_daily_summary(self) -> None:
        self._log(make_png((1, 1, 1)))
        self._log(make_png((2, 2, 2)))
        today = self._log(make_png((3, 3, 3))).json()["meal"]["logged_at"][:10]
        resp = self.client.get("/api/meals/summary", params={"date": today}, headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        summary = resp.json()
        self.assertEqual(summary["meal_count"], 3)
        self.assertEqual(summary["totals"]["calories"], 3 * 513)
        self.assertEqual(summary["targets"]["calories"], 2000)
        self.assertEqual(summary["remaining"]["calories"], 2000 - 3 * 513)

        empty = self.client.get("/api/meals/summary", params={"date": "2001-01-01"}, headers=self.headers).json()
        self.assertEqual(empty["meal_count"], 0)
        self.assertEqual(empty["totals"]["calories"], 0)

    def test_list_rejects_bad_dates(self) -> None:
        resp = self.client.get("/api/meals", params={"start": "yesterday"}, headers=self.headers)
        self.assertEqual(resp.status_code, 422)


class TestBarcodeLookup(MealsApiTestCase):
    def test_known_product(self) -> None:
        resp = self.client.get("/api/barcode/5449000000996", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["found"])
        self.assertEqual(body["product"]["name"], "Cola")
        self.assertEqual(body["product"]["calories"], 42.0)

    def test_unknown_product(self) -> None:
        body = self.client.get("/api/barcode/00000000", headers=self.headers).json()
        self.assertFalse(body["found"])
        self.assertIsNone(body["product"])

    def test_invalid_barcode(self) -> None:
        self.assertEqual(self.client.get("/api/barcode/abc", headers=self.headers).status_code, 400)


if __name__ == "__main__":
    unittest.main()
