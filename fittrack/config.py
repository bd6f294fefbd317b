from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the fittrack backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("FITTRACK_DATA_ROOT") or data_root_default
        ).expanduser()
        self.app_db_path: Path = Path(
            os.environ.get("FITTRACK_DB_PATH") or (self.data_root / "fittrack.db")
        ).expanduser()

        # In production you MUST set FITTRACK_JWT_SECRET. The dev secret keeps local demos easy.
        self.jwt_secret: str = os.environ.get("FITTRACK_JWT_SECRET") or "dev-secret-change-me"
        self.token_ttl_days: int = int(os.environ.get("FITTRACK_TOKEN_TTL_DAYS") or "7")
        self.cookie_secure: bool = (os.environ.get("FITTRACK_COOKIE_SECURE") or "").strip() in {"1", "true", "True"}

        self.max_image_bytes: int = int(os.environ.get("FITTRACK_MAX_IMAGE_BYTES") or str(5 * 1024 * 1024))
        self.log_level: str = (os.environ.get("FITTRACK_LOG_LEVEL") or "INFO").upper()

        # Vision analysis (OpenAI-compatible chat completions endpoint).
        self.vision_api_key: str | None = os.environ.get("VISION_API_KEY") or os.environ.get("OPENAI_API_KEY")
        self.vision_base_url: str = os.environ.get("VISION_BASE_URL", "https://api.openai.com/v1")
        self.vision_model: str = os.environ.get("VISION_MODEL", "gpt-4o")
        self.vision_timeout: float = float(os.environ.get("VISION_TIMEOUT", "60"))

        # Barcode lookup.
        self.openfoodfacts_base_url: str = os.environ.get(
            "OPENFOODFACTS_BASE_URL", "https://world.openfoodfacts.org"
        )
        self.openfoodfacts_timeout: float = float(os.environ.get("OPENFOODFACTS_TIMEOUT", "8"))

        self.host: str = os.environ.get("FITTRACK_HOST") or os.environ.get("HOST") or "127.0.0.1"
        port_raw = os.environ.get("FITTRACK_PORT") or os.environ.get("PORT") or "8000"
        try:
            self.port: int = int(port_raw)
        except ValueError:
            self.port = 8000

        cors = os.environ.get("FITTRACK_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]

    @property
    def meal_images_root(self) -> Path:
        return self.data_root / "users"
