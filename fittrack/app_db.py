# -*- coding: utf-8 -*-
"""App database — SQLite helpers and the injected persistence handle."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from fastapi import Request


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def init_app_db(db_path: Path) -> None:
    conn = connect(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                created_at TEXT NOT NULL,
                gender TEXT,
                height REAL,
                weight REAL,
                target_weight REAL,
                activity_level TEXT,
                workouts_per_week INTEGER,
                social_source TEXT,
                daily_calories INTEGER NOT NULL DEFAULT 2000,
                daily_protein REAL NOT NULL DEFAULT 150,
                daily_carbs REAL NOT NULL DEFAULT 200,
                daily_fat REAL NOT NULL DEFAULT 50
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS meals (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                image_reference TEXT NOT NULL,
                image_sha256 TEXT NOT NULL,
                source TEXT NOT NULL,
                product_name TEXT,
                calories INTEGER NOT NULL,
                protein REAL NOT NULL,
                carbs REAL NOT NULL,
                fat REAL NOT NULL,
                logged_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )
        cur.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_meals_user_image ON meals(user_id, image_sha256);")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_meals_user_logged ON meals(user_id, logged_at DESC);")
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS progress (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                weight REAL NOT NULL,
                logged_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_progress_user_logged ON progress(user_id, logged_at DESC);")
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS exercises (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                type TEXT NOT NULL,
                intensity TEXT,
                duration INTEGER,
                description TEXT,
                sets INTEGER,
                reps INTEGER,
                weight REAL,
                distance REAL,
                pace REAL,
                logged_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_exercises_user_logged ON exercises(user_id, logged_at DESC);")
        conn.commit()
    finally:
        conn.close()


@contextmanager
def db_conn(db_path: Path) -> Iterator[sqlite3.Connection]:
    conn = connect(db_path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


class AppDB:
    """Persistence handle built once by the app factory and passed to handlers."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def init(self) -> None:
        init_app_db(self.db_path)

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        with db_conn(self.db_path) as conn:
            yield conn


def get_db(request: Request) -> AppDB:
    return request.app.state.db
