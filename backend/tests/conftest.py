"""Shared fixtures: a throwaway SQLite database and store per test."""

from __future__ import annotations

import pytest

from creatorscout.db.database import Database
from creatorscout.db.store import CreatorStore


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.init()
    yield db
    await db.close()


@pytest.fixture
async def store(database):
    return CreatorStore(database)
