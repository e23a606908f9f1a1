"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite, the real Firecrawl
client over an httpx client (mocked with respx in the tests), and a fake
generator so no model is called.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from pageask.cache import Cache, CacheManager
from pageask.config import Settings
from pageask.scraper import build_scraper
from pageask.state import AppState

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def generator(generator_cls):
    return generator_cls(answer="Integration answer")


@pytest.fixture()
async def app_state(generator) -> AppState:
    settings = Settings(
        scraper={"api_key": "fc-test", "batch_poll_interval_seconds": 0, "batch_max_polls": 5},
    )
    async with aiosqlite.connect(":memory:") as db:
        cache = Cache(db)
        await cache.init_db()

        async with httpx.AsyncClient() as client:
            yield AppState(
                settings=settings,
                cache_manager=CacheManager(cache, settings.cache),
                scraper_factory=lambda: build_scraper(client, settings.scraper),
                generator_factory=lambda: generator,
            )


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Environment for running the server as a subprocess with an isolated cache."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("PAGEASK__")}
    env["PAGEASK__CACHE__DB_PATH"] = str(tmp_path / "cache.db")
    env["PAGEASK__LOGGING__FORMAT"] = "text"
    return env
