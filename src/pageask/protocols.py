"""Structural interfaces for the collaborators the core depends on.

Concrete implementations live in ``cache``, ``scraper`` and ``generator``;
tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pageask.models.scrape import BatchScrapeResult, ScrapeResult


class CacheStoreProtocol(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None: ...


class ScraperProtocol(Protocol):
    async def scrape_url(
        self,
        url: str,
        formats: list[str],
        only_main_content: bool = True,
    ) -> ScrapeResult: ...

    async def batch_scrape_urls(
        self,
        urls: list[str],
        formats: list[str],
        only_main_content: bool = True,
    ) -> BatchScrapeResult: ...


class GeneratorProtocol(Protocol):
    async def generate(self, prompt: str) -> str: ...

    async def aclose(self) -> None: ...
