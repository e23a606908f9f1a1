"""Shared fixtures: settings and in-memory provider fakes."""

from __future__ import annotations

import pytest

from pageask.config import Settings
from pageask.errors import GenerationError
from pageask.models.scrape import BatchScrapeResult, ScrapedPage, ScrapeResult


class FakeScraper:
    """ScraperProtocol fake backed by dicts of url -> markdown."""

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        links: dict[str, list[str]] | None = None,
        related: dict[str, str] | None = None,
        batch_error: Exception | None = None,
        batch_result: BatchScrapeResult | None = None,
    ) -> None:
        self.pages = pages or {}
        self.links = links or {}
        self.related = related or {}
        self.batch_error = batch_error
        self.batch_result = batch_result
        self.scrape_calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    async def scrape_url(
        self, url: str, formats: list[str], only_main_content: bool = True
    ) -> ScrapeResult:
        self.scrape_calls.append(url)
        if url not in self.pages:
            return ScrapeResult(success=False, error="404 Not Found")
        return ScrapeResult(success=True, markdown=self.pages[url], links=self.links.get(url, []))

    async def batch_scrape_urls(
        self, urls: list[str], formats: list[str], only_main_content: bool = True
    ) -> BatchScrapeResult:
        self.batch_calls.append(list(urls))
        if self.batch_error is not None:
            raise self.batch_error
        if self.batch_result is not None:
            return self.batch_result
        return BatchScrapeResult(
            success=True,
            data=[
                ScrapedPage(url=u, markdown=self.related[u])
                if u in self.related
                else ScrapedPage(url=u, success=False, error="HTTP 404")
                for u in urls
            ],
        )


class FakeGenerator:
    """GeneratorProtocol fake that records prompts."""

    def __init__(self, answer: str = "The answer.", error: GenerationError | None = None) -> None:
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []
        self.close_calls = 0

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer

    async def aclose(self) -> None:
        self.close_calls += 1


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def scraper_cls() -> type[FakeScraper]:
    return FakeScraper


@pytest.fixture()
def generator_cls() -> type[FakeGenerator]:
    return FakeGenerator
