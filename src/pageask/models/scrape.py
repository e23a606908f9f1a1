"""Provider-facing shapes for the Firecrawl scrape endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class ScrapeResult(BaseModel):
    success: bool
    markdown: str | None = None
    links: list[str] = []
    error: str | None = None


class ScrapedPage(BaseModel):
    """One entry of a batch scrape job."""

    url: str
    success: bool = True
    markdown: str | None = None
    error: str | None = None


class BatchScrapeResult(BaseModel):
    success: bool
    data: list[ScrapedPage] = []
    error: str | None = None
