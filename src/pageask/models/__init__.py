from __future__ import annotations

from pageask.models.cache import CacheEntry, CacheNamespace
from pageask.models.content import ContentDocument, ContentSection
from pageask.models.scrape import BatchScrapeResult, ScrapedPage, ScrapeResult
from pageask.models.tools import AskAboutUrlInput, AskInput, ScrapeInput

__all__ = [
    # cache
    "CacheEntry",
    "CacheNamespace",
    # content
    "ContentSection",
    "ContentDocument",
    # scrape
    "ScrapeResult",
    "ScrapedPage",
    "BatchScrapeResult",
    # tools
    "AskAboutUrlInput",
    "AskInput",
    "ScrapeInput",
]
