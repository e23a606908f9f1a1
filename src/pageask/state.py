"""Process-wide application state, created once in the server lifespan.

Provider clients are not stored here: ``scraper_factory`` and
``generator_factory`` build fresh ones for every request from the configured
credentials.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pageask.cache import CacheManager
    from pageask.config import Settings
    from pageask.protocols import GeneratorProtocol, ScraperProtocol


@dataclass
class AppState:
    settings: Settings
    cache_manager: CacheManager
    scraper_factory: Callable[[], ScraperProtocol]
    generator_factory: Callable[[], GeneratorProtocol]
