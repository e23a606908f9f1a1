"""Query orchestration: cache checks, acquisition, prompting, generation.

``ask_about_url`` walks the states

    AnswerCacheCheck -> ContentCacheCheck -> Acquire -> Format -> Generate -> Store

and never raises: failures in Acquire or Generate are translated into one of
three fixed user-facing messages.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING

import structlog

from pageask.acquirer import Acquirer, compute_policy
from pageask.cache import answer_key, content_key
from pageask.errors import AcquisitionError, GenerationError
from pageask.formatter import format_content_query
from pageask.models.cache import CacheNamespace

if TYPE_CHECKING:
    from pageask.state import AppState

log = structlog.get_logger()

ACCESS_ERROR_MESSAGE = (
    "Sorry, I couldn't access the content of that URL. The page may be unavailable, "
    "blocked, or require authentication. Please check the URL and try again."
)
RATE_LIMIT_MESSAGE = (
    "Sorry, the answer service is temporarily at its usage limit. "
    "Please try again in a few minutes."
)
GENERIC_ERROR_MESSAGE = (
    "Sorry, something went wrong while answering your question. Please try again later."
)

_RATE_LIMIT_MARKERS = ("rate", "quota", "limit")


def error_message(exc: Exception) -> str:
    """Map a failure to the user-facing message returned instead of raising."""
    if isinstance(exc, AcquisitionError):
        return ACCESS_ERROR_MESSAGE
    if isinstance(exc, GenerationError):
        text = str(exc).lower()
        if exc.rate_limited or any(marker in text for marker in _RATE_LIMIT_MARKERS):
            return RATE_LIMIT_MESSAGE
    return GENERIC_ERROR_MESSAGE


class QueryOrchestrator:
    def __init__(self, state: AppState) -> None:
        self._state = state
        self._cache = state.cache_manager

    async def ask_about_url(self, url: str, question: str) -> str:
        """Answer ``question`` from the content at ``url``. Always returns text."""
        try:
            return await self._answer(url, question)
        except Exception as exc:
            if isinstance(exc, (AcquisitionError, GenerationError)):
                log.warning("query_failed", url=url, code=exc.code, error=exc.message)
            else:
                log.error("query_failed_unexpectedly", url=url, exc_info=True)
            return error_message(exc)

    async def _answer(self, url: str, question: str) -> str:
        a_key = answer_key(url, question)
        cached_answer = await self._cache.get(CacheNamespace.ANSWER, a_key)
        if cached_answer is not None:
            log.info("answer_cache_hit", url=url)
            return cached_answer

        content = await self._content_for(url, question)

        prompt = format_content_query(content, question)
        async with aclosing(self._state.generator_factory()) as generator:
            answer = await generator.generate(prompt)

        await self._cache.put(CacheNamespace.ANSWER, a_key, answer)
        log.info("answer_generated", url=url, answer_chars=len(answer))
        return answer

    async def _content_for(self, url: str, question: str) -> str:
        c_key = content_key(url)
        cached_content = await self._cache.get(CacheNamespace.CONTENT, c_key)
        if cached_content is not None:
            log.info("content_cache_hit", url=url)
            return cached_content

        policy = compute_policy(url, question, self._state.settings.acquisition)
        log.debug(
            "acquisition_policy",
            url=url,
            doc_site=policy.doc_site,
            complex_query=policy.complex_query,
        )
        acquirer = Acquirer(self._state.scraper_factory(), self._state.settings.acquisition)
        document = await acquirer.acquire(url, expand_related=policy.expand_related)

        content = document.render()
        await self._cache.put(CacheNamespace.CONTENT, c_key, content)
        return content

    async def scrape(self, url: str) -> str:
        """Return the primary page's markdown, uncached.

        Raises:
            AcquisitionError: the page failed or had no body.
        """
        acquirer = Acquirer(self._state.scraper_factory(), self._state.settings.acquisition)
        section, _ = await acquirer.fetch_primary(url)
        return section.body

    async def ask(self, question: str) -> str:
        """Send ``question`` to the model as-is, uncached.

        Raises:
            GenerationError: the model call failed.
        """
        async with aclosing(self._state.generator_factory()) as generator:
            return await generator.generate(question)
