"""Async client for the Firecrawl v1 scrape API.

Provider and transport failures are reported through ``success=False`` on
the returned result rather than raised, so callers decide which failures are
fatal. Batch scrapes are provider-side jobs: submit once, then poll.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from pageask.errors import ErrorCode, PageAskError
from pageask.models.scrape import BatchScrapeResult, ScrapedPage, ScrapeResult

if TYPE_CHECKING:
    from pageask.config import ScraperSettings

log = structlog.get_logger()


def build_http_client(settings: ScraperSettings) -> httpx.AsyncClient:
    """Shared HTTP client for provider calls. Auth headers are added per request."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": "pageask/0.1"},
    )


def build_scraper(client: httpx.AsyncClient, settings: ScraperSettings) -> FirecrawlScraper:
    """Construct a scraper for one request from the configured credentials."""
    if settings.api_key is None:
        raise PageAskError(ErrorCode.CONFIG_ERROR, "scraper.api_key is not configured")
    return FirecrawlScraper(client, settings.api_key.get_secret_value(), settings)


class FirecrawlScraper:
    """Implements ScraperProtocol over the Firecrawl REST API."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, settings: ScraperSettings) -> None:
        self._client = client
        self._api_key = api_key
        self._settings = settings
        self._base_url = settings.base_url.rstrip("/")

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    async def scrape_url(
        self,
        url: str,
        formats: list[str],
        only_main_content: bool = True,
    ) -> ScrapeResult:
        payload = {"url": url, "formats": formats, "onlyMainContent": only_main_content}
        try:
            body = await self._request("POST", "/v1/scrape", json=payload)
        except _ProviderError as exc:
            log.warning("scrape_failed", url=url, error=str(exc))
            return ScrapeResult(success=False, error=str(exc))

        if not body.get("success"):
            return ScrapeResult(success=False, error=body.get("error") or "scrape unsuccessful")

        data = body.get("data") or {}
        return ScrapeResult(
            success=True,
            markdown=data.get("markdown"),
            links=[link for link in data.get("links") or [] if isinstance(link, str)],
        )

    async def batch_scrape_urls(
        self,
        urls: list[str],
        formats: list[str],
        only_main_content: bool = True,
    ) -> BatchScrapeResult:
        payload = {"urls": urls, "formats": formats, "onlyMainContent": only_main_content}
        try:
            body = await self._request("POST", "/v1/batch/scrape", json=payload)
            if not body.get("success") or not body.get("id"):
                return BatchScrapeResult(
                    success=False, error=body.get("error") or "batch scrape not accepted"
                )
            job_id = body["id"]
            log.debug("batch_scrape_started", job_id=job_id, url_count=len(urls))
            return await self._wait_for_batch(job_id)
        except _ProviderError as exc:
            log.warning("batch_scrape_failed", urls=urls, error=str(exc))
            return BatchScrapeResult(success=False, error=str(exc))

    async def _wait_for_batch(self, job_id: str) -> BatchScrapeResult:
        for _ in range(self._settings.batch_max_polls):
            body = await self._request("GET", f"/v1/batch/scrape/{job_id}")
            status = body.get("status")
            if status == "completed":
                items = body.get("data")
                if not isinstance(items, list):
                    items = []
                return BatchScrapeResult(
                    success=True, data=[_parse_batch_item(item) for item in items]
                )
            if status in ("failed", "cancelled"):
                return BatchScrapeResult(
                    success=False, error=str(body.get("error") or f"batch job {status}")
                )
            await asyncio.sleep(self._settings.batch_poll_interval_seconds)

        return BatchScrapeResult(
            success=False,
            error=f"batch job {job_id} did not complete after "
            f"{self._settings.batch_max_polls} polls",
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, f"{self._base_url}{path}", headers=self._headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise _ProviderError(f"network error: {exc}") from exc

        if response.status_code == 401:
            raise _ProviderError("authentication failed (401)")
        if response.status_code == 429:
            raise _ProviderError("rate limit exceeded (429)")
        if not response.is_success:
            detail = _error_detail(response)
            raise _ProviderError(f"HTTP {response.status_code}: {detail}")

        try:
            body = response.json()
        except ValueError as exc:
            raise _ProviderError("invalid JSON response") from exc
        if not isinstance(body, dict):
            raise _ProviderError("unexpected response shape")
        return body


class _ProviderError(Exception):
    """Internal signal: the provider call failed. Never leaves this module."""


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase


def _parse_batch_item(item: Any) -> ScrapedPage:
    if not isinstance(item, dict):
        return ScrapedPage(url="", success=False, error="malformed batch item")
    metadata = item.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    url = metadata.get("sourceURL") or metadata.get("url")
    status_code = metadata.get("statusCode")
    error = metadata.get("error")
    markdown = item.get("markdown")
    if not isinstance(markdown, str):
        markdown = None
    failed = bool(error) or (isinstance(status_code, int) and status_code >= 400)
    return ScrapedPage(
        url=url if isinstance(url, str) else "",
        success=not failed and bool(markdown),
        markdown=markdown,
        error=str(error) if error else (f"HTTP {status_code}" if failed else None),
    )
