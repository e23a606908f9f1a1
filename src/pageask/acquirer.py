"""Content acquisition: primary page plus optional related documentation pages.

The primary page decides success. Related pages are best effort: each one
becomes either ``PageFetched`` or ``PageSkipped``, and skipped pages are
dropped from the document. Once the primary page is in hand, acquisition
never fails as a whole.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx
import structlog

from pageask.errors import AcquisitionError, ErrorCode, PageAskError, TransientRelatedPageError
from pageask.models.content import ContentDocument, ContentSection

if TYPE_CHECKING:
    from pageask.config import AcquisitionSettings
    from pageask.protocols import ScraperProtocol

log = structlog.get_logger()

PRIMARY_FORMATS = ["markdown", "links"]
RELATED_FORMATS = ["markdown"]


@dataclass(frozen=True)
class AcquisitionPolicy:
    """Per-query decision on whether to pursue related pages."""

    doc_site: bool
    complex_query: bool

    @property
    def expand_related(self) -> bool:
        return self.doc_site and self.complex_query


@dataclass(frozen=True)
class PageFetched:
    section: ContentSection


@dataclass(frozen=True)
class PageSkipped:
    error: TransientRelatedPageError


PageOutcome = PageFetched | PageSkipped


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def is_doc_site(url: str, settings: AcquisitionSettings) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in settings.doc_site_markers)


def is_complex_query(question: str, settings: AcquisitionSettings) -> bool:
    if len(question) > settings.complex_query_min_length:
        return True
    # Markers match at the start of a word: "explained" counts, "show" is not "how"
    lowered = question.lower()
    return any(
        re.search(rf"\b{re.escape(marker)}", lowered) for marker in settings.complex_query_markers
    )


def compute_policy(url: str, question: str, settings: AcquisitionSettings) -> AcquisitionPolicy:
    return AcquisitionPolicy(
        doc_site=is_doc_site(url, settings),
        complex_query=is_complex_query(question, settings),
    )


def _looks_like_doc(link: str, settings: AcquisitionSettings) -> bool:
    lowered = link.lower()
    if any(marker in lowered for marker in settings.related_link_markers):
        return True
    path = urlparse(lowered).path
    return path.endswith(tuple(settings.related_link_extensions))


def _looks_excluded(link: str, settings: AcquisitionSettings) -> bool:
    lowered = link.lower()
    return any(marker in lowered for marker in settings.excluded_link_markers)


def select_related_links(
    links: list[str],
    primary_url: str,
    settings: AcquisitionSettings,
) -> list[str]:
    """Pick up to ``max_related_pages`` doc-like links in discovery order."""
    selected: list[str] = []
    for link in links:
        if len(selected) >= settings.max_related_pages:
            break
        if not link.startswith(("http://", "https://")):
            continue
        if link == primary_url or link in selected:
            continue
        if not _looks_like_doc(link, settings) or _looks_excluded(link, settings):
            continue
        selected.append(link)
    return selected


# ---------------------------------------------------------------------------
# Acquirer
# ---------------------------------------------------------------------------


class Acquirer:
    def __init__(self, scraper: ScraperProtocol, settings: AcquisitionSettings) -> None:
        self._scraper = scraper
        self._settings = settings

    async def acquire(self, url: str, expand_related: bool = False) -> ContentDocument:
        """Fetch ``url`` and, if ``expand_related``, a few related doc pages.

        Raises:
            AcquisitionError: the primary page failed or had no body.
        """
        primary, links = await self.fetch_primary(url)
        if not expand_related:
            return ContentDocument(sections=(primary,))

        related_urls = select_related_links(links, url, self._settings)
        if not related_urls:
            log.debug("no_related_pages", url=url, links_seen=len(links))
            return ContentDocument(sections=(primary,))

        try:
            outcomes = await self._fetch_related(related_urls, primary_url=url)
        except Exception as exc:
            # The primary page is in hand; nothing from expansion fails the query
            log.warning("related_expansion_failed", url=url, error=str(exc), exc_info=True)
            return ContentDocument(sections=(primary,))

        sections = [primary]
        for outcome in outcomes:
            if isinstance(outcome, PageFetched):
                sections.append(outcome.section)
            else:
                log.info(
                    "related_page_skipped",
                    url=outcome.error.url,
                    reason=outcome.error.reason,
                    code=outcome.error.code,
                )

        log.info(
            "content_acquired",
            url=url,
            related_requested=len(related_urls),
            related_fetched=len(sections) - 1,
        )
        return ContentDocument(sections=tuple(sections))

    async def fetch_primary(self, url: str) -> tuple[ContentSection, list[str]]:
        """Scrape the primary page's main content and the links found on it."""
        try:
            result = await self._scraper.scrape_url(url, PRIMARY_FORMATS, only_main_content=True)
        except httpx.HTTPError as exc:
            raise AcquisitionError(f"Failed to scrape {url}: {exc}") from exc

        if not result.success:
            raise AcquisitionError(f"Failed to scrape {url}: {result.error or 'unknown error'}")
        if not result.markdown or not result.markdown.strip():
            raise AcquisitionError(
                f"Scrape of {url} returned no content",
                code=ErrorCode.PAGE_EMPTY,
                recoverable=False,
            )
        return ContentSection(source_url=url, body=result.markdown), result.links

    async def _fetch_related(self, urls: list[str], primary_url: str) -> list[PageOutcome]:
        batch = await self._scraper.batch_scrape_urls(urls, RELATED_FORMATS, only_main_content=True)
        if not batch.success:
            raise PageAskError(
                ErrorCode.RELATED_PAGE_FAILED,
                f"batch scrape failed: {batch.error or 'unknown error'}",
                recoverable=True,
            )

        by_url = {page.url: page for page in batch.data}
        outcomes: list[PageOutcome] = []
        matched = 0
        for requested in urls:
            page = by_url.pop(requested, None)
            if page is None:
                outcomes.append(
                    PageSkipped(TransientRelatedPageError(requested, "missing from batch result"))
                )
            else:
                matched += 1
                outcomes.append(_to_outcome(page.url, page.success, page.markdown, page.error))
        # Pages the provider reported under a different URL (e.g. after a redirect),
        # at most one per requested URL that did not come back under its own name
        spare = len(urls) - matched
        for page in by_url.values():
            if spare <= 0:
                break
            if page.url and page.url != primary_url and page.success and page.markdown:
                outcomes.append(_to_outcome(page.url, page.success, page.markdown, page.error))
                spare -= 1
        return outcomes


def _to_outcome(url: str, success: bool, markdown: str | None, error: str | None) -> PageOutcome:
    if not success:
        return PageSkipped(TransientRelatedPageError(url, error or "scrape unsuccessful"))
    if not markdown or not markdown.strip():
        return PageSkipped(TransientRelatedPageError(url, "empty body"))
    return PageFetched(ContentSection(source_url=url, body=markdown))
