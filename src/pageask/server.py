"""MCP server entrypoint.

Run with ``python -m pageask.server`` or the ``pageask`` console script.
Configuration errors surface at startup, before any transport starts.
"""

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import ValidationError

from pageask.cache import Cache, CacheManager
from pageask.config import Settings
from pageask.errors import ErrorCode, PageAskError
from pageask.generator import build_generator
from pageask.logging_config import configure_logging
from pageask.models.tools import AskAboutUrlInput, AskInput, ScrapeInput
from pageask.orchestrator import QueryOrchestrator
from pageask.scraper import build_http_client, build_scraper
from pageask.state import AppState

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


def _invalid_input(exc: ValidationError) -> PageAskError:
    messages = "; ".join(err["msg"] for err in exc.errors())
    return PageAskError(ErrorCode.INVALID_INPUT, messages, recoverable=False)


def _tool_error(exc: PageAskError) -> ToolError:
    return ToolError(json.dumps(exc.to_dict()))


async def handle_ask_about_url(state: AppState, url: str, question: str) -> str:
    try:
        params = AskAboutUrlInput(url=url, question=question)
    except ValidationError as exc:
        raise _invalid_input(exc) from exc
    return await QueryOrchestrator(state).ask_about_url(params.url, params.question)


async def handle_scrape(state: AppState, url: str) -> str:
    try:
        params = ScrapeInput(url=url)
    except ValidationError as exc:
        raise _invalid_input(exc) from exc
    return await QueryOrchestrator(state).scrape(params.url)


async def handle_ask(state: AppState, question: str) -> str:
    try:
        params = AskInput(question=question)
    except ValidationError as exc:
        raise _invalid_input(exc) from exc
    return await QueryOrchestrator(state).ask(params.question)


# ---------------------------------------------------------------------------
# Server wiring
# ---------------------------------------------------------------------------


async def _cleanup_loop(cache: Cache, interval_hours: int) -> None:
    while True:
        await cache.cleanup_if_due(interval_hours)
        await asyncio.sleep(interval_hours * 3600)


def create_server(settings: Settings) -> FastMCP:
    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[AppState]:
        db_path = Path(settings.cache.db_path).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(db_path) as db, build_http_client(settings.scraper) as client:
            cache = Cache(db)
            await cache.init_db()
            state = AppState(
                settings=settings,
                cache_manager=CacheManager(cache, settings.cache),
                scraper_factory=lambda: build_scraper(client, settings.scraper),
                generator_factory=lambda: build_generator(settings.generator),
            )
            cleanup = asyncio.create_task(
                _cleanup_loop(cache, settings.cache.cleanup_interval_hours)
            )
            log.info("server_started", transport=settings.server.transport, db_path=str(db_path))
            try:
                yield state
            finally:
                cleanup.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await cleanup
                log.info("server_stopped")

    mcp = FastMCP(
        "pageask",
        lifespan=lifespan,
        host=settings.server.host,
        port=settings.server.port,
    )

    @mcp.tool()
    async def ask_about_url(url: str, question: str, ctx: Context) -> str:
        """Answer a question about the content of a web page.

        Documentation pages may be augmented with a few related pages linked
        from them. Answers are grounded in the page content and cite sources.
        """
        try:
            return await handle_ask_about_url(ctx.request_context.lifespan_context, url, question)
        except PageAskError as exc:
            raise _tool_error(exc) from exc

    @mcp.tool()
    async def scrape(url: str, ctx: Context) -> str:
        """Scrape a web page and return its main content as markdown."""
        try:
            return await handle_scrape(ctx.request_context.lifespan_context, url)
        except PageAskError as exc:
            raise _tool_error(exc) from exc

    @mcp.tool()
    async def ask(question: str, ctx: Context) -> str:
        """Ask the language model a question directly, without page content."""
        try:
            return await handle_ask(ctx.request_context.lifespan_context, question)
        except PageAskError as exc:
            raise _tool_error(exc) from exc

    return mcp


def main() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    mcp = create_server(settings)
    transport = "streamable-http" if settings.server.transport == "http" else "stdio"
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
