"""Unit tests for the MCP tool handlers and server wiring."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from pageask.cache import CacheManager
from pageask.errors import AcquisitionError, ErrorCode, PageAskError
from pageask.server import (
    _tool_error,
    create_server,
    handle_ask,
    handle_ask_about_url,
    handle_scrape,
)
from pageask.state import AppState

if TYPE_CHECKING:
    from pageask.cache import Cache
    from pageask.config import Settings


@pytest.fixture()
def state(settings: Settings, cache: Cache, scraper_cls, generator_cls) -> AppState:
    scraper = scraper_cls(pages={"https://example.com/": "Hello"})
    generator = generator_cls(answer="Hi there")
    return AppState(
        settings=settings,
        cache_manager=CacheManager(cache, settings.cache),
        scraper_factory=lambda: scraper,
        generator_factory=lambda: generator,
    )


class TestHandlers:
    async def test_ask_about_url(self, state: AppState) -> None:
        assert await handle_ask_about_url(state, "https://example.com/", "Greeting?") == "Hi there"

    async def test_inputs_are_stripped(self, state: AppState) -> None:
        answer = await handle_ask_about_url(state, "  https://example.com/ ", " Greeting?\n")
        assert answer == "Hi there"

    @pytest.mark.parametrize(
        ("url", "question", "fragment"),
        [
            ("", "Q?", "url must not be empty"),
            ("ftp://example.com/", "Q?", "http or https"),
            ("https://example.com/", "   ", "question must not be empty"),
            ("https://example.com/" + "a" * 2048, "Q?", "2048"),
        ],
    )
    async def test_ask_about_url_invalid_input(
        self, state: AppState, url: str, question: str, fragment: str
    ) -> None:
        with pytest.raises(PageAskError) as exc_info:
            await handle_ask_about_url(state, url, question)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT
        assert exc_info.value.recoverable is False
        assert fragment in exc_info.value.message

    async def test_scrape(self, state: AppState) -> None:
        assert await handle_scrape(state, "https://example.com/") == "Hello"

    async def test_scrape_failure_propagates(self, state: AppState) -> None:
        with pytest.raises(AcquisitionError):
            await handle_scrape(state, "https://example.com/missing")

    async def test_scrape_invalid_url(self, state: AppState) -> None:
        with pytest.raises(PageAskError) as exc_info:
            await handle_scrape(state, "example.com")
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    async def test_ask(self, state: AppState) -> None:
        assert await handle_ask(state, "Hello?") == "Hi there"

    async def test_ask_empty_question(self, state: AppState) -> None:
        with pytest.raises(PageAskError) as exc_info:
            await handle_ask(state, "")
        assert exc_info.value.code == ErrorCode.INVALID_INPUT


class TestToolError:
    def test_serializes_error_envelope(self) -> None:
        exc = PageAskError(ErrorCode.INVALID_INPUT, "question must not be empty")
        payload = json.loads(str(_tool_error(exc)))
        assert payload == {
            "error": {
                "code": "INVALID_INPUT",
                "message": "question must not be empty",
                "recoverable": False,
            }
        }


class TestCreateServer:
    async def test_registers_tools(self, settings: Settings) -> None:
        mcp = create_server(settings)
        tools = {tool.name: tool for tool in await mcp.list_tools()}

        assert set(tools) == {"ask_about_url", "scrape", "ask"}
        assert set(tools["ask_about_url"].inputSchema["properties"]) == {"url", "question"}
