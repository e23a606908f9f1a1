"""Error types shared across pageask.

Every failure the core cares about is a ``PageAskError`` carrying a stable
``ErrorCode`` and a ``recoverable`` hint. The orchestrator translates these
into user-facing text; the MCP server serializes them with ``to_dict``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    PAGE_FETCH_FAILED = "PAGE_FETCH_FAILED"
    PAGE_EMPTY = "PAGE_EMPTY"
    RELATED_PAGE_FAILED = "RELATED_PAGE_FAILED"
    GENERATION_FAILED = "GENERATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    CONFIG_ERROR = "CONFIG_ERROR"


class PageAskError(Exception):
    """Base error with a machine-readable code."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }


class AcquisitionError(PageAskError):
    """The primary page could not be fetched or came back empty."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PAGE_FETCH_FAILED,
        recoverable: bool = True,
    ) -> None:
        super().__init__(code, message, recoverable)


class GenerationError(PageAskError):
    """The language model call failed."""

    def __init__(self, message: str, rate_limited: bool = False) -> None:
        code = ErrorCode.RATE_LIMITED if rate_limited else ErrorCode.GENERATION_FAILED
        super().__init__(code, message, recoverable=True)
        self.rate_limited = rate_limited


class TransientRelatedPageError(PageAskError):
    """A related page failed to scrape. Absorbed inside the acquirer."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(ErrorCode.RELATED_PAGE_FAILED, f"{url}: {reason}", recoverable=True)
        self.url = url
        self.reason = reason
