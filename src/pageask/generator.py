"""Answer generation through the Gemini API."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors

from pageask.errors import ErrorCode, GenerationError, PageAskError

if TYPE_CHECKING:
    from pageask.config import GeneratorSettings

log = structlog.get_logger()

_RATE_LIMIT_STATUSES = frozenset({"RESOURCE_EXHAUSTED"})


def build_generator(settings: GeneratorSettings) -> Generator:
    """Construct a generator for one request from the configured credentials."""
    if settings.api_key is None:
        raise PageAskError(ErrorCode.CONFIG_ERROR, "generator.api_key is not configured")
    client = genai.Client(api_key=settings.api_key.get_secret_value())
    return Generator(client, settings.model)


class Generator:
    """Implements GeneratorProtocol: prompt in, answer text out."""

    def __init__(self, client: genai.Client, model: str) -> None:
        self._client = client
        self._model = model

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
            )
        except genai_errors.APIError as exc:
            rate_limited = exc.code == 429 or exc.status in _RATE_LIMIT_STATUSES
            log.warning(
                "generation_failed",
                model=self._model,
                code=exc.code,
                status=exc.status,
                rate_limited=rate_limited,
            )
            raise GenerationError(str(exc), rate_limited=rate_limited) from exc
        except httpx.HTTPError as exc:
            log.warning("generation_failed", model=self._model, error=str(exc))
            raise GenerationError(f"network error: {exc}") from exc

        return response.text or ""

    async def aclose(self) -> None:
        """Release the client's HTTP transport. The generator is single-use after this."""
        await self._client.aio.aclose()
