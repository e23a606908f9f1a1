from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class CacheNamespace(StrEnum):
    CONTENT = "content"
    ANSWER = "answer"


class CacheEntry(BaseModel):
    """A single cached value with its expiry."""

    key: str  # "<namespace>:<suffix>"
    value: str
    fetched_at: datetime
    expires_at: datetime
