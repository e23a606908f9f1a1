from __future__ import annotations

from pydantic import BaseModel, field_validator


def _validate_url(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("url must not be empty")
    if len(v) > 2048:
        raise ValueError("url must not exceed 2048 characters")
    if not v.startswith(("http://", "https://")):
        raise ValueError("url must use http or https scheme")
    return v


def _validate_question(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("question must not be empty")
    if len(v) > 2000:
        raise ValueError("question must not exceed 2000 characters")
    return v


class AskAboutUrlInput(BaseModel):
    url: str
    question: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_url(v)

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        return _validate_question(v)


class ScrapeInput(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_url(v)


class AskInput(BaseModel):
    question: str

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        return _validate_question(v)
