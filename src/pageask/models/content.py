from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

SECTION_SEPARATOR = "\n\n---\n\n"


class ContentSection(BaseModel):
    """Markdown body scraped from one URL."""

    model_config = ConfigDict(frozen=True)

    source_url: str
    body: str

    @property
    def label(self) -> str:
        return f"## Content from: {self.source_url}"

    def render(self) -> str:
        return f"{self.label}\n\n{self.body}"


class ContentDocument(BaseModel):
    """Labeled sections in acquisition order; the primary page is always first."""

    model_config = ConfigDict(frozen=True)

    sections: tuple[ContentSection, ...]

    @field_validator("sections")
    @classmethod
    def validate_sections(cls, v: tuple[ContentSection, ...]) -> tuple[ContentSection, ...]:
        if not v:
            raise ValueError("a document needs at least the primary section")
        return v

    @property
    def primary(self) -> ContentSection:
        return self.sections[0]

    @property
    def source_urls(self) -> list[str]:
        return [s.source_url for s in self.sections]

    def render(self) -> str:
        """Serialize to the single text blob used for caching and prompting."""
        return SECTION_SEPARATOR.join(section.render() for section in self.sections)
