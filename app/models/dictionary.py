"""Pydantic models for dictionary configuration and table of contents."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator


class SegmentConfig(BaseModel):
    """One page segment: a prefix and the number of pages in it."""

    prefix: str = Field(default="", description="Page id prefix, e.g. 'A'")
    count: int = Field(default=0, ge=0, description="Number of pages in the segment")


class PageScheme(BaseModel):
    """
    Page layout of a scanned dictionary.

    Pages are numbered per segment (front matter, body, appendix), each with
    its own prefix and 1-based numbering. Concatenated in that order they form
    the linear page sequence used for navigation.
    """

    header: SegmentConfig = Field(default_factory=lambda: SegmentConfig(prefix="A", count=0))
    content: SegmentConfig = Field(default_factory=lambda: SegmentConfig(prefix="", count=1))
    footer: SegmentConfig = Field(default_factory=lambda: SegmentConfig(prefix="C", count=0))

    @model_validator(mode="after")
    def check_prefixes(self) -> "PageScheme":
        if self.content.count < 1:
            raise ValueError("content segment needs at least one page")
        if not self.header.prefix or not self.footer.prefix:
            raise ValueError("header and footer prefixes must be non-empty")

        # Segment detection tests prefixes with startswith, so no prefix may
        # start another one.
        prefixes = [p for p in (self.header.prefix, self.content.prefix, self.footer.prefix) if p]
        for i, a in enumerate(prefixes):
            for b in prefixes[i + 1:]:
                if a.startswith(b) or b.startswith(a):
                    raise ValueError(f"page prefixes overlap: {a!r} and {b!r}")
        return self

    @property
    def header_pages(self) -> int:
        return self.header.count

    @property
    def main_pages(self) -> int:
        return self.header.count + self.content.count

    @property
    def total_pages(self) -> int:
        return self.main_pages + self.footer.count


class DictConfig(BaseModel):
    """Catalog entry for one dictionary."""

    repo: str = Field(..., min_length=1, description="Repository holding the page images and indexes")
    name: str = Field(..., description="Display name")
    pages: PageScheme = Field(default_factory=PageScheme, description="Page layout")

    @field_validator("pages", mode="before")
    @classmethod
    def default_pages(cls, value):
        return PageScheme() if value is None else value

    @property
    def logo(self) -> str:
        return f"assets/logos/{self.repo}.png"


class DictCatalog(BaseModel):
    """Contents of dicts.json."""

    dicts: list[DictConfig] = Field(default_factory=list)


class TocEntry(BaseModel):
    """Table of contents entry, optionally with nested sub-entries."""

    title: str
    page: str
    more: list[TocEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def coerce_page(cls, data):
        # Index files store pages as either numbers or strings
        if isinstance(data, dict) and isinstance(data.get("page"), int):
            data = {**data, "page": str(data["page"])}
        return data
