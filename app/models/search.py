"""Pydantic models for the dictionary viewer API."""

from typing import Optional

from pydantic import BaseModel, Field


class SearchQuery(BaseModel):
    """Search query input model."""

    query: str = Field(..., description="Pinyin, character, word, title or page number")
    limit: int = Field(default=10, ge=1, le=100, description="Maximum number of results")


class SearchResult(BaseModel):
    """Individual search result."""

    term: str = Field(..., description="Matched index term")
    page: str = Field(..., description="Page id, e.g. '0125' or 'A0003'")
    page_number: int = Field(..., description="Page number shown to the user")
    category: str = Field(..., description="Index the term came from")
    label: str = Field(..., description="Display name of the index")
    score: float = Field(..., description="Rank score, lower is better")


class SearchResponse(BaseModel):
    """Search API response model."""

    query: str = Field(..., description="Original query")
    total_results: int = Field(..., description="Number of results returned")
    results: list[SearchResult] = Field(default_factory=list, description="Search results")
    page: Optional[str] = Field(None, description="Page to show: the best hit or the requested page")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok")
    dict_loaded: bool = Field(..., description="Whether a dictionary is loaded")
    repo: Optional[str] = Field(None, description="Repository of the loaded dictionary")
    categories_loaded: int = Field(default=0, description="Number of indexes available for search")


class DictInfo(BaseModel):
    """Catalog entry as shown in the dictionary selector."""

    repo: str
    name: str
    logo: str
    selected: bool = False


class SelectResponse(BaseModel):
    """Result of switching dictionaries."""

    repo: str
    name: str
    start_page: str = Field(..., description="Random body page to open first")
    total_pages: int
    unavailable: list[str] = Field(default_factory=list, description="Indexes that failed to load")


class PageResponse(BaseModel):
    """A page with its position in the dictionary."""

    page: str
    page_number: int
    segment: str
    linear: int


class ImageResponse(BaseModel):
    """Where to load a page image from."""

    page: str
    image_path: str
    url: str


class TocItem(BaseModel):
    """Table of contents entry for the bookmark sidebar."""

    title: str
    page: str
    page_number: int
    more: list["TocItem"] = Field(default_factory=list)
