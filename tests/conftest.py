from __future__ import annotations

import pytest

from app.data.provider import DEFAULT_IMAGE_URL, parse_catalog
from app.models.dictionary import DictCatalog
from app.search.keyword import Category
from app.utils.errors import IndexUnavailable


SAMPLE_PAGES = {
    "header": {"count": 3, "prefix": "A"},
    "content": {"count": 100, "prefix": ""},
    "footer": {"count": 2, "prefix": "C"},
}

SAMPLE_DATA = {
    Category.PINYIN: {"shui": ["0012", "0013"], "lü": 40, "lüe": 41},
    Category.CHARS: {"水": "0012", "绿": 40},
    Category.WORDS: {"水果": "0034", "喝水": "0035", "山水画": "0036"},
    Category.TOC: [
        {"title": "凡例", "page": "A0001"},
        {
            "title": "附录",
            "page": "C0001",
            "more": [{"title": "汉语拼音方案", "page": "C0002"}],
        },
    ],
}


class FakeProvider:
    """In-memory stand-in for IndexProvider."""

    def __init__(self, data=None, catalog=None, failing=()):
        self.data = data if data is not None else {"xinhua": SAMPLE_DATA}
        self.catalog = catalog or {
            "dicts": [
                {"repo": "xinhua", "name": "新华字典", "pages": SAMPLE_PAGES},
                {"repo": "ciyu", "name": "词语词典"},
            ]
        }
        self.failing = set(failing)
        self.loads: list[tuple[str, Category]] = []
        self.on_load = None
        self.images: dict[str, str] = {}

    def load_catalog(self) -> DictCatalog:
        return parse_catalog(self.catalog)

    def load_index(self, repo: str, category: Category):
        self.loads.append((repo, category))
        if self.on_load is not None:
            self.on_load(repo, category)
        if category in self.failing or category not in self.data.get(repo, {}):
            raise IndexUnavailable(repo, category.value, "all mirrors failed")
        return self.data[repo][category]

    def resolve_image_url(self, repo: str, image_path: str) -> str:
        return self.images.get(image_path, DEFAULT_IMAGE_URL)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()
