from __future__ import annotations

import pytest

from app.data.session import SessionManager, build_session, flatten_toc
from app.models.dictionary import DictConfig, TocEntry
from app.search.keyword import Category, LexicalSearcher
from app.utils.errors import StaleSelection

from conftest import SAMPLE_DATA, SAMPLE_PAGES, FakeProvider


def test_flatten_toc_includes_nested_entries() -> None:
    toc = [
        TocEntry.model_validate({"title": "凡例", "page": "A0001"}),
        TocEntry.model_validate(
            {
                "title": "附录",
                "page": "C0001",
                "more": [
                    {"title": "Hanyu Pinyin", "page": "C0002"},
                    {"title": "凡例", "page": "A0002"},
                ],
            }
        ),
    ]
    assert flatten_toc(toc) == {
        "凡例": ["A0001", "A0002"],
        "附录": ["C0001"],
        "hanyu pinyin": ["C0002"],
    }


def test_toc_entry_accepts_numeric_pages() -> None:
    assert TocEntry.model_validate({"title": "部首检字表", "page": 5}).page == "5"


def test_build_session_loads_every_index(provider) -> None:
    config = DictConfig(repo="xinhua", name="新华字典", pages=SAMPLE_PAGES)
    session = build_session(provider, config)

    assert session.repo == "xinhua"
    assert session.scheme.total_pages == 105
    assert session.unavailable == frozenset()
    assert session.index[Category.CHARS] == SAMPLE_DATA[Category.CHARS]
    assert session.index[Category.TOC]["汉语拼音方案"] == ["C0002"]
    assert [e.title for e in session.toc] == ["凡例", "附录"]
    with pytest.raises(TypeError):
        session.index[Category.CHARS] = {}


def test_failed_category_is_skipped_by_search() -> None:
    provider = FakeProvider(failing={Category.CHARS, Category.TOC})
    session = build_session(provider, DictConfig(repo="xinhua", name="新华字典", pages=SAMPLE_PAGES))

    assert session.unavailable == {Category.CHARS, Category.TOC}
    assert session.index[Category.CHARS] is None
    assert session.toc == ()

    results = LexicalSearcher().search("水", session.index, limit=10)
    assert [r["term"] for r in results] == ["水果", "喝水", "山水画"]


def test_select_installs_session(provider) -> None:
    manager = SessionManager(provider)
    assert manager.current is None

    session = manager.select("xinhua")
    assert manager.current is session
    assert manager.find("ciyu").pages.total_pages == 1


def test_select_unknown_dictionary(provider) -> None:
    with pytest.raises(KeyError):
        SessionManager(provider).select("missing")


def test_select_default_picks_first_catalog_entry(provider) -> None:
    manager = SessionManager(provider)
    assert manager.select_default().repo == "xinhua"
    assert manager.current.repo == "xinhua"


def test_select_default_with_empty_catalog() -> None:
    manager = SessionManager(FakeProvider(catalog={"dicts": []}))
    assert manager.select_default() is None


def test_later_selection_wins_over_slow_earlier_load() -> None:
    provider = FakeProvider(data={"xinhua": SAMPLE_DATA, "ciyu": {}})
    manager = SessionManager(provider)

    def switch_while_loading(repo, category):
        # The user picks another dictionary while xinhua is still loading.
        if repo == "xinhua" and category is Category.PINYIN and manager.current is None:
            manager.select("ciyu")

    provider.on_load = switch_while_loading

    with pytest.raises(StaleSelection):
        manager.select("xinhua")
    assert manager.current.repo == "ciyu"


def test_sequential_selections_replace_session(provider) -> None:
    manager = SessionManager(provider)
    manager.select("xinhua")
    manager.select("ciyu")
    assert manager.current.repo == "ciyu"
    assert manager.current.unavailable == set(Category)
