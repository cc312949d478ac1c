from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import main
from app.data.session import SessionManager
from app.search.keyword import Category

from conftest import FakeProvider


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(monkeypatch, fake_provider) -> TestClient:
    monkeypatch.setattr(main, "manager", SessionManager(fake_provider))
    return TestClient(main.app)


@pytest.fixture
def loaded(client) -> TestClient:
    response = client.post("/api/dicts/xinhua/select")
    assert response.status_code == 200
    return client


def test_health_before_and_after_loading(client) -> None:
    assert client.get("/api/health").json() == {
        "status": "ok",
        "dict_loaded": False,
        "repo": None,
        "categories_loaded": 0,
    }
    client.post("/api/dicts/xinhua/select")
    payload = client.get("/api/health").json()
    assert payload["dict_loaded"] is True
    assert payload["repo"] == "xinhua"
    assert payload["categories_loaded"] == 4


def test_list_dicts_marks_selection(loaded) -> None:
    payload = loaded.get("/api/dicts").json()
    assert [(d["repo"], d["selected"]) for d in payload] == [("xinhua", True), ("ciyu", False)]
    assert payload[0]["logo"] == "assets/logos/xinhua.png"


def test_select_returns_start_page(client) -> None:
    payload = client.post("/api/dicts/xinhua/select").json()
    assert payload["repo"] == "xinhua"
    assert payload["total_pages"] == 105
    assert payload["unavailable"] == []
    assert 1 <= int(payload["start_page"]) <= 100


def test_select_unknown_dictionary(client) -> None:
    assert client.post("/api/dicts/nope/select").status_code == 404


def test_select_superseded_by_later_selection(client, fake_provider) -> None:
    fake_provider.data["ciyu"] = {}

    def switch_while_loading(repo, category):
        if repo == "xinhua" and category is Category.PINYIN and main.manager.current is None:
            main.manager.select("ciyu")

    fake_provider.on_load = switch_while_loading

    response = client.post("/api/dicts/xinhua/select")
    assert response.status_code == 409
    assert "ciyu" in response.json()["detail"]
    assert client.get("/api/health").json()["repo"] == "ciyu"
    selected = [d["repo"] for d in client.get("/api/dicts").json() if d["selected"]]
    assert selected == ["ciyu"]


def test_catalog_with_invalid_entry_lists_the_rest(client, fake_provider) -> None:
    fake_provider.catalog = {
        "dicts": [
            {
                "repo": "broken",
                "name": "Broken",
                "pages": {"header": {"count": 1, "prefix": "A"}, "content": {"count": 5, "prefix": "AB"}},
            },
            {"repo": "xinhua", "name": "新华字典"},
        ]
    }
    response = client.get("/api/dicts")
    assert response.status_code == 200
    assert [d["repo"] for d in response.json()] == ["xinhua"]
    assert client.post("/api/dicts/broken/select").status_code == 404


def test_malformed_catalog(client, fake_provider) -> None:
    fake_provider.catalog = {"dicts": "xinhua"}
    assert client.get("/api/dicts").status_code == 503
    assert client.post("/api/dicts/xinhua/select").status_code == 503


def test_select_reports_unavailable_indexes(client) -> None:
    payload = client.post("/api/dicts/ciyu/select").json()
    assert payload["unavailable"] == ["CHARS", "PINYIN", "TOC", "WORDS"]


def test_endpoints_need_a_dictionary(client) -> None:
    assert client.get("/api/search", params={"query": "水"}).status_code == 503
    assert client.get("/api/pages/0001/step").status_code == 503
    assert client.get("/api/toc").status_code == 503


def test_blank_query_short_circuits(client) -> None:
    # No dictionary is loaded, yet blank input is answered without searching
    response = client.get("/api/search", params={"query": "   "})
    assert response.status_code == 200
    assert response.json()["total_results"] == 0
    assert response.json()["page"] is None


def test_search_ranks_results(loaded) -> None:
    payload = loaded.get("/api/search", params={"query": "水"}).json()
    assert payload["page"] == "0012"
    assert [(r["term"], r["category"], r["label"]) for r in payload["results"]] == [
        ("水", "CHARS", "单字"),
        ("水果", "WORDS", "词语"),
        ("喝水", "WORDS", "词语"),
        ("山水画", "WORDS", "词语"),
    ]
    assert payload["results"][0]["page_number"] == 12


def test_search_pinyin_and_limit(loaded) -> None:
    payload = loaded.get("/api/search", params={"query": "lv", "limit": 1}).json()
    assert payload["total_results"] == 1
    assert payload["results"][0]["term"] == "lü"
    assert payload["results"][0]["page"] == "0040"


def test_search_toc_titles(loaded) -> None:
    payload = loaded.post("/api/search", json={"query": "拼音"}).json()
    assert payload["results"][0]["term"] == "汉语拼音方案"
    assert payload["results"][0]["category"] == "TOC"
    assert payload["page"] == "C0002"


def test_search_without_match(loaded) -> None:
    payload = loaded.get("/api/search", params={"query": "火"}).json()
    assert payload["results"] == []
    assert payload["page"] is None


def test_numeric_query_jumps_to_body_page(loaded) -> None:
    payload = loaded.get("/api/search", params={"query": "57"}).json()
    assert payload["page"] == "0057"
    assert payload["results"] == []


def test_numeric_query_out_of_range(loaded) -> None:
    assert loaded.get("/api/search", params={"query": "0"}).status_code == 400
    response = loaded.get("/api/search", params={"query": "101"})
    assert response.status_code == 400
    assert "1-100" in response.json()["detail"]


def test_step_navigation(loaded) -> None:
    assert loaded.get("/api/pages/A0003/step").json()["page"] == "0001"
    assert loaded.get("/api/pages/0001/step", params={"delta": -1}).json()["page"] == "A0003"
    last = loaded.get("/api/pages/C0002/step").json()
    assert last == {"page": "C0002", "page_number": 2, "segment": "footer", "linear": 104}
    assert loaded.get("/api/pages/A0001/step", params={"delta": -1}).json()["page"] == "A0001"


def test_linear_conversions(loaded) -> None:
    assert loaded.get("/api/pages/0050/linear").json()["linear"] == 52
    assert loaded.get("/api/pages/linear/52").json()["page"] == "0050"
    assert loaded.get("/api/pages/linear/105").status_code == 400
    assert loaded.get("/api/pages/Axyz/linear").status_code == 400


def test_random_page(loaded) -> None:
    payload = loaded.get("/api/pages/random").json()
    assert payload["segment"] == "content"


def test_page_image(loaded, fake_provider) -> None:
    fake_provider.images["docs/images/0012.png"] = "https://cdn/xinhua/docs/images/0012.png"
    assert loaded.get("/api/pages/12/image").json() == {
        "page": "0012",
        "image_path": "docs/images/0012.png",
        "url": "https://cdn/xinhua/docs/images/0012.png",
    }
    extra = loaded.get("/api/pages/A0001/image").json()
    assert extra["image_path"] == "docs/extra/A0001.png"
    assert extra["url"] == "assets/images/0001.png"


def test_page_image_rejects_invalid_page(loaded) -> None:
    assert loaded.get("/api/pages/Axyz/image").status_code == 400
    assert loaded.get("/api/pages/A0000/image").status_code == 400


def test_table_of_contents(loaded) -> None:
    payload = loaded.get("/api/toc").json()
    assert payload[0] == {"title": "凡例", "page": "A0001", "page_number": 1, "more": []}
    assert payload[1]["more"][0]["title"] == "汉语拼音方案"
    assert payload[1]["more"][0]["page_number"] == 2
