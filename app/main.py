"""
FastAPI application for the scanned dictionary viewer.

Provides REST API endpoints for choosing a dictionary, looking up pinyin,
characters, words and TOC titles, and paging through the scanned images.
"""

import logging
import os
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from app.data.provider import MIRROR_TEMPLATES, IndexProvider
from app.data.session import DictionarySession, SessionManager
from app.models.dictionary import TocEntry
from app.models.search import (
    DictInfo,
    HealthResponse,
    ImageResponse,
    PageResponse,
    SearchQuery,
    SearchResponse,
    SearchResult,
    SelectResponse,
    TocItem,
)
from app.search.keyword import get_searcher
from app.utils import pages
from app.utils.errors import InvalidPage, OutOfRange, StaleSelection

# Load environment variables
load_dotenv()

# Configuration - use absolute paths based on project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = os.getenv("DATA_DIR", str(PROJECT_ROOT / "data"))
DEFAULT_RESULT_LIMIT = int(os.getenv("DEFAULT_RESULT_LIMIT", "10"))
REPO_OWNER = os.getenv("REPO_OWNER", "dictkit")
REPO_BRANCH = os.getenv("REPO_BRANCH", "main")
REPO_DATA_PATH = os.getenv("REPO_DATA_PATH", "docs/data")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
MIRRORS = [m.strip() for m in os.getenv("MIRROR_TEMPLATES", "").split(",") if m.strip()] or MIRROR_TEMPLATES

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_PAGE_NUMBER_RE = re.compile(r"[0-9]+")

# Global session manager
manager: Optional[SessionManager] = None


def get_or_init_manager() -> SessionManager:
    """Get or initialize the session manager."""
    global manager
    if manager is None:
        provider = IndexProvider(
            DATA_DIR,
            owner=REPO_OWNER,
            branch=REPO_BRANCH,
            data_path=REPO_DATA_PATH,
            url_templates=MIRRORS,
            timeout=REQUEST_TIMEOUT,
        )
        manager = SessionManager(provider)
    return manager


def require_session() -> DictionarySession:
    session = get_or_init_manager().current
    if session is None:
        raise HTTPException(status_code=503, detail="No dictionary loaded. Select one first.")
    return session


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - load the default dictionary on startup."""
    try:
        session = get_or_init_manager().select_default()
        if session is None:
            logger.warning("Dictionary catalog is empty")
        else:
            logger.info("Loaded dictionary %s (%s)", session.config.name, session.repo)
    except (FileNotFoundError, ValueError, StaleSelection) as e:
        logger.warning("Failed to load default dictionary: %s", e)

    yield


# Create FastAPI app
app = FastAPI(
    title="Dictionary Page Viewer API",
    description="Lookup and page navigation for scanned dictionaries",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.get("/", response_class=HTMLResponse)
async def root():
    """Landing page with links to the API docs."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Dictionary Page Viewer API</title>
        <style>
            body { font-family: system-ui, sans-serif; max-width: 800px; margin: 50px auto; padding: 20px; }
            a { color: #0066cc; }
            code { background: #f4f4f4; padding: 2px 6px; border-radius: 3px; }
        </style>
    </head>
    <body>
        <h1>字典查询 API</h1>
        <ul>
            <li><a href="/docs">API Documentation (Swagger UI)</a></li>
            <li><a href="/api/dicts">Dictionaries</a></li>
            <li><a href="/api/health">Health Check</a></li>
        </ul>
        <p>Search example: <code>GET /api/search?query=shui</code></p>
    </body>
    </html>
    """


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Status of the service and the loaded dictionary."""
    session = get_or_init_manager().current
    if session is None:
        return HealthResponse(dict_loaded=False)
    return HealthResponse(
        dict_loaded=True,
        repo=session.repo,
        categories_loaded=sum(1 for v in session.index.values() if v),
    )


@app.get("/api/dicts", response_model=list[DictInfo])
async def list_dicts():
    """List the dictionaries of the catalog."""
    current_manager = get_or_init_manager()
    try:
        catalog = current_manager.catalog
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=503, detail=str(e))

    current = current_manager.current
    return [
        DictInfo(
            repo=d.repo,
            name=d.name,
            logo=d.logo,
            selected=current is not None and current.repo == d.repo,
        )
        for d in catalog.dicts
    ]


@app.post("/api/dicts/{repo}/select", response_model=SelectResponse)
def select_dict(repo: str):
    """
    Switch to another dictionary.

    All indexes are loaded before the switch; searches keep using the
    previous dictionary until then. A selection overtaken by a later one
    while loading answers 409.
    """
    try:
        session = get_or_init_manager().select(repo)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown dictionary: {repo}")
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StaleSelection as e:
        raise HTTPException(status_code=409, detail=str(e))

    return SelectResponse(
        repo=session.repo,
        name=session.config.name,
        start_page=pages.random_page(session.scheme),
        total_pages=session.scheme.total_pages,
        unavailable=sorted(c.value for c in session.unavailable),
    )


@app.get("/api/search", response_model=SearchResponse)
async def search(
    query: str = Query(..., description="Pinyin, character, word, title or page number"),
    limit: int = Query(default=DEFAULT_RESULT_LIMIT, ge=1, le=100, description="Maximum results"),
):
    """
    Look up the page for a query.

    - A body page number jumps straight to that page
    - Anything else is searched in the pinyin, character, word and TOC indexes
    - Blank input returns no results
    """
    text = query.strip()
    if not text:
        return SearchResponse(query=query, total_results=0)

    session = require_session()

    if _PAGE_NUMBER_RE.fullmatch(text):
        try:
            page = pages.content_page(session.scheme, int(text))
        except OutOfRange:
            raise HTTPException(
                status_code=400,
                detail=f"Page out of range (1-{session.scheme.content.count})",
            )
        return SearchResponse(query=query, total_results=0, page=page)

    hits = get_searcher().search(text, session.index, limit)
    results = [
        SearchResult(
            term=h["term"],
            page=h["page"],
            page_number=pages.page_number(h["page"]),
            category=h["category"].value,
            label=h["label"],
            score=h["score"],
        )
        for h in hits
    ]
    return SearchResponse(
        query=query,
        total_results=len(results),
        results=results,
        page=results[0].page if results else None,
    )


@app.post("/api/search", response_model=SearchResponse)
async def search_post(search_query: SearchQuery):
    """Search (POST method)."""
    return await search(query=search_query.query, limit=search_query.limit)


@app.get("/api/pages/random", response_model=PageResponse)
async def random_page():
    """A random body page of the current dictionary."""
    session = require_session()
    return _page_response(session, pages.random_page(session.scheme))


@app.get("/api/pages/linear/{offset}", response_model=PageResponse)
async def page_at(offset: int):
    """The page at a zero-based position in the dictionary."""
    session = require_session()
    try:
        page = pages.from_linear(session.scheme, offset)
    except OutOfRange as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _page_response(session, page)


@app.get("/api/pages/{page_id}/linear", response_model=PageResponse)
async def page_position(page_id: str):
    """Position of a page in the dictionary."""
    session = require_session()
    return _page_response(session, page_id)


@app.get("/api/pages/{page_id}/step", response_model=PageResponse)
async def step_page(page_id: str, delta: int = Query(default=1, description="+1 next, -1 previous")):
    """Next or previous page; stays put at either end of the dictionary."""
    session = require_session()
    return _page_response(session, pages.step(session.scheme, page_id, delta))


@app.get("/api/pages/{page_id}/image", response_model=ImageResponse)
def page_image(page_id: str):
    """Resolve the image URL of a page."""
    session = require_session()
    page_id = pages.pad_page(page_id)
    try:
        pages.to_linear(session.scheme, page_id)
    except InvalidPage as e:
        raise HTTPException(status_code=400, detail=str(e))
    image_path = pages.image_path(session.scheme, page_id)
    url = get_or_init_manager().provider.resolve_image_url(session.repo, image_path)
    return ImageResponse(page=page_id, image_path=image_path, url=url)


@app.get("/api/toc", response_model=list[TocItem])
async def table_of_contents():
    """Table of contents of the current dictionary."""
    session = require_session()
    return [_toc_item(entry) for entry in session.toc]


def _page_response(session: DictionarySession, page_id: str) -> PageResponse:
    try:
        linear = pages.to_linear(session.scheme, page_id)
    except InvalidPage as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PageResponse(
        page=page_id,
        page_number=pages.page_number(page_id),
        segment=pages.segment_of(session.scheme, page_id).value,
        linear=linear,
    )


def _toc_item(entry: TocEntry) -> TocItem:
    page = pages.pad_page(entry.page)
    return TocItem(
        title=entry.title,
        page=page,
        page_number=pages.page_number(page),
        more=[_toc_item(sub) for sub in entry.more],
    )


# Run with: uvicorn app.main:app --reload
if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(app, host=host, port=port)
