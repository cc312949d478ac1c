"""
Fetching of dictionary catalogs, index files and page images.

Index files and page images live in one GitHub repository per dictionary
and are fetched through an ordered list of CDN mirrors. The first mirror
that answers wins; there is no retry or backoff beyond that list.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

import requests
from pydantic import ValidationError

from app.models.dictionary import DictCatalog, DictConfig
from app.search.keyword import Category
from app.utils.errors import IndexUnavailable


logger = logging.getLogger(__name__)


MIRROR_TEMPLATES = [
    "https://cdn.jsdmirror.com/gh/:owner/:repo/:filepath",
    "https://fastly.jsdelivr.net/gh/:owner/:repo/:filepath",
    "https://cdn.jsdelivr.net/gh/:owner/:repo/:filepath",
    "https://ghproxy.net/https://raw.githubusercontent.com/:owner/:repo/refs/heads/:branch/:filepath",
    "https://raw.githubusercontent.com/:owner/:repo/refs/heads/:branch/:filepath",
]

INDEX_FILES = {
    Category.TOC: "toc.json",
    Category.PINYIN: "pinyin.json",
    Category.CHARS: "chars.json",
    Category.WORDS: "words.json",
}

DEFAULT_IMAGE_URL = "assets/images/0001.png"

_PLACEHOLDER_RE = re.compile(r":([a-zA-Z0-9_]+)")


def build_url(template: str, params: dict[str, str]) -> str:
    """
    Fill :name placeholders in a mirror template.

    Unknown placeholders are left as they are.
    """
    return _PLACEHOLDER_RE.sub(
        lambda m: params.get(m.group(1), m.group(0)),
        template,
    )


def parse_catalog(raw) -> DictCatalog:
    """
    Validate the contents of dicts.json entry by entry.

    An invalid entry (bad page scheme, missing repo) is logged and left
    out, so one broken dictionary does not hide the others.

    Raises:
        ValueError: If raw is not an object with a "dicts" list
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("dicts", []), list):
        raise ValueError("Dictionary catalog must be an object with a 'dicts' list")

    dicts = []
    for i, entry in enumerate(raw.get("dicts", [])):
        try:
            dicts.append(DictConfig.model_validate(entry))
        except ValidationError as e:
            name = entry.get("repo", f"#{i}") if isinstance(entry, dict) else f"#{i}"
            logger.warning("Skipping dictionary %s in catalog: %s", name, e)
    return DictCatalog(dicts=dicts)


class IndexProvider:
    """
    Source of dictionary data.

    Features:
    - Local dictionary catalog (dicts.json)
    - Index files fetched from the first working mirror
    - Image URLs probed with HEAD requests, local fallback image
    """

    def __init__(
        self,
        data_dir: str | Path,
        owner: str = "dictkit",
        branch: str = "main",
        data_path: str = "docs/data",
        url_templates: Optional[list[str]] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the provider.

        Args:
            data_dir: Directory holding dicts.json
            owner: GitHub owner of the dictionary repositories
            branch: Branch to read from
            data_path: Path of the index files inside a repository
            url_templates: Mirror templates tried in order
            timeout: Per-request timeout in seconds
            session: HTTP session, a fresh one by default
        """
        self.data_dir = Path(data_dir)
        self.owner = owner
        self.branch = branch
        self.data_path = data_path.strip("/")
        self.url_templates = list(url_templates or MIRROR_TEMPLATES)
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / "dicts.json"

    def load_catalog(self) -> DictCatalog:
        """
        Load the dictionary catalog.

        Raises:
            FileNotFoundError: If dicts.json is missing
            ValueError: If dicts.json is not valid JSON or has no dict list
        """
        if not self.catalog_path.exists():
            raise FileNotFoundError(f"Dictionary catalog not found at {self.catalog_path}")
        raw = json.loads(self.catalog_path.read_text(encoding="utf-8"))
        return parse_catalog(raw)

    def mirror_urls(self, repo: str, filepath: str) -> list[str]:
        """All candidate URLs for a file, in mirror order."""
        params = {
            "owner": self.owner,
            "repo": repo,
            "branch": self.branch,
            "filepath": filepath,
        }
        return [build_url(t, params) for t in self.url_templates]

    def load_index(self, repo: str, category: Category):
        """
        Fetch one index file of a dictionary.

        Args:
            repo: Dictionary repository
            category: Which index to load

        Returns:
            Decoded JSON (a term mapping, or a list of entries for the TOC)

        Raises:
            IndexUnavailable: If no mirror returned the file
        """
        filepath = f"{self.data_path}/{INDEX_FILES[category]}"

        for url in self.mirror_urls(repo, filepath):
            try:
                resp = self._session.get(url, timeout=self.timeout)
                if resp.ok:
                    return resp.json()
                logger.warning("Failed to load %s from %s (status %s)", filepath, url, resp.status_code)
            except (requests.RequestException, ValueError) as e:
                logger.warning("Failed to load %s from %s: %s", filepath, url, e)

        logger.error("Failed to load %s from all mirrors", filepath)
        raise IndexUnavailable(repo, category.value, "all mirrors failed")

    def resolve_image_url(self, repo: str, image_path: str) -> str:
        """
        Find a mirror serving a page image.

        Args:
            repo: Dictionary repository
            image_path: Path of the image inside the repository

        Returns:
            First mirror URL answering a HEAD request, else the local default image
        """
        for url in self.mirror_urls(repo, image_path):
            try:
                resp = self._session.head(url, timeout=self.timeout, allow_redirects=True)
                if resp.ok:
                    return url
            except requests.RequestException as e:
                logger.warning("Failed to load %s from %s: %s", image_path, url, e)

        return DEFAULT_IMAGE_URL
