"""
Loaded state of the selected dictionary.

A DictionarySession bundles a dictionary's config, page scheme and indexes.
Sessions are never mutated: selecting a dictionary builds a new one and
swaps it in whole.
"""

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import ValidationError

from app.data.provider import IndexProvider
from app.models.dictionary import DictCatalog, DictConfig, PageScheme, TocEntry
from app.search.keyword import Category
from app.utils.errors import IndexUnavailable, StaleSelection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DictionarySession:
    config: DictConfig
    index: Mapping[Category, Optional[Mapping[str, object]]]
    toc: tuple[TocEntry, ...] = ()
    unavailable: frozenset[Category] = field(default_factory=frozenset)

    @property
    def repo(self) -> str:
        return self.config.repo

    @property
    def scheme(self) -> PageScheme:
        return self.config.pages


def flatten_toc(toc: list[TocEntry]) -> dict[str, list[str]]:
    """
    Turn a nested table of contents into a searchable term index.

    Titles are lower-cased; a title used on several entries keeps all pages.

    Args:
        toc: Top-level TOC entries

    Returns:
        Mapping of title -> list of pages, in TOC order
    """
    terms: dict[str, list[str]] = {}

    def add(entry: TocEntry) -> None:
        pages = terms.setdefault(entry.title.lower().strip(), [])
        if entry.page not in pages:
            pages.append(entry.page)
        for sub in entry.more:
            add(sub)

    for entry in toc:
        add(entry)
    return terms


def build_session(provider: IndexProvider, config: DictConfig) -> DictionarySession:
    """
    Load every index of a dictionary into a new session.

    A category that fails to load is recorded as unavailable and left out
    of the search index instead of failing the whole dictionary.
    """
    index: dict[Category, Optional[Mapping[str, object]]] = {}
    toc: list[TocEntry] = []
    unavailable: set[Category] = set()

    for category in (Category.PINYIN, Category.CHARS, Category.WORDS):
        try:
            data = provider.load_index(config.repo, category)
        except IndexUnavailable as e:
            logger.error("%s", e)
            unavailable.add(category)
            index[category] = None
            continue
        if not isinstance(data, dict):
            logger.error("Index %s of %s is not a term mapping", category.value, config.repo)
            unavailable.add(category)
            index[category] = None
            continue
        index[category] = data

    try:
        raw_toc = provider.load_index(config.repo, Category.TOC)
        toc = [TocEntry.model_validate(item) for item in raw_toc]
        index[Category.TOC] = flatten_toc(toc)
    except (IndexUnavailable, ValidationError, TypeError) as e:
        logger.error("Table of contents unavailable for %s: %s", config.repo, e)
        unavailable.add(Category.TOC)
        index[Category.TOC] = None

    return DictionarySession(
        config=config,
        index=MappingProxyType(index),
        toc=tuple(toc),
        unavailable=frozenset(unavailable),
    )


class SessionManager:
    """
    Holds the current dictionary session.

    Each selection takes a ticket before loading. A finished load is
    installed only if no later selection has been installed meanwhile, so
    a slow load for an abandoned dictionary never overwrites a newer one.
    """

    def __init__(self, provider: IndexProvider):
        self.provider = provider
        self._lock = threading.Lock()
        self._catalog: Optional[DictCatalog] = None
        self._current: Optional[DictionarySession] = None
        self._next_ticket = 0
        self._installed_ticket = 0

    @property
    def catalog(self) -> DictCatalog:
        """Lazy-load the dictionary catalog."""
        if self._catalog is None:
            self._catalog = self.provider.load_catalog()
        return self._catalog

    @property
    def current(self) -> Optional[DictionarySession]:
        return self._current

    def find(self, repo: str) -> DictConfig:
        """
        Look up a dictionary in the catalog.

        Raises:
            KeyError: If the catalog has no such dictionary
        """
        for config in self.catalog.dicts:
            if config.repo == repo:
                return config
        raise KeyError(repo)

    def select(self, repo: str) -> DictionarySession:
        """
        Load a dictionary and make it current.

        Returns:
            The installed session for repo

        Raises:
            KeyError: If the catalog has no such dictionary
            StaleSelection: If a later selection was installed while repo
                was loading; the loaded session is discarded
        """
        config = self.find(repo)

        with self._lock:
            self._next_ticket += 1
            ticket = self._next_ticket

        session = build_session(self.provider, config)

        with self._lock:
            if ticket < self._installed_ticket:
                logger.info("Discarded stale load of dictionary %s", repo)
                raise StaleSelection(repo, self._current.repo)
            self._current = session
            self._installed_ticket = ticket
            logger.info("Switched to dictionary %s", repo)

        return session

    def select_default(self) -> Optional[DictionarySession]:
        """Select the first dictionary of the catalog, if any."""
        if not self.catalog.dicts:
            return None
        return self.select(self.catalog.dicts[0].repo)
