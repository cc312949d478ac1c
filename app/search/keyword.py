"""
Lexical lookup over a dictionary's pinyin, character, word and TOC indexes.

Each index maps a lower-cased term to one page id or a list of page ids.
A query is matched as a substring of every term, scored by match strength
plus a per-category bias, and the best hits are returned.
"""

import logging
from enum import Enum
from typing import Mapping, Optional

from app.utils.normalize import PinyinNormalizer, get_normalizer
from app.utils.pages import pad_page, page_number


logger = logging.getLogger(__name__)


class Category(str, Enum):
    PINYIN = "PINYIN"
    CHARS = "CHARS"
    WORDS = "WORDS"
    TOC = "TOC"


CATEGORY_LABELS = {
    Category.PINYIN: "拼音",
    Category.CHARS: "单字",
    Category.WORDS: "词语",
    Category.TOC: "目录",
}

# Scan order doubles as tie-break priority between categories.
SEARCH_CATEGORIES: list[tuple[Category, float]] = [
    (Category.PINYIN, 0.0),
    (Category.CHARS, 0.1),
    (Category.WORDS, 0.2),
    (Category.TOC, 0.3),
]

# Scanning stops once this many times `limit` hits are collected.
SCAN_FACTOR = 3

TermIndex = Mapping[str, object]
DictIndex = Mapping[Category, Optional[TermIndex]]


def match_weight(term: str, query: str) -> int:
    """
    Score how strongly a term matches a query (lower is better).

    Returns:
        0 for an exact match, 1 for a prefix, 2 for a suffix, 3 otherwise
    """
    if term == query:
        return 0
    if term.startswith(query):
        return 1
    if term.endswith(query):
        return 2
    return 3


def _pages(value) -> list[str]:
    """Index values are a single page or a list of pages."""
    if isinstance(value, (list, tuple)):
        return [pad_page(p) for p in value]
    return [pad_page(value)]


class LexicalSearcher:
    """
    Substring search across the loaded indexes of one dictionary.

    Features:
    - Pinyin input folding (tone marks, v for ü) with an exact-key shortcut
    - Exact > prefix > suffix > substring ranking
    - Fixed category priority for equal scores
    - Bounded scan: stops after SCAN_FACTOR * limit hits, so a weaker
      match found late may be missed on very large indexes
    """

    def __init__(
        self,
        normalizer: Optional[PinyinNormalizer] = None,
        categories: Optional[list[tuple[Category, float]]] = None,
        scan_factor: int = SCAN_FACTOR,
    ):
        """
        Initialize the searcher.

        Args:
            normalizer: Pinyin normalizer, defaults to the shared instance
            categories: Ordered (category, weight) pairs to scan
            scan_factor: Multiple of limit at which scanning stops
        """
        self._normalizer = normalizer or get_normalizer()
        self.categories = list(categories or SEARCH_CATEGORIES)
        self.scan_factor = scan_factor

    def search(self, query: str, index: DictIndex, limit: int = 10) -> list[dict]:
        """
        Look up a query in the dictionary indexes.

        Args:
            query: User input; callers skip empty input
            index: Category -> term index; missing categories are skipped
            limit: Maximum number of results to return

        Returns:
            Results sorted by score then page number, each a dict with
            term, page, category, label and score
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        if not query or not query.strip():
            return []

        normalized_query = query.lower().strip()
        pinyin_query = self._normalizer.normalize_query(query)
        max_results = limit * self.scan_factor

        logger.debug("query %r pinyin %r", normalized_query, pinyin_query)

        results: list[dict] = []
        for category, weight in self.categories:
            terms = index.get(category)
            if not terms:
                continue

            if category is Category.PINYIN and pinyin_query != normalized_query:
                if pinyin_query in terms:
                    for page in _pages(terms[pinyin_query]):
                        results.append(self._result(pinyin_query, page, category, weight))

            for term, value in terms.items():
                if normalized_query not in term:
                    continue

                score = match_weight(term, normalized_query) + weight
                for page in _pages(value):
                    results.append(self._result(term, page, category, score))

                if len(results) >= max_results:
                    break

            if len(results) >= max_results:
                break

        results.sort(key=lambda r: (r["score"], page_number(r["page"])))
        return results[:limit]

    @staticmethod
    def _result(term: str, page: str, category: Category, score: float) -> dict:
        return {
            "term": term,
            "page": page,
            "category": category,
            "label": CATEGORY_LABELS[category],
            "score": round(score, 2),
        }


# Singleton instance
_searcher_instance: Optional[LexicalSearcher] = None


def get_searcher() -> LexicalSearcher:
    """Get the singleton LexicalSearcher instance."""
    global _searcher_instance
    if _searcher_instance is None:
        _searcher_instance = LexicalSearcher()
    return _searcher_instance
