"""
Page numbering utilities for scanned dictionaries.

A dictionary's pages are split into header, content and footer segments,
each with its own prefix and 1-based numbering ("A0003", "0125", "C0002").
These helpers convert between page ids and the zero-based linear offset
used for next/previous navigation.
"""

import random
import re
from enum import Enum

from app.models.dictionary import PageScheme, SegmentConfig
from app.utils.errors import InvalidPage, OutOfRange


PAGE_WIDTH = 4

_NUMBER_RE = re.compile(r"[0-9]+")
_TRAILING_NUMBER_RE = re.compile(r"([0-9]+)$")


class Segment(str, Enum):
    HEADER = "header"
    CONTENT = "content"
    FOOTER = "footer"


def pad_page(page) -> str:
    """Left-pad a page number or id with zeros to four characters."""
    return str(page).rjust(PAGE_WIDTH, "0")


def page_number(page_id: str) -> int:
    """
    Numeric part of a page id, used for ordering and display.

    Args:
        page_id: Page id like "A0003" or "0125"

    Returns:
        Trailing number, or 0 if the id has none
    """
    match = _TRAILING_NUMBER_RE.search(str(page_id))
    return int(match.group(1)) if match else 0


def segment_config(scheme: PageScheme, segment: Segment) -> SegmentConfig:
    return getattr(scheme, segment.value)


def segment_of(scheme: PageScheme, page_id: str) -> Segment:
    """
    Determine which segment a page id belongs to.

    Header prefix is tested first, then footer; anything else is content,
    including unprefixed numeric ids.
    """
    if page_id.startswith(scheme.header.prefix):
        return Segment.HEADER
    if page_id.startswith(scheme.footer.prefix):
        return Segment.FOOTER
    return Segment.CONTENT


def parse_page(scheme: PageScheme, page_id: str) -> tuple[Segment, int]:
    """
    Parse a page id into its segment and 1-based page number.

    Args:
        scheme: Page layout of the dictionary
        page_id: Page id to parse

    Returns:
        Tuple of (segment, page_number)

    Raises:
        InvalidPage: If the id carries no known prefix, or the part after
            the prefix is not a positive integer
    """
    page_id = str(page_id)
    segment = segment_of(scheme, page_id)
    prefix = segment_config(scheme, segment).prefix
    if not page_id.startswith(prefix):
        raise InvalidPage(page_id, "unknown page prefix")
    rest = page_id[len(prefix):]

    if not _NUMBER_RE.fullmatch(rest):
        raise InvalidPage(page_id)
    number = int(rest)
    if number < 1:
        raise InvalidPage(page_id)
    return segment, number


def format_page(scheme: PageScheme, segment: Segment, number: int) -> str:
    """Build the page id for a 1-based page number within a segment."""
    return f"{segment_config(scheme, segment).prefix}{number:0{PAGE_WIDTH}d}"


def to_linear(scheme: PageScheme, page_id: str) -> int:
    """
    Convert a page id to its zero-based linear offset.

    Raises:
        InvalidPage: If the page id does not parse
    """
    segment, number = parse_page(scheme, page_id)
    if segment is Segment.HEADER:
        return number - 1
    if segment is Segment.CONTENT:
        return scheme.header_pages + number - 1
    return scheme.main_pages + number - 1


def from_linear(scheme: PageScheme, offset: int) -> str:
    """
    Convert a zero-based linear offset to a page id.

    Raises:
        OutOfRange: If offset is outside 0..total_pages-1
    """
    if offset < 0 or offset >= scheme.total_pages:
        raise OutOfRange(offset, 0, scheme.total_pages - 1)

    if offset < scheme.header_pages:
        return format_page(scheme, Segment.HEADER, offset + 1)
    if offset < scheme.main_pages:
        return format_page(scheme, Segment.CONTENT, offset - scheme.header_pages + 1)
    return format_page(scheme, Segment.FOOTER, offset - scheme.main_pages + 1)


def step(scheme: PageScheme, page_id: str, delta: int) -> str:
    """
    Move delta pages forward (or backward) from page_id.

    Navigation stops at the first and last page: a move past either end
    returns page_id unchanged, as does a page id that does not parse.

    Args:
        scheme: Page layout of the dictionary
        page_id: Current page id
        delta: Page offset (+1 for next, -1 for previous)

    Returns:
        Page id of the target page
    """
    try:
        target = to_linear(scheme, page_id) + delta
        return from_linear(scheme, target)
    except (InvalidPage, OutOfRange):
        return page_id


def content_page(scheme: PageScheme, number: int) -> str:
    """
    Page id of a body page given its printed page number.

    Raises:
        OutOfRange: If number is outside 1..content.count
    """
    if number < 1 or number > scheme.content.count:
        raise OutOfRange(number, 1, scheme.content.count)
    return format_page(scheme, Segment.CONTENT, number)


def random_page(scheme: PageScheme, rng: random.Random | None = None) -> str:
    """Pick a random body page, used as the start page of a dictionary."""
    rng = rng or random
    return format_page(scheme, Segment.CONTENT, rng.randint(1, scheme.content.count))


def image_path(scheme: PageScheme, page_id: str) -> str:
    """
    Repository path of the scanned image for a page.

    Front and back matter live under docs/extra, body pages under docs/images.
    """
    page_id = pad_page(page_id)
    directory = "images" if segment_of(scheme, page_id) is Segment.CONTENT else "extra"
    return f"docs/{directory}/{page_id}.png"
