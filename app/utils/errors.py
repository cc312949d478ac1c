"""Exceptions raised by the page model and the index provider."""


class DictViewerError(Exception):
    """Base class for dictionary viewer errors."""


class InvalidPage(DictViewerError):
    """A page id does not parse against the dictionary's page scheme."""

    def __init__(self, page_id: str, reason: str = "not a positive page number"):
        self.page_id = page_id
        super().__init__(f"Invalid page {page_id!r}: {reason}")


class OutOfRange(DictViewerError):
    """A linear offset or page number falls outside the dictionary."""

    def __init__(self, value: int, low: int, high: int):
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"Page {value} out of range ({low}..{high})")


class IndexUnavailable(DictViewerError):
    """An index file could not be loaded from any mirror."""

    def __init__(self, repo: str, category: str, reason: str = ""):
        self.repo = repo
        self.category = category
        message = f"Index {category} unavailable for {repo}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StaleSelection(DictViewerError):
    """A dictionary finished loading after a later selection was installed."""

    def __init__(self, repo: str, current: str):
        self.repo = repo
        self.current = current
        super().__init__(f"Selection of {repo} superseded by {current}")
