"""Pagination styles.

The driver runs the same loop for every source; a style tells it how to
read the continuation token and when the result set is exhausted.

- :class:`OffsetStyle`: integer offset advanced by each page's record
  count; a page shorter than the requested size is the last one.
- :class:`CursorStyle`: opaque cursor taken from the response's next link;
  the page without a next link is the last one.

Example:
    >>> from auditfeed.models import Page
    >>> from auditfeed.pagination import OffsetStyle
    >>> style = OffsetStyle()
    >>> style.is_last_page(Page(records=()), page_size=1000)
    True
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from auditfeed.core.exceptions import ConfigurationError
from auditfeed.models.page import Page, Token


class PaginationStyle(ABC):
    """How continuation tokens work for a source."""

    name: str = ""

    @property
    @abstractmethod
    def initial_token(self) -> Token:
        """Token addressing the start of a result set."""
        ...

    @abstractmethod
    def resume_token(self, position: Token) -> Token:
        """Validate a stored checkpoint position for this style.

        Raises:
            ConfigurationError: If the position belongs to another style.
        """
        ...

    @abstractmethod
    def is_first_page(self, token: Token, page: Page) -> bool:
        """Whether ``page`` is the start of its result set."""
        ...

    @abstractmethod
    def next_token(self, token: Token, page: Page) -> Token:
        """Token for the page after ``page``."""
        ...

    @abstractmethod
    def is_last_page(self, page: Page, page_size: int) -> bool:
        """Whether no further page should be requested."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class OffsetStyle(PaginationStyle):
    """Count-based pagination.

    Assumes the source only returns a short page at the true end of the
    result set.

    Example:
        >>> from auditfeed.models import AuditRecord, Page
        >>> from auditfeed.pagination import OffsetStyle
        >>> page = Page(records=tuple(AuditRecord(id=str(i)) for i in range(3)), offset=0)
        >>> OffsetStyle().next_token(0, page)
        3
    """

    name = "offset"

    @property
    def initial_token(self) -> Token:
        return 0

    def resume_token(self, position: Token) -> Token:
        if position is None:
            return 0
        if isinstance(position, int) and not isinstance(position, bool) and position >= 0:
            return position
        raise ConfigurationError(f"Checkpoint position {position!r} is not an offset")

    def is_first_page(self, token: Token, page: Page) -> bool:
        if page.offset is not None:
            return page.offset == 0
        return not token

    def next_token(self, token: Token, page: Page) -> Token:
        return int(token or 0) + len(page)

    def is_last_page(self, page: Page, page_size: int) -> bool:
        return len(page) < page_size


class CursorStyle(PaginationStyle):
    """Next-link cursor pagination.

    Example:
        >>> from auditfeed.models import Page
        >>> from auditfeed.pagination import CursorStyle
        >>> CursorStyle().next_token(None, Page(continuation="abc"))
        'abc'
    """

    name = "cursor"

    @property
    def initial_token(self) -> Token:
        return None

    def resume_token(self, position: Token) -> Token:
        if position is None or position == 0:
            return None
        if isinstance(position, str):
            return position
        raise ConfigurationError(f"Checkpoint position {position!r} is not a cursor")

    def is_first_page(self, token: Token, page: Page) -> bool:
        return token is None

    def next_token(self, token: Token, page: Page) -> Token:
        return page.continuation

    def is_last_page(self, page: Page, page_size: int) -> bool:
        return page.continuation is None


_STYLES: dict[str, type[PaginationStyle]] = {
    OffsetStyle.name: OffsetStyle,
    CursorStyle.name: CursorStyle,
}


def get_style(name: str) -> PaginationStyle:
    """Look up a pagination style by name.

    Example:
        >>> from auditfeed.pagination import get_style
        >>> get_style("cursor")
        CursorStyle()
    """
    try:
        return _STYLES[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown pagination style {name!r}; expected one of {sorted(_STYLES)}"
        ) from None


__all__ = [
    "CursorStyle",
    "OffsetStyle",
    "PaginationStyle",
    "get_style",
]
