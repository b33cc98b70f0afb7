"""Selector-based document querying and first-match fallback chains."""

from typing import Any, Callable, Iterable, Protocol, Sequence, runtime_checkable

from bs4 import BeautifulSoup
from bs4.element import Tag


@runtime_checkable
class DocumentQuery(Protocol):
    """Capability for parsing HTML and reading nodes by CSS selector."""

    def parse(self, html: str) -> Any:
        """Parse HTML into a queryable document."""
        ...

    def query_all(self, node: Any, selector: str) -> Sequence[Any]:
        """Return every node under `node` matching `selector`, in document order."""
        ...

    def query_one(self, node: Any, selector: str) -> Any | None:
        """Return the first node under `node` matching `selector`, or None."""
        ...

    def text(self, node: Any) -> str:
        """Return the trimmed text content of a node."""
        ...

    def attr(self, node: Any, name: str) -> str | None:
        """Return an attribute value, or None when absent."""
        ...


class SoupDocumentQuery:
    """DocumentQuery backed by BeautifulSoup with the lxml parser."""

    def parse(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")

    def query_all(self, node: Tag, selector: str) -> list[Tag]:
        return node.select(selector)

    def query_one(self, node: Tag, selector: str) -> Tag | None:
        return node.select_one(selector)

    def text(self, node: Tag) -> str:
        return node.get_text().strip()

    def attr(self, node: Tag, name: str) -> str | None:
        value = node.get(name)
        # Multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            value = " ".join(value)
        return value


def first_match(candidates: Iterable[Callable[[], str | None]]) -> str | None:
    """Evaluate candidate extractors in order and return the first non-empty result.

    Later candidates are not evaluated once one succeeds.

    Args:
        candidates: Zero-argument callables, highest precedence first

    Returns:
        The first non-empty string, or None if every candidate came up empty

    Example:
        >>> first_match([lambda: None, lambda: "", lambda: "b", lambda: "c"])
        'b'
    """
    for candidate in candidates:
        value = candidate()
        if value:
            return value
    return None


def text_chain(query: DocumentQuery, node: Any, selectors: Sequence[str]) -> str | None:
    """Text of the first selector that yields non-empty text under `node`.

    Every node matched by the winning selector contributes, in document
    order, joined by a single space rather than run together.

    Example:
        >>> q = SoupDocumentQuery()
        >>> doc = q.parse('<div><p class="a">Một</p><p class="a">Hai</p></div>')
        >>> text_chain(q, doc, (".missing", ".a"))
        'Một Hai'
    """
    def from_selector(selector: str) -> Callable[[], str | None]:
        def extract() -> str | None:
            parts = [query.text(n) for n in query.query_all(node, selector)]
            return " ".join(p for p in parts if p)
        return extract

    return first_match(from_selector(s) for s in selectors)


def attr_chain(query: DocumentQuery, node: Any, names: Sequence[str]) -> str | None:
    """Value of the first attribute in `names` that is present and non-empty."""
    def from_attr(name: str) -> Callable[[], str | None]:
        def extract() -> str | None:
            value = query.attr(node, name)
            return value.strip() if value else None
        return extract

    return first_match(from_attr(n) for n in names)


def node_chain(query: DocumentQuery, node: Any, selectors: Sequence[str]) -> Any | None:
    """First node found by trying each selector in order."""
    for selector in selectors:
        found = query.query_one(node, selector)
        if found is not None:
            return found
    return None
