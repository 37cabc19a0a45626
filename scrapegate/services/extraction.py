"""Selector-driven field extraction from HTML.

A field is described by an ordered list of strategies. Each strategy
applies one CSS selector and reads either the element text or one
attribute; the first non-empty value wins. Post-processors then clean the
value (URL joining, suffix rewriting and so on).
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

PostProcessor = Callable[[str], str]


@dataclass(frozen=True)
class Strategy:
    """One way of reading a value from a document or element."""

    selector: str
    attr: str | None = None

    def apply(self, root: BeautifulSoup | Tag) -> str | None:
        element = root.select_one(self.selector)
        if element is None:
            return None
        if self.attr is None:
            value = element.get_text(" ", strip=True)
        else:
            raw = element.get(self.attr)
            if isinstance(raw, list):
                raw = " ".join(raw)
            value = raw.strip() if raw else ""
        return value or None


@dataclass(frozen=True)
class FieldSpec:
    """Ordered fallback strategies for a single field."""

    strategies: Sequence[Strategy]
    post: Sequence[PostProcessor] = field(default_factory=tuple)
    default: str | None = None

    def extract(self, root: BeautifulSoup | Tag) -> str | None:
        for strategy in self.strategies:
            value = strategy.apply(root)
            if value:
                for processor in self.post:
                    value = processor(value)
                return value
        return self.default


def text(*selectors: str, default: str | None = None) -> FieldSpec:
    """Field read from element text, trying selectors in order."""
    return FieldSpec([Strategy(s) for s in selectors], default=default)


def attr(selector: str, *names: str, post: Iterable[PostProcessor] = ()) -> FieldSpec:
    """Field read from the first non-empty attribute of one selector."""
    return FieldSpec([Strategy(selector, name) for name in names], post=tuple(post))


def absolute_url(base: str) -> PostProcessor:
    """Post-processor joining relative URLs against ``base``."""

    def _join(value: str) -> str:
        return urljoin(base if base.endswith("/") else base + "/", value)

    return _join


def rewrite_suffix(old: str, new: str) -> PostProcessor:
    """Post-processor replacing a trailing ``old`` with ``new``.

    Used for thumbnail URLs whose size is encoded in the file suffix.
    """

    def _rewrite(value: str) -> str:
        if value.endswith(old):
            return value[: -len(old)] + new
        return value

    return _rewrite


def parse_html(html: str) -> BeautifulSoup:
    """Parse a document with the stdlib-backed parser."""
    return BeautifulSoup(html, "html.parser")


def extract_fields(
    root: BeautifulSoup | Tag | str, specs: dict[str, FieldSpec]
) -> dict[str, str | None]:
    """Apply every field spec to a document or element.

    Args:
        root: Parsed document, element or raw HTML
        specs: Field name to extraction spec

    Returns:
        Field name to extracted value (None when nothing matched)
    """
    if isinstance(root, str):
        root = parse_html(root)
    return {name: spec.extract(root) for name, spec in specs.items()}


def extract_list(
    root: BeautifulSoup | Tag | str,
    item_selector: str,
    specs: dict[str, FieldSpec],
    required: Iterable[str] = (),
) -> list[dict[str, str | None]]:
    """Extract fields from every element matching ``item_selector``.

    Items missing any of the ``required`` fields are dropped.
    """
    if isinstance(root, str):
        root = parse_html(root)
    required = tuple(required)
    items = []
    for element in root.select(item_selector):
        fields = extract_fields(element, specs)
        if all(fields.get(name) for name in required):
            items.append(fields)
    return items
