"""
Helpers for reading names and codes out of scanned table cells.
"""

from typing import Iterable, List, Optional, Tuple

from bs4 import Tag

WIKI_PREFIX = "/wiki/"


def first_text(element: Tag) -> Optional[str]:
    """First non-blank text node of an element, trimmed."""
    for s in element.strings:
        text = s.strip()
        if text:
            return text
    return None


def link_title_if(prefix: str, element: Tag) -> Optional[str]:
    """
    Title attribute of a link whose href starts with ``prefix``.
    """
    if not element.get("href", "").startswith(prefix):
        return None

    title = element.get("title")
    return title.strip() if title is not None else None


def link_text_if(prefix: str, element: Tag) -> Optional[str]:
    """
    First non-blank text of a link whose href starts with ``prefix``.
    """
    if not element.get("href", "").startswith(prefix):
        return None
    return first_text(element)


def link_title_and_text(prefix: str, elements: Iterable[Tag]) -> Tuple[Optional[str], Optional[str]]:
    """
    First link title and first link text found among ``elements``; the two
    may come from different links.
    """
    title = None
    text = None

    for element in elements:
        if title is None:
            title = link_title_if(prefix, element)
        if text is None:
            text = link_text_if(prefix, element)
        if title is not None and text is not None:
            break

    return title, text


def first_link_text(prefix: str, elements: Iterable[Tag]) -> Optional[str]:
    return next((t for t in (link_text_if(prefix, e) for e in elements) if t is not None), None)


def first_link_title(prefix: str, elements: Iterable[Tag]) -> Optional[str]:
    return next((t for t in (link_title_if(prefix, e) for e in elements) if t is not None), None)


def inner_text_first_if(min_len: int, max_len: Optional[int], tokens: List[str]) -> Optional[str]:
    """
    First trimmed text token whose length lies within the given bounds.
    """
    for token in tokens:
        text = token.strip()

        if len(text) < min_len:
            continue
        if max_len is not None and len(text) > max_len:
            continue

        return text

    return None
