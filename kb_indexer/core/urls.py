"""Utility functions for recovering URLs from raw source strings.

Source URLs often come out of LLM responses and can hold several URLs
glued together with `` and ``. These helpers split such strings and keep
only the candidates that parse as absolute URLs.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

MULTI_URL_MARKER = " and "

_url_adapter = TypeAdapter(AnyUrl)


class ExtractedUrls(NamedTuple):
    """Valid URLs recovered from a raw string, in their original order."""

    urls: List[str]
    original: str


def is_multi_url(raw: Optional[str]) -> bool:
    """Return True when ``raw`` looks like several URLs joined together."""
    return bool(raw) and MULTI_URL_MARKER in raw


def is_valid_url(candidate: str) -> bool:
    """Strictly check that ``candidate`` is an absolute URL with a host."""
    if not candidate or candidate != candidate.strip():
        return False
    try:
        parsed = _url_adapter.validate_python(candidate)
    except ValidationError:
        return False
    return bool(parsed.scheme and parsed.host)


def extract_valid_urls(raw: str) -> ExtractedUrls:
    """Split a raw source string into its valid URLs.

    The first URL of the result is the primary one used for display.
    Candidates that fail to parse are logged and dropped.
    """
    original = raw or ""
    if MULTI_URL_MARKER in original:
        candidates = original.split(MULTI_URL_MARKER)
    else:
        candidates = [original]

    urls = []
    for candidate in candidates:
        candidate = candidate.strip()
        if is_valid_url(candidate):
            urls.append(candidate)
        else:
            logger.debug(f"Dropping invalid URL candidate: {candidate!r}")

    if not urls:
        logger.warning(f"No valid URLs found in: {original!r}")

    return ExtractedUrls(urls=urls, original=original)


def get_clean_url(raw: Optional[str]) -> str:
    """Return a display-ready URL for a raw source string.

    Returns an empty string for missing input. Composite strings resolve
    to their first valid URL, or are returned unchanged when nothing parses.
    """
    if raw is None:
        return ""
    if MULTI_URL_MARKER not in raw:
        return raw.strip()

    urls = extract_valid_urls(raw).urls
    return urls[0] if urls else raw


def primary_url(raw: Optional[str]) -> Optional[str]:
    """Return the first valid URL in ``raw``, or None."""
    if not raw:
        return None
    urls = extract_valid_urls(raw).urls
    return urls[0] if urls else None
