"""Tracks which source URLs are indexed or currently being indexed."""

import asyncio
import logging
from typing import FrozenSet, Iterable, Optional

import aiohttp

from kb_indexer.core.errors import IndexingError
from kb_indexer.core.interfaces import IndexingService
from kb_indexer.core.urls import extract_valid_urls, is_multi_url

logger = logging.getLogger(__name__)


class IndexStateTracker:
    """Single source of truth for the indexed and in-flight URL sets.

    Other components read the state through ``is_indexed`` and
    ``is_indexing``; only the indexers call the mutation methods.
    """

    def __init__(self, service: IndexingService):
        self.service = service
        self._indexed: FrozenSet[str] = frozenset()
        self._in_flight: FrozenSet[str] = frozenset()
        self.loading = False
        self.error: Optional[str] = None

    @property
    def indexed_urls(self) -> FrozenSet[str]:
        return self._indexed

    @property
    def in_flight_urls(self) -> FrozenSet[str]:
        return self._in_flight

    async def refresh(self) -> Optional[str]:
        """
        Replace the indexed set with the service's full list.

        The previous set is kept when the service call fails.

        Returns:
            None on success, otherwise the error message
        """
        self.loading = True
        self.error = None
        try:
            urls = await self.service.get_indexed_urls()
            self._indexed = frozenset(urls)
            logger.info(f"📚 Loaded {len(self._indexed)} indexed URLs")
        except (IndexingError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.error = str(e) or "Failed to load indexed URLs"
            logger.error(f"Error loading indexed URLs: {e}")
        except Exception as e:
            self.error = str(e) or "Failed to load indexed URLs"
            logger.error(f"Unexpected error loading indexed URLs: {e}")
        finally:
            self.loading = False
        return self.error

    def is_indexed(self, url: str) -> bool:
        """Check whether ``url``, or any URL packed into it, is indexed."""
        if not url:
            return False
        if url in self._indexed:
            return True
        if is_multi_url(url):
            return any(u in self._indexed for u in extract_valid_urls(url).urls)
        return False

    def is_indexing(self, url: str) -> bool:
        return url in self._in_flight

    def mark_in_flight(self, urls: Iterable[str]) -> None:
        self._in_flight = self._in_flight.union(urls)

    def clear_in_flight(self, urls: Iterable[str]) -> None:
        self._in_flight = self._in_flight.difference(urls)

    def add_indexed(self, urls: Iterable[str]) -> None:
        """Add confirmed URLs to the indexed set in a single update."""
        urls = frozenset(urls)
        if urls:
            self._indexed = self._indexed.union(urls)
            logger.debug(f"Added {len(urls)} URL(s) to the indexed set")
