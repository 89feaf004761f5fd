"""Interface for the knowledge-base indexing backend."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set

from kb_indexer.models.indexing import (
    BatchIndexResponse,
    FetchAndIndexResponse,
    SourceRequest,
)


class IndexingService(ABC):
    """A backend that fetches URLs and stores them in the knowledge base."""

    @abstractmethod
    async def fetch_and_index_url(
        self,
        url: str,
        title: str,
        source_type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> FetchAndIndexResponse:
        """
        Fetch a single URL and index it.

        Args:
            url: The URL to fetch
            title: Title for the indexed document
            source_type: Source category, passed through unchanged
            metadata: Optional metadata, passed through unchanged

        Returns:
            FetchAndIndexResponse describing the outcome
        """
        pass

    @abstractmethod
    async def fetch_and_index_batch(
        self, sources: List[SourceRequest]
    ) -> BatchIndexResponse:
        """
        Fetch and index many URLs in one round trip.

        Args:
            sources: One request per URL; each ``url`` is a single URL

        Returns:
            BatchIndexResponse with one result per URL
        """
        pass

    @abstractmethod
    async def get_indexed_urls(self) -> Set[str]:
        """Return every source URL currently stored in the knowledge base."""
        pass
