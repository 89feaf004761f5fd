"""Knowledge-base API client for fetching and indexing source URLs."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

import aiohttp

from kb_indexer.core.errors import ApiError
from kb_indexer.core.interfaces import IndexingService
from kb_indexer.models.indexing import (
    BatchIndexResponse,
    FetchAndIndexResponse,
    SourceRequest,
)

logger = logging.getLogger(__name__)


def unwrap_response(payload: Any) -> Any:
    """Unwrap ``{success, data}`` envelopes; legacy bare payloads pass through."""
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


def extract_error(payload: Any, status: int) -> ApiError:
    """Build an ApiError from an error response body."""
    message = f"Request failed: {status}"
    code = "UNKNOWN_ERROR"
    details: Optional[Dict[str, Any]] = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            if isinstance(error.get("message"), str):
                message = error["message"]
            code = error.get("code") or code
            details = error.get("details")
        elif isinstance(error, str):
            message = error

    return ApiError(message, code=code, details=details, status=status)


class RagClient(IndexingService):
    """Client for the knowledge-base REST API."""

    def __init__(self, base_url: Optional[str] = None, settings=None):
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:3001``
            settings: Settings instance for configuration values
        """
        if base_url is None:
            base_url = settings.rag_api_url if settings else "http://localhost:3001"
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": (
                settings.default_user_agent if settings else "Newsletter-KB-Indexer/1.0"
            ),
        }
        # No timeout unless configured
        self.timeout = settings.rag_request_timeout if settings else None
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or lazily create the shared HTTP session."""
        if self._session is None or self._session.closed:
            async with self._lock:
                if self._session is None or self._session.closed:
                    self._session = aiohttp.ClientSession(
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                        headers=self.headers,
                        raise_for_status=False,
                        trust_env=True,
                    )
                    logger.debug(f"HTTP session created for {self.base_url}")
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            logger.debug("HTTP session closed")

    async def __aenter__(self) -> "RagClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _request(
        self, method: str, endpoint: str, body: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Send a request and return the unwrapped JSON payload.

        Raises:
            ApiError: The API answered with a non-2xx status
        """
        url = f"{self.base_url}{endpoint}"
        session = await self.get_session()
        async with session.request(method, url, json=body) as response:
            try:
                payload = await response.json(content_type=None)
            except ValueError:
                payload = None

            if not 200 <= response.status < 300:
                error = extract_error(payload, response.status)
                logger.error(
                    f"Knowledge base API error: {response.status} {error.code} - {error.message}"
                )
                raise error

            return unwrap_response(payload)

    async def fetch_and_index_url(
        self,
        url: str,
        title: str,
        source_type: str = "trending",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> FetchAndIndexResponse:
        """Fetch a URL server-side and index it."""
        data = await self._request(
            "POST",
            "/api/rag/fetch-and-index",
            {
                "url": url,
                "title": title,
                "sourceType": source_type,
                "metadata": metadata or {},
            },
        )
        return FetchAndIndexResponse.model_validate(data or {})

    async def fetch_and_index_batch(
        self, sources: List[SourceRequest]
    ) -> BatchIndexResponse:
        """Fetch and index several URLs with one request."""
        logger.info(f"🚀 Submitting batch of {len(sources)} URL(s) for indexing")
        data = await self._request(
            "POST",
            "/api/rag/fetch-and-index-batch",
            {"sources": [source.to_payload() for source in sources]},
        )
        return BatchIndexResponse.model_validate(data or {})

    async def get_indexed_urls(self) -> Set[str]:
        """Get every source URL stored in the knowledge base."""
        data = await self._request("GET", "/api/rag/indexed-urls")
        return set((data or {}).get("urls", []))
