import pytest

from kb_indexer.core.indexer import SourceIndexer
from kb_indexer.core.interfaces import IndexingService
from kb_indexer.models.indexing import (
    BatchIndexResponse,
    BatchItemResult,
    FetchAndIndexResponse,
    RagDocument,
)


class FakeIndexingService(IndexingService):
    """In-memory indexing service that records every call."""

    def __init__(self, indexed=None):
        self.stored = set(indexed or [])
        self.single_calls = []
        self.batch_calls = []
        self.refresh_calls = 0
        self.failing_urls = {}
        self.batch_response = None
        self.batch_error = None
        self.refresh_error = None
        self.on_call = None

    async def fetch_and_index_url(self, url, title, source_type, metadata=None):
        self.single_calls.append((url, title, source_type, metadata))
        if self.on_call:
            self.on_call(url)
        if url in self.failing_urls:
            raise self.failing_urls[url]
        if url in self.stored:
            return FetchAndIndexResponse(was_already_indexed=True)
        self.stored.add(url)
        return FetchAndIndexResponse(
            document=RagDocument(id=f"doc-{len(self.stored)}", source_url=url),
            was_already_indexed=False,
        )

    async def fetch_and_index_batch(self, sources):
        self.batch_calls.append(list(sources))
        if self.on_call:
            self.on_call([s.url for s in sources])
        if self.batch_error:
            raise self.batch_error
        if self.batch_response is not None:
            return self.batch_response

        results = []
        for source in sources:
            if source.url in self.failing_urls:
                results.append(
                    BatchItemResult(
                        url=source.url,
                        status="failed",
                        error=str(self.failing_urls[source.url]),
                    )
                )
            elif source.url in self.stored:
                results.append(BatchItemResult(url=source.url, status="exists"))
            else:
                self.stored.add(source.url)
                results.append(BatchItemResult(url=source.url, status="indexed"))
        return BatchIndexResponse(results=results)

    async def get_indexed_urls(self):
        self.refresh_calls += 1
        if self.refresh_error:
            raise self.refresh_error
        return set(self.stored)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


@pytest.fixture
def service():
    return FakeIndexingService()


@pytest.fixture
def indexer(service):
    return SourceIndexer(service)


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings isolated from the caller's environment."""
    from kb_indexer.models.settings import Settings

    for var in ("RAG_API_URL", "RAG_REQUEST_TIMEOUT", "DEBUG", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return Settings(_env_file=None, rag_api_url="http://kb.test")
