"""Knowledge-base source indexing and deduplication for newsletter sources."""

from .core.indexer import CancellationToken, SourceIndexer
from .core.tracker import IndexStateTracker
from .core.urls import extract_valid_urls, get_clean_url
from .models.indexing import BatchProgress, IndexResult, SourceIndexType, SourceRequest

__version__ = "1.0.0"

__all__ = [
    "SourceIndexer",
    "IndexStateTracker",
    "CancellationToken",
    "extract_valid_urls",
    "get_clean_url",
    "SourceRequest",
    "IndexResult",
    "BatchProgress",
    "SourceIndexType",
]
