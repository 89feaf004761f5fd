"""Data models for knowledge-base source indexing using Pydantic for validation."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SourceIndexType(str, Enum):
    """Where a source came from in the newsletter workflow."""

    TRENDING = "trending"
    TOOL = "tool"
    SUGGESTION = "suggestion"
    ARCHIVE = "archive"


class BatchItemStatus(str, Enum):
    """Per-URL outcome reported by the batch indexing endpoint."""

    INDEXED = "indexed"
    EXISTS = "exists"
    FAILED = "failed"


class RagDocument(BaseModel):
    """A knowledge-base document as returned by the indexing service.

    Only the identifier is interpreted; everything else is kept as-is.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[Union[str, int]] = Field(None, description="Document identifier")
    filename: Optional[str] = Field(None, description="Document display name")
    source_url: Optional[str] = Field(
        None, alias="sourceUrl", description="URL the document was fetched from"
    )
    status: Optional[str] = Field(None, description="Indexing status")


class SourceRequest(BaseModel):
    """One logical unit of indexing work.

    ``url`` is the raw string handed over by the caller and may encode
    several URLs joined with `` and ``.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    url: str = Field(..., description="Raw, possibly composite URL string")
    title: str = Field("", description="Title for the indexed document")
    source_type: SourceIndexType = Field(
        SourceIndexType.TRENDING, alias="sourceType", description="Source category"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Opaque metadata passed to the service"
    )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON shape expected by the REST API."""
        return {
            "url": self.url,
            "title": self.title,
            "sourceType": SourceIndexType(self.source_type).value,
            "metadata": self.metadata,
        }


class IndexResult(BaseModel):
    """Outcome of indexing one logical source or one expanded URL."""

    url: str = Field(..., description="URL (or original raw string) the result is for")
    success: bool = Field(..., description="Whether anything useful was indexed")
    was_already_indexed: bool = Field(
        False, description="Whether the content was already in the knowledge base"
    )
    document: Optional[RagDocument] = Field(None, description="Indexed document")
    error: Optional[str] = Field(
        None, description="Error message, or a warning when success is partial"
    )


class BatchProgress(BaseModel):
    """Live counters for a batch indexing run."""

    total: int = Field(0, ge=0, description="Number of logical requests")
    completed: int = Field(0, ge=0, description="Processed per-URL results")
    indexed: int = Field(0, ge=0, description="Newly indexed URLs")
    already_indexed: int = Field(0, ge=0, description="URLs already present")
    failed: int = Field(0, ge=0, description="Failed URLs and invalid requests")
    is_running: bool = Field(False, description="Whether the batch is in progress")


class FetchAndIndexResponse(BaseModel):
    """Response of the single-URL fetch-and-index operation."""

    model_config = ConfigDict(populate_by_name=True)

    document: Optional[RagDocument] = None
    was_already_indexed: bool = Field(False, alias="wasAlreadyIndexed")
    message: Optional[str] = None


class BatchItemResult(BaseModel):
    """One per-URL entry of a batch response."""

    model_config = ConfigDict(use_enum_values=True)

    url: str
    status: BatchItemStatus
    document: Optional[RagDocument] = None
    error: Optional[str] = None


class BatchIndexResponse(BaseModel):
    """Response of the batch fetch-and-index operation."""

    model_config = ConfigDict(populate_by_name=True)

    indexed: int = 0
    already_indexed: int = Field(0, alias="alreadyIndexed")
    failed: int = 0
    results: List[BatchItemResult] = Field(default_factory=list)
