"""Exceptions raised by the indexing service clients."""

from typing import Any, Dict, Optional


class IndexingError(Exception):
    """Base class for knowledge-base indexing errors."""


class ApiError(IndexingError):
    """Error response from the knowledge-base API, with its details preserved."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.status = status

    def __str__(self) -> str:
        return self.message
