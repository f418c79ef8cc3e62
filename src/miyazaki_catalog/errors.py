"""Exceptions raised by the catalog services."""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CatalogError):
    """Raised when an environment setting has an invalid value."""


class InvalidQueryError(CatalogError):
    """Raised when a search query is empty or blank."""


class InvalidWorkError(CatalogError):
    """Raised when a work payload fails validation."""


class WorkNotFoundError(CatalogError):
    """Raised when a work id does not exist."""


class EmbeddingError(CatalogError):
    """Raised when embedding generation fails."""


class EmbeddingDisabledError(EmbeddingError):
    """Raised when the embedding provider has no API key configured."""


class EmbeddingInputError(EmbeddingError):
    """Raised when the text to embed is empty after trimming."""


class EmbeddingProviderError(EmbeddingError):
    """Raised when the provider answers with a non-2xx status."""

    def __init__(self, status: int | None, body: str) -> None:
        super().__init__(
            f"Embedding request failed with status {status}: {body}",
            details={"status": status, "body": body},
        )
        self.status = status
        self.body = body


class EmbeddingTransportError(EmbeddingError):
    """Raised when the provider could not be reached."""


class EmbeddingResponseError(EmbeddingError):
    """Raised when the provider response carries no embedding vector."""


class UpstreamEmbeddingError(CatalogError):
    """Raised when a work write is rejected because its embedding failed."""
