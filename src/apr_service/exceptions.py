"""Custom exceptions for the APR sampling service.

Feed, numeric, storage and collection-cycle exceptions all live here
to avoid circular imports between modules.
"""


class AprServiceError(Exception):
    """Base exception for all APR service errors."""


class UpstreamUnavailable(AprServiceError):
    """Raised when a network, contract or API call to a feed fails."""


class MalformedResponse(AprServiceError):
    """Raised when a feed answers but the payload is missing required fields."""


class InvalidNumericInput(AprServiceError, ValueError):
    """Raised when a stored or fetched value does not have the expected numeric shape."""


class DuplicateTimestamp(AprServiceError):
    """Raised when a sample with the same timestamp is already stored."""


class CollectionFailed(AprServiceError):
    """Raised when a collection cycle is abandoned. Nothing is persisted."""
