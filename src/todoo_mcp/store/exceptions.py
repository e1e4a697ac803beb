"""Exceptions raised by the task store client.

Every failure talking to the store surfaces as a ``StoreAPIError`` subclass.
Messages never contain the bearer token.
"""


class StoreAPIError(Exception):
    """Base exception for all store API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize store API error.

        Args:
            message: Error message (must not contain bearer token)
            status_code: HTTP status code if applicable
        """
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def create_unexpected_error(cls, method: str, endpoint: str) -> "StoreAPIError":
        """Create an error for unexpected failures with safe context.

        Args:
            method: HTTP method used
            endpoint: API endpoint called

        Returns:
            StoreAPIError with contextual message
        """
        safe_context = f"method={method}, endpoint={endpoint}, status_unknown"
        return cls(f"Unexpected store error ({safe_context})")

    @classmethod
    def create_parse_error(cls, endpoint: str, **context: str | int) -> "StoreAPIError":
        """Create an error for response parsing failures with safe context.

        Args:
            endpoint: API endpoint that failed
            **context: Additional safe context information

        Returns:
            StoreAPIError with contextual message
        """
        context_parts = [f"endpoint={endpoint}"]
        context_parts.extend(f"{key}={value}" for key, value in context.items())
        return cls(f"Failed to parse store response ({', '.join(context_parts)})")


class StoreBadRequestError(StoreAPIError):
    """Raised when request parameters are invalid (400 Bad Request)."""

    def __init__(self, message: str = "Bad request - invalid parameters") -> None:
        super().__init__(message, status_code=400)


class StoreAuthenticationError(StoreAPIError):
    """Raised when the store rejects the bearer token (401 Unauthorized)."""

    def __init__(self, message: str = "Store authentication failed") -> None:
        super().__init__(message, status_code=401)


class StoreNotFoundError(StoreAPIError):
    """Raised when a record is not found (404 Not Found)."""

    def __init__(self, message: str = "Record not found") -> None:
        super().__init__(message, status_code=404)


class StoreConflictError(StoreAPIError):
    """Raised when a unique constraint is violated (409 Conflict), e.g. a duplicate email."""

    def __init__(self, message: str = "Record conflicts with an existing one") -> None:
        super().__init__(message, status_code=409)


class StoreValidationError(StoreAPIError):
    """Raised when the store rejects an entity (422 Unprocessable Entity)."""

    def __init__(self, message: str = "Entity validation failed") -> None:
        super().__init__(message, status_code=422)


class StoreRateLimitError(StoreAPIError):
    """Raised when the store rate limit is exceeded (429 Too Many Requests)."""

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class StoreServerError(StoreAPIError):
    """Raised when the store returns 5xx errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message, status_code=status_code)


class StoreServiceUnavailableError(StoreAPIError):
    """Raised when the store is temporarily unavailable (503 Service Unavailable)."""

    def __init__(self, message: str = "Store temporarily unavailable") -> None:
        super().__init__(message, status_code=503)


class StoreNetworkError(StoreAPIError):
    """Raised when network operations fail."""

    def __init__(self, message: str = "Network error occurred") -> None:
        super().__init__(message, status_code=None)


class StoreTimeoutError(StoreAPIError):
    """Raised when requests time out (client timeouts or 504 gateway timeout)."""

    def __init__(self, message: str = "Request timeout", status_code: int | None = None) -> None:
        super().__init__(message, status_code=status_code)
