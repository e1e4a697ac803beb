"""Base client for the task store API with HTTP plumbing and authentication.

This module provides the BaseClient class containing the HTTP infrastructure,
authentication, error mapping, rate limiting and retry logic shared by the
task and user mixins.
"""

import asyncio
import logging
import types
from dataclasses import dataclass
from typing import Any, NoReturn

import httpx

from todoo_mcp.config import ServerConfig
from todoo_mcp.rate_limiter import TokenBucketLimiter
from todoo_mcp.store.exceptions import (
    StoreAPIError,
    StoreAuthenticationError,
    StoreBadRequestError,
    StoreConflictError,
    StoreNetworkError,
    StoreNotFoundError,
    StoreRateLimitError,
    StoreServerError,
    StoreServiceUnavailableError,
    StoreTimeoutError,
    StoreValidationError,
)

# HTTP status code constants
_HTTP_NO_CONTENT = 204
_HTTP_BAD_REQUEST = 400
_HTTP_UNAUTHORIZED = 401
_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409
_HTTP_UNPROCESSABLE_ENTITY = 422
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_INTERNAL_SERVER_ERROR = 500
_HTTP_BAD_GATEWAY = 502
_HTTP_SERVICE_UNAVAILABLE = 503
_HTTP_GATEWAY_TIMEOUT = 504
_HTTP_MAX_SERVER_ERROR = 600

_RETRYABLE_STATUS_CODES = {
    _HTTP_INTERNAL_SERVER_ERROR,
    _HTTP_BAD_GATEWAY,
    _HTTP_SERVICE_UNAVAILABLE,
    _HTTP_GATEWAY_TIMEOUT,
}

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _RetryContext:
    """Retry metadata for a single attempt."""

    attempt: int
    max_attempts: int
    backoff: float
    method: str
    url: str


class BaseClient:
    """HTTP plumbing and authentication for the task store API."""

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the base store client.

        Args:
            config: Server configuration containing bearer token and base URL
        """
        self._config = config
        self._base_url = str(config.store_base_url).rstrip("/")
        self._bearer_token = config.store_bearer_token
        self._http_client: httpx.AsyncClient | None = None
        self._rate_limiter = TokenBucketLimiter(
            rpm=config.rate_limit_rpm, burst=config.rate_limit_burst
        )

    def __str__(self) -> str:
        """Return string representation without exposing bearer token."""
        return f"BaseClient(base_url={self._base_url}, token=***redacted***)"

    def __repr__(self) -> str:
        """Return repr without exposing bearer token."""
        return f"BaseClient(base_url='{self._base_url}', token='***redacted***')"

    async def __aenter__(self) -> "BaseClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the pooled HTTP client, if one was opened."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client.

        Returns:
            httpx.AsyncClient: Configured async HTTP client
        """
        if self._http_client is None:
            timeout = httpx.Timeout(
                connect=self._config.timeout_connect,
                read=self._config.timeout_read,
                write=10.0,
                pool=10.0,
            )
            limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
            self._http_client = httpx.AsyncClient(
                timeout=timeout,
                limits=limits,
                follow_redirects=True,
                headers={"User-Agent": self._config.http_user_agent},
            )
        return self._http_client

    @staticmethod
    def _is_retryable_status(status_code: int) -> bool:
        return status_code in _RETRYABLE_STATUS_CODES

    @staticmethod
    def _has_remaining_attempts(context: _RetryContext) -> bool:
        return context.attempt < context.max_attempts - 1

    def _handle_http_status_retry(
        self,
        error: httpx.HTTPStatusError,
        context: _RetryContext,
    ) -> bool:
        """Decide whether an HTTP status error is retried; raise otherwise.

        Returns:
            bool: True when caller should retry after applying backoff.
        """
        status_code = error.response.status_code
        if not self._has_remaining_attempts(context) or not self._is_retryable_status(
            status_code
        ):
            self._handle_http_error(error)

        logger.warning(
            "Retryable HTTP status %s for %s %s; retrying in %.2fs (attempt %d of %d)",
            status_code,
            context.method,
            context.url,
            context.backoff,
            context.attempt + 1,
            context.max_attempts,
        )
        return True

    def _handle_transient_exception(
        self,
        error: httpx.TimeoutException | httpx.NetworkError,
        context: _RetryContext,
    ) -> bool:
        """Retry timeouts and network errors until attempts run out.

        Returns:
            bool: True when caller should retry after applying backoff.
        """
        if not self._has_remaining_attempts(context):
            if isinstance(error, httpx.TimeoutException):
                logger.exception("Store request timeout")
                raise StoreTimeoutError from error
            logger.exception("Store network error")
            raise StoreNetworkError from error

        message = (
            "Timeout during %s %s; retrying in %.2fs (attempt %d of %d)"
            if isinstance(error, httpx.TimeoutException)
            else "Network error during %s %s; retrying in %.2fs (attempt %d of %d)"
        )
        logger.warning(
            message,
            context.method,
            context.url,
            context.backoff,
            context.attempt + 1,
            context.max_attempts,
        )
        return True

    def _get_auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._bearer_token}",
            "Content-Type": "application/json",
        }

    def _get_redacted_headers(self) -> dict[str, str]:
        return {
            "Authorization": "Bearer ***redacted***",
            "Content-Type": "application/json",
        }

    def _handle_http_error(self, error: httpx.HTTPStatusError) -> NoReturn:
        """Map an HTTP status error onto the store exception hierarchy.

        Args:
            error: HTTP status error from httpx

        Raises:
            StoreBadRequestError: For 400 Bad Request
            StoreAuthenticationError: For 401 Unauthorized
            StoreNotFoundError: For 404 Not Found
            StoreConflictError: For 409 Conflict
            StoreValidationError: For 422 Unprocessable Entity
            StoreRateLimitError: For 429 Too Many Requests
            StoreServiceUnavailableError: For 503 Service Unavailable
            StoreTimeoutError: For 504 Gateway Timeout
            StoreServerError: For other 5xx server errors
            StoreAPIError: For other HTTP errors
        """
        status_code = error.response.status_code

        if status_code == _HTTP_BAD_REQUEST:
            logger.error("Bad request to store API - invalid parameters")
            raise StoreBadRequestError from error
        if status_code == _HTTP_UNAUTHORIZED:
            logger.error("Authentication failed with store API")
            raise StoreAuthenticationError from error
        if status_code == _HTTP_NOT_FOUND:
            logger.debug("Store record not found: %s", error.request.url)
            raise StoreNotFoundError from error
        if status_code == _HTTP_CONFLICT:
            logger.error("Store rejected a conflicting record")
            raise StoreConflictError from error
        if status_code == _HTTP_UNPROCESSABLE_ENTITY:
            logger.error("Store validation error - entity not valid")
            raise StoreValidationError from error
        if status_code == _HTTP_TOO_MANY_REQUESTS:
            logger.error("Rate limit exceeded for store API")
            raise StoreRateLimitError from error
        if status_code == _HTTP_SERVICE_UNAVAILABLE:
            logger.error("Store API temporarily unavailable")
            raise StoreServiceUnavailableError from error
        if status_code == _HTTP_GATEWAY_TIMEOUT:
            logger.error("Store API request timed out")
            raise StoreTimeoutError(status_code=status_code) from error
        if _HTTP_INTERNAL_SERVER_ERROR <= status_code < _HTTP_MAX_SERVER_ERROR:
            logger.error("Store API server error: %s", status_code)
            raise StoreServerError("", status_code) from error
        logger.error("Store API error: %s", status_code)
        raise StoreAPIError("", status_code) from error

    @staticmethod
    def _parse_json_body(response: httpx.Response, endpoint: str) -> dict[str, Any]:
        """Decode a successful response, which must be a JSON object.

        Raises:
            StoreAPIError: Body is not JSON, or not a JSON object
        """
        try:
            body = response.json()
        except ValueError as error:
            logger.exception("Store returned a non-JSON body for %s", endpoint)
            raise StoreAPIError.create_parse_error(
                endpoint, status=response.status_code, detail="invalid JSON"
            ) from error
        if not isinstance(body, dict):
            logger.error("Store returned %s instead of a JSON object", type(body).__name__)
            raise StoreAPIError.create_parse_error(endpoint, detail="expected JSON object")
        return body

    async def make_request(
        self,
        method: str,
        endpoint: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request to the store API.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint (without base URL)
            data: JSON data for request body
            params: Query parameters

        Returns:
            Dict[str, Any]: Parsed JSON object, ``{}`` for 204 or an empty body

        Raises:
            StoreAPIError: Or one of its subclasses, see ``_handle_http_error``
        """
        method_upper = method.upper()
        url = f"{self._base_url}/{endpoint.lstrip('/')}"
        max_attempts = self._config.http_retries + 1
        backoff = self._config.http_backoff_start_seconds

        for attempt in range(max_attempts):
            await self._rate_limiter.acquire()

            try:
                http_client = self._get_http_client()
                logger.debug(
                    "Making %s request to %s with headers: %s",
                    method_upper,
                    url,
                    self._get_redacted_headers(),
                )
                response = await http_client.request(
                    method=method_upper,
                    url=url,
                    headers=self._get_auth_headers(),
                    json=data,
                    params=params,
                )
                response.raise_for_status()

            except httpx.HTTPStatusError as error:
                context = _RetryContext(attempt, max_attempts, backoff, method_upper, url)
                if self._handle_http_status_retry(error, context):
                    await asyncio.sleep(backoff)
                    backoff *= 2.0
                    continue
            except (httpx.TimeoutException, httpx.NetworkError) as error:
                context = _RetryContext(attempt, max_attempts, backoff, method_upper, url)
                if self._handle_transient_exception(error, context):
                    await asyncio.sleep(backoff)
                    backoff *= 2.0
                    continue
            except Exception as error:
                logger.exception("Unexpected error during store request")
                raise StoreAPIError.create_unexpected_error(method_upper, endpoint) from error
            else:
                if response.status_code == _HTTP_NO_CONTENT or not response.content:
                    logger.debug("Successful store response: %s (No Content)", response.status_code)
                    return {}
                logger.debug("Successful store response: %s", response.status_code)
                return self._parse_json_body(response, endpoint)

        msg = f"Exhausted retry attempts for {method_upper} {url}"
        logger.error(msg)
        raise StoreAPIError(msg)

    async def test_connectivity(self) -> bool:
        """Check that the store is reachable and accepts the bearer token.

        Returns:
            bool: True if ``GET ping`` answers ``{"message": "pong"}``
        """
        try:
            result = await self.make_request("GET", "ping")
        except StoreAPIError as e:
            logger.warning("Store connectivity test failed: %s", e)
            return False
        if result.get("message") == "pong":
            logger.info("Store connectivity test successful")
            return True
        logger.warning("Store connectivity test failed: unexpected response")
        return False
