"""Configuration module for the Todoo MCP server.

This module provides the ServerConfig Pydantic model for managing server
configuration from files, command-line arguments, and defaults.
"""

from importlib.metadata import version
from typing import Any, Literal

from pydantic import BaseModel, Field, HttpUrl, field_validator


class ServerConfig(BaseModel):
    """Server configuration model with validation and default values.

    Holds the store credentials, transport settings, HTTP client tuning and
    the name of the trusted header that carries the authenticated user id.
    """

    store_bearer_token: str = Field(
        ...,
        description="Bearer token for the task store API",
    )

    store_base_url: HttpUrl = Field(
        default=HttpUrl("https://store.todoo.app/v1/"),
        description="Base URL for the task store API endpoints",
    )

    transport: Literal["stdio", "http"] = Field(
        default="stdio",
        description="MCP transport; 'http' also serves the direct task and user routes",
    )

    host: str = Field(
        default="127.0.0.1",
        description="Bind address for the HTTP transport",
    )

    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port number for the HTTP transport",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the application",
    )

    config_file: str | None = Field(
        default=None,
        description="Path to configuration file",
    )

    test_connectivity_on_startup: bool = Field(
        default=False,
        description="Test store connectivity during server startup",
    )

    rate_limit_rpm: int = Field(
        default=600,
        ge=1,
        le=10000,
        description="Rate limit: store requests per minute",
    )

    rate_limit_burst: int = Field(
        default=50,
        ge=1,
        le=100,
        description="Rate limit: burst capacity",
    )

    http_retries: int = Field(
        default=2,
        ge=0,
        le=5,
        description="HTTP client retry count for failed store requests",
    )

    http_backoff_start_seconds: float = Field(
        default=0.25,
        ge=0.1,
        le=10.0,
        description="HTTP client backoff start time in seconds",
    )

    http_user_agent: str = Field(
        default_factory=lambda: f"todoo-mcp/{version('todoo-mcp')}",
        description="HTTP client User-Agent header",
    )

    timeout_connect: float = Field(
        default=5.0,
        ge=1.0,
        le=30.0,
        description="HTTP connection timeout in seconds",
    )

    timeout_read: float = Field(
        default=30.0,
        ge=5.0,
        le=120.0,
        description="HTTP read timeout in seconds",
    )

    actor_header: str = Field(
        default="X-User-Id",
        min_length=1,
        description=(
            "Request header carrying the authenticated user id, set by the session "
            "layer in front of the direct HTTP routes"
        ),
    )

    @field_validator("store_base_url")
    @classmethod
    def validate_https_url(cls, v: HttpUrl) -> HttpUrl:
        """Validate that the base URL uses HTTPS protocol.

        Args:
            v: The URL value to validate.

        Returns:
            HttpUrl: The validated HTTPS URL.

        Raises:
            ValueError: If the URL does not use HTTPS protocol.
        """
        if v.scheme != "https":
            msg = "URL must use HTTPS"
            raise ValueError(msg)
        return v

    def to_redacted_dict(self) -> dict[str, Any]:
        """Return a dictionary representation with the bearer token redacted.

        Returns:
            dict[str, Any]: Configuration dictionary safe for logging.
        """
        config_dict = self.model_dump()
        config_dict["store_bearer_token"] = "***redacted***"  # noqa: S105
        config_dict["store_base_url"] = str(config_dict["store_base_url"])
        return config_dict
