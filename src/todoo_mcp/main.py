"""Main application entry point for the Todoo MCP server.

This module contains the CoreServer class which wires the task store client,
the task operations, the MCP tools and the direct HTTP routes into one
FastMCP application.

Exit Codes:
    0: Normal successful termination
    1: Configuration-related failures (TOML parse errors, validation failures,
       missing required files, unknown configuration keys, or unhandled exceptions)

Configuration failures that result in exit code 1:
    - Invalid TOML syntax in configuration files
    - Missing configuration file when explicitly specified with --config-file
    - Unknown keys in TOML configuration files
    - Configuration validation failures (invalid port, non-HTTPS URL, invalid log level)
    - File I/O errors when reading configuration files
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
import tomllib
from pathlib import Path
from typing import Any

from fastmcp import Context, FastMCP

from todoo_mcp import __version__
from todoo_mcp.auth.service import TaskOperations, UserOperations
from todoo_mcp.config import ServerConfig
from todoo_mcp.routes.tasks import TaskRoutes
from todoo_mcp.routes.users import UserRoutes
from todoo_mcp.store.client import StoreClient
from todoo_mcp.tools.bridge import ToolBridge
from todoo_mcp.tools.tasks import TaskTools


class CoreServer:
    """Main application runner responsible for initializing and managing the FastMCP server.

    Logging goes to stderr so stdout stays clean for the stdio transport. With
    the HTTP transport the same application also serves the ``/tasks`` and
    ``/users`` routes.
    """

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the CoreServer instance.

        Args:
            config: Server configuration instance containing all settings.
        """
        self.config = config
        self._setup_logging()
        self.app = self._create_fastmcp_instance()
        self._store_client: StoreClient | None = None
        self.bridge = ToolBridge(TaskOperations(self.get_store_client()))
        self._register_tools()
        self._register_routes()
        self._shutdown_requested = False
        self._sigint_count = 0
        self._setup_signal_handlers()

    def _setup_logging(self) -> None:
        """Configure logging to direct all output to stderr."""
        log_level = getattr(logging, self.config.log_level)
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            stream=sys.stderr,
        )

    def _create_fastmcp_instance(self) -> FastMCP:
        return FastMCP(
            name="todoo-mcp",
            version=__version__,
        )

    def _register_tools(self) -> None:
        """Register the ping tool and the task tools with the FastMCP instance."""
        self.app.tool(self.ping_tool, name="ping")
        TaskTools(self.app, self.bridge)

    def _register_routes(self) -> None:
        """Register the direct HTTP routes (served only by the HTTP transport)."""
        store = self.get_store_client()
        TaskRoutes(self.app, self.bridge, store, self.config.actor_header)
        UserRoutes(self.app, UserOperations(store), store, self.config.actor_header)

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for SIGINT and SIGTERM."""

        def signal_handler(signum: int, _: object | None) -> None:
            """Handle shutdown signals by forcing immediate exit."""
            logger = logging.getLogger(__name__)
            signal_name = "SIGINT" if signum == signal.SIGINT else f"Signal {signum}"

            if signum == signal.SIGINT:
                self._sigint_count += 1
                if self._sigint_count == 1:
                    logger.info("Received %s, initiating graceful shutdown", signal_name)
                    self._shutdown_requested = True
                    # FastMCP offers no clean shutdown hook
                    os._exit(0)
                else:
                    logger.warning("Second SIGINT received; forcing immediate exit")
                    os._exit(1)
            else:
                logger.info("Received %s, initiating graceful shutdown", signal_name)
                self._shutdown_requested = True
                os._exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def get_config(self) -> ServerConfig:
        return self.config

    def get_store_client(self) -> StoreClient:
        """Get or create the task store client.

        Returns:
            StoreClient: The store API client instance.
        """
        if self._store_client is None:
            self._store_client = StoreClient(self.config)
        return self._store_client

    async def ping_tool(self, ctx: Context) -> str:
        """Ping health-check tool that returns a static 'pong' response.

        Args:
            ctx: The execution context providing access to logging and other MCP capabilities.

        Returns:
            str: The 'pong' response text.

        Raises:
            asyncio.CancelledError: If the operation is cancelled during execution.
        """
        try:
            await ctx.info("Ping tool called, returning pong")
        except asyncio.CancelledError:
            await ctx.info("Ping tool execution cancelled")
            raise
        else:
            return "pong"

    async def _test_connectivity_if_enabled(self) -> None:
        """Test task store connectivity if enabled in configuration."""
        if not self.config.test_connectivity_on_startup:
            return

        logger = logging.getLogger(__name__)
        logger.info("Testing task store connectivity...")

        try:
            store_client = self.get_store_client()
            async with store_client:
                success = await store_client.test_connectivity()
                if success:
                    logger.info("Task store connectivity test successful")
                else:
                    logger.warning("Task store connectivity test failed")
        except Exception:
            logger.exception("Task store connectivity test failed with exception")

    def run(self) -> None:
        """Run the MCP server with the configured transport."""
        logger = logging.getLogger(__name__)
        logger.info("Starting Todoo MCP server with %s transport", self.config.transport)

        if self.config.test_connectivity_on_startup:
            try:
                asyncio.run(self._test_connectivity_if_enabled())
            except Exception:
                logger.exception("Connectivity test failed during startup")

        try:
            if self.config.transport == "http":
                self.app.run(transport="http", host=self.config.host, port=self.config.port)
            else:
                self.app.run(transport="stdio")
        except KeyboardInterrupt:
            logger.info("Server shutdown requested via KeyboardInterrupt")
            raise
        except Exception:
            logger.exception("Unhandled exception in server run method")
            raise


def _get_known_config_fields() -> set[str]:
    """Get the set of known configuration field names.

    Returns:
        set[str]: Set of valid configuration field names for TOML validation.
    """
    return set(ServerConfig.model_fields)


def _load_config_from_file(config_file: str) -> dict[str, Any]:
    """Load configuration from TOML file with validation.

    Args:
        config_file: Path to the configuration file.

    Returns:
        dict[str, Any]: Configuration data loaded from file.

    Raises:
        SystemExit: On file parsing errors or unknown configuration keys.
    """
    config_data: dict[str, Any] = {}
    logger = logging.getLogger(__name__)
    config_path = Path(config_file)

    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                file_config = tomllib.load(f)

            known_fields = _get_known_config_fields()
            unknown_keys = set(file_config.keys()) - known_fields
            if unknown_keys:
                logger.error(
                    "Unknown configuration keys in %s: %s",
                    config_path,
                    ", ".join(sorted(unknown_keys)),
                )
                sys.exit(1)

            config_data.update(file_config)
            logger.info("Loaded configuration from %s", config_path)
        except tomllib.TOMLDecodeError:
            logger.exception("Failed to parse TOML configuration file %s", config_path)
            sys.exit(1)
        except OSError:
            logger.exception("Failed to read configuration file %s", config_path)
            sys.exit(1)

    return config_data


_CLI_OVERRIDES = {
    "port": "port",
    "host": "host",
    "transport": "transport",
    "log_level": "log_level",
    "base_url": "store_base_url",
    "token": "store_bearer_token",
    "rate_limit_rpm": "rate_limit_rpm",
    "rate_limit_burst": "rate_limit_burst",
    "actor_header": "actor_header",
}


def _apply_cli_overrides(config_data: dict[str, Any], args: argparse.Namespace) -> None:
    """Apply CLI argument overrides to configuration data (CLI takes precedence)."""
    for arg_name, field_name in _CLI_OVERRIDES.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            config_data[field_name] = value


def _create_validated_config(config_data: dict[str, Any]) -> ServerConfig:
    """Create and validate ServerConfig from configuration data.

    Raises:
        SystemExit: On configuration validation errors.
    """
    logger = logging.getLogger(__name__)

    try:
        config = ServerConfig(**config_data)
    except Exception:
        logger.exception("Configuration validation failed")
        sys.exit(1)
    else:
        logger.info("Effective configuration: %s", config.to_redacted_dict())
        return config


def load_configuration(args: argparse.Namespace) -> ServerConfig:
    """Load configuration from defaults, file, and CLI arguments with proper precedence.

    Precedence order (CLI > file > defaults).

    Args:
        args: Parsed command-line arguments.

    Returns:
        ServerConfig: Loaded and validated configuration.

    Raises:
        SystemExit: On configuration validation errors or file parsing errors.
    """
    logger = logging.getLogger(__name__)

    config_file = args.config_file or "./config.toml"

    if args.config_file and not Path(config_file).exists():
        logger.error("Configuration file not found: %s", config_file)
        sys.exit(1)

    config_data = _load_config_from_file(config_file)
    _apply_cli_overrides(config_data, args)
    config_data["config_file"] = config_file

    return _create_validated_config(config_data)


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for server configuration.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Todoo MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config-file",
        type=str,
        help="Path to configuration file (default: ./config.toml)",
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "http"],
        help="MCP transport; 'http' also serves the /tasks and /users routes",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Bind address for the HTTP transport",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port number for the HTTP transport (1-65535)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="Override task store base URL (e.g., https://store.todoo.app/v1/)",
    )
    parser.add_argument(
        "--token",
        type=str,
        help="Override bearer token for the task store",
    )
    parser.add_argument(
        "--rate-limit-rpm",
        type=int,
        help="Override rate limit: requests per minute (1-10000)",
    )
    parser.add_argument(
        "--rate-limit-burst",
        type=int,
        help="Override rate limit: burst capacity (1-100)",
    )
    parser.add_argument(
        "--actor-header",
        type=str,
        help="Header carrying the authenticated user id on HTTP routes (default: X-User-Id)",
    )

    return parser.parse_args(argv)


def main() -> None:
    """Main entry point for the Todoo MCP server."""
    logger = logging.getLogger(__name__)

    try:
        args = parse_cli_args()
        config = load_configuration(args)
        server = CoreServer(config)
        server.run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested via KeyboardInterrupt")
    except Exception:
        logger.exception("Unhandled exception in server")
        sys.exit(1)
    finally:
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
