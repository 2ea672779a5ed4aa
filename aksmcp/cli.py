"""Command-line entry point of the AKS MCP server."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from .cache import AzureCache
from .client import AzureClient, AzureError, AzureResourceProvider
from .config import parse_flags_and_validate
from .registry import ToolRegistry
from .server import AKSMCPServer

logger = logging.getLogger("aksmcp")


def _fatal(message: str, *args: object) -> "SystemExit":
    logger.critical(message, *args)
    return SystemExit(1)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse the arguments, build the server and serve on the chosen transport."""
    logging.basicConfig(
        level=logging.INFO, stream=sys.stderr, format="%(asctime)s %(message)s"
    )
    cfg = parse_flags_and_validate(argv)

    if not cfg.resource_id_string:
        logger.info("No AKS Resource ID provided, tools will require parameters")

    try:
        client = AzureClient()
    except AzureError as exc:
        raise _fatal("Failed to initialize Azure client: %s", exc) from exc

    provider = AzureResourceProvider(cfg.parsed_resource_id, client, AzureCache())
    registry = ToolRegistry(provider, cfg)
    registry.register_all_tools()
    server = AKSMCPServer(registry)

    if cfg.transport == "stdio":
        logger.info("Starting AKS MCP server with stdio transport")
        try:
            server.serve_stdio()
        except OSError as exc:
            raise _fatal("Server error: %s", exc) from exc
    elif cfg.transport == "sse":
        logger.info("Starting AKS MCP server with SSE transport on %s", cfg.address)
        sse_server = server.serve_sse(cfg.address)
        try:
            sse_server.start(cfg.address)
        except KeyboardInterrupt:
            sse_server.shutdown()
        except (OSError, ValueError) as exc:
            raise _fatal("Server error: %s", exc) from exc
    else:
        raise _fatal(
            "Invalid transport type: %s. Must be 'stdio' or 'sse'", cfg.transport
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())