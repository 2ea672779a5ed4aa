"""Configuration and command-line parsing."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from .resourceid import AzureResourceID, ResourceIDError, parse_azure_resource_id

VALID_ACCESS_LEVELS = ("read", "readwrite", "admin")
VALID_TRANSPORTS = ("stdio", "sse")


class ConfigError(ValueError):
    """Raised when the configuration is invalid."""


@dataclass
class Config:
    """Server configuration."""

    resource_id_string: str = ""
    transport: str = "stdio"
    address: str = "localhost:8080"
    single_cluster_mode: bool = False
    parsed_resource_id: Optional[AzureResourceID] = None
    access_level: str = "read"

    def validate(self) -> None:
        """Check the values, parsing the resource ID when one is set."""
        if self.access_level not in VALID_ACCESS_LEVELS:
            raise ConfigError(
                f"invalid access level: {self.access_level}, "
                "must be one of read, readwrite, admin"
            )
        if self.transport not in VALID_TRANSPORTS:
            raise ConfigError(
                f"invalid transport: {self.transport}, must be either stdio or sse"
            )
        if self.transport == "sse" and not self.address:
            raise ConfigError("address must be specified when using SSE transport")

        if self.resource_id_string:
            try:
                self.parsed_resource_id = parse_azure_resource_id(self.resource_id_string)
            except ResourceIDError as exc:
                raise ConfigError(f"invalid AKS resource ID: {exc}") from exc

        if self.single_cluster_mode and self.parsed_resource_id is None:
            raise ConfigError("invalid or missing AKS resource ID in single cluster mode")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aks-mcp")
    parser.add_argument(
        "-t", "--transport", default="stdio", help="Transport type (stdio or sse)"
    )
    parser.add_argument(
        "--aks-resource-id",
        default="",
        help="AKS Resource ID (optional), set this when using single cluster mode",
    )
    parser.add_argument(
        "--address",
        default="localhost:8080",
        help="Address to listen on when using SSE transport",
    )
    parser.add_argument(
        "--access-level",
        default="read",
        help="Access level for tools (read, readwrite, admin)",
    )
    return parser


def parse_flags(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse command-line arguments into a Config without validating it."""
    args = _build_parser().parse_args(argv)
    return Config(
        resource_id_string=args.aks_resource_id,
        transport=args.transport,
        address=args.address,
        single_cluster_mode=args.aks_resource_id != "",
        access_level=args.access_level,
    )


def parse_flags_and_validate(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse and validate; on error print it with usage and exit with status 2."""
    config = parse_flags(argv)
    try:
        config.validate()
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        _build_parser().print_usage(sys.stderr)
        raise SystemExit(2) from exc
    return config