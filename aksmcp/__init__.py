"""MCP server exposing read-only Azure Kubernetes Service cluster and network information."""

__version__ = "0.1.0"