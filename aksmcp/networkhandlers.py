"""Handlers for the tools that describe a cluster's network resources."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from .cache import AzureCache
from .client import AzureClient, AzureError
from .clusterhandlers import (
    format_json,
    get_cluster_from_cache_or_fetch,
    get_resource_by_id_from_cache_or_fetch,
    resolve_cluster_resource_id,
)
from .config import Config
from .resourcehelpers import (
    get_nsg_id_from_aks,
    get_route_table_id_from_aks,
    get_subnet_id_from_aks,
    get_vnet_id_from_aks,
)
from .resourceid import ResourceIDError, ResourceType, parse_resource_id
from .tooltypes import ToolError, ToolHandler, ToolResult

logger = logging.getLogger(__name__)

_Lookup = Callable[[Mapping[str, Any], AzureClient, AzureCache], str]


def _not_found(message: str) -> ToolResult:
    return ToolResult.from_text(f'{{"message": "{message}"}}')


def _network_handler(
    client: AzureClient,
    cache: AzureCache,
    cfg: Config,
    *,
    lookup: _Lookup,
    expected_type: ResourceType,
    label: str,
    type_name: str,
    missing_message: str,
) -> ToolHandler:
    def handler(arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        cluster_id = resolve_cluster_resource_id(cfg, arguments)
        try:
            cluster = get_cluster_from_cache_or_fetch(cluster_id, client, cache)
        except AzureError as exc:
            raise ToolError(f"failed to get AKS cluster: {exc}") from exc

        try:
            resource_id = lookup(cluster, client, cache)
            lookup_error: Optional[Exception] = None
        except AzureError as exc:
            resource_id, lookup_error = "", exc
        if not resource_id:
            logger.warning("%s: %s", missing_message, lookup_error)
            return _not_found(missing_message)

        try:
            parsed = parse_resource_id(resource_id)
        except ResourceIDError as exc:
            raise ToolError(f"failed to parse {label} ID: {exc}") from exc

        try:
            resource = get_resource_by_id_from_cache_or_fetch(resource_id, client, cache)
        except AzureError as exc:
            raise ToolError(f"failed to get {label} details: {exc}") from exc

        if parsed.resource_type != expected_type or not isinstance(resource, dict):
            raise ToolError(f"resource is not a {type_name}")

        try:
            text = format_json(resource)
        except ToolError as exc:
            raise ToolError(f"failed to marshal {label} info: {exc}") from exc
        return ToolResult.from_text(text)

    return handler


def get_vnet_info_handler(client: AzureClient, cache: AzureCache, cfg: Config) -> ToolHandler:
    """Return the handler of the get_vnet_info tool."""
    return _network_handler(
        client,
        cache,
        cfg,
        lookup=get_vnet_id_from_aks,
        expected_type=ResourceType.VIRTUAL_NETWORK,
        label="VNet",
        type_name="VirtualNetwork",
        missing_message="No virtual network found for this AKS cluster",
    )


def get_subnet_info_handler(client: AzureClient, cache: AzureCache, cfg: Config) -> ToolHandler:
    """Return the handler of the get_subnet_info tool."""
    return _network_handler(
        client,
        cache,
        cfg,
        lookup=get_subnet_id_from_aks,
        expected_type=ResourceType.SUBNET,
        label="subnet",
        type_name="Subnet",
        missing_message="No subnet found for this AKS cluster",
    )


def get_route_table_info_handler(
    client: AzureClient, cache: AzureCache, cfg: Config
) -> ToolHandler:
    """Return the handler of the get_route_table_info tool."""
    return _network_handler(
        client,
        cache,
        cfg,
        lookup=get_route_table_id_from_aks,
        expected_type=ResourceType.ROUTE_TABLE,
        label="route table",
        type_name="RouteTable",
        missing_message="No route table found for this AKS cluster",
    )


def get_nsg_info_handler(client: AzureClient, cache: AzureCache, cfg: Config) -> ToolHandler:
    """Return the handler of the get_nsg_info tool."""
    return _network_handler(
        client,
        cache,
        cfg,
        lookup=get_nsg_id_from_aks,
        expected_type=ResourceType.SECURITY_GROUP,
        label="NSG",
        type_name="NetworkSecurityGroup",
        missing_message="No network security group found for this AKS cluster",
    )