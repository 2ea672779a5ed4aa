"""Handlers for the cluster tools and the shared lookup helpers."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from .cache import AzureCache
from .client import AzureClient, AzureError
from .config import Config
from .resourceid import AzureResourceID
from .tooltypes import ToolError, ToolHandler, ToolResult


def _default(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


def format_json(obj: Any) -> str:
    """Render an object as JSON indented by two spaces."""
    try:
        return json.dumps(obj, indent=2, ensure_ascii=False, default=_default)
    except (TypeError, ValueError) as exc:
        raise ToolError(f"failed to marshal to JSON: {exc}") from exc


def get_cluster_from_cache_or_fetch(
    resource_id: AzureResourceID, client: AzureClient, cache: AzureCache
) -> dict[str, Any]:
    """Return the cluster named by the ID, from the cache when present."""
    cache_key = f"akscluster:{resource_id.full_id}"
    cached = cache.get(cache_key)
    if isinstance(cached, dict):
        return cached

    try:
        cluster = client.get_aks_cluster(
            resource_id.subscription_id, resource_id.resource_group, resource_id.resource_name
        )
    except AzureError as exc:
        raise AzureError(
            f"failed to get AKS cluster: {exc}", status_code=exc.status_code
        ) from exc

    cache.set(cache_key, cluster)
    return cluster


def get_resource_by_id_from_cache_or_fetch(
    resource_id: str, client: AzureClient, cache: AzureCache
) -> Any:
    """Return any supported resource by its full ID, from the cache when present."""
    cache_key = f"resource:{resource_id}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        resource = client.get_resource_by_id(resource_id)
    except AzureError as exc:
        raise AzureError(
            f"failed to get resource: {exc}", status_code=exc.status_code
        ) from exc

    cache.set(cache_key, resource)
    return resource


def _string_argument(arguments: Optional[Mapping[str, Any]], name: str) -> str:
    value = (arguments or {}).get(name)
    return value if isinstance(value, str) else ""


def resolve_cluster_resource_id(
    cfg: Config, arguments: Optional[Mapping[str, Any]]
) -> AzureResourceID:
    """Pick the cluster a call refers to: the configured one, or the arguments'."""
    if cfg.single_cluster_mode:
        if cfg.parsed_resource_id is None:
            raise ToolError("invalid or missing AKS resource ID in single cluster mode")
        return cfg.parsed_resource_id

    subscription_id = _string_argument(arguments, "subscription_id")
    resource_group = _string_argument(arguments, "resource_group")
    cluster_name = _string_argument(arguments, "cluster_name")
    if not (subscription_id and resource_group and cluster_name):
        raise ToolError(
            "missing required parameters: subscription_id, resource_group, and cluster_name"
        )
    return AzureResourceID.for_cluster(subscription_id, resource_group, cluster_name)


def get_cluster_info_handler(
    client: AzureClient, cache: AzureCache, cfg: Config
) -> ToolHandler:
    """Return the handler of the get_cluster_info tool."""

    def handler(arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        resource_id = resolve_cluster_resource_id(cfg, arguments)
        try:
            cluster = get_cluster_from_cache_or_fetch(resource_id, client, cache)
        except AzureError as exc:
            raise ToolError(f"failed to get AKS cluster: {exc}") from exc
        try:
            text = format_json(cluster)
        except ToolError as exc:
            raise ToolError(f"failed to marshal cluster info: {exc}") from exc
        return ToolResult.from_text(text)

    return handler


def list_clusters_handler(
    client: AzureClient, cache: AzureCache, cfg: Config
) -> ToolHandler:
    """Return the handler of the list_aks_clusters tool."""

    def handler(arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        subscription_id = _string_argument(arguments, "subscription_id")
        resource_group = _string_argument(arguments, "resource_group")
        if not subscription_id:
            raise ToolError("missing required parameter: subscription_id")

        cache_key = f"clusters:sub:{subscription_id}"
        if resource_group:
            cache_key = f"clusters:sub:{subscription_id}:rg:{resource_group}"

        clusters = cache.get(cache_key)
        if clusters is None:
            try:
                if resource_group:
                    clusters = client.list_aks_clusters(subscription_id, resource_group)
                else:
                    clusters = client.list_all_aks_clusters(subscription_id)
            except AzureError as exc:
                raise ToolError(f"failed to list AKS clusters: {exc}") from exc
            cache.set(cache_key, clusters)

        try:
            text = format_json(clusters)
        except ToolError as exc:
            raise ToolError(f"failed to marshal clusters info: {exc}") from exc
        return ToolResult.from_text(text)

    return handler