"""Locate the network resources an AKS cluster is attached to."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from .cache import AzureCache
from .client import AzureClient, AzureError
from .resourceid import ResourceIDError, parse_resource_id

AKS_VNET_PREFIX = "aks-vnet-"
AKS_SUBNET_NAME = "aks-subnet"


class ResourceKind(str, Enum):
    """Kinds of network resource that can be looked up for a cluster."""

    VIRTUAL_NETWORK = "VirtualNetwork"
    SUBNET = "Subnet"
    ROUTE_TABLE = "RouteTable"
    NETWORK_SECURITY_GROUP = "NetworkSecurityGroup"

    def __str__(self) -> str:
        return self.value


class ResourceLookupError(AzureError):
    """Raised when a resource linked to a cluster cannot be found."""


def _cluster_properties(cluster: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if cluster is None or cluster.get("properties") is None:
        raise ResourceLookupError("invalid cluster or cluster properties")
    return cluster["properties"]


def _agent_pools(cluster: Optional[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    properties = (cluster or {}).get("properties") or {}
    return [pool for pool in properties.get("agentPoolProfiles") or [] if pool is not None]


def get_subscription_from_cluster(cluster: Mapping[str, Any]) -> str:
    """Return the subscription ID embedded in the cluster's ID, or ""."""
    cluster_id = cluster.get("id")
    if cluster_id is None:
        return ""
    parts = cluster_id.split("/")
    for part, following in zip(parts, parts[1:]):
        if part == "subscriptions":
            return following
    return ""


def get_vnet_id_from_aks(
    cluster: Optional[Mapping[str, Any]], client: AzureClient, cache: AzureCache
) -> str:
    """Return the ID of the virtual network used by the cluster.

    The subnet of the first agent pool that names one is tried first; failing
    that, the node resource group is searched.
    """
    properties = _cluster_properties(cluster)

    for pool in _agent_pools(cluster):
        subnet_id = pool.get("vnetSubnetID")
        if subnet_id is None:
            continue
        try:
            parsed = parse_resource_id(subnet_id)
        except ResourceIDError:
            parsed = None
        if parsed is not None and parsed.is_subnet():
            return subnet_id.split("/subnets/")[0]
        break

    if properties.get("nodeResourceGroup") is not None:
        return find_vnet_in_node_resource_group(cluster, client, cache)

    raise ResourceLookupError("no virtual network found for AKS cluster")


def find_vnet_in_node_resource_group(
    cluster: Mapping[str, Any], client: AzureClient, cache: AzureCache
) -> str:
    """Find the AKS-managed virtual network ("aks-vnet-*") in the node resource group."""
    subscription_id = get_subscription_from_cluster(cluster)
    node_resource_group = _cluster_properties(cluster)["nodeResourceGroup"]

    cache_key = f"noderesourcegroup-vnet:{subscription_id}:{node_resource_group}"
    cached = cache.get(cache_key)
    if isinstance(cached, str) and cached:
        return cached

    try:
        vnets = client.list_virtual_networks(subscription_id, node_resource_group)
    except AzureError as exc:
        raise ResourceLookupError(
            f"failed to list virtual networks in resource group {node_resource_group}: {exc}"
        ) from exc

    for vnet in vnets:
        name = vnet.get("name")
        if name is not None and name.startswith(AKS_VNET_PREFIX):
            vnet_id = vnet.get("id") or ""
            cache.set(cache_key, vnet_id)
            return vnet_id

    raise ResourceLookupError(
        f"no suitable virtual network found in node resource group {node_resource_group}"
    )


def get_subnet_id_from_aks(
    cluster: Optional[Mapping[str, Any]], client: AzureClient, cache: AzureCache
) -> str:
    """Return the ID of the subnet the cluster's nodes use.

    An agent pool's subnet wins; otherwise the cluster's virtual network is
    fetched and its "aks-subnet", or else its first subnet, is used.
    """
    for pool in _agent_pools(cluster):
        subnet_id = pool.get("vnetSubnetID")
        if subnet_id:
            return subnet_id

    try:
        vnet_id = get_vnet_id_from_aks(cluster, client, cache)
    except AzureError as exc:
        raise ResourceLookupError(f"could not find VNet for AKS cluster: {exc}") from exc
    if not vnet_id:
        raise ResourceLookupError("could not find VNet for AKS cluster")

    try:
        parsed = parse_resource_id(vnet_id)
    except ResourceIDError as exc:
        raise ResourceLookupError(f"could not parse VNet ID: {exc}") from exc

    try:
        vnet = client.get_virtual_network(
            parsed.subscription_id, parsed.resource_group, parsed.resource_name
        )
    except AzureError as exc:
        raise ResourceLookupError(f"could not get VNet details: {exc}") from exc

    subnets = [s for s in (vnet.get("properties") or {}).get("subnets") or [] if s is not None]
    if not subnets:
        raise ResourceLookupError("VNet has no subnets")

    for subnet in subnets:
        if subnet.get("name") == AKS_SUBNET_NAME and subnet.get("id") is not None:
            return subnet["id"]

    first_id = subnets[0].get("id")
    if first_id is not None:
        return first_id

    raise ResourceLookupError("could not find a valid subnet in the VNet")


def _attached_to_subnet(
    cluster: Optional[Mapping[str, Any]],
    client: AzureClient,
    cache: AzureCache,
    *,
    cache_prefix: str,
    property_name: str,
    description: str,
) -> str:
    _cluster_properties(cluster)

    try:
        subnet_id = get_subnet_id_from_aks(cluster, client, cache)
    except AzureError as exc:
        raise ResourceLookupError(f"no subnet found for AKS cluster: {exc}") from exc
    if not subnet_id:
        raise ResourceLookupError("no subnet found for AKS cluster")

    cache_key = f"{cache_prefix}:{subnet_id}"
    cached = cache.get(cache_key)
    if isinstance(cached, str):
        return cached

    try:
        parsed = parse_resource_id(subnet_id)
    except ResourceIDError as exc:
        raise ResourceLookupError(f"failed to parse subnet ID: {exc}") from exc
    if not parsed.is_subnet():
        raise ResourceLookupError(f"invalid subnet ID format: {subnet_id}")

    subnet_name = parsed.sub_resource_name
    try:
        subnet = client.get_subnet(
            parsed.subscription_id, parsed.resource_group, parsed.resource_name, subnet_name
        )
    except AzureError as exc:
        raise ResourceLookupError(f"failed to get subnet details: {exc}") from exc

    attached = (subnet.get("properties") or {}).get(property_name) or {}
    resource_id = attached.get("id")
    if resource_id is None:
        raise ResourceLookupError(f"no {description} attached to subnet {subnet_name}")

    cache.set(cache_key, resource_id)
    return resource_id


def get_nsg_id_from_aks(
    cluster: Optional[Mapping[str, Any]], client: AzureClient, cache: AzureCache
) -> str:
    """Return the ID of the network security group on the cluster's subnet."""
    return _attached_to_subnet(
        cluster,
        client,
        cache,
        cache_prefix="subnet-nsg",
        property_name="networkSecurityGroup",
        description="network security group",
    )


def get_route_table_id_from_aks(
    cluster: Optional[Mapping[str, Any]], client: AzureClient, cache: AzureCache
) -> str:
    """Return the ID of the route table on the cluster's subnet."""
    return _attached_to_subnet(
        cluster,
        client,
        cache,
        cache_prefix="subnet-routetable",
        property_name="routeTable",
        description="route table",
    )