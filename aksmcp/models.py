"""Data models for Azure resources, serialisable to JSON-ready dicts."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


def _json(name: str, omitempty: bool = False) -> dict[str, Any]:
    return {"json": name, "omitempty": omitempty}


def _encode(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _to_dict(value)
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


def _to_dict(model: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(model):
        value = getattr(model, f.name)
        if f.metadata.get("omitempty") and not value:
            continue
        result[f.metadata["json"]] = _encode(value)
    return result


@dataclass
class AKSClusterSummary:
    """Essential information about an AKS cluster, used for listings."""

    id: str = field(default="", metadata=_json("id"))
    name: str = field(default="", metadata=_json("name"))
    location: str = field(default="", metadata=_json("location"))
    resource_group: str = field(default="", metadata=_json("resourceGroup"))
    kubernetes_version: str = field(default="", metadata=_json("kubernetesVersion", True))
    provisioning_state: str = field(default="", metadata=_json("provisioningState", True))
    agent_pool_count: int = field(default=0, metadata=_json("agentPoolCount"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class ClusterInfo:
    """Basic information about an AKS cluster."""

    name: str = field(default="", metadata=_json("name"))
    resource_group: str = field(default="", metadata=_json("resourceGroup"))
    location: str = field(default="", metadata=_json("location"))
    kubernetes_version: str = field(default="", metadata=_json("kubernetesVersion"))
    node_resource_group: str = field(default="", metadata=_json("nodeResourceGroup"))
    network_plugin: str = field(default="", metadata=_json("networkPlugin"))
    network_policy: str = field(default="", metadata=_json("networkPolicy"))
    dns_prefix: str = field(default="", metadata=_json("dnsPrefix"))
    fqdn: str = field(default="", metadata=_json("fqdn"))
    agent_pool_profiles: list[str] = field(
        default_factory=list, metadata=_json("agentPoolProfiles")
    )
    subscription_id: str = field(default="", metadata=_json("subscriptionId"))
    resource_id: str = field(default="", metadata=_json("resourceId"))
    network_profile: str = field(default="", metadata=_json("networkProfile"))
    api_server_access_profile: str = field(
        default="", metadata=_json("apiServerAccessProfile")
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class SubnetInfo:
    """Information about a subnet."""

    name: str = field(default="", metadata=_json("name"))
    id: str = field(default="", metadata=_json("id"))
    address_prefix: str = field(default="", metadata=_json("addressPrefix"))
    network_security_group: str = field(
        default="", metadata=_json("networkSecurityGroup", True)
    )
    route_table: str = field(default="", metadata=_json("routeTable", True))
    provisioning_state: str = field(default="", metadata=_json("provisioningState"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class VNetInfo:
    """Information about a virtual network."""

    name: str = field(default="", metadata=_json("name"))
    resource_group: str = field(default="", metadata=_json("resourceGroup"))
    location: str = field(default="", metadata=_json("location"))
    id: str = field(default="", metadata=_json("id"))
    address_space: list[str] = field(default_factory=list, metadata=_json("addressSpace"))
    subnets: list[SubnetInfo] = field(default_factory=list, metadata=_json("subnets"))
    tags: dict[str, str] = field(default_factory=dict, metadata=_json("tags"))
    resource_guid: str = field(default="", metadata=_json("resourceGuid"))
    provisioning_state: str = field(default="", metadata=_json("provisioningState"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class RouteInfo:
    """Information about a route."""

    name: str = field(default="", metadata=_json("name"))
    id: str = field(default="", metadata=_json("id"))
    address_prefix: str = field(default="", metadata=_json("addressPrefix"))
    next_hop_type: str = field(default="", metadata=_json("nextHopType"))
    next_hop_ip_address: str = field(default="", metadata=_json("nextHopIpAddress", True))
    provisioning_state: str = field(default="", metadata=_json("provisioningState"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class RouteTableInfo:
    """Information about a route table."""

    name: str = field(default="", metadata=_json("name"))
    resource_group: str = field(default="", metadata=_json("resourceGroup"))
    location: str = field(default="", metadata=_json("location"))
    id: str = field(default="", metadata=_json("id"))
    routes: list[RouteInfo] = field(default_factory=list, metadata=_json("routes"))
    tags: dict[str, str] = field(default_factory=dict, metadata=_json("tags"))
    provisioning_state: str = field(default="", metadata=_json("provisioningState"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class NSGRule:
    """A network security group rule."""

    name: str = field(default="", metadata=_json("name"))
    id: str = field(default="", metadata=_json("id"))
    protocol: str = field(default="", metadata=_json("protocol"))
    source_address_prefix: str = field(default="", metadata=_json("sourceAddressPrefix"))
    source_port_range: str = field(default="", metadata=_json("sourcePortRange"))
    destination_address_prefix: str = field(
        default="", metadata=_json("destinationAddressPrefix")
    )
    destination_port_range: str = field(default="", metadata=_json("destinationPortRange"))
    access: str = field(default="", metadata=_json("access"))
    priority: int = field(default=0, metadata=_json("priority"))
    direction: str = field(default="", metadata=_json("direction"))
    provisioning_state: str = field(default="", metadata=_json("provisioningState"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)


@dataclass
class NSGInfo:
    """Information about a network security group."""

    name: str = field(default="", metadata=_json("name"))
    resource_group: str = field(default="", metadata=_json("resourceGroup"))
    location: str = field(default="", metadata=_json("location"))
    id: str = field(default="", metadata=_json("id"))
    security_rules: list[NSGRule] = field(default_factory=list, metadata=_json("securityRules"))
    default_security_rules: list[NSGRule] = field(
        default_factory=list, metadata=_json("defaultSecurityRules")
    )
    tags: dict[str, str] = field(default_factory=dict, metadata=_json("tags"))
    provisioning_state: str = field(default="", metadata=_json("provisioningState"))

    def to_dict(self) -> dict[str, Any]:
        """Return the model as a dict keyed by its JSON names."""
        return _to_dict(self)