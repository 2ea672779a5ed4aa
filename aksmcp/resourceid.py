"""Parsing of Azure resource IDs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ResourceType(str, Enum):
    """Known Azure resource types."""

    AKS_CLUSTER = "Microsoft.ContainerService/managedClusters"
    VIRTUAL_NETWORK = "Microsoft.Network/virtualNetworks"
    ROUTE_TABLE = "Microsoft.Network/routeTables"
    SECURITY_GROUP = "Microsoft.Network/networkSecurityGroups"
    SUBNET = "Microsoft.Network/virtualNetworks/subnets"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class ResourceIDError(ValueError):
    """Raised when a resource ID cannot be parsed."""


@dataclass(frozen=True)
class AzureResourceID:
    """The components of an Azure resource ID.

    ``resource_type`` is a ``ResourceType`` for known types and a plain
    ``provider/type`` string otherwise.
    """

    subscription_id: str
    resource_group: str
    resource_type: Union[ResourceType, str]
    resource_name: str
    sub_resource_name: str = ""
    full_id: str = ""

    @classmethod
    def for_cluster(
        cls, subscription_id: str, resource_group: str, cluster_name: str
    ) -> "AzureResourceID":
        """Build the ID of an AKS cluster from its parts."""
        full_id = (
            f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
            f"/providers/Microsoft.ContainerService/managedClusters/{cluster_name}"
        )
        return cls(
            subscription_id=subscription_id,
            resource_group=resource_group,
            resource_type=ResourceType.AKS_CLUSTER,
            resource_name=cluster_name,
            full_id=full_id,
        )

    def is_aks_cluster(self) -> bool:
        return self.resource_type == ResourceType.AKS_CLUSTER

    def is_virtual_network(self) -> bool:
        return self.resource_type == ResourceType.VIRTUAL_NETWORK

    def is_route_table(self) -> bool:
        return self.resource_type == ResourceType.ROUTE_TABLE

    def is_security_group(self) -> bool:
        return self.resource_type == ResourceType.SECURITY_GROUP

    def is_subnet(self) -> bool:
        return self.resource_type == ResourceType.SUBNET


_SIMPLE_TYPES = {
    ("Microsoft.ContainerService", "managedClusters"): ResourceType.AKS_CLUSTER,
    ("Microsoft.Network", "routeTables"): ResourceType.ROUTE_TABLE,
    ("Microsoft.Network", "networkSecurityGroups"): ResourceType.SECURITY_GROUP,
}


def parse_resource_id(resource_id: str) -> AzureResourceID:
    """Split an Azure resource ID into its components.

    Raises ResourceIDError when the ID is empty or malformed.
    """
    if not resource_id:
        raise ResourceIDError("resource ID cannot be empty")

    resource_id = resource_id.strip()
    segments = resource_id.split("/")

    if (
        len(segments) < 9
        or segments[1] != "subscriptions"
        or segments[3] != "resourceGroups"
        or segments[5] != "providers"
    ):
        raise ResourceIDError(f"invalid resource ID format: {resource_id}")

    provider, type_name, name = segments[6], segments[7], segments[8]
    sub_resource_name = ""

    if (provider, type_name) in _SIMPLE_TYPES:
        resource_type: Union[ResourceType, str] = _SIMPLE_TYPES[(provider, type_name)]
    elif provider == "Microsoft.Network" and type_name == "virtualNetworks":
        if len(segments) >= 11 and segments[9] == "subnets":
            resource_type = ResourceType.SUBNET
            sub_resource_name = segments[10]
        else:
            resource_type = ResourceType.VIRTUAL_NETWORK
    else:
        resource_type = f"{provider}/{type_name}"
        if len(segments) >= 11:
            sub_resource_name = segments[10]

    return AzureResourceID(
        subscription_id=segments[2],
        resource_group=segments[4],
        resource_type=resource_type,
        resource_name=name,
        sub_resource_name=sub_resource_name,
        full_id=resource_id,
    )


def parse_azure_resource_id(resource_id: str) -> AzureResourceID:
    """Alias of parse_resource_id."""
    return parse_resource_id(resource_id)