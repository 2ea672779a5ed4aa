import json

import pytest

from aksmcp.cache import AzureCache
from aksmcp.client import AzureError
from aksmcp.config import Config
from aksmcp.networkhandlers import (
    get_nsg_info_handler,
    get_route_table_info_handler,
    get_subnet_info_handler,
    get_vnet_info_handler,
)
from aksmcp.resourceid import AzureResourceID, parse_resource_id
from aksmcp.tooltypes import ToolError

SUB = "sub1"
RG = "rg1"
CLUSTER = "cluster1"
CLUSTER_ID = (
    f"/subscriptions/{SUB}/resourceGroups/{RG}"
    f"/providers/Microsoft.ContainerService/managedClusters/{CLUSTER}"
)
VNET_ID = f"/subscriptions/{SUB}/resourceGroups/{RG}/providers/Microsoft.Network/virtualNetworks/vnet1"
SUBNET_ID = f"{VNET_ID}/subnets/subnet1"
RT_ID = f"/subscriptions/{SUB}/resourceGroups/{RG}/providers/Microsoft.Network/routeTables/rt1"
NSG_ID = (
    f"/subscriptions/{SUB}/resourceGroups/{RG}"
    "/providers/Microsoft.Network/networkSecurityGroups/nsg1"
)
ARGS = {"subscription_id": SUB, "resource_group": RG, "cluster_name": CLUSTER}


class FakeClient:
    def __init__(self, resources):
        self.resources = resources
        self.calls = []

    def _lookup(self, resource_id):
        self.calls.append(resource_id)
        if resource_id not in self.resources:
            raise AzureError(f"not found: {resource_id}", status_code=404)
        return self.resources[resource_id]

    def get_aks_cluster(self, subscription_id, resource_group, cluster_name):
        return self._lookup(
            AzureResourceID.for_cluster(subscription_id, resource_group, cluster_name).full_id
        )

    def get_virtual_network(self, subscription_id, resource_group, vnet_name):
        return self._lookup(
            f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
            f"/providers/Microsoft.Network/virtualNetworks/{vnet_name}"
        )

    def get_subnet(self, subscription_id, resource_group, vnet_name, subnet_name):
        return self._lookup(
            f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
            f"/providers/Microsoft.Network/virtualNetworks/{vnet_name}/subnets/{subnet_name}"
        )

    def list_virtual_networks(self, subscription_id, resource_group):
        return []

    def get_resource_by_id(self, resource_id):
        return self._lookup(resource_id)


def _cluster(**properties):
    return {"id": CLUSTER_ID, "name": CLUSTER, "properties": properties}


def _pooled_cluster():
    return _cluster(agentPoolProfiles=[{"name": "pool", "vnetSubnetID": SUBNET_ID}])


def _multi():
    return Config()


def test_vnet_info_returns_vnet_json():
    vnet = {"id": VNET_ID, "name": "vnet1"}
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), VNET_ID: vnet})
    result = get_vnet_info_handler(client, AzureCache(), _multi())(ARGS)
    assert json.loads(result.text) == vnet


def test_subnet_info_returns_subnet_json():
    subnet = {"id": SUBNET_ID, "name": "subnet1"}
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), SUBNET_ID: subnet})
    result = get_subnet_info_handler(client, AzureCache(), _multi())(ARGS)
    assert json.loads(result.text) == subnet


def test_route_table_info_follows_subnet():
    subnet = {"id": SUBNET_ID, "properties": {"routeTable": {"id": RT_ID}}}
    table = {"id": RT_ID, "name": "rt1"}
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), SUBNET_ID: subnet, RT_ID: table})
    result = get_route_table_info_handler(client, AzureCache(), _multi())(ARGS)
    assert json.loads(result.text) == table


def test_nsg_info_follows_subnet():
    subnet = {"id": SUBNET_ID, "properties": {"networkSecurityGroup": {"id": NSG_ID}}}
    nsg = {"id": NSG_ID, "name": "nsg1"}
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), SUBNET_ID: subnet, NSG_ID: nsg})
    result = get_nsg_info_handler(client, AzureCache(), _multi())(ARGS)
    assert json.loads(result.text) == nsg


def test_nsg_missing_returns_message():
    subnet = {"id": SUBNET_ID, "properties": {}}
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), SUBNET_ID: subnet})
    result = get_nsg_info_handler(client, AzureCache(), _multi())(ARGS)
    assert json.loads(result.text) == {
        "message": "No network security group found for this AKS cluster"
    }


def test_vnet_missing_returns_message():
    client = FakeClient({CLUSTER_ID: _cluster()})
    result = get_vnet_info_handler(client, AzureCache(), _multi())(ARGS)
    assert result.text == '{"message": "No virtual network found for this AKS cluster"}'


def test_route_table_missing_returns_message():
    client = FakeClient({CLUSTER_ID: _cluster()})
    result = get_route_table_info_handler(client, AzureCache(), _multi())(ARGS)
    assert json.loads(result.text) == {"message": "No route table found for this AKS cluster"}


def test_missing_arguments_raise():
    client = FakeClient({})
    with pytest.raises(ToolError, match="missing required parameters"):
        get_subnet_info_handler(client, AzureCache(), _multi())({"subscription_id": SUB})


def test_cluster_fetch_failure_raises():
    client = FakeClient({})
    with pytest.raises(ToolError, match="failed to get AKS cluster"):
        get_vnet_info_handler(client, AzureCache(), _multi())(ARGS)


def test_resource_fetch_failure_raises():
    client = FakeClient({CLUSTER_ID: _pooled_cluster()})
    with pytest.raises(ToolError, match="failed to get VNet details"):
        get_vnet_info_handler(client, AzureCache(), _multi())(ARGS)


def test_wrong_resource_type_raises():
    subnet = {"id": SUBNET_ID, "properties": {"routeTable": {"id": NSG_ID}}}
    client = FakeClient(
        {CLUSTER_ID: _pooled_cluster(), SUBNET_ID: subnet, NSG_ID: {"id": NSG_ID}}
    )
    with pytest.raises(ToolError, match="resource is not a RouteTable"):
        get_route_table_info_handler(client, AzureCache(), _multi())(ARGS)


def test_single_cluster_mode_ignores_arguments():
    vnet = {"id": VNET_ID}
    cfg = Config(
        resource_id_string=CLUSTER_ID,
        single_cluster_mode=True,
        parsed_resource_id=parse_resource_id(CLUSTER_ID),
    )
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), VNET_ID: vnet})
    result = get_vnet_info_handler(client, AzureCache(), cfg)(None)
    assert json.loads(result.text) == vnet


def test_second_call_is_served_from_cache():
    vnet = {"id": VNET_ID}
    client = FakeClient({CLUSTER_ID: _pooled_cluster(), VNET_ID: vnet})
    handler = get_vnet_info_handler(client, AzureCache(), _multi())
    first = handler(ARGS)
    calls_after_first = len(client.calls)
    second = handler(ARGS)
    assert second.text == first.text
    assert len(client.calls) == calls_after_first