# aksmcp

A Model Context Protocol (MCP) server that gives assistants read-only access to
Azure Kubernetes Service (AKS) clusters and the network resources around them:
the virtual network, subnet, route table and network security group each
cluster uses.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running the server

```
aks-mcp [--transport stdio|sse] [--address HOST:PORT]
        [--aks-resource-id RESOURCE_ID] [--access-level read|readwrite|admin]
```

| Option | Default | Meaning |
| --- | --- | --- |
| `-t`, `--transport` | `stdio` | `stdio` reads newline-delimited JSON-RPC messages from standard input and writes replies to standard output; `sse` serves HTTP with Server-Sent Events |
| `--address` | `localhost:8080` | `HOST:PORT` to listen on with the `sse` transport |
| `--aks-resource-id` | none | Full resource ID of one AKS cluster; turns on single-cluster mode |
| `--access-level` | `read` | Which tools are offered: `read`, `readwrite` or `admin` |

An invalid option value prints `Configuration error: ...` followed by the
usage line and exits with status 2.

With the `sse` transport a client opens an event stream with `GET /sse`. The
first event, `endpoint`, gives the URL to post messages to
(`/message?sessionId=...`); replies arrive on the stream as `message` events.

### Credentials

Requests to Azure Resource Manager are authenticated with a service principal
through the client-credentials flow, read from the environment:

- `AZURE_TENANT_ID`
- `AZURE_CLIENT_ID`
- `AZURE_CLIENT_SECRET`
- `AZURE_AUTHORITY_HOST` (optional, defaults to `https://login.microsoftonline.com`)

If any of the first three is missing, the command logs
`Failed to initialize Azure client: ...` and exits with status 1.

### Single-cluster mode

With `--aks-resource-id` set, for example

```
aks-mcp --aks-resource-id /subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/example-rg/providers/Microsoft.ContainerService/managedClusters/example-cluster
```

every tool works on that cluster and takes no arguments, and
`list_aks_clusters` is not offered.

### Multi-cluster mode

Without a resource ID the cluster tools take `subscription_id`,
`resource_group` and `cluster_name`, all required.

## Tools

| Tool | What it returns |
| --- | --- |
| `get_cluster_info` | The managed cluster resource as JSON |
| `list_aks_clusters` | Cluster summaries (`id`, `name`, `location`, `resourceGroup`, `kubernetesVersion`, `provisioningState`, `agentPoolCount`) for a subscription, or for one resource group when `resource_group` is given; multi-cluster mode only |
| `get_vnet_info` | The virtual network the cluster's nodes use |
| `get_subnet_info` | The subnet the cluster's nodes use |
| `get_route_table_info` | The route table attached to that subnet |
| `get_nsg_info` | The network security group attached to that subnet |

How the network resources are found:

- The virtual network is the parent of the first agent pool's subnet; when no
  agent pool names a subnet, the first virtual network whose name starts with
  `aks-vnet-` in the cluster's node resource group is used.
- The subnet is the first agent pool subnet; otherwise the virtual network's
  subnet named `aks-subnet`, or else its first subnet.
- The route table and network security group are those attached to that
  subnet.

Where a network resource cannot be found, the tool answers with
`{"message": "..."}` instead of failing. Other failures, such as a missing
argument or an error from Azure, come back as JSON-RPC errors.

Responses from Azure are kept in an in-memory cache for five minutes.

All tools require only the `read` access level, so every access level offers
the same tools.

## Using it as a library

```python
from aksmcp.resourceid import parse_resource_id

rid = parse_resource_id(
    "/subscriptions/sub/resourceGroups/rg/providers/"
    "Microsoft.Network/virtualNetworks/vnet/subnets/default"
)
assert rid.is_subnet()
print(rid.resource_name, rid.sub_resource_name)  # vnet default
```

The pieces the `aks-mcp` command puts together in `aksmcp.cli.main` can be
used on their own:

- `aksmcp.cache.AzureCache` – thread-safe in-memory cache with per-entry expiry
- `aksmcp.client.AzureClient` – Azure Resource Manager client returning
  resources as dicts; `aksmcp.client.EnvironmentCredential` supplies its tokens
- `aksmcp.resourcehelpers` – functions that find a cluster's virtual network,
  subnet, route table and network security group IDs
- `aksmcp.registry.ToolRegistry` – the tools and their handlers
- `aksmcp.server.AKSMCPServer` – serves the registry's tools over stdio or SSE

## What it does not do

- It offers no tools that change anything in Azure; every tool only reads.
- It authenticates only with a service principal secret from the environment;
  it does not use managed identities or a signed-in command-line session.