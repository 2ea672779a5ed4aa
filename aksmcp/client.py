"""Access to Azure Resource Manager for AKS clusters and their network resources."""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Protocol
from urllib.parse import quote

import requests

from .cache import AzureCache
from .models import AKSClusterSummary
from .resourceid import AzureResourceID, ResourceIDError, ResourceType, parse_resource_id

MANAGEMENT_ENDPOINT = "https://management.azure.com"
AUTHORITY_HOST = "https://login.microsoftonline.com"
MANAGEMENT_SCOPE = "https://management.azure.com/.default"

CONTAINER_SERVICE_API_VERSION = "2023-10-01"
NETWORK_API_VERSION = "2023-05-01"

_AKS_PROVIDER = "Microsoft.ContainerService/managedClusters"
_VNET_PROVIDER = "Microsoft.Network/virtualNetworks"
_ROUTE_TABLE_PROVIDER = "Microsoft.Network/routeTables"
_NSG_PROVIDER = "Microsoft.Network/networkSecurityGroups"

# Tokens are refreshed this many seconds before they expire.
_TOKEN_REFRESH_MARGIN = 300.0


class AzureError(Exception):
    """Raised when a call to Azure fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TokenCredential(Protocol):
    def get_token(self) -> str: ...


class EnvironmentCredential:
    """Client-credentials authentication from AZURE_* environment variables.

    Reads AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET and, when set,
    AZURE_AUTHORITY_HOST. Explicit arguments take precedence.
    """

    def __init__(
        self,
        tenant_id: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        *,
        authority: Optional[str] = None,
        scope: str = MANAGEMENT_SCOPE,
        session: Optional[requests.Session] = None,
        environ: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
    ) -> None:
        env = os.environ if environ is None else environ
        self.tenant_id = tenant_id or env.get("AZURE_TENANT_ID", "")
        self.client_id = client_id or env.get("AZURE_CLIENT_ID", "")
        self._client_secret = client_secret or env.get("AZURE_CLIENT_SECRET", "")
        missing = [
            name
            for name, value in (
                ("AZURE_TENANT_ID", self.tenant_id),
                ("AZURE_CLIENT_ID", self.client_id),
                ("AZURE_CLIENT_SECRET", self._client_secret),
            )
            if not value
        ]
        if missing:
            raise AzureError(
                "missing environment variables: " + ", ".join(missing)
            )
        self.authority = (
            authority or env.get("AZURE_AUTHORITY_HOST") or AUTHORITY_HOST
        ).rstrip("/")
        self.scope = scope
        self.timeout = timeout
        self._session = session or requests.Session()
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at = 0.0

    @property
    def token_url(self) -> str:
        return f"{self.authority}/{quote(self.tenant_id, safe='')}/oauth2/v2.0/token"

    def get_token(self) -> str:
        """Return a bearer token, requesting a new one when the cached one is stale."""
        with self._lock:
            if self._token and time.time() < self._expires_at - _TOKEN_REFRESH_MARGIN:
                return self._token
            data = {
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self._client_secret,
                "scope": self.scope,
            }
            try:
                response = self._session.post(self.token_url, data=data, timeout=self.timeout)
            except requests.RequestException as exc:
                raise AzureError(f"failed to acquire token: {exc}") from exc
            if not response.ok:
                raise AzureError(
                    f"failed to acquire token: {_describe_failure(response)}",
                    status_code=response.status_code,
                )
            try:
                payload = response.json()
                token = payload["access_token"]
                expires_in = float(payload.get("expires_in", 3600))
            except (ValueError, KeyError, TypeError) as exc:
                raise AzureError(f"failed to acquire token: invalid response: {exc}") from exc
            self._token = token
            self._expires_at = time.time() + expires_in
            return token


def _describe_failure(response: requests.Response) -> str:
    detail = ""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            code = error.get("code", "")
            message = error.get("message", "")
            detail = f"{code}: {message}" if code else message
        elif isinstance(error, str):
            detail = body.get("error_description") or error
    if not detail:
        detail = response.text.strip() or response.reason or ""
    return f"HTTP {response.status_code}: {detail}".rstrip(": ")


def _require(**params: str) -> None:
    for name, value in params.items():
        if not value:
            raise AzureError(f"parameter {name} cannot be empty")


def _summarise(cluster: Mapping[str, Any], default_resource_group: str) -> AKSClusterSummary:
    resource_group = default_resource_group
    cluster_id = cluster.get("id")
    if cluster_id:
        try:
            resource_group = parse_resource_id(cluster_id).resource_group
        except ResourceIDError:
            pass

    properties = cluster.get("properties")
    summary = AKSClusterSummary(
        id=cluster_id or "",
        name=cluster.get("name") or "",
        location=cluster.get("location") or "",
        resource_group=resource_group,
        agent_pool_count=len((properties or {}).get("agentPoolProfiles") or []),
    )
    if properties is not None:
        summary.kubernetes_version = properties.get("kubernetesVersion") or ""
        summary.provisioning_state = properties.get("provisioningState") or ""
    return summary


class AzureClient:
    """Azure Resource Manager client able to work across subscriptions."""

    def __init__(
        self,
        credential: Optional[TokenCredential] = None,
        *,
        base_url: str = MANAGEMENT_ENDPOINT,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        if credential is None:
            try:
                credential = EnvironmentCredential(session=session)
            except AzureError as exc:
                raise AzureError(f"failed to create credential: {exc}") from exc
        self.credential = credential
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    # -- transport -------------------------------------------------------

    def _fetch(self, url: str, params: Optional[Mapping[str, str]] = None) -> Any:
        token = self.credential.get_token()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        try:
            response = self._session.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise AzureError(str(exc)) from exc
        if not response.ok:
            raise AzureError(_describe_failure(response), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise AzureError(f"invalid JSON in response: {exc}") from exc

    def _url(self, subscription_id: str, *parts: str) -> str:
        path = "/".join(quote(part, safe="") for part in parts)
        return f"{self.base_url}/subscriptions/{quote(subscription_id, safe='')}/{path}"

    def _resource_url(
        self, subscription_id: str, resource_group: str, provider: str, *names: str
    ) -> str:
        namespace, type_name = provider.split("/", 1)
        return self._url(
            subscription_id,
            "resourceGroups",
            resource_group,
            "providers",
            namespace,
            *type_name.split("/"),
            *names,
        )

    def _get_resource(
        self, description: str, api_version: str, build_url, **required: str
    ) -> dict[str, Any]:
        try:
            _require(**required)
            return self._fetch(build_url(), {"api-version": api_version})
        except AzureError as exc:
            raise AzureError(
                f"failed to get {description}: {exc}", status_code=exc.status_code
            ) from exc

    def _pages(
        self, url: str, api_version: str, description: str
    ) -> Iterator[dict[str, Any]]:
        params: Optional[dict[str, str]] = {"api-version": api_version}
        next_url: Optional[str] = url
        while next_url:
            try:
                page = self._fetch(next_url, params)
            except AzureError as exc:
                raise AzureError(
                    f"failed to get next page of {description}: {exc}",
                    status_code=exc.status_code,
                ) from exc
            for item in page.get("value") or []:
                if item is not None:
                    yield item
            next_url = page.get("nextLink")
            params = None

    # -- single resources ------------------------------------------------

    def get_aks_cluster(
        self, subscription_id: str, resource_group: str, cluster_name: str
    ) -> dict[str, Any]:
        """Return the managed cluster as returned by Azure."""
        return self._get_resource(
            "AKS cluster",
            CONTAINER_SERVICE_API_VERSION,
            lambda: self._resource_url(subscription_id, resource_group, _AKS_PROVIDER, cluster_name),
            subscriptionID=subscription_id,
            resourceGroupName=resource_group,
            resourceName=cluster_name,
        )

    def get_virtual_network(
        self, subscription_id: str, resource_group: str, vnet_name: str
    ) -> dict[str, Any]:
        """Return the virtual network as returned by Azure."""
        return self._get_resource(
            "virtual network",
            NETWORK_API_VERSION,
            lambda: self._resource_url(subscription_id, resource_group, _VNET_PROVIDER, vnet_name),
            subscriptionID=subscription_id,
            resourceGroupName=resource_group,
            virtualNetworkName=vnet_name,
        )

    def get_route_table(
        self, subscription_id: str, resource_group: str, route_table_name: str
    ) -> dict[str, Any]:
        """Return the route table as returned by Azure."""
        return self._get_resource(
            "route table",
            NETWORK_API_VERSION,
            lambda: self._resource_url(
                subscription_id, resource_group, _ROUTE_TABLE_PROVIDER, route_table_name
            ),
            subscriptionID=subscription_id,
            resourceGroupName=resource_group,
            routeTableName=route_table_name,
        )

    def get_network_security_group(
        self, subscription_id: str, resource_group: str, nsg_name: str
    ) -> dict[str, Any]:
        """Return the network security group as returned by Azure."""
        return self._get_resource(
            "network security group",
            NETWORK_API_VERSION,
            lambda: self._resource_url(subscription_id, resource_group, _NSG_PROVIDER, nsg_name),
            subscriptionID=subscription_id,
            resourceGroupName=resource_group,
            networkSecurityGroupName=nsg_name,
        )

    def get_subnet(
        self, subscription_id: str, resource_group: str, vnet_name: str, subnet_name: str
    ) -> dict[str, Any]:
        """Return the subnet of a virtual network as returned by Azure."""
        return self._get_resource(
            "subnet",
            NETWORK_API_VERSION,
            lambda: self._resource_url(
                subscription_id, resource_group, _VNET_PROVIDER, vnet_name, "subnets", subnet_name
            ),
            subscriptionID=subscription_id,
            resourceGroupName=resource_group,
            virtualNetworkName=vnet_name,
            subnetName=subnet_name,
        )

    def get_resource_by_id(self, resource_id: str) -> dict[str, Any]:
        """Fetch a supported resource given its full Azure resource ID."""
        try:
            parsed = parse_resource_id(resource_id)
        except ResourceIDError as exc:
            raise AzureError(f"failed to parse resource ID: {exc}") from exc

        sub, rg, name = parsed.subscription_id, parsed.resource_group, parsed.resource_name
        if parsed.resource_type == ResourceType.AKS_CLUSTER:
            return self.get_aks_cluster(sub, rg, name)
        if parsed.resource_type == ResourceType.VIRTUAL_NETWORK:
            return self.get_virtual_network(sub, rg, name)
        if parsed.resource_type == ResourceType.ROUTE_TABLE:
            return self.get_route_table(sub, rg, name)
        if parsed.resource_type == ResourceType.SECURITY_GROUP:
            return self.get_network_security_group(sub, rg, name)
        if parsed.resource_type == ResourceType.SUBNET:
            return self.get_subnet(sub, rg, name, parsed.sub_resource_name)
        raise AzureError(f"unsupported resource type: {parsed.resource_type}")

    # -- listings --------------------------------------------------------

    def list_aks_clusters(
        self, subscription_id: str, resource_group: str
    ) -> list[AKSClusterSummary]:
        """Summarise every AKS cluster in a resource group."""
        url = self._resource_url(subscription_id, resource_group, _AKS_PROVIDER)
        return [
            _summarise(cluster, resource_group)
            for cluster in self._pages(url, CONTAINER_SERVICE_API_VERSION, "AKS clusters")
        ]

    def list_all_aks_clusters(self, subscription_id: str) -> list[AKSClusterSummary]:
        """Summarise every AKS cluster in a subscription."""
        url = self._url(subscription_id, "providers", *_AKS_PROVIDER.split("/"))
        return [
            _summarise(cluster, "")
            for cluster in self._pages(url, CONTAINER_SERVICE_API_VERSION, "AKS clusters")
        ]

    def list_virtual_networks(
        self, subscription_id: str, resource_group: str
    ) -> list[dict[str, Any]]:
        """Return every virtual network in a resource group."""
        url = self._resource_url(subscription_id, resource_group, _VNET_PROVIDER)
        return list(self._pages(url, NETWORK_API_VERSION, "virtual networks"))


@dataclass
class AzureResourceProvider:
    """Bundles the configured resource ID with the Azure client and cache."""

    resource_id: Optional[AzureResourceID]
    client: AzureClient
    cache: AzureCache