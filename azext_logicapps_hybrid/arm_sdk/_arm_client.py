# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.constants import (
    API_VERSION_MAP,
    MGMT_URL,
    RESOURCE_URI,
)
from ._util import dict_to_dot_notation
from azure.cli.core.azclierror import AzureResponseError
from knack.log import get_logger
from collections import namedtuple

import base64
import pydash as _
import requests

__all__ = ["arm_clients", "resource_id"]

logger = get_logger(__name__)

API = dict_to_dot_notation(API_VERSION_MAP)


def arm_clients(subscription, credential):
    session = _session(credential)
    c = {
        "resources": ResourceManagerClient(subscription, session, credential),
        "clusters": ClusterClient(subscription, session, credential),
        "apps": AppClient(subscription, session, credential),
        "data": DataClient(subscription, session, credential),
    }

    return namedtuple("ArmClients", " ".join(list(c.keys())))(**c)


def resource_id(subscription, resource_group, namespace, type_, name):
    return RESOURCE_URI.format(
        subscription, resource_group, namespace, type_, name
    )


def _session(credential):
    session = requests.Session()
    session.headers.update(
        {
            "Authorization": _bearer(credential),
            "Content-Type": "application/json",
        }
    )
    return session


def _bearer(credential):
    return "Bearer {}".format(credential.get_token().token)


# ============================================================================ #
# ============================================================================ #
# ============================================================================ #


class BaseClient(object):
    def __init__(self, subscription, session, credential=None):
        self._subscription = subscription
        self._session = session
        self._credential = credential

    @property
    def subscription(self):
        return self._subscription

    def _url(self, path, api_version):
        return f"{MGMT_URL}{path}?api-version={api_version}"

    def _request(
        self, method, url, body=None, allow_404=False, sensitive=False
    ):
        logger.debug("%s %s", method, url)
        response = self._session.request(method, url, json=body)
        if response.status_code == 401 and self._credential is not None:
            # the token can expire during a long deployment
            logger.debug("Refreshing the access token.")
            self._session.headers.update(
                {"Authorization": _bearer(self._credential)}
            )
            response = self._session.request(method, url, json=body)
        logger.debug(response.status_code)
        redact = sensitive and response.ok
        logger.debug("<redacted>" if redact else response.text)

        if allow_404 and response.status_code == 404:
            return None

        if not response.ok:
            raise AzureResponseError(self._error_message(response))

        if not response.text:
            return {}

        try:
            return response.json()
        except ValueError:
            return {}

    def _get(self, path, api_version):
        return self._request(
            "GET", self._url(path, api_version), allow_404=True
        )

    def _put(self, path, api_version, body):
        return self._request("PUT", self._url(path, api_version), body)

    def _post(self, path, api_version, body=None, sensitive=False):
        return self._request(
            "POST", self._url(path, api_version), body, sensitive=sensitive
        )

    def _delete(self, path, api_version):
        return self._request(
            "DELETE", self._url(path, api_version), allow_404=True
        )

    def _rg_path(self, resource_group):
        return (
            f"/subscriptions/{self._subscription}"
            f"/resourceGroups/{resource_group}"
        )

    @staticmethod
    def _error_message(response):
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}

        message = error.get("message") or response.reason or response.text
        code = error.get("code")
        return (
            f"{response.status_code} {code}: {message}"
            if code
            else f"{response.status_code}: {message}"
        )


# ============================================================================ #
# ============================================================================ #
# ============================================================================ #


class ResourceManagerClient(BaseClient):
    """
    Resource groups, resource providers and template deployments.
    """

    def get_resource_group(self, resource_group):
        return self._get(self._rg_path(resource_group), API.RESOURCE_GROUP)

    def create_resource_group(self, resource_group, location, tags=None):
        return self._put(
            self._rg_path(resource_group),
            API.RESOURCE_GROUP,
            {"location": location, "tags": tags or {}},
        )

    def delete_resource_group(self, resource_group):
        return self._delete(self._rg_path(resource_group), API.RESOURCE_GROUP)

    def get_provider(self, namespace):
        return self._get(
            f"/subscriptions/{self._subscription}/providers/{namespace}",
            API.PROVIDER,
        )

    def register_provider(self, namespace):
        return self._post(
            f"/subscriptions/{self._subscription}/providers/{namespace}"
            f"/register",
            API.PROVIDER,
        )

    def create_deployment(self, resource_group, name, body):
        return self._put(
            f"{self._rg_path(resource_group)}"
            f"/providers/Microsoft.Resources/deployments/{name}",
            API.DEPLOYMENT,
            body,
        )

    def get_deployment(self, resource_group, name):
        return self._get(
            f"{self._rg_path(resource_group)}"
            f"/providers/Microsoft.Resources/deployments/{name}",
            API.DEPLOYMENT,
        )


# ============================================================================ #
# ============================================================================ #
# ============================================================================ #


class ClusterClient(BaseClient):
    """
    AKS managed clusters, Arc connected clusters, cluster extensions and
    custom locations.
    """

    def _managed_cluster_path(self, resource_group, name):
        return resource_id(
            self._subscription,
            resource_group,
            "Microsoft.ContainerService",
            "managedClusters",
            name,
        )

    def _connected_cluster_path(self, resource_group, name):
        return resource_id(
            self._subscription,
            resource_group,
            "Microsoft.Kubernetes",
            "connectedClusters",
            name,
        )

    def get_managed_cluster(self, resource_group, name):
        return self._get(
            self._managed_cluster_path(resource_group, name),
            API.MANAGED_CLUSTER,
        )

    def create_managed_cluster(self, resource_group, name, body):
        return self._put(
            self._managed_cluster_path(resource_group, name),
            API.MANAGED_CLUSTER,
            body,
        )

    def get_admin_kubeconfig(self, resource_group, name):
        """
        :return: The decoded admin kubeconfig of the AKS cluster.
        """
        result = self._post(
            f"{self._managed_cluster_path(resource_group, name)}"
            f"/listClusterAdminCredential",
            API.MANAGED_CLUSTER,
            sensitive=True,
        )
        kubeconfigs = result.get("kubeconfigs") or []
        if not kubeconfigs:
            raise AzureResponseError(
                f"No kubeconfig was returned for the cluster '{name}'."
            )
        return base64.b64decode(kubeconfigs[0]["value"]).decode("utf-8")

    def get_connected_cluster(self, resource_group, name):
        result = self._get(
            self._connected_cluster_path(resource_group, name),
            API.CONNECTED_CLUSTER,
        )
        if result:
            # log cluster properties
            for key, value in (result.get("properties") or {}).items():
                if key != "agentPublicKeyCertificate":
                    logger.debug(f"{key} = {value}")
        return result

    def _extension_path(self, resource_group, cluster_name, name):
        return (
            f"{self._connected_cluster_path(resource_group, cluster_name)}"
            f"/providers/Microsoft.KubernetesConfiguration/extensions/{name}"
        )

    def get_extension(self, resource_group, cluster_name, name):
        return self._get(
            self._extension_path(resource_group, cluster_name, name),
            API.CLUSTER_EXTENSION,
        )

    def create_extension(self, resource_group, cluster_name, name, body):
        return self._put(
            self._extension_path(resource_group, cluster_name, name),
            API.CLUSTER_EXTENSION,
            body,
        )

    def _custom_location_path(self, resource_group, name):
        return resource_id(
            self._subscription,
            resource_group,
            "Microsoft.ExtendedLocation",
            "customLocations",
            name,
        )

    def get_custom_location(self, resource_group, name):
        return self._get(
            self._custom_location_path(resource_group, name),
            API.CUSTOM_LOCATION,
        )

    def create_custom_location(self, resource_group, name, body):
        return self._put(
            self._custom_location_path(resource_group, name),
            API.CUSTOM_LOCATION,
            body,
        )


# ============================================================================ #
# ============================================================================ #
# ============================================================================ #


class AppClient(BaseClient):
    """
    Container Apps connected environments, their storages and the Logic App
    site.
    """

    def _environment_path(self, resource_group, name):
        return resource_id(
            self._subscription,
            resource_group,
            "Microsoft.App",
            "connectedEnvironments",
            name,
        )

    def get_connected_environment(self, resource_group, name):
        return self._get(
            self._environment_path(resource_group, name),
            API.CONNECTED_ENVIRONMENT,
        )

    def create_connected_environment(self, resource_group, name, body):
        return self._put(
            self._environment_path(resource_group, name),
            API.CONNECTED_ENVIRONMENT,
            body,
        )

    def get_environment_storage(self, resource_group, environment, name):
        return self._get(
            f"{self._environment_path(resource_group, environment)}"
            f"/storages/{name}",
            API.CONNECTED_ENVIRONMENT,
        )

    def create_environment_storage(
        self, resource_group, environment, name, body
    ):
        result = self._put(
            f"{self._environment_path(resource_group, environment)}"
            f"/storages/{name}",
            API.CONNECTED_ENVIRONMENT,
            body,
        )
        # -- never echo the account key back --
        return _mask(result, ["properties", "azureFile", "accountKey"])

    def get_site(self, resource_group, name):
        return self._get(
            resource_id(
                self._subscription,
                resource_group,
                "Microsoft.Web",
                "sites",
                name,
            ),
            API.WEB,
        )


# ============================================================================ #
# ============================================================================ #
# ============================================================================ #


class DataClient(BaseClient):
    """
    SQL servers/databases and storage accounts/file shares.
    """

    def _sql_server_path(self, resource_group, name):
        return resource_id(
            self._subscription, resource_group, "Microsoft.Sql", "servers", name
        )

    def get_sql_server(self, resource_group, name):
        return self._get(self._sql_server_path(resource_group, name), API.SQL)

    def get_sql_database(self, resource_group, server, name):
        return self._get(
            f"{self._sql_server_path(resource_group, server)}/databases/{name}",
            API.SQL,
        )

    def _storage_path(self, resource_group, name):
        return resource_id(
            self._subscription,
            resource_group,
            "Microsoft.Storage",
            "storageAccounts",
            name,
        )

    def get_storage_account(self, resource_group, name):
        return self._get(self._storage_path(resource_group, name), API.STORAGE)

    def get_storage_account_key(self, resource_group, name):
        result = self._post(
            f"{self._storage_path(resource_group, name)}/listKeys",
            API.STORAGE,
            sensitive=True,
        )
        keys = result.get("keys") or []
        if not keys:
            raise AzureResponseError(
                f"No access key was returned for the storage account '{name}'."
            )
        return keys[0]["value"]

    def get_file_share(self, resource_group, account, name):
        return self._get(
            f"{self._storage_path(resource_group, account)}"
            f"/fileServices/default/shares/{name}",
            API.STORAGE,
        )


def _mask(document, path):
    masked = _.clone_deep(document)
    if _.has(masked, path):
        _.set_(masked, path, "*")
    return masked
