# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.arm_sdk._arm_client import resource_id
from azext_logicapps_hybrid.constants import SQL_CONNECTION_STRING
from azext_logicapps_hybrid.core.tools import ToolRunner
from azext_logicapps_hybrid.kubernetes_sdk.client import KubernetesClient
from azext_logicapps_hybrid.kubernetes_sdk.helm import HelmClient

import os

__all__ = ["DeploymentContext"]


class DeploymentContext(object):
    """
    Everything a provisioning step needs: the resolved settings, the clients
    for ARM, the external tools and Kubernetes, and values that are derived
    from resources created by earlier steps.
    """

    def __init__(
        self, settings, arm_client, runner=None, kubernetes=None, helm=None
    ):
        self.settings = settings
        self.arm = arm_client
        self.runner = runner or ToolRunner(kubeconfig=settings.kubeconfig)
        self.kubernetes = kubernetes or KubernetesClient(
            kubeconfig=settings.kubeconfig,
            context=os.getenv("KUBECTL_CONTEXT"),
        )
        self.helm = helm or HelmClient(self.runner)
        self._storage_account_key = None

    def use_kubeconfig(self, path):
        self.settings.kubeconfig = path
        self.runner.kubeconfig = path
        self.kubernetes.kubeconfig = path

    def deployment_name(self, kind):
        return f"{self.settings.name_prefix}-{kind}"

    # ------------------------------------------------------------------------ #
    # -- resource ids
    # ------------------------------------------------------------------------ #

    def resource_id(self, namespace, type_, name):
        return resource_id(
            self.arm.subscription,
            self.settings.resource_group,
            namespace,
            type_,
            name,
        )

    @property
    def resource_group_id(self):
        return "/subscriptions/{0}/resourceGroups/{1}".format(
            self.arm.subscription, self.settings.resource_group
        )

    @property
    def managed_cluster_id(self):
        return self.resource_id(
            "Microsoft.ContainerService",
            "managedClusters",
            self.settings.cluster_name,
        )

    @property
    def connected_cluster_id(self):
        return self.resource_id(
            "Microsoft.Kubernetes",
            "connectedClusters",
            self.settings.connected_cluster_name,
        )

    @property
    def extension_id(self):
        return (
            f"{self.connected_cluster_id}/providers"
            f"/Microsoft.KubernetesConfiguration/extensions"
            f"/{self.settings.extension_name}"
        )

    @property
    def custom_location_id(self):
        return self.resource_id(
            "Microsoft.ExtendedLocation",
            "customLocations",
            self.settings.custom_location_name,
        )

    @property
    def connected_environment_id(self):
        return self.resource_id(
            "Microsoft.App",
            "connectedEnvironments",
            self.settings.connected_environment_name,
        )

    @property
    def environment_storage_id(self):
        return (
            f"{self.connected_environment_id}/storages"
            f"/{self.settings.environment_storage_name}"
        )

    @property
    def sql_server_id(self):
        return self.resource_id(
            "Microsoft.Sql", "servers", self.settings.sql_server_name
        )

    @property
    def storage_account_id(self):
        return self.resource_id(
            "Microsoft.Storage",
            "storageAccounts",
            self.settings.storage_account_name,
        )

    @property
    def logic_app_id(self):
        return self.resource_id(
            "Microsoft.Web", "sites", self.settings.logic_app_name
        )

    # ------------------------------------------------------------------------ #
    # -- outputs
    # ------------------------------------------------------------------------ #

    @property
    def storage_account_key(self):
        if not self._storage_account_key:
            self._storage_account_key = self.arm.data.get_storage_account_key(
                self.settings.resource_group,
                self.settings.storage_account_name,
            )
        return self._storage_account_key

    @property
    def sql_connection_string(self):
        settings = self.settings
        return SQL_CONNECTION_STRING.format(
            server=settings.sql_server_name,
            database=settings.sql_database_name,
            user=settings.sql_admin_user,
            password=settings.sql_admin_password,
        )

    @property
    def file_share_path(self):
        return "//{0}.file.core.windows.net/{1}".format(
            self.settings.storage_account_name, self.settings.file_share_name
        )
