# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

"""
The ordered provisioning steps of a hybrid Logic Apps environment. Every step
probes for its resource before creating it so a deployment can be re-run.
"""

from azext_logicapps_hybrid.arm_sdk._util import retry, wait as poll
from azext_logicapps_hybrid.kubernetes_sdk.client import kubeconfig_servers
from azext_logicapps_hybrid.constants import (
    ARC_CONNECTED_STATUS,
    ARC_CONNECT_RETRY_ATTEMPTS,
    ARC_CONNECT_RETRY_INTERVAL,
    EXTENSION_CONFIGURATION_SETTINGS,
    EXTENSION_RELEASE_TRAIN,
    EXTENSION_TYPE,
    FAILED_STATES,
    PROVISIONING_INTERVAL,
    PROVISIONING_TIMEOUT,
    REQUIRED_PROVIDERS,
    SMB_CSI_CHART,
    SMB_CSI_NAMESPACE,
    SMB_CSI_POD_SELECTOR,
    SMB_CSI_RELEASE,
    SMB_CSI_REPO_NAME,
    SMB_CSI_REPO_URL,
    SMB_CSI_VERSION,
    SUCCEEDED_STATES,
)
from abc import ABCMeta, abstractmethod
from azure.cli.core.azclierror import (
    AzureResponseError,
    RequiredArgumentMissingError,
)
from knack.log import get_logger

import os
import pydash as _

__all__ = [
    "Step",
    "ProvidersStep",
    "ResourceGroupStep",
    "AksStep",
    "KubeconfigStep",
    "ArcStep",
    "SmbCsiDriverStep",
    "SqlStep",
    "StorageStep",
    "ExtensionStep",
    "CustomLocationStep",
    "ConnectedEnvironmentStep",
    "EnvironmentStorageStep",
    "LogicAppStep",
    "default_steps",
]

logger = get_logger(__name__)


def _require_sql_admin_password(settings):
    if not settings.sql_admin_password:
        raise RequiredArgumentMissingError(
            "A SQL administrator password is required."
        )


class Step(metaclass=ABCMeta):
    """
    One idempotent unit of a deployment.

    `exists` probes for the resource, `create` submits it and `wait` blocks
    until it reaches one of the `healthy_states`. Steps with `polled = False`
    are ready as soon as `create` returns.
    """

    name = None
    description = None
    healthy_states = SUCCEEDED_STATES
    failed_states = FAILED_STATES
    polled = False
    retry_tol = PROVISIONING_TIMEOUT
    retry_delay = PROVISIONING_INTERVAL

    @property
    def label(self):
        return self.name

    def get(self, ctx):
        """
        :return: The resource document, or `None` when it does not exist.
        """
        return None

    def exists(self, ctx):
        return self.get(ctx) is not None

    def prepare(self, ctx):
        """
        Gather input `create` needs, such as secrets that may have to be
        prompted for. Runs before any progress output starts.
        """
        pass

    @abstractmethod
    def create(self, ctx):
        pass

    def wait(self, ctx):
        if not self.polled:
            return self.state(ctx)

        return poll(
            self.state,
            ctx,
            ready=self.healthy_states,
            failed=self.failed_states,
            retry_tol=self.retry_tol,
            retry_delay=self.retry_delay,
            label=self.label,
        )

    def resource_id(self, ctx):
        return None

    def state(self, ctx):
        """
        :return: The current state of the resource, `None` when missing.
        """
        return _.get(self.get(ctx), "properties.provisioningState")

    def healthy(self, ctx):
        return self.state(ctx) in self.healthy_states

    def __str__(self):
        return self.name

    def __repr__(self):
        return "<{0} {1}>".format(self.__class__.__name__, self.name)


# ============================================================================ #
# == Subscription ============================================================ #
# ============================================================================ #


class ProvidersStep(Step):
    name = "providers"
    description = "Register the required resource providers."
    healthy_states = ("Registered",)

    def get(self, ctx):
        return {
            namespace: ctx.arm.provider_state(namespace)
            for namespace in REQUIRED_PROVIDERS
        }

    def exists(self, ctx):
        return self.state(ctx) == "Registered"

    def create(self, ctx):
        for namespace, state in self.get(ctx).items():
            if state != "Registered":
                print(f"Registering resource provider '{namespace}'...")
                ctx.arm.register_provider(namespace)

    def resource_id(self, ctx):
        return f"/subscriptions/{ctx.arm.subscription}/providers"

    def state(self, ctx):
        pending = [
            "{0}={1}".format(namespace, state)
            for namespace, state in self.get(ctx).items()
            if state != "Registered"
        ]
        return ", ".join(pending) if pending else "Registered"


class ResourceGroupStep(Step):
    name = "resource-group"
    description = "Create the resource group."

    def get(self, ctx):
        return ctx.arm.resources.get_resource_group(
            ctx.settings.resource_group
        )

    def create(self, ctx):
        ctx.arm.resources.create_resource_group(
            ctx.settings.resource_group, ctx.settings.location
        )

    def resource_id(self, ctx):
        return ctx.resource_group_id


# ============================================================================ #
# == Cluster ================================================================= #
# ============================================================================ #


class AksStep(Step):
    name = "aks"
    description = "Create the AKS cluster."
    polled = True

    @property
    def label(self):
        return "AKS cluster provisioning"

    def get(self, ctx):
        return ctx.arm.clusters.get_managed_cluster(
            ctx.settings.resource_group, ctx.settings.cluster_name
        )

    def create(self, ctx):
        settings = ctx.settings
        print(f"Creating AKS cluster '{settings.cluster_name}'...")
        ctx.arm.clusters.create_managed_cluster(
            settings.resource_group,
            settings.cluster_name,
            self.body(settings),
        )

    @staticmethod
    def body(settings):
        return {
            "location": settings.location,
            "identity": {"type": "SystemAssigned"},
            "properties": {
                "dnsPrefix": settings.cluster_name,
                "agentPoolProfiles": [
                    {
                        "name": "nodepool1",
                        "mode": "System",
                        "osType": "Linux",
                        "type": "VirtualMachineScaleSets",
                        "vmSize": settings.node_vm_size,
                        "count": settings.node_count,
                        "maxPods": settings.max_pods,
                        "enableAutoScaling": True,
                        "minCount": settings.min_node_count,
                        "maxCount": settings.max_node_count,
                    }
                ],
                "networkProfile": {"networkPlugin": "azure"},
            },
        }

    def resource_id(self, ctx):
        return ctx.managed_cluster_id


class KubeconfigStep(Step):
    name = "kubeconfig"
    description = "Fetch the cluster admin kubeconfig."
    healthy_states = ("Present",)

    def exists(self, ctx):
        """
        The kubeconfig file is only reused when it points at the API server
        of the target cluster.
        """
        settings = ctx.settings
        if not os.path.isfile(settings.kubeconfig):
            return False

        cluster = ctx.arm.clusters.get_managed_cluster(
            settings.resource_group, settings.cluster_name
        )
        fqdns = {
            _.get(cluster, "properties.fqdn"),
            _.get(cluster, "properties.privateFQDN"),
        } - {None}
        if fqdns & set(kubeconfig_servers(settings.kubeconfig)):
            return True

        logger.warning(
            "The kubeconfig %s does not belong to the cluster '%s'.",
            settings.kubeconfig,
            settings.cluster_name,
        )
        return False

    def create(self, ctx):
        settings = ctx.settings
        # credentials of a new cluster can lag behind its provisioning state
        content = retry(
            ctx.arm.clusters.get_admin_kubeconfig,
            settings.resource_group,
            settings.cluster_name,
            max_tries=3,
            retry_delay=PROVISIONING_INTERVAL,
            e=AzureResponseError,
        )

        path = settings.kubeconfig
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)

        print(f"Wrote the kubeconfig of '{settings.cluster_name}' to {path}")
        ctx.use_kubeconfig(path)

    def resource_id(self, ctx):
        return ctx.settings.kubeconfig

    def state(self, ctx):
        return "Present" if self.exists(ctx) else None


class ArcStep(Step):
    name = "arc"
    description = "Connect the cluster to Azure Arc."
    healthy_states = (ARC_CONNECTED_STATUS,)
    failed_states = ()
    polled = True
    retry_tol = ARC_CONNECT_RETRY_ATTEMPTS * ARC_CONNECT_RETRY_INTERVAL
    retry_delay = ARC_CONNECT_RETRY_INTERVAL

    @property
    def label(self):
        return "Arc connection"

    def get(self, ctx):
        return ctx.arm.clusters.get_connected_cluster(
            ctx.settings.resource_group, ctx.settings.connected_cluster_name
        )

    def create(self, ctx):
        settings = ctx.settings
        print(
            f"Connecting '{settings.cluster_name}' to Azure Arc as "
            f"'{settings.connected_cluster_name}'..."
        )
        ctx.runner.run(
            "az",
            [
                "connectedk8s",
                "connect",
                "--name",
                settings.connected_cluster_name,
                "--resource-group",
                settings.resource_group,
                "--location",
                settings.location,
                "--kube-config",
                settings.kubeconfig,
                "--subscription",
                ctx.arm.subscription,
                "--only-show-errors",
            ],
        )

    def resource_id(self, ctx):
        return ctx.connected_cluster_id

    def state(self, ctx):
        return _.get(self.get(ctx), "properties.connectivityStatus")


class SmbCsiDriverStep(Step):
    name = "smb-csi-driver"
    description = "Install the SMB CSI driver with Helm."
    healthy_states = ("Running",)

    def exists(self, ctx):
        return ctx.helm.release_exists(SMB_CSI_RELEASE, SMB_CSI_NAMESPACE)

    def create(self, ctx):
        print(f"Installing the SMB CSI driver {SMB_CSI_VERSION}...")
        ctx.helm.add_repo(SMB_CSI_REPO_NAME, SMB_CSI_REPO_URL)
        ctx.helm.install(
            SMB_CSI_RELEASE,
            SMB_CSI_CHART,
            SMB_CSI_NAMESPACE,
            version=SMB_CSI_VERSION,
        )

    def wait(self, ctx):
        ctx.kubernetes.wait_for_pods(SMB_CSI_NAMESPACE, SMB_CSI_POD_SELECTOR)
        return "Running"

    def resource_id(self, ctx):
        return f"{SMB_CSI_NAMESPACE}/{SMB_CSI_RELEASE}"

    def state(self, ctx):
        if not self.exists(ctx):
            return None
        ready = ctx.kubernetes.pods_ready(
            SMB_CSI_NAMESPACE, SMB_CSI_POD_SELECTOR
        )
        return "Running" if ready else "NotReady"


# ============================================================================ #
# == Data ==================================================================== #
# ============================================================================ #


class SqlStep(Step):
    name = "sql"
    description = "Create the SQL server and database."
    healthy_states = ("Ready",)

    def get(self, ctx):
        return ctx.arm.data.get_sql_server(
            ctx.settings.resource_group, ctx.settings.sql_server_name
        )

    def exists(self, ctx):
        settings = ctx.settings
        if self.get(ctx) is None:
            return False
        return (
            ctx.arm.data.get_sql_database(
                settings.resource_group,
                settings.sql_server_name,
                settings.sql_database_name,
            )
            is not None
        )

    def prepare(self, ctx):
        # the password is only needed for a new server
        if self.get(ctx) is None:
            _require_sql_admin_password(ctx.settings)

    def create(self, ctx):
        print(f"Deploying SQL server '{ctx.settings.sql_server_name}'...")
        ctx.arm.create_sql(ctx.settings, ctx.deployment_name(self.name))

    def resource_id(self, ctx):
        return ctx.sql_server_id

    def state(self, ctx):
        return _.get(self.get(ctx), "properties.state")


class StorageStep(Step):
    name = "storage"
    description = "Create the storage account and SMB file share."

    def get(self, ctx):
        return ctx.arm.data.get_storage_account(
            ctx.settings.resource_group, ctx.settings.storage_account_name
        )

    def exists(self, ctx):
        settings = ctx.settings
        if self.get(ctx) is None:
            return False
        return (
            ctx.arm.data.get_file_share(
                settings.resource_group,
                settings.storage_account_name,
                settings.file_share_name,
            )
            is not None
        )

    def create(self, ctx):
        print(
            f"Deploying storage account "
            f"'{ctx.settings.storage_account_name}'..."
        )
        ctx.arm.create_storage(ctx.settings, ctx.deployment_name(self.name))

    def resource_id(self, ctx):
        return ctx.storage_account_id


# ============================================================================ #
# == Container Apps ========================================================== #
# ============================================================================ #


class ExtensionStep(Step):
    name = "extension"
    description = "Install the Container Apps extension on the cluster."
    polled = True

    @property
    def label(self):
        return "extension provisioning"

    def get(self, ctx):
        settings = ctx.settings
        return ctx.arm.clusters.get_extension(
            settings.resource_group,
            settings.connected_cluster_name,
            settings.extension_name,
        )

    def create(self, ctx):
        settings = ctx.settings
        print(f"Installing extension '{settings.extension_name}'...")
        ctx.arm.clusters.create_extension(
            settings.resource_group,
            settings.connected_cluster_name,
            settings.extension_name,
            self.body(settings),
        )

    @staticmethod
    def body(settings):
        configuration = dict(EXTENSION_CONFIGURATION_SETTINGS)
        configuration.update(
            {
                "appsNamespace": settings.extension_namespace,
                "clusterName": settings.connected_environment_name,
                "envoy.annotations.service.beta.kubernetes.io/"
                "azure-load-balancer-resource-group": settings.resource_group,
            }
        )
        return {
            "identity": {"type": "SystemAssigned"},
            "properties": {
                "extensionType": EXTENSION_TYPE,
                "autoUpgradeMinorVersion": True,
                "releaseTrain": EXTENSION_RELEASE_TRAIN,
                "scope": {
                    "cluster": {
                        "releaseNamespace": settings.extension_namespace
                    }
                },
                "configurationSettings": configuration,
            },
        }

    def resource_id(self, ctx):
        return ctx.extension_id


class CustomLocationStep(Step):
    name = "custom-location"
    description = "Create the custom location on the extension namespace."
    polled = True

    @property
    def label(self):
        return "custom location provisioning"

    def get(self, ctx):
        return ctx.arm.clusters.get_custom_location(
            ctx.settings.resource_group, ctx.settings.custom_location_name
        )

    def create(self, ctx):
        settings = ctx.settings
        print(f"Creating custom location '{settings.custom_location_name}'...")
        ctx.arm.clusters.create_custom_location(
            settings.resource_group,
            settings.custom_location_name,
            {
                "location": settings.location,
                "properties": {
                    "hostType": "Kubernetes",
                    "hostResourceId": ctx.connected_cluster_id,
                    "namespace": settings.extension_namespace,
                    "clusterExtensionIds": [ctx.extension_id],
                },
            },
        )

    def resource_id(self, ctx):
        return ctx.custom_location_id


class ConnectedEnvironmentStep(Step):
    name = "connected-environment"
    description = "Create the Container Apps connected environment."
    polled = True

    @property
    def label(self):
        return "connected environment provisioning"

    def get(self, ctx):
        return ctx.arm.apps.get_connected_environment(
            ctx.settings.resource_group,
            ctx.settings.connected_environment_name,
        )

    def create(self, ctx):
        settings = ctx.settings
        print(
            f"Creating connected environment "
            f"'{settings.connected_environment_name}'..."
        )
        ctx.arm.apps.create_connected_environment(
            settings.resource_group,
            settings.connected_environment_name,
            {
                "location": settings.location,
                "extendedLocation": {
                    "name": ctx.custom_location_id,
                    "type": "CustomLocation",
                },
                "properties": {},
            },
        )

    def resource_id(self, ctx):
        return ctx.connected_environment_id


class EnvironmentStorageStep(Step):
    name = "environment-storage"
    description = "Attach the SMB file share to the connected environment."
    healthy_states = ("Present",)

    def get(self, ctx):
        settings = ctx.settings
        return ctx.arm.apps.get_environment_storage(
            settings.resource_group,
            settings.connected_environment_name,
            settings.environment_storage_name,
        )

    def create(self, ctx):
        settings = ctx.settings
        print(
            f"Mounting {ctx.file_share_path} into '"
            f"{settings.connected_environment_name}' as '"
            f"{settings.environment_storage_name}'..."
        )
        ctx.arm.apps.create_environment_storage(
            settings.resource_group,
            settings.connected_environment_name,
            settings.environment_storage_name,
            {
                "properties": {
                    "azureFile": {
                        "accountName": settings.storage_account_name,
                        "accountKey": ctx.storage_account_key,
                        "shareName": settings.file_share_name,
                        "accessMode": "ReadWrite",
                    }
                }
            },
        )

    def resource_id(self, ctx):
        return ctx.environment_storage_id

    def state(self, ctx):
        return "Present" if self.exists(ctx) else None


# ============================================================================ #
# == Logic App =============================================================== #
# ============================================================================ #


class LogicAppStep(Step):
    name = "logic-app"
    description = "Deploy the Logic App to the connected environment."
    healthy_states = ("Running",)

    def get(self, ctx):
        return ctx.arm.apps.get_site(
            ctx.settings.resource_group, ctx.settings.logic_app_name
        )

    def prepare(self, ctx):
        _require_sql_admin_password(ctx.settings)

    def create(self, ctx):
        print(f"Deploying Logic App '{ctx.settings.logic_app_name}'...")
        ctx.arm.create_logic_app(
            ctx.settings,
            ctx.deployment_name(self.name),
            ctx.custom_location_id,
            ctx.connected_environment_id,
            ctx.sql_connection_string,
        )

    def resource_id(self, ctx):
        return ctx.logic_app_id

    def state(self, ctx):
        return _.get(self.get(ctx), "properties.state")


def default_steps():
    """
    :return: A fresh list of every step, in deployment order.
    """
    return [
        ProvidersStep(),
        ResourceGroupStep(),
        AksStep(),
        KubeconfigStep(),
        ArcStep(),
        SmbCsiDriverStep(),
        SqlStep(),
        StorageStep(),
        ExtensionStep(),
        CustomLocationStep(),
        ConnectedEnvironmentStep(),
        EnvironmentStorageStep(),
        LogicAppStep(),
    ]
