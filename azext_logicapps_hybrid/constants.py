# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

import os

BASE = os.path.dirname(os.path.realpath(__file__))
"""
Base directory
"""

TEMPLATE_DIR = os.path.join(BASE, "arm_sdk", "templates")
"""
ARM template directory
"""

COMMAND_GROUP = "logicapp-hybrid"
"""
Command group constant
"""

ENV_PREFIX = "LOGICAPPS_HYBRID_"
"""
Prefix of the environment variables overriding deployment settings.
"""

SQL_ADMIN_PASSWORD_ENV = ENV_PREFIX + "SQL_ADMIN_PASSWORD"
"""
Environment variable holding the SQL administrator password.
"""

MGMT_URL = "https://management.azure.com"
"""
Azure Resource Manager endpoint.
"""

RESOURCE_URI = (
    "/subscriptions/{}/resourceGroups/{}/providers/{}/{}/{}"
)
"""
Resource id: subscription, resource group, namespace, type, name.
"""

API_VERSION_MAP = {
    "RESOURCE_GROUP": "2021-04-01",
    "PROVIDER": "2021-04-01",
    "DEPLOYMENT": "2021-04-01",
    "MANAGED_CLUSTER": "2024-02-01",
    "CONNECTED_CLUSTER": "2024-01-01",
    "CLUSTER_EXTENSION": "2023-05-01",
    "CUSTOM_LOCATION": "2021-08-15",
    "CONNECTED_ENVIRONMENT": "2024-03-01",
    "SQL": "2021-11-01",
    "STORAGE": "2023-01-01",
    "WEB": "2023-12-01",
}
"""
ARM api-version per resource kind.
"""

REQUIRED_PROVIDERS = [
    "Microsoft.ContainerService",
    "Microsoft.Kubernetes",
    "Microsoft.KubernetesConfiguration",
    "Microsoft.ExtendedLocation",
    "Microsoft.App",
    "Microsoft.Web",
    "Microsoft.Sql",
    "Microsoft.Storage",
]
"""
Resource providers that must be registered on the subscription.
"""

# ---------------------------------------------------------------------------- #
# -- AKS
# ---------------------------------------------------------------------------- #

DEFAULT_NODE_COUNT = 3
DEFAULT_MIN_NODE_COUNT = 1
DEFAULT_MAX_NODE_COUNT = 5
DEFAULT_NODE_VM_SIZE = "Standard_D4s_v3"
DEFAULT_MAX_PODS = 100

KUBE_DIR = os.path.join(os.path.expanduser("~"), ".kube")
"""
Directory the cluster kubeconfig is written to.
"""

# ---------------------------------------------------------------------------- #
# -- Arc
# ---------------------------------------------------------------------------- #

ARC_CONNECT_RETRY_ATTEMPTS = 10
"""
Number of connectivity status checks after `az connectedk8s connect`.
"""

ARC_CONNECT_RETRY_INTERVAL = 30
"""
Seconds between two connectivity status checks.
"""

ARC_CONNECTED_STATUS = "Connected"

# ---------------------------------------------------------------------------- #
# -- SMB CSI driver
# ---------------------------------------------------------------------------- #

SMB_CSI_REPO_NAME = "csi-driver-smb"
SMB_CSI_REPO_URL = (
    "https://raw.githubusercontent.com/kubernetes-csi/csi-driver-smb/master"
    "/charts"
)
SMB_CSI_RELEASE = "csi-driver-smb"
SMB_CSI_CHART = "csi-driver-smb/csi-driver-smb"
SMB_CSI_VERSION = "v1.15.0"
SMB_CSI_NAMESPACE = "kube-system"
SMB_CSI_POD_SELECTOR = "app.kubernetes.io/name=csi-driver-smb"

# ---------------------------------------------------------------------------- #
# -- Container Apps extension
# ---------------------------------------------------------------------------- #

EXTENSION_TYPE = "Microsoft.App.Environment"
DEFAULT_EXTENSION_NAME = "logicapps-aca-extension"
DEFAULT_EXTENSION_NAMESPACE = "logicapps-aca-ns"
EXTENSION_RELEASE_TRAIN = "stable"

EXTENSION_CONFIGURATION_SETTINGS = {
    "Microsoft.CustomLocation.ServiceAccount": "default",
    "keda.enabled": "true",
    "keda.logicAppsScaler.enabled": "true",
    "keda.logicAppsScaler.replicaCount": "1",
    "containerAppController.api.functionsServerEnabled": "true",
    "envoy.externalServiceAzureILB": "false",
    "functionsProxyApiConfig.enabled": "true",
}
"""
Static configuration settings of the Container Apps extension. Namespace,
cluster and load balancer settings are added per deployment.
"""

# ---------------------------------------------------------------------------- #
# -- Polling
# ---------------------------------------------------------------------------- #

PROVISIONING_TIMEOUT = 1800
"""
Total seconds to wait for a long running provisioning operation.
"""

PROVISIONING_INTERVAL = 30
"""
Seconds between two provisioning state checks.
"""

PODS_RETRY_ATTEMPTS = 30
PODS_RETRY_INTERVAL = 10

SUCCEEDED_STATES = ("Succeeded",)
FAILED_STATES = ("Failed", "Canceled")

# ---------------------------------------------------------------------------- #
# -- SQL / Storage / Logic App
# ---------------------------------------------------------------------------- #

DEFAULT_SQL_ADMIN_USER = "sqladmin"
DEFAULT_SQL_DATABASE = "logicappsdb"
DEFAULT_SQL_SKU = "S0"
DEFAULT_FILE_SHARE = "logicappsshare"
DEFAULT_FILE_SHARE_QUOTA = 100
DEFAULT_STORAGE_SKU = "Standard_LRS"
DEFAULT_NAME_PREFIX = "lahybrid"

SQL_CONNECTION_STRING = (
    "Server=tcp:{server}.database.windows.net,1433;"
    "Initial Catalog={database};Persist Security Info=False;"
    "User ID={user};Password={password};MultipleActiveResultSets=False;"
    "Encrypt=True;TrustServerCertificate=False;Connection Timeout=30;"
)

LOGIC_APP_KIND = "functionapp,workflowapp,kubernetes"
