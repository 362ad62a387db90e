# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.constants import (
    PODS_RETRY_ATTEMPTS,
    PODS_RETRY_INTERVAL,
)
from azext_logicapps_hybrid.exceptions import ProvisioningTimeoutError
from kubernetes import client as k8sClient, config as k8sConfig
from kubernetes.client.rest import ApiException as K8sApiException
from knack.log import get_logger
from urllib.parse import urlparse
from urllib3.exceptions import NewConnectionError, MaxRetryError

import json
import time
import yaml

__all__ = ["KubernetesClient", "KubernetesError", "kubeconfig_servers"]

logger = get_logger(__name__)

READY_POD_PHASES = ("Running", "Succeeded")


def kubeconfig_servers(path):
    """
    :return: The API server host names of every cluster in a kubeconfig file,
             or an empty list when the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8") as stream:
            config = yaml.safe_load(stream) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.debug("Unable to read kubeconfig %s: %s", path, e)
        return []

    if not isinstance(config, dict):
        return []

    hosts = []
    for entry in config.get("clusters") or []:
        server = ((entry or {}).get("cluster") or {}).get("server")
        if server:
            hosts.append(urlparse(server).hostname)
    return hosts


class KubernetesClient(object):
    """
    Client for the Kubernetes checks a hybrid deployment needs. The
    kubeconfig is loaded lazily on first use.
    """

    def __init__(self, kubeconfig=None, context=None):
        self._kubeconfig = kubeconfig
        self._context = context
        self._api_client = None

    @property
    def kubeconfig(self):
        return self._kubeconfig

    @kubeconfig.setter
    def kubeconfig(self, path):
        self._kubeconfig = path
        self._api_client = None

    @property
    def core(self):
        if self._api_client is None:
            logger.debug("Loading kubeconfig %s", self._kubeconfig)
            self._api_client = k8sConfig.new_client_from_config(
                config_file=self._kubeconfig, context=self._context
            )
        return k8sClient.CoreV1Api(api_client=self._api_client)

    # ------------------------------------------------------------------------ #
    # -- namespaces
    # ------------------------------------------------------------------------ #

    def namespace_exists(self, namespace):
        try:
            self.core.read_namespace(namespace)
            return True
        except K8sApiException as e:
            if e.status == 404:
                return False
            logger.debug(e.body)
            raise KubernetesError(e)

    # ------------------------------------------------------------------------ #
    # -- pods
    # ------------------------------------------------------------------------ #

    def list_pods(self, namespace, label_selector=None):
        kwargs = {"label_selector": label_selector} if label_selector else {}
        try:
            return self.core.list_namespaced_pod(
                namespace=namespace, **kwargs
            ).items
        except K8sApiException as e:
            logger.debug(e.body)
            raise KubernetesError(e)

    def pod_status(self, namespace, label_selector=None):
        """
        :return: A list of `(pod name, phase)` tuples.
        """
        return [
            (pod.metadata.name, pod.status.phase)
            for pod in self.list_pods(namespace, label_selector)
        ]

    def pods_ready(self, namespace, label_selector=None):
        """
        True when there is at least one pod and every pod is running (or has
        completed).
        """
        statuses = self.pod_status(namespace, label_selector)
        return bool(statuses) and all(
            phase in READY_POD_PHASES for _, phase in statuses
        )

    def wait_for_pods(
        self,
        namespace,
        label_selector=None,
        retry_count=PODS_RETRY_ATTEMPTS,
        retry_delay=PODS_RETRY_INTERVAL,
    ):
        for _ in range(retry_count):
            try:
                if self.pods_ready(namespace, label_selector):
                    return True
            except (NewConnectionError, MaxRetryError) as e:
                logger.debug("Kubernetes API is not reachable: %s", e)
            time.sleep(retry_delay)

        statuses = self.pod_status(namespace, label_selector)
        raise ProvisioningTimeoutError(
            "Pods in namespace '{0}'{1} are not ready: {2}".format(
                namespace,
                f" matching '{label_selector}'" if label_selector else "",
                ", ".join(f"{n}={p}" for n, p in statuses) or "no pods found",
            )
        )


# ---------------------------------------------------------------------------- #
# ---------------------------------------------------------------------------- #
# ---------------------------------------------------------------------------- #


class KubernetesError(Exception):
    """All errors related to Kubernetes APIS."""

    def __init__(self, api_exception):
        self.status_code = getattr(api_exception, "status", None)
        try:
            self.body = json.loads(api_exception.body)
        except (TypeError, ValueError):
            self.body = {"message": str(api_exception)}
        super().__init__(self.message)

    @property
    def body(self):
        """
        Returns the body of the kubernetes error
        :return:
        """
        return self._body

    @body.setter
    def body(self, b):
        self._body = b

    @property
    def message(self):
        """
        Returns the message of the kubernetes error.
        :return:
        """
        return self.body.get("message")

    @property
    def code(self):
        return self.body.get("code", self.status_code)
