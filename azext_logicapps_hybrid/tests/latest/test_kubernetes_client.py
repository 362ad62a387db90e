# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.exceptions import ProvisioningTimeoutError
from azext_logicapps_hybrid.kubernetes_sdk.client import (
    KubernetesClient,
    KubernetesError,
)
from kubernetes.client.rest import ApiException
from unittest import mock
from urllib3.exceptions import MaxRetryError

import unittest

K8S = "azext_logicapps_hybrid.kubernetes_sdk.client"


def pod(name, phase):
    p = mock.Mock()
    p.metadata.name = name
    p.status.phase = phase
    return p


@mock.patch(K8S + ".k8sClient.CoreV1Api")
@mock.patch(K8S + ".k8sConfig.new_client_from_config")
class KubernetesClientTest(unittest.TestCase):
    def test_client_is_loaded_from_kubeconfig(self, new_client, core_api):
        client = KubernetesClient(kubeconfig="/tmp/config", context="dev")
        client.core
        client.core
        new_client.assert_called_once_with(
            config_file="/tmp/config", context="dev"
        )

        client.kubeconfig = "/tmp/other"
        client.core
        new_client.assert_called_with(config_file="/tmp/other", context="dev")

    def test_namespace_exists(self, _, core_api):
        core = core_api.return_value
        client = KubernetesClient()

        self.assertTrue(client.namespace_exists("ns"))

        core.read_namespace.side_effect = ApiException(status=404)
        self.assertFalse(client.namespace_exists("ns"))

        core.read_namespace.side_effect = ApiException(status=403)
        with self.assertRaises(KubernetesError) as ctx:
            client.namespace_exists("ns")
        self.assertEqual(ctx.exception.code, 403)

    def test_pod_status(self, _, core_api):
        core = core_api.return_value
        core.list_namespaced_pod.return_value.items = [
            pod("a", "Running"),
            pod("b", "Pending"),
        ]
        client = KubernetesClient()

        self.assertEqual(
            client.pod_status("ns", "app=x"),
            [("a", "Running"), ("b", "Pending")],
        )
        core.list_namespaced_pod.assert_called_with(
            namespace="ns", label_selector="app=x"
        )
        self.assertFalse(client.pods_ready("ns"))

    def test_no_pods_is_not_ready(self, _, core_api):
        core_api.return_value.list_namespaced_pod.return_value.items = []
        self.assertFalse(KubernetesClient().pods_ready("ns"))

    @mock.patch(K8S + ".time.sleep")
    def test_wait_for_pods(self, sleep, _, core_api):
        core_api.return_value.list_namespaced_pod.side_effect = [
            mock.Mock(items=[pod("a", "Pending")]),
            mock.Mock(items=[pod("a", "Running")]),
        ]
        self.assertTrue(KubernetesClient().wait_for_pods("ns", retry_delay=1))
        sleep.assert_called_once_with(1)

    @mock.patch(K8S + ".time.sleep")
    def test_wait_for_pods_while_api_unreachable(self, sleep, _, core_api):
        core_api.return_value.list_namespaced_pod.side_effect = [
            MaxRetryError(None, "/api/v1/namespaces/ns/pods"),
            mock.Mock(items=[pod("a", "Running")]),
        ]
        self.assertTrue(KubernetesClient().wait_for_pods("ns", retry_delay=1))
        sleep.assert_called_once_with(1)

    @mock.patch(K8S + ".time.sleep")
    def test_wait_for_pods_times_out(self, sleep, _, core_api):
        core_api.return_value.list_namespaced_pod.return_value.items = [
            pod("a", "CrashLoopBackOff")
        ]
        with self.assertRaises(ProvisioningTimeoutError) as ctx:
            KubernetesClient().wait_for_pods("ns", retry_count=3)

        self.assertEqual(sleep.call_count, 3)
        self.assertIn("a=CrashLoopBackOff", str(ctx.exception))


class KubernetesErrorTest(unittest.TestCase):
    def test_json_body(self):
        e = KubernetesError(
            mock.Mock(status=409, body='{"message": "exists", "code": 409}')
        )
        self.assertEqual(e.message, "exists")
        self.assertEqual(e.code, 409)
        self.assertEqual(str(e), "exists")

    def test_plain_body(self):
        e = KubernetesError(ApiException(status=500, reason="Server Error"))
        self.assertEqual(e.code, 500)
        self.assertIn("Server Error", e.message)
