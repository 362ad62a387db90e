# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.arm_sdk import ArmClient
from azext_logicapps_hybrid.arm_sdk._arm_client import (
    AppClient,
    ClusterClient,
    DataClient,
    ResourceManagerClient,
    arm_clients,
    resource_id,
)
from azext_logicapps_hybrid.exceptions import (
    ProvisioningError,
    ProvisioningTimeoutError,
)
from azure.cli.core.azclierror import (
    AzureResponseError,
    ResourceNotFoundError,
)
from unittest import mock

import base64
import json
import unittest

SUB = "00000000-0000-0000-0000-000000000000"
RG_PATH = f"/subscriptions/{SUB}/resourceGroups/rg"


def response(status_code=200, body=None, reason="OK"):
    r = mock.Mock()
    r.status_code = status_code
    r.ok = status_code < 400
    r.reason = reason
    r.text = json.dumps(body) if body is not None else ""
    r.json.return_value = body
    return r


class BaseClientTest(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()

    def test_get_returns_none_on_404(self):
        self.session.request.return_value = response(404, {}, "Not Found")
        client = ResourceManagerClient(SUB, self.session)
        self.assertIsNone(client.get_resource_group("rg"))

        method, url = self.session.request.call_args.args
        self.assertEqual(method, "GET")
        self.assertEqual(
            url,
            f"https://management.azure.com{RG_PATH}?api-version=2021-04-01",
        )

    def test_error_message(self):
        self.session.request.return_value = response(
            409,
            {"error": {"code": "Conflict", "message": "busy"}},
            "Conflict",
        )
        client = ResourceManagerClient(SUB, self.session)
        with self.assertRaises(AzureResponseError) as ctx:
            client.create_resource_group("rg", "eastus")
        self.assertEqual(str(ctx.exception), "409 Conflict: busy")

    def test_put_sends_body(self):
        self.session.request.return_value = response(201, {"name": "rg"})
        client = ResourceManagerClient(SUB, self.session)
        self.assertEqual(
            client.create_resource_group("rg", "eastus"), {"name": "rg"}
        )
        self.assertEqual(
            self.session.request.call_args.kwargs["json"],
            {"location": "eastus", "tags": {}},
        )

    def test_empty_body(self):
        self.session.request.return_value = response(202)
        client = ResourceManagerClient(SUB, self.session)
        self.assertEqual(client.register_provider("Microsoft.App"), {})

    def test_expired_token_is_refreshed_once(self):
        credential = mock.Mock()
        credential.get_token.return_value = mock.Mock(token="fresh")
        self.session.request.side_effect = [
            response(401, {"error": {"code": "ExpiredAuthenticationToken"}}),
            response(200, {"name": "rg"}),
        ]
        client = ResourceManagerClient(SUB, self.session, credential)

        self.assertEqual(client.get_resource_group("rg"), {"name": "rg"})
        self.session.headers.update.assert_called_once_with(
            {"Authorization": "Bearer fresh"}
        )
        self.assertEqual(self.session.request.call_count, 2)

    def test_unauthorized_after_refresh(self):
        credential = mock.Mock()
        credential.get_token.return_value = mock.Mock(token="fresh")
        self.session.request.return_value = response(
            401,
            {"error": {"code": "InvalidAuthenticationToken"}},
            "Unauthorized",
        )
        client = ResourceManagerClient(SUB, self.session, credential)

        with self.assertRaises(AzureResponseError):
            client.get_resource_group("rg")
        self.assertEqual(self.session.request.call_count, 2)

    def test_admin_kubeconfig_is_decoded(self):
        encoded = base64.b64encode(b"apiVersion: v1").decode("ascii")
        self.session.request.return_value = response(
            200, {"kubeconfigs": [{"name": "clusterAdmin", "value": encoded}]}
        )
        client = ClusterClient(SUB, self.session)
        self.assertEqual(
            client.get_admin_kubeconfig("rg", "aks"), "apiVersion: v1"
        )
        method, url = self.session.request.call_args.args
        self.assertEqual(method, "POST")
        self.assertIn(
            "/managedClusters/aks/listClusterAdminCredential?", url
        )

    def test_admin_kubeconfig_missing(self):
        self.session.request.return_value = response(200, {"kubeconfigs": []})
        with self.assertRaises(AzureResponseError):
            ClusterClient(SUB, self.session).get_admin_kubeconfig("rg", "aks")

    def test_extension_path(self):
        self.session.request.return_value = response(200, {"name": "ext"})
        ClusterClient(SUB, self.session).get_extension("rg", "arc", "ext")
        url = self.session.request.call_args.args[1]
        self.assertIn(
            "/providers/Microsoft.Kubernetes/connectedClusters/arc"
            "/providers/Microsoft.KubernetesConfiguration/extensions/ext"
            "?api-version=2023-05-01",
            url,
        )

    def test_environment_storage_key_is_masked(self):
        body = {
            "properties": {
                "azureFile": {"accountName": "sa", "accountKey": "key=="}
            }
        }
        self.session.request.return_value = response(200, body)
        result = AppClient(SUB, self.session).create_environment_storage(
            "rg", "env", "smb", body
        )
        self.assertEqual(result["properties"]["azureFile"]["accountKey"], "*")
        self.assertEqual(body["properties"]["azureFile"]["accountKey"], "key==")

    def test_storage_account_key(self):
        self.session.request.return_value = response(
            200, {"keys": [{"keyName": "key1", "value": "secret"}]}
        )
        client = DataClient(SUB, self.session)
        self.assertEqual(client.get_storage_account_key("rg", "sa"), "secret")

    def test_file_share_path(self):
        self.session.request.return_value = response(404, {})
        DataClient(SUB, self.session).get_file_share("rg", "sa", "share")
        url = self.session.request.call_args.args[1]
        self.assertIn(
            "/storageAccounts/sa/fileServices/default/shares/share?", url
        )

    def test_resource_id(self):
        self.assertEqual(
            resource_id(SUB, "rg", "Microsoft.Web", "sites", "app"),
            f"{RG_PATH}/providers/Microsoft.Web/sites/app",
        )


@mock.patch("azext_logicapps_hybrid.arm_sdk._util.time.sleep")
class ArmClientTest(unittest.TestCase):
    def setUp(self):
        credential = mock.Mock()
        credential.get_token.return_value = mock.Mock(token="token")
        with mock.patch(
            "azext_logicapps_hybrid.arm_sdk._arm_client.requests.Session"
        ) as session_cls:
            self.session = session_cls.return_value
            self.client = ArmClient(credential, SUB)

        self.resources = mock.Mock()
        self.client._arm_clients = self.client._arm_clients._replace(
            resources=self.resources
        )

    def test_session_is_shared_and_authorized(self, _):
        self.session.headers.update.assert_called_once_with(
            {
                "Authorization": "Bearer token",
                "Content-Type": "application/json",
            }
        )
        self.assertIs(self.client.clusters._session, self.session)
        self.assertIs(self.client.data._session, self.session)

    def test_deploy_nothing(self, _):
        self.assertIsNone(self.client.deploy("rg", "dep", None))
        self.resources.create_deployment.assert_not_called()

    def test_deploy_waits_for_success(self, sleep):
        self.resources.get_deployment.side_effect = [
            {"properties": {"provisioningState": "Running"}},
            {"properties": {"provisioningState": "Succeeded"}},
            {"name": "dep"},
        ]
        self.assertEqual(
            self.client.deploy("rg", "dep", {"properties": {}}),
            {"name": "dep"},
        )
        self.resources.create_deployment.assert_called_once_with(
            "rg", "dep", {"properties": {}}
        )
        sleep.assert_called_once()

    def test_deploy_failure_carries_error_details(self, _):
        self.resources.get_deployment.return_value = {
            "properties": {
                "provisioningState": "Failed",
                "error": {
                    "message": "At least one resource deployment failed.",
                    "details": [{"message": "Quota exceeded"}],
                },
            }
        }
        with self.assertRaises(ProvisioningError) as ctx:
            self.client.deploy("rg", "dep", {"properties": {}})

        self.assertIn("Quota exceeded", str(ctx.exception))
        self.assertEqual(ctx.exception.state, "Failed")

    def test_deploy_without_polling(self, _):
        self.assertIsNone(
            self.client.deploy("rg", "dep", {"a": 1}, polling=False)
        )
        self.resources.create_deployment.assert_called_once_with(
            "rg", "dep", {"a": 1}
        )
        self.resources.get_deployment.assert_not_called()

    @mock.patch(
        "azext_logicapps_hybrid.arm_sdk.client.wait",
        side_effect=ProvisioningTimeoutError("late", state="Running"),
    )
    def test_deploy_timeout_is_reraised(self, *_):
        with self.assertRaises(ProvisioningTimeoutError):
            self.client.deploy("rg", "dep", {"properties": {}})
        self.resources.get_deployment.assert_not_called()

    def test_delete_missing_resource_group(self, _):
        self.resources.get_resource_group.return_value = None
        with self.assertRaises(ResourceNotFoundError):
            self.client.delete_resource_group("rg")
        self.resources.delete_resource_group.assert_not_called()

    def test_delete_resource_group_waits(self, sleep):
        self.resources.get_resource_group.side_effect = [
            {"name": "rg"},
            {"name": "rg"},
            None,
        ]
        self.client.delete_resource_group("rg")
        self.resources.delete_resource_group.assert_called_once_with("rg")
        sleep.assert_called_once()

    def test_delete_resource_group_no_wait(self, sleep):
        self.resources.get_resource_group.return_value = {"name": "rg"}
        self.client.delete_resource_group("rg", polling=False)
        self.assertEqual(self.resources.get_resource_group.call_count, 1)
        sleep.assert_not_called()

    def test_register_provider(self, _):
        self.resources.get_provider.side_effect = [
            {"registrationState": "Registering"},
            {"registrationState": "Registered"},
        ]
        self.client.register_provider("Microsoft.App")
        self.resources.register_provider.assert_called_once_with(
            "Microsoft.App"
        )

    def test_provisioning_state(self, _):
        self.assertIsNone(ArmClient.provisioning_state(None))
        self.assertEqual(
            ArmClient.provisioning_state(
                {"properties": {"provisioningState": "Succeeded"}}
            ),
            "Succeeded",
        )

    def test_arm_clients(self, _):
        with mock.patch(
            "azext_logicapps_hybrid.arm_sdk._arm_client.requests.Session"
        ):
            clients = arm_clients(SUB, mock.Mock())
        self.assertEqual(
            clients._fields, ("resources", "clusters", "apps", "data")
        )
        self.assertEqual(clients.apps.subscription, SUB)
