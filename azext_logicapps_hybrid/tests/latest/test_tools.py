# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.core.tools import ToolRunner
from azext_logicapps_hybrid.exceptions import ToolError, ToolNotFoundError
from azext_logicapps_hybrid.kubernetes_sdk.helm import HelmClient
from subprocess import CalledProcessError, STDOUT
from unittest import mock

import os
import unittest

TOOLS = "azext_logicapps_hybrid.core.tools"


@mock.patch(TOOLS + ".shutil.which", side_effect=lambda t: f"/usr/bin/{t}")
class ToolRunnerTest(unittest.TestCase):
    @mock.patch(TOOLS + ".check_output", return_value=b"ok\n")
    def test_run_returns_decoded_output(self, check_output, _):
        runner = ToolRunner()
        self.assertEqual(runner.run("az", ["version"]), "ok\n")
        check_output.assert_called_once_with(
            ["/usr/bin/az", "version"], stderr=STDOUT, cwd=None
        )

    @mock.patch(TOOLS + ".check_output")
    def test_run_raises_tool_error(self, check_output, _):
        check_output.side_effect = CalledProcessError(
            2, ["helm"], output=b"Error: release not found"
        )
        with self.assertRaises(ToolError) as ctx:
            ToolRunner().run("helm", ["status", "x"])

        self.assertEqual(ctx.exception.returncode, 2)
        self.assertIn("release not found", str(ctx.exception))
        self.assertIn("helm status x", str(ctx.exception))

    @mock.patch(TOOLS + ".check_output")
    def test_succeeds(self, check_output, _):
        check_output.side_effect = [b"", CalledProcessError(1, ["helm"])]
        runner = ToolRunner()
        self.assertTrue(runner.succeeds("helm", ["status", "a"]))
        self.assertFalse(runner.succeeds("helm", ["status", "b"]))

    @mock.patch.dict(os.environ, {"KUBECTL_CONTEXT": "dev"})
    @mock.patch(TOOLS + ".check_output", return_value=b"")
    def test_kubeconfig_arguments(self, check_output, _):
        runner = ToolRunner(kubeconfig="/tmp/kubeconfig")
        runner.run("kubectl", ["get", "pods"])
        runner.run("helm", ["list"])

        kubectl, helm = [c.args[0] for c in check_output.call_args_list]
        self.assertEqual(
            kubectl,
            [
                "/usr/bin/kubectl",
                "--context",
                "dev",
                "--kubeconfig",
                "/tmp/kubeconfig",
                "get",
                "pods",
            ],
        )
        self.assertEqual(
            helm, ["/usr/bin/helm", "--kubeconfig", "/tmp/kubeconfig", "list"]
        )

    @mock.patch(TOOLS + ".check_output", return_value=b"v3.14.0+g3fc9f4b\n")
    def test_version(self, check_output, _):
        self.assertEqual(ToolRunner().version("helm"), "v3.14.0+g3fc9f4b")
        check_output.assert_called_once_with(
            ["/usr/bin/helm", "version", "--short"], stderr=STDOUT, cwd=None
        )

    def test_which_is_cached(self, which):
        runner = ToolRunner()
        runner.which("kubectl")
        runner.which("kubectl")
        which.assert_called_once_with("kubectl")


class ToolNotFoundTest(unittest.TestCase):
    @mock.patch(TOOLS + ".os.path.isfile", return_value=False)
    @mock.patch(TOOLS + ".shutil.which", return_value=None)
    def test_missing_tool(self, *_):
        runner = ToolRunner()
        self.assertIsNone(runner.which("az"))
        with self.assertRaises(ToolNotFoundError) as ctx:
            runner.run("helm", ["list"])
        self.assertEqual(ctx.exception.tool, "helm")


class HelmClientTest(unittest.TestCase):
    def setUp(self):
        self.runner = mock.Mock()
        self.helm = HelmClient(self.runner)

    def test_add_repo(self):
        self.helm.add_repo("csi", "https://example.org/charts")
        self.runner.run.assert_has_calls(
            [
                mock.call(
                    "helm",
                    [
                        "repo",
                        "add",
                        "csi",
                        "https://example.org/charts",
                        "--force-update",
                    ],
                ),
                mock.call("helm", ["repo", "update", "csi"]),
            ]
        )

    def test_install(self):
        self.helm.install(
            "rel", "repo/chart", "kube-system", version="v1", values={"a": 1}
        )
        self.runner.run.assert_called_once_with(
            "helm",
            [
                "install",
                "rel",
                "repo/chart",
                "--namespace",
                "kube-system",
                "--version",
                "v1",
                "--set",
                "a=1",
            ],
        )

    def test_release_exists(self):
        self.runner.succeeds.return_value = False
        self.assertFalse(self.helm.release_exists("rel", "kube-system"))
        self.runner.succeeds.assert_called_once_with(
            "helm", ["status", "rel", "--namespace", "kube-system"]
        )
