# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

"""
Smoke tests of a deployed hybrid environment: the required tools are
installed, every resource exists in a healthy state and the pods on the
cluster are running.
"""

from azext_logicapps_hybrid.constants import (
    SMB_CSI_NAMESPACE,
    SMB_CSI_POD_SELECTOR,
)
from azext_logicapps_hybrid.core.tools import SUPPORTED_TOOLS
from azext_logicapps_hybrid.kubernetes_sdk.client import READY_POD_PHASES
from azext_logicapps_hybrid.provision.steps import default_steps
from knack.log import get_logger
from collections import OrderedDict

__all__ = ["SmokeTest", "PASSED", "FAILED"]

logger = get_logger(__name__)

PASSED = "Passed"
FAILED = "Failed"


class SmokeTest(object):
    def __init__(self, ctx, steps=None):
        self._ctx = ctx
        self._steps = steps if steps is not None else default_steps()
        self.checks = []

    @property
    def passed(self):
        return all(check["status"] == PASSED for check in self.checks)

    def run(self):
        """
        Run every check. A failing check never stops the others.

        :return: A list of `check`, `status`, `detail` results.
        """
        self.checks = []

        for tool in SUPPORTED_TOOLS:
            self._check(f"tool:{tool}", self._tool, tool)

        for step in self._steps:
            self._check(f"resource:{step.name}", self._resource, step)

        settings = self._ctx.settings
        self._check(
            f"pods:{settings.extension_namespace}",
            self._pods,
            settings.extension_namespace,
            None,
        )
        self._check(
            "pods:smb-csi-driver",
            self._pods,
            SMB_CSI_NAMESPACE,
            SMB_CSI_POD_SELECTOR,
        )

        return self.checks

    def _check(self, name, func, *args):
        try:
            passed, detail = func(*args)
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("Check '%s' raised: %s", name, e)
            passed, detail = False, str(e)

        result = OrderedDict(
            [
                ("check", name),
                ("status", PASSED if passed else FAILED),
                ("detail", detail),
            ]
        )
        self.checks.append(result)
        return result

    def _tool(self, tool):
        runner = self._ctx.runner
        if not runner.which(tool):
            return False, "not found on the PATH"

        version = runner.version(tool).splitlines()
        return True, version[0] if version else runner.which(tool)

    def _resource(self, step):
        state = step.state(self._ctx)
        if state is None:
            return False, "not found"

        return state in step.healthy_states, "state is '{0}'".format(state)

    def _pods(self, namespace, label_selector):
        kubernetes = self._ctx.kubernetes
        if not kubernetes.namespace_exists(namespace):
            return False, f"namespace '{namespace}' not found"

        statuses = kubernetes.pod_status(namespace, label_selector)
        if not statuses:
            return False, "no pods found"

        not_ready = [
            f"{name}={phase}"
            for name, phase in statuses
            if phase not in READY_POD_PHASES
        ]
        if not_ready:
            return False, "not ready: " + ", ".join(not_ready)
        return True, f"{len(statuses)} pod(s) running"
