# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

"""
Thin wrapper around the external command line tools a deployment drives:
`az`, `kubectl` and `helm`.
"""

from azext_logicapps_hybrid.exceptions import ToolError, ToolNotFoundError
from subprocess import STDOUT, CalledProcessError, check_output
from knack.log import get_logger

import os
import shutil
import sys

__all__ = ["ToolRunner", "SUPPORTED_TOOLS"]

logger = get_logger(__name__)

SUPPORTED_TOOLS = ["az", "kubectl", "helm"]

VERSION_ARGS = {
    "az": ["version", "--output", "json"],
    "kubectl": ["version", "--client", "--output", "json"],
    "helm": ["version", "--short"],
}


class ToolRunner(object):
    """
    Runs external tools synchronously and checks their exit code.
    """

    def __init__(self, kubeconfig=None):
        self._kubeconfig = kubeconfig
        self._paths = {}

    @property
    def kubeconfig(self):
        return self._kubeconfig

    @kubeconfig.setter
    def kubeconfig(self, path):
        self._kubeconfig = path

    def which(self, tool):
        """
        Resolve the executable of `tool`, or `None` when it is not installed.
        """
        if tool in self._paths:
            return self._paths[tool]

        found = shutil.which(tool)
        if not found and tool == "az":
            # `az` is an entry-point script next to the running interpreter
            candidate = os.path.join(os.path.dirname(sys.executable), "az")
            if os.path.isfile(candidate):
                found = candidate

        self._paths[tool] = found
        return found

    def version(self, tool):
        """
        Return the version output of `tool`.
        """
        return self.run(tool, VERSION_ARGS[tool]).strip()

    def run(self, tool, args, cwd=None):
        """
        Run `tool` with `args` and return its decoded output.

        :raises ToolNotFoundError: The tool is not on the PATH.
        :raises ToolError: The tool exited with a non-zero code.
        """
        executable = self.which(tool)
        if not executable:
            raise ToolNotFoundError(tool)

        command = [executable] + self._global_args(tool) + list(args)
        logger.debug("Running: %s", " ".join(command))

        try:
            output = check_output(command, stderr=STDOUT, cwd=cwd)
        except CalledProcessError as e:
            output = (e.output or b"").decode("utf-8", errors="replace")
            logger.debug("Command failed with the error:\n %s", output)
            raise ToolError([tool] + list(args), e.returncode, output)

        output = output.decode("utf-8", errors="replace")
        logger.debug(output)
        return output

    def succeeds(self, tool, args):
        """
        Run `tool` and report whether it exited with a zero code.
        """
        try:
            self.run(tool, args)
            return True
        except ToolError:
            return False

    def _global_args(self, tool):
        if tool == "kubectl":
            global_args = []
            if "KUBECTL_CONTEXT" in os.environ:
                global_args.extend(["--context", os.environ["KUBECTL_CONTEXT"]])
            if self._kubeconfig:
                global_args.extend(["--kubeconfig", self._kubeconfig])
            return global_args
        if tool == "helm" and self._kubeconfig:
            return ["--kubeconfig", self._kubeconfig]
        return []
