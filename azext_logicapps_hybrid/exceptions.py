# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azure.cli.core.azclierror import AzureResponseError, ValidationError

__all__ = [
    "ProvisioningError",
    "ProvisioningTimeoutError",
    "ToolError",
    "ToolNotFoundError",
]


class ProvisioningError(AzureResponseError):
    """A resource reached a failed provisioning state."""

    def __init__(self, message, state=None):
        super(ProvisioningError, self).__init__(message)
        self.state = state


class ProvisioningTimeoutError(ProvisioningError):
    """A resource did not reach a ready state within the wait tolerance."""


class ToolError(AzureResponseError):
    """
    An external command (`az`, `kubectl`, `helm`) exited with a non-zero
    return code.
    """

    def __init__(self, command, returncode, output=""):
        self.command = command
        self.returncode = returncode
        self.output = output or ""
        super(ToolError, self).__init__(
            "Command '{0}' failed with exit code {1}: {2}".format(
                " ".join(command), returncode, self.output.strip()
            )
        )


class ToolNotFoundError(ValidationError):
    def __init__(self, tool):
        self.tool = tool
        super(ToolNotFoundError, self).__init__(
            "'{0}' was not found on the PATH. Install it and try "
            "again.".format(tool)
        )
