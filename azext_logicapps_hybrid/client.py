# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.arm_sdk import ArmClient
from azext_logicapps_hybrid.core.configuration import DeploymentSettings
from azext_logicapps_hybrid.core.identity import HybridCliCredential
from azext_logicapps_hybrid.core.util import stdout
from azext_logicapps_hybrid.provision.context import DeploymentContext
from azure.cli.core.commands.client_factory import get_subscription_id
from knack.log import get_logger

__all__ = ["beget", "HybridClient"]

logger = get_logger(__name__)


def beget(az_cli, _):
    """Client factory"""
    return HybridClient(az_cli)


class HybridClient(object):
    """
    Command client: resolves deployment settings and builds the deployment
    context against the logged-in `az` profile.
    """

    def __init__(self, cli_ctx):
        self._cli_ctx = cli_ctx

    @property
    def stdout(self):
        return stdout

    @property
    def cli_ctx(self):
        return self._cli_ctx

    @property
    def active_subscription(self):
        return get_subscription_id(self._cli_ctx)

    def settings(self, config_file=None, validate=True, **args):
        """
        Resolve the deployment settings of a command. The active CLI
        subscription is used unless another one is configured.
        """
        return DeploymentSettings.resolve(
            args=args,
            parameters_file=config_file,
            defaults={"subscription": self.active_subscription},
            validate=validate,
        )

    def context(self, settings):
        credential = HybridCliCredential(
            self._cli_ctx, subscription=settings.subscription
        )
        arm_client = ArmClient(credential, settings.subscription)
        logger.debug("Deployment context for %s", settings)
        return DeploymentContext(settings, arm_client)
