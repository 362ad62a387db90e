# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.exceptions import (
    ProvisioningError,
    ProvisioningTimeoutError,
)
from ._util import wait, wait_for_error
from ._arm_template import ARMTemplate
from ._arm_client import arm_clients
from azure.cli.core.azclierror import ResourceNotFoundError
from knack.log import get_logger

import pydash as _

__all__ = ["ArmClient"]

logger = get_logger(__name__)


class ArmClient(object):
    def __init__(self, azure_credential, subscription):
        self._arm_clients = arm_clients(subscription, azure_credential)
        self._subscription_id = subscription
        self._template = ARMTemplate(self._arm_clients)

    @property
    def subscription(self):
        return self._subscription_id

    @property
    def resources(self):
        return self._arm_clients.resources

    @property
    def clusters(self):
        return self._arm_clients.clusters

    @property
    def apps(self):
        return self._arm_clients.apps

    @property
    def data(self):
        return self._arm_clients.data

    # ======================================================================== #
    # == Provisioning state ================================================== #
    # ======================================================================== #

    @staticmethod
    def provisioning_state(resource):
        """
        :return: `properties.provisioningState` of an ARM resource, or `None`
                 when the resource does not exist (yet).
        """
        return _.get(resource, "properties.provisioningState")

    # ======================================================================== #
    # == Resource group / providers ========================================== #
    # ======================================================================== #

    def delete_resource_group(self, resource_group, polling=True):
        if self.resources.get_resource_group(resource_group) is None:
            raise ResourceNotFoundError(
                f"The resource group '{resource_group}' was not found."
            )

        self.resources.delete_resource_group(resource_group)

        if polling:

            def _exists():
                if self.resources.get_resource_group(resource_group) is None:
                    raise ResourceNotFoundError(resource_group)

            wait_for_error(_exists, e=ResourceNotFoundError)

    def provider_state(self, namespace):
        return _.get(
            self.resources.get_provider(namespace), "registrationState"
        )

    def register_provider(self, namespace, polling=True):
        self.resources.register_provider(namespace)
        if polling:
            wait(
                self.provider_state,
                namespace,
                ready=("Registered",),
                failed=(),
                label=f"provider '{namespace}' registration",
                retry_delay=10,
                retry_tol=600,
            )

    # ======================================================================== #
    # == Template deployments ================================================ #
    # ======================================================================== #

    def deployment_state(self, resource_group, name):
        return self.provisioning_state(
            self.resources.get_deployment(resource_group, name)
        )

    def deploy(self, resource_group, name, body, polling=True):
        """
        Submit an ARM template deployment and wait for it to finish.
        """
        if body is None:
            logger.debug("Nothing to deploy for '%s'.", name)
            return None

        self.resources.create_deployment(resource_group, name, body)
        if not polling:
            return None

        try:
            wait(
                self.deployment_state,
                resource_group,
                name,
                label=f"deployment '{name}'",
            )
        except ProvisioningTimeoutError:
            raise
        except ProvisioningError as e:
            deployment = self.resources.get_deployment(resource_group, name)
            error = _.get(deployment, "properties.error") or {}
            details = "; ".join(
                d.get("message", "") for d in error.get("details") or []
            )
            raise ProvisioningError(
                "Deployment '{0}' failed: {1}{2}".format(
                    name,
                    error.get("message") or e.state,
                    f" ({details})" if details else "",
                ),
                state=e.state,
            )

        return self.resources.get_deployment(resource_group, name)

    def create_sql(self, settings, deployment_name, polling=True):
        return self.deploy(
            settings.resource_group,
            deployment_name,
            self._template.render_sql(settings),
            polling=polling,
        )

    def create_storage(self, settings, deployment_name, polling=True):
        return self.deploy(
            settings.resource_group,
            deployment_name,
            self._template.render_storage(settings),
            polling=polling,
        )

    def create_logic_app(
        self,
        settings,
        deployment_name,
        custom_location_id,
        environment_id,
        sql_connection_string,
        polling=True,
    ):
        return self.deploy(
            settings.resource_group,
            deployment_name,
            self._template.render_logic_app(
                settings,
                custom_location_id,
                environment_id,
                sql_connection_string,
            ),
            polling=polling,
        )
