# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

"""
Deployment settings for one hybrid Logic Apps environment.

Settings are merged from, in increasing precedence:
- built-in defaults
- a parameters file (ARM deployment parameters or a flat JSON object)
- `LOGICAPPS_HYBRID_<NAME>` environment variables
- command arguments
"""

from azext_logicapps_hybrid import constants
from azext_logicapps_hybrid.core import naming
from azure.cli.core.azclierror import (
    FileOperationError,
    RequiredArgumentMissingError,
    ValidationError,
)
from knack.log import get_logger
from knack.prompting import prompt_pass, NoTTYException

import json
import os
import pydash as _

__all__ = ["DeploymentSettings"]

logger = get_logger(__name__)

PARAMETERS_SCHEMA = (
    "https://schema.management.azure.com/schemas/2019-04-01/"
    "deploymentParameters.json#"
)

# name -> (default, type). `None` defaults are derived or required.
FIELDS = {
    "subscription": (None, str),
    "resource_group": (None, str),
    "location": (None, str),
    "name_prefix": (constants.DEFAULT_NAME_PREFIX, str),
    "name_suffix": (None, str),
    "cluster_name": (None, str),
    "connected_cluster_name": (None, str),
    "node_count": (constants.DEFAULT_NODE_COUNT, int),
    "min_node_count": (constants.DEFAULT_MIN_NODE_COUNT, int),
    "max_node_count": (constants.DEFAULT_MAX_NODE_COUNT, int),
    "node_vm_size": (constants.DEFAULT_NODE_VM_SIZE, str),
    "max_pods": (constants.DEFAULT_MAX_PODS, int),
    "kubeconfig": (None, str),
    "extension_name": (constants.DEFAULT_EXTENSION_NAME, str),
    "extension_namespace": (constants.DEFAULT_EXTENSION_NAMESPACE, str),
    "custom_location_name": (None, str),
    "connected_environment_name": (None, str),
    "environment_storage_name": (None, str),
    "sql_server_name": (None, str),
    "sql_database_name": (constants.DEFAULT_SQL_DATABASE, str),
    "sql_admin_user": (constants.DEFAULT_SQL_ADMIN_USER, str),
    "sql_sku": (constants.DEFAULT_SQL_SKU, str),
    "storage_account_name": (None, str),
    "storage_sku": (constants.DEFAULT_STORAGE_SKU, str),
    "file_share_name": (constants.DEFAULT_FILE_SHARE, str),
    "file_share_quota": (constants.DEFAULT_FILE_SHARE_QUOTA, int),
    "logic_app_name": (None, str),
}

REQUIRED = ["subscription", "resource_group", "location"]

KUBERNETES_NAMES = [
    "cluster_name",
    "connected_cluster_name",
    "extension_name",
    "extension_namespace",
    "custom_location_name",
    "connected_environment_name",
    "environment_storage_name",
    "logic_app_name",
]


class DeploymentSettings(object):
    def __init__(self, **values):
        unknown = set(values) - set(FIELDS)
        if unknown:
            raise ValidationError(
                "Unknown deployment setting(s): {0}".format(
                    ", ".join(sorted(unknown))
                )
            )

        for name, (default, _type) in FIELDS.items():
            setattr(self, name, values.get(name, default))

        self._sql_admin_password = None
        self._derive()

    # ------------------------------------------------------------------------ #
    # -- resolution
    # ------------------------------------------------------------------------ #

    @classmethod
    def resolve(
        cls,
        args=None,
        parameters_file=None,
        environ=None,
        defaults=None,
        validate=True,
    ):
        """
        Merge every settings source and validate the result.

        :param args: Command arguments; `None` values are ignored.
        :param parameters_file: Optional path to a JSON parameters file.
        :param environ: Environment mapping, defaults to `os.environ`.
        :param defaults: Fallback values with the lowest precedence, such as
                         the active subscription of the CLI.
        :param validate: Validate the merged settings.
        """
        values = dict(defaults or {})

        if parameters_file:
            values.update(cls.load_parameters_file(parameters_file))

        values.update(cls._from_environment(environ))

        for key, value in (args or {}).items():
            if value is not None:
                values[key] = value

        settings = cls(**cls._coerce(values))
        if validate:
            settings.validate()
        return settings

    @staticmethod
    def load_parameters_file(path):
        """
        Read a parameters file. Both the ARM parameter-file shape and a flat
        JSON object are accepted; keys may be camelCase or snake_case.
        """
        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise FileOperationError(
                "Unable to read parameters file '{0}': {1}".format(path, e)
            )

        if not isinstance(document, dict):
            raise ValidationError(
                "Parameters file '{0}' must contain a JSON object.".format(path)
            )

        parameters = document.get("parameters", document)
        values = {}
        for key, value in parameters.items():
            if key.startswith("$") or key == "contentVersion":
                continue
            if isinstance(value, dict) and "value" in value:
                value = value["value"]
            values[_.snake_case(key)] = value

        logger.debug("Parameters from '%s': %s", path, sorted(values))
        return values

    @staticmethod
    def _from_environment(environ=None):
        environ = os.environ if environ is None else environ
        values = {}
        for name in FIELDS:
            value = environ.get(constants.ENV_PREFIX + name.upper())
            if value:
                values[name] = value
        return values

    @staticmethod
    def _coerce(values):
        coerced = {}
        for key, value in values.items():
            field = FIELDS.get(key)
            if field and value is not None and field[1] is int:
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValidationError(
                        "Setting '{0}' must be an integer, got '{1}'.".format(
                            key, value
                        )
                    )
            coerced[key] = value
        return coerced

    def _derive(self):
        prefix = self.name_prefix
        if not self.name_suffix and self.subscription and self.resource_group:
            self.name_suffix = naming.unique_suffix(
                self.subscription, self.resource_group, length=6
            )

        self.cluster_name = self.cluster_name or f"{prefix}-aks"
        self.connected_cluster_name = (
            self.connected_cluster_name or f"{prefix}-arc"
        )
        self.custom_location_name = (
            self.custom_location_name or f"{prefix}-location"
        )
        self.connected_environment_name = (
            self.connected_environment_name or f"{prefix}-env"
        )
        self.environment_storage_name = (
            self.environment_storage_name or f"{prefix}-smb"
        )
        self.logic_app_name = self.logic_app_name or f"{prefix}-logicapp"
        # the suffix keeps environments in different resource groups apart
        kubeconfig_name = "-".join(
            p for p in [self.cluster_name, self.name_suffix, "config"] if p
        )
        self.kubeconfig = self.kubeconfig or os.path.join(
            constants.KUBE_DIR, kubeconfig_name
        )

        if self.name_suffix:
            self.sql_server_name = self.sql_server_name or (
                naming.sql_server_name(prefix, self.name_suffix)
            )
            self.storage_account_name = self.storage_account_name or (
                naming.storage_account_name(prefix, self.name_suffix)
            )

    def validate(self):
        missing = [name for name in REQUIRED if not getattr(self, name)]
        if missing:
            raise RequiredArgumentMissingError(
                "Missing required setting(s): {0}".format(
                    ", ".join("--" + m.replace("_", "-") for m in missing)
                )
            )

        for name in KUBERNETES_NAMES:
            naming.kubernetes_name(getattr(self, name), kind=name)

        if not (
            self.min_node_count <= self.node_count <= self.max_node_count
        ):
            raise ValidationError(
                "Node count {0} must be between the minimum ({1}) and maximum "
                "({2}) node count.".format(
                    self.node_count, self.min_node_count, self.max_node_count
                )
            )

    # ------------------------------------------------------------------------ #
    # -- secrets
    # ------------------------------------------------------------------------ #

    @property
    def sql_admin_password(self):
        """
        The SQL administrator password, read from the environment or prompted
        for once.
        """
        if self._sql_admin_password:
            return self._sql_admin_password

        password = os.getenv(constants.SQL_ADMIN_PASSWORD_ENV)
        if not password:
            try:
                password = prompt_pass(
                    "SQL administrator password: ", confirm=True
                )
            except NoTTYException:
                raise RequiredArgumentMissingError(
                    "Set the {0} environment variable to provide the SQL "
                    "administrator password.".format(
                        constants.SQL_ADMIN_PASSWORD_ENV
                    )
                )

        self._sql_admin_password = password
        return password

    @sql_admin_password.setter
    def sql_admin_password(self, value):
        self._sql_admin_password = value

    # ------------------------------------------------------------------------ #
    # -- output
    # ------------------------------------------------------------------------ #

    def to_dict(self):
        return {name: getattr(self, name) for name in FIELDS}

    def to_parameters_file(self):
        parameters = {
            _.camel_case(name): {"value": value}
            for name, value in self.to_dict().items()
            if value is not None
        }
        return {
            "$schema": PARAMETERS_SCHEMA,
            "contentVersion": "1.0.0.0",
            "parameters": parameters,
        }

    def __str__(self):
        return "<DeploymentSettings resource_group={0} location={1}>".format(
            self.resource_group, self.location
        )

    def __repr__(self):
        return self.__str__()
