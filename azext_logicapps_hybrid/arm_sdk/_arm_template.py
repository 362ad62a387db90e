# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.constants import (
    API_VERSION_MAP,
    LOGIC_APP_KIND,
    TEMPLATE_DIR,
)
from ._util import dict_to_dot_notation
from jinja2 import Environment, FileSystemLoader
from knack.log import get_logger

import json

__all__ = ["ARMTemplate"]

logger = get_logger(__name__)

SQL_SERVER_REF = (
    "[resourceId('Microsoft.Sql/servers', parameters('sqlServerName'))]"
)
SQL_FIREWALL_RULE_REF = (
    "[resourceId('Microsoft.Sql/servers/firewallRules', "
    "parameters('sqlServerName'), 'AllowAllWindowsAzureIps')]"
)
SQL_DATABASE_REF = (
    "[resourceId('Microsoft.Sql/servers/databases', "
    "parameters('sqlServerName'), parameters('sqlDatabaseName'))]"
)
STORAGE_ACCOUNT_REF = (
    "[resourceId('Microsoft.Storage/storageAccounts', "
    "parameters('storageAccountName'))]"
)
FILE_SHARE_REF = (
    "[resourceId('Microsoft.Storage/storageAccounts/fileServices/shares', "
    "parameters('storageAccountName'), 'default', "
    "parameters('fileShareName'))]"
)
LOGIC_APP_REF = (
    "[resourceId('Microsoft.Web/sites', parameters('logicAppName'))]"
)


class ARMTemplate(object):
    SECURE_PARAMETERS = ["sqlAdminPassword", "sqlConnectionString"]

    def __init__(self, clients):
        self._clients = clients
        self._template = Environment(
            loader=FileSystemLoader(searchpath=TEMPLATE_DIR)
        ).get_template("arm-template.tmpl")

    # ------------------------------------------------------------------------ #
    # -- deployments
    # ------------------------------------------------------------------------ #

    def render_sql(self, settings):
        """
        :return: Deployment body for the SQL server, its firewall rule and the
                 Logic Apps database, or `None` if everything exists.
        """
        matrix = self._build_sql_resource_matrix(settings)
        resources = self._resources(
            [
                (matrix.include_server, "sql-server.tmpl", SQL_SERVER_REF),
                (
                    matrix.include_firewall_rule,
                    "sql-firewall-rule.tmpl",
                    SQL_FIREWALL_RULE_REF,
                ),
                (
                    matrix.include_database,
                    "sql-database.tmpl",
                    SQL_DATABASE_REF,
                ),
            ]
        )

        return self._render(
            resources,
            {
                "location": settings.location,
                "tags": {},
                "sqlServerName": settings.sql_server_name,
                "sqlAdminUser": settings.sql_admin_user,
                "sqlAdminPassword": settings.sql_admin_password
                if matrix.include_server
                else "",
                "sqlDatabaseName": settings.sql_database_name,
                "sqlSku": settings.sql_sku,
            },
        )

    def render_storage(self, settings):
        """
        :return: Deployment body for the storage account and its SMB file
                 share, or `None` if everything exists.
        """
        matrix = self._build_storage_resource_matrix(settings)
        resources = self._resources(
            [
                (
                    matrix.include_account,
                    "storage-account.tmpl",
                    STORAGE_ACCOUNT_REF,
                ),
                (matrix.include_share, "file-share.tmpl", FILE_SHARE_REF),
            ]
        )

        return self._render(
            resources,
            {
                "location": settings.location,
                "tags": {},
                "storageAccountName": settings.storage_account_name,
                "storageSku": settings.storage_sku,
                "fileShareName": settings.file_share_name,
                "fileShareQuota": settings.file_share_quota,
            },
        )

    def render_logic_app(self, settings, custom_location_id, environment_id,
                         sql_connection_string):
        """
        :return: Deployment body for the Logic App, or `None` if it exists.
        """
        site = self._clients.apps.get_site(
            settings.resource_group, settings.logic_app_name
        )
        resources = self._resources(
            [(site is None, "logic-app.tmpl", LOGIC_APP_REF)]
        )

        return self._render(
            resources,
            {
                "location": settings.location,
                "tags": {},
                "logicAppName": settings.logic_app_name,
                "customLocationId": custom_location_id,
                "connectedEnvironmentId": environment_id,
                "sqlConnectionString": sql_connection_string,
            },
        )

    # ------------------------------------------------------------------------ #
    # -- rendering
    # ------------------------------------------------------------------------ #

    @staticmethod
    def _resources(candidates):
        """
        :return: Ordered list of included resource templates, each depending
                 on the previously included one.
        """
        resources = []  # Note: insert order matters
        depends_on = None

        for included, tmpl, ref in candidates:
            if not included:
                continue
            resources.append(
                {"dependsOn": [depends_on] if depends_on else [], "tmpl": tmpl}
            )
            depends_on = ref

        return resources

    def _render(self, resources, values):
        if not resources:
            return None

        parameters = [
            {"name": name, "type": self._parameter_type(name, value),
             "value": value}
            for name, value in values.items()
        ]

        arm = json.loads(
            self._template.render(
                resources=resources,
                parameters=parameters,
                api_version=dict_to_dot_notation(API_VERSION_MAP),
                logic_app_kind=LOGIC_APP_KIND,
            )
        )

        # -- log --
        d = json.loads(json.dumps(arm))
        for name in self.SECURE_PARAMETERS:
            if name in d["properties"]["parameters"]:
                d["properties"]["parameters"][name]["value"] = "*"
        logger.debug(json.dumps(d, indent=4))

        return arm

    def _parameter_type(self, name, value):
        if name in self.SECURE_PARAMETERS:
            return "securestring"
        if isinstance(value, bool):
            return "bool"
        if isinstance(value, int):
            return "int"
        if isinstance(value, dict):
            return "object"
        return "string"

    # ------------------------------------------------------------------------ #
    # -- included resource matrices
    # ------------------------------------------------------------------------ #

    def _build_sql_resource_matrix(self, settings):
        data = self._clients.data
        server = data.get_sql_server(
            settings.resource_group, settings.sql_server_name
        )
        database = None
        if server:
            database = data.get_sql_database(
                settings.resource_group,
                settings.sql_server_name,
                settings.sql_database_name,
            )

        resource_matrix = dict_to_dot_notation(
            {
                "include_server": server is None,
                "include_firewall_rule": server is None,
                "include_database": database is None,
            }
        )
        logger.debug(resource_matrix)
        return resource_matrix

    def _build_storage_resource_matrix(self, settings):
        data = self._clients.data
        account = data.get_storage_account(
            settings.resource_group, settings.storage_account_name
        )
        share = None
        if account:
            share = data.get_file_share(
                settings.resource_group,
                settings.storage_account_name,
                settings.file_share_name,
            )

        resource_matrix = dict_to_dot_notation(
            {
                "include_account": account is None,
                "include_share": share is None,
            }
        )
        logger.debug(resource_matrix)
        return resource_matrix
