# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.constants import (
    COMMAND_GROUP,
    ENV_PREFIX,
    SQL_ADMIN_PASSWORD_ENV,
)
from azext_logicapps_hybrid.provision.steps import default_steps
from azure.cli.core.commands.parameters import (
    get_enum_type,
    get_location_type,
    get_three_state_flag,
    resource_group_name_type,
)
from knack.arguments import CLIArgumentType


def load_arguments(self, _):
    steps = [step.name for step in default_steps()]

    config_file_type = CLIArgumentType(
        options_list=["--config-file", "-f"],
        help="Path to a deployment parameters file. Run `az {0} config init` "
        "to create one. Values can also be set with {1}<SETTING> environment "
        "variables; command arguments take precedence.".format(
            COMMAND_GROUP, ENV_PREFIX
        ),
    )
    name_prefix_type = CLIArgumentType(
        options_list=["--name-prefix"],
        help="Prefix of every derived resource name.",
    )

    with self.argument_context(COMMAND_GROUP) as c:
        c.argument("resource_group_name", resource_group_name_type)
        c.argument("config_file", config_file_type)
        c.argument("name_prefix", name_prefix_type)

    with self.argument_context(f"{COMMAND_GROUP} deploy") as c:
        c.argument(
            "location",
            get_location_type(self.cli_ctx),
            help="Azure region of the environment. Required unless set in "
            "the parameters file.",
        )
        c.argument(
            "steps",
            nargs="+",
            arg_type=get_enum_type(steps),
            help="Run only these steps. Steps always run in deployment order.",
        )
        c.argument(
            "skip_steps",
            nargs="+",
            arg_type=get_enum_type(steps),
            help="Steps to leave out.",
        )
        c.argument(
            "dry_run",
            options_list=["--dry-run"],
            arg_type=get_three_state_flag(),
            help="Only probe for the resources and report what would be "
            "created.",
        )
        c.argument(
            "no_progress",
            options_list=["--no-progress"],
            arg_type=get_three_state_flag(),
            help="Do not display a progress spinner.",
        )
        c.argument(
            "cluster_name",
            options_list=["--cluster-name"],
            help="Name of the AKS cluster.",
        )
        c.argument(
            "connected_cluster_name",
            options_list=["--connected-cluster-name"],
            help="Name of the Arc connected cluster.",
        )
        c.argument(
            "node_count",
            options_list=["--node-count"],
            type=int,
            help="Initial number of AKS nodes.",
        )
        c.argument(
            "node_vm_size",
            options_list=["--node-vm-size"],
            help="VM size of the AKS nodes.",
        )
        c.argument(
            "kubeconfig",
            options_list=["--kubeconfig"],
            help="Path the cluster admin kubeconfig is written to.",
        )
        c.argument(
            "extension_name",
            options_list=["--extension-name"],
            help="Name of the Container Apps cluster extension.",
        )
        c.argument(
            "extension_namespace",
            options_list=["--extension-namespace"],
            help="Kubernetes namespace of the Container Apps extension.",
        )
        c.argument(
            "custom_location_name",
            options_list=["--custom-location-name"],
            help="Name of the custom location.",
        )
        c.argument(
            "connected_environment_name",
            options_list=["--connected-environment-name"],
            help="Name of the Container Apps connected environment.",
        )
        c.argument(
            "sql_server_name",
            options_list=["--sql-server-name"],
            help="Name of the SQL server.",
        )
        c.argument(
            "sql_admin_user",
            options_list=["--sql-admin-user"],
            help="SQL administrator login. The password is read from the {0} "
            "environment variable or prompted for.".format(
                SQL_ADMIN_PASSWORD_ENV
            ),
        )
        c.argument(
            "storage_account_name",
            options_list=["--storage-account-name"],
            help="Name of the storage account holding the SMB file share.",
        )
        c.argument(
            "logic_app_name",
            options_list=["--logic-app-name"],
            help="Name of the Logic App.",
        )

    with self.argument_context(f"{COMMAND_GROUP} test") as c:
        c.argument(
            "strict",
            options_list=["--strict"],
            arg_type=get_three_state_flag(),
            help="Fail the command when any check fails.",
        )

    with self.argument_context(f"{COMMAND_GROUP} config init") as c:
        c.argument(
            "path",
            options_list=["--path", "-p"],
            help="Path of the parameters file to write.",
        )
        c.argument(
            "resource_group_name",
            resource_group_name_type,
            required=False,
        )
        c.argument("location", get_location_type(self.cli_ctx))
        c.argument(
            "force",
            options_list=["--force"],
            arg_type=get_three_state_flag(),
            help="Overwrite an existing file.",
        )
