# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.client import beget
from azext_logicapps_hybrid.constants import COMMAND_GROUP
from azext_logicapps_hybrid.validators import (
    validate_config_file,
    validate_deploy,
)
from ._format import (
    deploy_table_format,
    show_table_format,
    smoke_table_format,
    step_list_table_format,
)
from azure.cli.core.commands import CliCommandType


def load_command_table(self, _):
    operations = CliCommandType(
        operations_tmpl="azext_logicapps_hybrid.custom#{}"
    )

    with self.command_group(
        COMMAND_GROUP, operations, client_factory=beget
    ) as g:
        g.command(
            "deploy",
            "hybrid_deploy",
            validator=validate_deploy,
            table_transformer=deploy_table_format,
        )
        g.command(
            "show",
            "hybrid_show",
            validator=validate_config_file,
            table_transformer=show_table_format,
        )
        g.command(
            "test",
            "hybrid_test",
            validator=validate_config_file,
            table_transformer=smoke_table_format,
        )
        g.command(
            "delete",
            "hybrid_delete",
            confirmation=True,
            supports_no_wait=True,
            validator=validate_config_file,
        )

    with self.command_group(
        f"{COMMAND_GROUP} step", operations, client_factory=beget
    ) as g:
        g.command(
            "list", "hybrid_step_list", table_transformer=step_list_table_format
        )

    with self.command_group(
        f"{COMMAND_GROUP} config", operations, client_factory=beget
    ) as g:
        g.command("init", "hybrid_config_init")
