# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------
# pylint: disable=unused-import

from azure.cli.core import AzCommandsLoader
from azure.cli.core.commands import CliCommandType
from azext_logicapps_hybrid._help import helps
from azext_logicapps_hybrid.client import beget
from azext_logicapps_hybrid.commands import load_command_table
from azext_logicapps_hybrid._params import load_arguments


class LogicAppsHybridCommandsLoader(AzCommandsLoader):
    def __init__(self, cli_ctx=None):
        custom_command_type = CliCommandType(
            operations_tmpl="azext_logicapps_hybrid.custom#{}",
            client_factory=beget,
        )
        super(LogicAppsHybridCommandsLoader, self).__init__(
            cli_ctx=cli_ctx, custom_command_type=custom_command_type
        )

    def load_command_table(self, args):
        load_command_table(self, args)
        return self.command_table

    def load_arguments(self, command):
        load_arguments(self, command)


COMMAND_LOADER_CLS = LogicAppsHybridCommandsLoader
