# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.provision.steps import default_steps
from azure.cli.core.azclierror import (
    ArgumentUsageError,
    FileOperationError,
    InvalidArgumentValueError,
)

import os


def validate_config_file(namespace):
    config_file = getattr(namespace, "config_file", None)
    if config_file and not os.path.isfile(config_file):
        raise FileOperationError(
            "Parameters file '{0}' does not exist.".format(config_file)
        )


def validate_deploy(namespace):
    validate_config_file(namespace)

    names = [step.name for step in default_steps()]
    for option, values in (
        ("--steps", namespace.steps),
        ("--skip-steps", namespace.skip_steps),
    ):
        unknown = [v for v in values or [] if v not in names]
        if unknown:
            raise InvalidArgumentValueError(
                "Unknown value(s) for {0}: {1}. Valid steps are: {2}".format(
                    option, ", ".join(unknown), ", ".join(names)
                )
            )

    overlap = set(namespace.steps or []) & set(namespace.skip_steps or [])
    if overlap:
        raise ArgumentUsageError(
            "Step(s) {0} cannot be both selected with '--steps' and "
            "skipped with '--skip-steps'.".format(", ".join(sorted(overlap)))
        )

    if namespace.node_count is not None and namespace.node_count < 1:
        raise InvalidArgumentValueError("--node-count must be at least 1.")
