# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.provision.provisioner import Provisioner
from azext_logicapps_hybrid.provision.smoke import SmokeTest, PASSED
from azext_logicapps_hybrid.provision.steps import (
    default_steps,
    KubeconfigStep,
)
from collections import OrderedDict
from colorama import Fore
from knack.log import get_logger
from knack.util import CLIError

import json
import os

logger = get_logger(__name__)


def hybrid_deploy(
    client,
    resource_group_name,
    location=None,
    config_file=None,
    steps=None,
    skip_steps=None,
    dry_run=False,
    no_progress=False,
    name_prefix=None,
    cluster_name=None,
    connected_cluster_name=None,
    node_count=None,
    node_vm_size=None,
    kubeconfig=None,
    extension_name=None,
    extension_namespace=None,
    custom_location_name=None,
    connected_environment_name=None,
    sql_server_name=None,
    sql_admin_user=None,
    storage_account_name=None,
    logic_app_name=None,
):
    """
    Provisions the hybrid Logic Apps environment step by step. Resources that
    already exist are left untouched.
    """
    try:
        settings = client.settings(
            config_file=config_file,
            resource_group=resource_group_name,
            location=location,
            name_prefix=name_prefix,
            cluster_name=cluster_name,
            connected_cluster_name=connected_cluster_name,
            node_count=node_count,
            node_vm_size=node_vm_size,
            kubeconfig=kubeconfig,
            extension_name=extension_name,
            extension_namespace=extension_namespace,
            custom_location_name=custom_location_name,
            connected_environment_name=connected_environment_name,
            sql_server_name=sql_server_name,
            sql_admin_user=sql_admin_user,
            storage_account_name=storage_account_name,
            logic_app_name=logic_app_name,
        )
        ctx = client.context(settings)

        if dry_run:
            client.stdout("****Dry Run****")

        provisioner = Provisioner(ctx, show_progress=not no_progress)
        results = provisioner.run(
            only=steps, skip=skip_steps, dry_run=dry_run
        )

        if not dry_run:
            client.stdout(
                "Hybrid Logic Apps environment '{0}' is ready.".format(
                    settings.connected_environment_name
                ),
                color=Fore.LIGHTGREEN_EX,
            )
        return results
    except Exception as e:
        raise CLIError(e)


def hybrid_show(
    client, resource_group_name, config_file=None, name_prefix=None
):
    """
    Shows the state of every resource of the environment.
    """
    try:
        settings = client.settings(
            config_file=config_file,
            resource_group=resource_group_name,
            name_prefix=name_prefix,
            validate=False,
        )
        ctx = client.context(settings)

        result = []
        for step in default_steps():
            try:
                state = step.state(ctx)
            except Exception as e:  # pylint: disable=broad-except
                logger.warning(
                    "Unable to read the state of '%s': %s", step.name, e
                )
                state = None
            result.append(
                OrderedDict(
                    [
                        ("step", step.name),
                        ("state", state or "NotFound"),
                        ("healthy", state in step.healthy_states),
                        ("resourceId", step.resource_id(ctx)),
                    ]
                )
            )
        return result
    except Exception as e:
        raise CLIError(e)


def hybrid_test(
    client,
    resource_group_name,
    config_file=None,
    name_prefix=None,
    strict=False,
):
    """
    Runs the smoke tests against the deployed environment.
    """
    try:
        settings = client.settings(
            config_file=config_file,
            resource_group=resource_group_name,
            name_prefix=name_prefix,
            validate=False,
        )
        smoke = SmokeTest(client.context(settings))
        checks = smoke.run()
    except Exception as e:
        raise CLIError(e)

    failed = [c for c in checks if c["status"] != PASSED]
    if failed:
        client.stdout(
            "{0} of {1} checks failed.".format(len(failed), len(checks)),
            color=Fore.YELLOW,
        )
    else:
        client.stdout(
            "All {0} checks passed.".format(len(checks)),
            color=Fore.LIGHTGREEN_EX,
        )

    if strict and failed:
        raise CLIError(
            "Smoke tests failed: {0}".format(
                ", ".join(c["check"] for c in failed)
            )
        )

    return checks


def hybrid_delete(
    client, resource_group_name, config_file=None, no_wait=False
):
    """
    Deletes the resource group holding the environment, and the kubeconfig
    file written by the deployment.
    """
    try:
        settings = client.settings(
            config_file=config_file,
            resource_group=resource_group_name,
            validate=False,
        )
        ctx = client.context(settings)

        # ownership can only be checked while the cluster still exists
        owns_kubeconfig = KubeconfigStep().exists(ctx)

        client.stdout(
            "Deleting resource group '{0}'...".format(resource_group_name)
        )
        ctx.arm.delete_resource_group(resource_group_name, polling=not no_wait)

        if owns_kubeconfig:
            os.remove(settings.kubeconfig)
            logger.debug("Removed %s", settings.kubeconfig)

        if not no_wait:
            client.stdout(
                "Resource group '{0}' deleted successfully.".format(
                    resource_group_name
                )
            )
    except Exception as e:
        raise CLIError(e)


def hybrid_step_list(client):
    """
    Lists the provisioning steps in deployment order.
    """
    return [
        OrderedDict(
            [
                ("order", i),
                ("name", step.name),
                ("description", step.description),
            ]
        )
        for i, step in enumerate(default_steps())
    ]


def hybrid_config_init(
    client,
    path,
    resource_group_name=None,
    location=None,
    name_prefix=None,
    force=False,
):
    """
    Writes a deployment parameters file with every setting and its resolved
    default. Secrets are never written.
    """
    try:
        if os.path.isdir(path):
            raise ValueError(
                "Please specify a file path. Path is a directory: "
                "{0}".format(path)
            )
        if os.path.exists(path) and not force:
            raise FileExistsError(
                "File '{0}' already exists. Use --force to "
                "overwrite it.".format(path)
            )

        settings = client.settings(
            resource_group=resource_group_name,
            location=location,
            name_prefix=name_prefix,
            validate=False,
        )

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(settings.to_parameters_file(), f, indent=4)

        client.stdout("Created parameters file {0}".format(path))
        return settings.to_parameters_file()
    except Exception as e:
        raise CLIError(e)
