# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from knack.help_files import helps  # pylint: disable=unused-import

# pylint: disable=line-too-long
helps[
    "logicapp-hybrid"
] = """
    type: group
    short-summary: {short}
""".format(
    short="Provision and check hybrid Logic Apps environments on Arc-enabled AKS."
)

helps[
    "logicapp-hybrid deploy"
] = """
    type: command
    short-summary: {short}
    long-summary: {long}
    examples:
        - name: {ex1}
          text: >
            az logicapp-hybrid deploy -g my-rg -l eastus
        - name: {ex2}
          text: >
            az logicapp-hybrid deploy -g my-rg --config-file ./parameters.json --dry-run
        - name: {ex3}
          text: >
            az logicapp-hybrid deploy -g my-rg -l eastus --steps extension custom-location connected-environment
""".format(
    short="Provision a hybrid Logic Apps environment.",
    long="Runs every provisioning step in order: AKS, Arc connection, SQL, "
    "storage, Container Apps extension, custom location, connected "
    "environment and Logic App. Existing resources are not recreated, so the "
    "command can be re-run after a failure. The SQL administrator password "
    "is read from the LOGICAPPS_HYBRID_SQL_ADMIN_PASSWORD environment "
    "variable or prompted for.",
    ex1="Deploy a new environment with derived resource names.",
    ex2="Report which resources a deployment would create.",
    ex3="Run only the Container Apps steps.",
)

helps[
    "logicapp-hybrid show"
] = """
    type: command
    short-summary: {short}
    examples:
        - name: {ex1}
          text: >
            az logicapp-hybrid show -g my-rg -o table
""".format(
    short="Show the state of every resource of an environment.",
    ex1="Show the environment in resource group my-rg.",
)

helps[
    "logicapp-hybrid test"
] = """
    type: command
    short-summary: {short}
    long-summary: {long}
    examples:
        - name: {ex1}
          text: >
            az logicapp-hybrid test -g my-rg --strict
""".format(
    short="Run smoke tests against a deployed environment.",
    long="Checks that az, kubectl and helm are installed, that every resource "
    "exists in a healthy state, that the cluster is connected to Arc and "
    "that the extension and SMB CSI driver pods are running.",
    ex1="Fail when any check fails.",
)

helps[
    "logicapp-hybrid delete"
] = """
    type: command
    short-summary: {short}
    examples:
        - name: {ex1}
          text: >
            az logicapp-hybrid delete -g my-rg --yes --no-wait
""".format(
    short="Delete the resource group of an environment.",
    ex1="Delete without waiting for the deletion to finish.",
)

helps[
    "logicapp-hybrid step"
] = """
    type: group
    short-summary: {short}
""".format(
    short="Inspect the provisioning steps."
)

helps[
    "logicapp-hybrid step list"
] = """
    type: command
    short-summary: {short}
""".format(
    short="List the provisioning steps in deployment order."
)

helps[
    "logicapp-hybrid config"
] = """
    type: group
    short-summary: {short}
""".format(
    short="Manage deployment parameters files."
)

helps[
    "logicapp-hybrid config init"
] = """
    type: command
    short-summary: {short}
    examples:
        - name: {ex1}
          text: >
            az logicapp-hybrid config init -p ./parameters.json -g my-rg -l eastus
""".format(
    short="Write a parameters file with every deployment setting.",
    ex1="Create a parameters file for resource group my-rg.",
)
