# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from knack.log import get_logger

__all__ = ["HelmClient"]

logger = get_logger(__name__)


class HelmClient(object):
    """
    Helm operations, run through the `helm` binary.
    """

    def __init__(self, runner):
        self._runner = runner

    def add_repo(self, name, url):
        self._runner.run("helm", ["repo", "add", name, url, "--force-update"])
        self._runner.run("helm", ["repo", "update", name])

    def release_exists(self, release, namespace):
        return self._runner.succeeds(
            "helm", ["status", release, "--namespace", namespace]
        )

    def install(self, release, chart, namespace, version=None, values=None):
        args = ["install", release, chart, "--namespace", namespace]
        if version:
            args.extend(["--version", version])
        for key, value in sorted((values or {}).items()):
            args.extend(["--set", f"{key}={value}"])

        logger.debug("Installing helm release %s from %s", release, chart)
        return self._runner.run("helm", args)
