# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.core.util import is_windows
from azext_logicapps_hybrid.provision.steps import default_steps
from azure.cli.core.azclierror import ValidationError
from humanfriendly.terminal.spinners import AutomaticSpinner
from knack.log import get_logger
from collections import OrderedDict

import contextlib

__all__ = [
    "Provisioner",
    "STATUS_CREATED",
    "STATUS_EXISTS",
    "STATUS_FAILED",
    "STATUS_SKIPPED",
    "STATUS_WOULD_CREATE",
]

logger = get_logger(__name__)

STATUS_EXISTS = "Exists"
STATUS_WOULD_CREATE = "WouldCreate"
STATUS_CREATED = "Created"
STATUS_FAILED = "Failed"
STATUS_SKIPPED = "Skipped"


class Provisioner(object):
    """
    Runs the provisioning steps in order. A step whose resource already
    exists is not created again; the first failing step stops the run.
    Input a step may prompt for is gathered before its spinner starts.
    """

    def __init__(self, ctx, steps=None, show_progress=False):
        self._ctx = ctx
        self._steps = steps if steps is not None else default_steps()
        self._show_progress = show_progress
        self.results = []

    @property
    def steps(self):
        return self._steps

    @property
    def step_names(self):
        return [step.name for step in self._steps]

    def select(self, only=None, skip=None):
        """
        Validate step names and return the steps to run, in deployment order.
        """
        names = self.step_names
        unknown = [
            name
            for name in list(only or []) + list(skip or [])
            if name not in names
        ]
        if unknown:
            raise ValidationError(
                "Unknown step(s): {0}. Valid steps are: {1}".format(
                    ", ".join(unknown), ", ".join(names)
                )
            )

        skip = skip or []
        return [
            step
            for step in self._steps
            if (not only or step.name in only) and step.name not in skip
        ]

    def run(self, only=None, skip=None, dry_run=False):
        """
        :param only: Names of the steps to run, all when empty.
        :param skip: Names of the steps to leave out.
        :param dry_run: Probe only, report what would be created.
        :return: A list of step results.
        """
        selected = self.select(only, skip)
        self.results = []

        for step in self._steps:
            if step not in selected:
                self._record(step, STATUS_SKIPPED)
                continue

            try:
                status = self._run_step(step, dry_run)
            except Exception:
                self._record(step, STATUS_FAILED)
                logger.debug("Step '%s' failed.", step.name)
                raise

            self._record(step, status)

        return self.results

    def _run_step(self, step, dry_run):
        ctx = self._ctx
        logger.debug("Probing step '%s'", step.name)

        if step.exists(ctx):
            print(f"[{step.name}] already exists, skipping create.")
            if not dry_run:
                step.wait(ctx)
            return STATUS_EXISTS

        if dry_run:
            print(f"[{step.name}] would be created.")
            return STATUS_WOULD_CREATE

        step.prepare(ctx)
        with self._progress(step):
            step.create(ctx)
            step.wait(ctx)

        print(f"[{step.name}] created.")
        return STATUS_CREATED

    def _progress(self, step):
        if self._show_progress and not is_windows():
            return AutomaticSpinner(step.description, show_time=True)
        return contextlib.nullcontext()

    def _record(self, step, status):
        result = OrderedDict(
            [
                ("step", step.name),
                ("status", status),
                ("resourceId", step.resource_id(self._ctx)),
            ]
        )
        self.results.append(result)
        return result
