# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.provision.provisioner import (
    Provisioner,
    STATUS_CREATED,
    STATUS_EXISTS,
    STATUS_FAILED,
    STATUS_SKIPPED,
    STATUS_WOULD_CREATE,
)
from azext_logicapps_hybrid.provision.steps import Step
from azure.cli.core.azclierror import AzureResponseError, ValidationError
from unittest import mock

import unittest


class FakeStep(Step):
    def __init__(self, name, exists=False, error=None):
        self.name = name
        self.description = f"Fake {name}"
        self._exists = exists
        self._error = error
        self.calls = []

    def exists(self, ctx):
        self.calls.append("exists")
        return self._exists

    def prepare(self, ctx):
        self.calls.append("prepare")

    def create(self, ctx):
        self.calls.append("create")
        if self._error:
            raise self._error

    def wait(self, ctx):
        self.calls.append("wait")

    def resource_id(self, ctx):
        return f"/fake/{self.name}"


class ProvisionerTest(unittest.TestCase):
    def setUp(self):
        self.ctx = mock.Mock()

    def _provisioner(self, *steps):
        return Provisioner(self.ctx, steps=list(steps))

    def test_creates_missing_and_skips_existing(self):
        a = FakeStep("a", exists=True)
        b = FakeStep("b")
        results = self._provisioner(a, b).run()

        self.assertEqual(a.calls, ["exists", "wait"])
        self.assertEqual(b.calls, ["exists", "prepare", "create", "wait"])
        self.assertEqual(
            [(r["step"], r["status"], r["resourceId"]) for r in results],
            [("a", STATUS_EXISTS, "/fake/a"), ("b", STATUS_CREATED, "/fake/b")],
        )

    def test_dry_run_never_creates_or_waits(self):
        a = FakeStep("a", exists=True)
        b = FakeStep("b")
        results = self._provisioner(a, b).run(dry_run=True)

        self.assertEqual(a.calls, ["exists"])
        self.assertEqual(b.calls, ["exists"])
        self.assertEqual(
            [r["status"] for r in results], [STATUS_EXISTS, STATUS_WOULD_CREATE]
        )

    def test_failure_stops_the_run(self):
        a = FakeStep("a", error=AzureResponseError("quota exceeded"))
        b = FakeStep("b")
        provisioner = self._provisioner(a, b)

        with self.assertRaises(AzureResponseError):
            provisioner.run()

        self.assertEqual(b.calls, [])
        self.assertEqual(
            [(r["step"], r["status"]) for r in provisioner.results],
            [("a", STATUS_FAILED)],
        )

    def test_only_and_skip(self):
        a, b, c = FakeStep("a"), FakeStep("b"), FakeStep("c")
        results = self._provisioner(a, b, c).run(only=["c", "a"], skip=["c"])

        self.assertEqual(
            [(r["step"], r["status"]) for r in results],
            [
                ("a", STATUS_CREATED),
                ("b", STATUS_SKIPPED),
                ("c", STATUS_SKIPPED),
            ],
        )
        self.assertEqual(c.calls, [])

    def test_unknown_step(self):
        with self.assertRaises(ValidationError) as ctx:
            self._provisioner(FakeStep("a")).run(only=["nope"])
        self.assertIn("nope", str(ctx.exception))

    def test_default_steps(self):
        provisioner = Provisioner(self.ctx)
        self.assertEqual(provisioner.step_names[0], "providers")
        self.assertEqual(provisioner.step_names[-1], "logic-app")

    @mock.patch(
        "azext_logicapps_hybrid.provision.provisioner.is_windows",
        return_value=False,
    )
    @mock.patch(
        "azext_logicapps_hybrid.provision.provisioner.AutomaticSpinner"
    )
    def test_progress_spinner(self, spinner, _):
        Provisioner(self.ctx, steps=[FakeStep("a")], show_progress=True).run()
        spinner.assert_called_once_with("Fake a", show_time=True)

    @mock.patch(
        "azext_logicapps_hybrid.provision.provisioner.is_windows",
        return_value=False,
    )
    @mock.patch(
        "azext_logicapps_hybrid.provision.provisioner.AutomaticSpinner"
    )
    def test_prepare_runs_before_the_spinner(self, spinner, _):
        step = FakeStep("a")
        progress = spinner.return_value
        progress.__enter__.side_effect = lambda: step.calls.append("start")
        progress.__exit__.side_effect = lambda *a: step.calls.append("stop")

        Provisioner(self.ctx, steps=[step], show_progress=True).run()

        self.assertEqual(
            step.calls,
            ["exists", "prepare", "start", "create", "wait", "stop"],
        )

    def test_existing_step_is_not_prepared(self):
        a = FakeStep("a", exists=True)
        self._provisioner(a).run()
        self._provisioner(a).run(dry_run=True)
        self.assertNotIn("prepare", a.calls)
