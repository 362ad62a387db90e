# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.arm_sdk._util import (
    dict_to_dot_notation,
    retry,
    wait,
    wait_for_error,
)
from azext_logicapps_hybrid.exceptions import (
    ProvisioningError,
    ProvisioningTimeoutError,
)
from unittest import mock

import unittest


@mock.patch("azext_logicapps_hybrid.arm_sdk._util.time.sleep")
class WaitTest(unittest.TestCase):
    def test_returns_ready_state(self, sleep):
        states = iter([None, "Creating", "Creating", "Succeeded"])
        result = wait(lambda: next(states), retry_tol=100, retry_delay=10)

        self.assertEqual(result, "Succeeded")
        self.assertEqual(sleep.call_count, 3)
        sleep.assert_called_with(10)

    def test_passes_arguments(self, sleep):
        func = mock.Mock(return_value="Succeeded")
        wait(func, "rg", "name")
        func.assert_called_once_with("rg", "name")
        sleep.assert_not_called()

    def test_failed_state_raises(self, sleep):
        states = iter(["Creating", "Failed"])
        with self.assertRaises(ProvisioningError) as ctx:
            wait(lambda: next(states), retry_tol=100, retry_delay=10)

        self.assertEqual(ctx.exception.state, "Failed")
        self.assertNotIsInstance(ctx.exception, ProvisioningTimeoutError)

    def test_custom_ready_states_without_failures(self, sleep):
        states = iter(["Failed", "Connecting", "Connected"])
        result = wait(
            lambda: next(states),
            ready=("Connected",),
            failed=(),
            retry_tol=300,
            retry_delay=30,
        )
        self.assertEqual(result, "Connected")

    def test_times_out_after_tolerance(self, sleep):
        func = mock.Mock(return_value="Connecting")
        with self.assertRaises(ProvisioningTimeoutError) as ctx:
            wait(func, ready=("Connected",), retry_tol=300, retry_delay=30)

        self.assertEqual(func.call_count, 10)
        self.assertEqual(sleep.call_count, 9)
        self.assertEqual(ctx.exception.state, "Connecting")

    def test_prints_state_transitions(self, sleep):
        states = iter(["Creating", "Updating", "Succeeded"])
        with mock.patch("builtins.print") as printed:
            wait(lambda: next(states), retry_tol=100, retry_delay=10,
                 label="AKS")

        lines = [c.args[0] for c in printed.call_args_list]
        self.assertIn("Current AKS state is 'Creating'", lines)
        self.assertIn("The AKS state 'Creating' has completed.", lines)
        self.assertIn("The AKS state 'Updating' has completed.", lines)


@mock.patch("azext_logicapps_hybrid.arm_sdk._util.time.sleep")
class WaitForErrorTest(unittest.TestCase):
    def test_returns_when_error_is_raised(self, sleep):
        func = mock.Mock(side_effect=[None, None, KeyError("gone")])
        self.assertTrue(
            wait_for_error(func, retry_tol=100, retry_delay=10, e=KeyError)
        )
        self.assertEqual(func.call_count, 3)

    def test_times_out(self, sleep):
        func = mock.Mock()
        with self.assertRaises(ProvisioningTimeoutError):
            wait_for_error(func, retry_tol=20, retry_delay=10)
        self.assertEqual(func.call_count, 2)
        sleep.assert_called_once_with(10)


@mock.patch("azext_logicapps_hybrid.arm_sdk._util.time.sleep")
class RetryTest(unittest.TestCase):
    def test_returns_first_success(self, sleep):
        func = mock.Mock(side_effect=[ValueError(), "ok"])
        self.assertEqual(retry(func, max_tries=3, retry_delay=1), "ok")
        sleep.assert_called_once_with(1)

    def test_reraises_last_error(self, sleep):
        func = mock.Mock(side_effect=ValueError("boom"))
        with self.assertRaises(ValueError):
            retry(func, max_tries=3, retry_delay=1)
        self.assertEqual(func.call_count, 3)
        self.assertEqual(sleep.call_count, 2)

    def test_other_errors_are_not_retried(self, sleep):
        func = mock.Mock(side_effect=KeyError("key"))
        with self.assertRaises(KeyError):
            retry(func, max_tries=3, e=ValueError)
        func.assert_called_once_with()


class DotNotationTest(unittest.TestCase):
    def test_nested_access(self):
        d = dict_to_dot_notation({"a": {"b": 1}, "c": "x"})
        self.assertEqual(d.a.b, 1)
        self.assertEqual(d.c, "x")
        self.assertEqual(d.to_dict, {"a": {"b": 1}, "c": "x"})
