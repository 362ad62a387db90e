# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azext_logicapps_hybrid.constants import (
    FAILED_STATES,
    PROVISIONING_INTERVAL,
    PROVISIONING_TIMEOUT,
    SUCCEEDED_STATES,
)
from azext_logicapps_hybrid.exceptions import (
    ProvisioningError,
    ProvisioningTimeoutError,
)
from types import SimpleNamespace
from typing import Callable
from json import JSONEncoder, dumps, loads
from knack.log import get_logger

import time

logger = get_logger(__name__)


def dict_to_dot_notation(d: dict):
    class _Namespace(SimpleNamespace):
        @property
        def to_dict(self):
            class _Encoder(JSONEncoder):
                def default(self, o):
                    return o.__dict__

            return loads(dumps(self, indent=4, cls=_Encoder))

    return loads(dumps(d), object_hook=lambda item: _Namespace(**item))


def wait_for_error(
    func: Callable,
    *func_args,
    retry_tol=PROVISIONING_TIMEOUT,
    retry_delay=PROVISIONING_INTERVAL,
    e=Exception
):
    """
    Call `func` until it raises `e`. Used to wait for a deleted resource to
    disappear.
    """
    attempts = len(range(0, retry_tol, retry_delay))
    for attempt in range(attempts):
        try:
            func(*func_args)
        except e:
            return True
        if attempt < attempts - 1:
            time.sleep(retry_delay)

    raise ProvisioningTimeoutError(
        f"Timed out after {retry_tol} seconds waiting for the operation to "
        f"complete."
    )


def wait(
    func: Callable,
    *func_args,
    ready=SUCCEEDED_STATES,
    failed=FAILED_STATES,
    retry_tol=PROVISIONING_TIMEOUT,
    retry_delay=PROVISIONING_INTERVAL,
    label="provisioning"
):
    """
    Poll `func` at a fixed interval until it returns one of the `ready`
    states.

    :param func: Returns the current state, or `None` while unknown.
    :param ready: States that end the wait successfully.
    :param failed: States that end the wait with a `ProvisioningError`.
    :param retry_tol: Total seconds to wait.
    :param retry_delay: Seconds between two calls.
    :param label: Prefix of the printed state transitions.
    :return: The ready state.
    """
    current_status = None
    attempts = len(range(0, retry_tol, retry_delay))
    for attempt in range(attempts):
        status = func(*func_args)
        logger.debug("%s state: %s", label, status)

        if status in ready:
            if current_status and current_status != status:
                print(f"The {label} state '{current_status}' has completed.")
            return status

        if status in failed:
            raise ProvisioningError(
                f"An error happened while waiting. The {label} "
                f"state is: '{status}'",
                state=status,
            )

        if current_status != status:
            if current_status:
                print(f"The {label} state '{current_status}' has completed.")

            current_status = status
            print(f"Current {label} state is '{current_status}'")

        # no sleep after the last check
        if attempt < attempts - 1:
            time.sleep(retry_delay)

    raise ProvisioningTimeoutError(
        f"Timed out after {retry_tol} seconds. The last {label} "
        f"state was '{current_status}'.",
        state=current_status,
    )


def retry(func: Callable, *func_args, max_tries=10, retry_delay=5, e=Exception):
    """
    Call `func` until it stops raising `e`, at most `max_tries` times. The
    last error is re-raised.
    """
    for i in range(max_tries):
        try:
            return func(*func_args)
        except e as ex:
            logger.debug(
                "Attempt %d of %d failed: %s", i + 1, max_tries, ex
            )
            if i == max_tries - 1:
                raise
            time.sleep(retry_delay)
