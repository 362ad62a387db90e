# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from colorama import Style

import platform
import sys

__all__ = ["is_windows", "stdout"]


def is_windows():
    return platform.system() == "Windows"


def stdout(message, color=None):
    """
    Write a line of user facing output, optionally colored with a
    `colorama.Fore` value.
    """
    if color:
        message = f"{color}{message}{Style.RESET_ALL}"
    sys.stdout.write(f"{message}\n")
    sys.stdout.flush()
