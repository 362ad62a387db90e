# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

"""
Resource name generation and validation.

Names derived here are deterministic for a given subscription and resource
group so that running a deployment twice targets the same resources.
"""

from azure.cli.core.azclierror import ValidationError

import base64
import hashlib
import re

__all__ = [
    "unique_suffix",
    "storage_account_name",
    "sql_server_name",
    "kubernetes_name",
]

DNS_1123_LABEL_REGEX = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


def unique_suffix(*seeds, length=8):
    """
    Build a stable lowercase alphanumeric suffix from the given seeds.
    """
    if length < 1 or length > 32:
        raise ValueError("Suffix length must be between 1 and 32.")

    seed = "/".join(str(s).lower() for s in seeds if s is not None)
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return base64.b32encode(digest).decode("ascii").lower()[:length]


def _sanitize(value, allowed):
    return re.sub(allowed, "", (value or "").lower())


def storage_account_name(prefix, suffix):
    """
    Storage account names are 3 to 24 lowercase letters and digits.
    """
    suffix = _sanitize(suffix, r"[^a-z0-9]")[:24]
    # the prefix gives way so the suffix is always kept whole
    name = _sanitize(prefix, r"[^a-z0-9]")[: 24 - len(suffix)] + suffix
    if len(name) < 3:
        raise ValidationError(
            f"Storage account name '{name}' must be between 3 and 24 "
            f"characters."
        )
    return name


def sql_server_name(prefix, suffix):
    """
    SQL server names are lowercase letters, digits and hyphens and cannot
    start or end with a hyphen.
    """
    suffix = _sanitize(suffix, r"[^a-z0-9-]")[:63]
    prefix = _sanitize(prefix, r"[^a-z0-9-]")[: max(62 - len(suffix), 0)]
    name = "-".join(p for p in [prefix, suffix] if p).strip("-")
    if not name:
        raise ValidationError("SQL server name cannot be empty.")
    return name


def kubernetes_name(value, kind="name"):
    """
    Validate a DNS-1123 label (namespaces, cluster and environment names).
    """
    if not value or len(value) > 63 or not re.match(
        DNS_1123_LABEL_REGEX, value
    ):
        raise ValidationError(
            f"The {kind} '{value}' is invalid. It must consist of at most 63 "
            f"lowercase alphanumeric characters or '-', and must start and "
            f"end with an alphanumeric character."
        )
    return value
