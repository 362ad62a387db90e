# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from azure.cli.core._profile import Profile
from collections import namedtuple
from knack.log import get_logger

__all__ = ["HybridCliCredential", "AccessToken"]

logger = get_logger(__name__)

AccessToken = namedtuple("AccessToken", ["token", "expires_on"])


class HybridCliCredential(object):
    """
    Bearer token source backed by the logged-in `az` profile.
    """

    def __init__(self, cli_ctx, subscription=None):
        self._profile = Profile(cli_ctx=cli_ctx)
        self._subscription = subscription

    @property
    def subscription(self):
        """
        The requested subscription, or the active one of the profile.
        """
        if not self._subscription:
            self._subscription = self._profile.get_subscription_id()
        return self._subscription

    def get_token(self, *scopes, **kwargs):
        creds, subscription, tenant = self._profile.get_raw_token(
            subscription=self.subscription
        )
        logger.debug(
            "Acquired token for subscription %s in tenant %s",
            subscription,
            tenant,
        )
        token_entry = creds[2] if len(creds) > 2 else {}
        expires_on = (token_entry or {}).get("expiresOn")
        return AccessToken(creds[1], expires_on)
