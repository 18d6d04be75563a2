"""MessageChannel capability.

An AuthenticatedChannel can only be obtained from the transport layer after
it has verified the sender (see pm_gateway.auth.dependencies). The relay
never sees raw credentials, only this value.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthenticatedChannel:
    channel_id: str
