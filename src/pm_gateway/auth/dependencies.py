"""FastAPI dependencies: caller identity and authenticated channels.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_account

    @router.post("/protected")
    async def protected(account_id: str = Depends(get_current_account)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.pm_common.errors import InvalidCredentialsError
from src.pm_gateway.auth.jwt_handler import ACCESS_TOKEN, CHANNEL_TOKEN, decode_token
from src.pm_relay.domain.channel import AuthenticatedChannel

bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def _subject(credentials: HTTPAuthorizationCredentials | None, token_type: str) -> str:
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials, expected_type=token_type)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
    return payload["sub"]


async def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the account id carried by a valid access token. 401 otherwise."""
    return _subject(credentials, ACCESS_TOKEN)


async def require_message_channel(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthenticatedChannel:
    """Wrap a valid channel token into the capability the relay accepts.

    Whether that channel is trusted is the relay's decision, not ours.
    """
    return AuthenticatedChannel(channel_id=_subject(credentials, CHANNEL_TOKEN))
