"""JWT token creation and verification.

Two token types share one JWT_SECRET (HS256):
  - "access":  a participant; `sub` is the account id used for trades,
               claims and as the resolver identity.
  - "channel": an authenticated cross-domain transport; `sub` is the
               channel id the relay checks against its trusted set.

Account and channel provisioning happen outside this service; it only
verifies what the issuer signed.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidCredentialsError

ACCESS_TOKEN = "access"
CHANNEL_TOKEN = "channel"

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_token(subject: str, token_type: str = ACCESS_TOKEN) -> str:
    """Issue a signed token for `subject` (default: 30 min access token)."""
    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    `expected_type` is strictly enforced so a participant token can never be
    presented as a channel token.

    Raises:
        InvalidCredentialsError: token invalid, expired, or of the wrong type.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload
