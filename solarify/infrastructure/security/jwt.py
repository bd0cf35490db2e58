"""Signed access tokens (python-jose, HS256 by default).

Claims: sub (user id), role, iat, exp. The role claim is informational;
route guards load the user document and trust its role instead.
"""

from datetime import timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from solarify.core.config import get_settings
from solarify.shared.utils.datetime import utc_now


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    issued = utc_now()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {**claims, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(payload, settings.secret_key.get_secret_value(), algorithm=settings.algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """Decoded claims of a valid token.

    Raises:
        ValueError: bad signature, expired, or no sub/exp claim.
    """
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except ExpiredSignatureError as e:
        raise ValueError("Token expired") from e
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}") from e
    if not claims.get("sub"):
        raise ValueError("Token has an empty subject")
    return claims
