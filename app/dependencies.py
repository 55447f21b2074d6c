import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """
    The authenticated caller.

    Attributes
    ----------
    user_id:
        Id from the token's ``userId`` claim (``sub`` as a fallback),
        always an ``int``.
    token:
        The raw bearer token, forwarded when this service calls the
        user-service on the caller's behalf.
    """

    user_id: int
    token: str


# ---------------------------------------------------------------------------
# Token verification (HS256 JWTs issued by the user-service)
# ---------------------------------------------------------------------------

def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def verify_access_token(token: str, secret: str) -> dict | None:
    """
    Verify an HS256 JWT and return its claims.

    Returns None if the token is malformed, signed with another
    algorithm or key, or past its ``exp``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, sig_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
        claims = json.loads(_b64decode(payload_b64))
        signature = _b64decode(sig_b64)
    except ValueError:
        return None

    if not isinstance(header, dict) or header.get("alg") != "HS256":
        return None

    signing_input = f"{header_b64}.{payload_b64}".encode()
    expected = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    if not hmac.compare_digest(expected, signature):
        return None

    if not isinstance(claims, dict):
        return None
    exp = claims.get("exp")
    if exp is not None:
        if isinstance(exp, bool) or not isinstance(exp, (int, float)) or exp < time.time():
            return None
    return claims


def user_id_from_claims(claims: dict) -> int | None:
    """
    Normalise the caller id to ``int``.

    Integers pass through and decimal strings are converted; anything
    else is treated as bad data and rejected.
    """
    raw = claims.get("userId", claims.get("sub"))
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdecimal():
        return int(raw)
    return None


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None:
        raise UnauthorizedError()

    claims = verify_access_token(credentials.credentials, settings.SECRET_KEY)
    if claims is None:
        raise UnauthorizedError("The access token is invalid or has expired")

    user_id = user_id_from_claims(claims)
    if user_id is None:
        logger.warning(
            "Access token carries an unusable user id: %r",
            claims.get("userId", claims.get("sub")),
        )
        raise UnauthorizedError("The access token does not identify a user")

    return CurrentUser(user_id=user_id, token=credentials.credentials)
