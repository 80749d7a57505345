"""JWT helper utilities.

Tokens are issued by the identity service; this module only needs to verify them.
``create_access_token`` exists for tooling and tests that must mint a caller identity.
"""
from __future__ import annotations

import datetime as dt
import uuid
from typing import TypedDict, cast

from jose import JWTError, jwt  # type: ignore[import-untyped]

from soundshare.core.config import get_settings

ACCESS_TOKEN_TYPE = "access"


class TokenPayload(TypedDict, total=False):
    sub: str
    jti: str
    token_type: str
    exp: int
    iat: int


def create_access_token(subject: str, *, expires_in: dt.timedelta = dt.timedelta(minutes=15)) -> str:
    """Create a signed access token for the given user id."""

    settings = get_settings()
    now = dt.datetime.now(dt.timezone.utc)
    payload: TokenPayload = {
        "sub": subject,
        "jti": uuid.uuid4().hex,
        "token_type": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return cast(str, jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm))


def decode_token(token: str) -> TokenPayload:
    """Decode a JWT and return its payload, raising ``ValueError`` when invalid."""

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret.get_secret_value(), algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    return cast(TokenPayload, payload)
