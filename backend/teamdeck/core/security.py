from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from teamdeck.core.config import settings
from teamdeck.schemas.token import TokenPayload

DEFAULT_TOKEN_TTL = timedelta(hours=1)


def create_identity_token(
    subject: str,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Mint a token shaped like the identity provider's session tokens.

    Production tokens come from the provider; this is used by tests and local
    tooling that need a signed token for a known subject.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_TOKEN_TTL)
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire, **claims}
    if settings.IDENTITY_ISSUER and "iss" not in to_encode:
        to_encode["iss"] = settings.IDENTITY_ISSUER
    if settings.IDENTITY_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = settings.IDENTITY_AUDIENCE
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_identity_token(token: str) -> TokenPayload:
    """Verify a provider token and return its claims.

    Raises ``jose.JWTError`` when the signature, expiry, issuer or audience
    does not check out.
    """
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        audience=settings.IDENTITY_AUDIENCE,
        issuer=settings.IDENTITY_ISSUER,
        options={"verify_aud": bool(settings.IDENTITY_AUDIENCE)},
    )
    return TokenPayload(**payload)
