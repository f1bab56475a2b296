"""
Access token verification for the hosted auth provider.

The provider signs access tokens with a shared secret (HS256 by default) and
puts the user id in the standard `sub` claim. This service never handles
passwords; `create_access_token` exists for local development and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import JWTError, jwt
from core.config import settings

ALGORITHM = settings.AUTH_JWT_ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a token shaped like the provider's (dev and tests only)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    if settings.AUTH_JWT_AUDIENCE:
        to_encode.setdefault("aud", settings.AUTH_JWT_AUDIENCE)
    return jwt.encode(to_encode, settings.AUTH_JWT_SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate a provider token. None when invalid or expired."""
    options = {"verify_aud": bool(settings.AUTH_JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        return None
