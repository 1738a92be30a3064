"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet authentication.
After a user successfully signs the SIWE challenge, this module creates a JWT token
that can be used for subsequent authenticated API requests.

Flow:
1. User signs the challenge -> /auth/signin calls create_access_token()
2. User makes API request with JWT in Authorization header -> verify_token() validates it
3. Protected endpoints use get_current_user() from dependencies.py to extract the identity

The JWT contains:
- address: The authenticated wallet address (lower-case)
- chainId: The chain the user signed in on
- iat: Issued at timestamp
- exp: Expiration timestamp (configurable via ACCESS_TOKEN_EXPIRE_SECONDS)

No session is stored server-side; a token is valid as long as its signature
and expiry check out.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.core.config import settings
from app.core.exceptions import ConfigurationError, InvalidOrExpiredCredential


def require_signing_key() -> str:
    """
    Return the JWT signing secret.

    Called once at startup so a missing ENCODE_KEY stops the server before it
    accepts requests.

    Raises:
        ConfigurationError: If ENCODE_KEY is not configured
    """
    if not settings.ENCODE_KEY:
        raise ConfigurationError("ENCODE_KEY is not configured")
    return settings.ENCODE_KEY


def create_access_token(
    address: str,
    chain_id: int,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a JWT access token for an authenticated wallet address.

    This is called after successful signature verification in /auth/signin endpoint.
    The token is returned to the frontend and used in subsequent API requests.

    Args:
        address: The wallet address that was verified
        chain_id: Chain id embedded in the signed challenge
        now: Issue time, defaults to the current UTC time

    Returns:
        A JWT token string that can be used in Authorization: Bearer <token> header

    Raises:
        ValueError: If address is empty
        ConfigurationError: If ENCODE_KEY is not configured
    """
    if not address:
        raise ValueError("address is required")
    key = require_signing_key()

    now = now or datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "address": address.lower(),
        "chainId": int(chain_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS)).timestamp()),
    }

    return jwt.encode(payload, key, algorithm=settings.ENCODE_ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Checks token signature, expiration, and required payload fields.

    Args:
        token: The JWT token string from Authorization header

    Returns:
        Decoded JWT payload dictionary containing address, chainId and other claims

    Raises:
        InvalidOrExpiredCredential: If token is expired, invalid, or missing claims
        ConfigurationError: If ENCODE_KEY is not configured
    """
    key = require_signing_key()
    if not token:
        raise InvalidOrExpiredCredential()

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.ENCODE_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidOrExpiredCredential("Token expired")
    except jwt.InvalidTokenError:
        raise InvalidOrExpiredCredential()

    if "address" not in payload or "chainId" not in payload:
        raise InvalidOrExpiredCredential("Invalid token payload")

    return payload
