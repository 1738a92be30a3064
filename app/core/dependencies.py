"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to automatically extract and validate JWT tokens from the Authorization header.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(user: CurrentUser = Depends(get_current_user)):
        # user.address is automatically extracted from JWT token
        return {"user": user.address}
Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_user() dependency
3. extract_bearer_token() extracts token from header
4. verify_token() validates the JWT (from jwt_utils.py)
5. Returns the CurrentUser identity to the route handler
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from app.core.exceptions import ConfigurationError, MissingCredential
from app.core.jwt_utils import verify_token
from app.services.auth import AuthService
from app.services.blockchain import FaucetContract


@dataclass(frozen=True)
class CurrentUser:
    address: str
    chain_id: int

    def owns(self, address: str) -> bool:
        return self.address.lower() == address.lower()


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract JWT token from Authorization header.
    Supports both "Bearer <token>" and plain token formats.
    Args:
        authorization: The Authorization header value (e.g., "Bearer eyJ...")
    Returns:
        The extracted token string
    Raises:
        MissingCredential: If Authorization header is missing or carries no token
    """
    if not authorization:
        raise MissingCredential()

    authorization = authorization.strip()
    scheme, _, rest = authorization.partition(" ")
    if scheme.lower() == "bearer":
        token = rest.strip()
    else:
        token = authorization
    if not token:
        raise MissingCredential()

    return token


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> CurrentUser:
    """
    returning the authenticated identity.
    """
    payload = verify_token(extract_bearer_token(authorization))
    return CurrentUser(address=payload["address"], chain_id=int(payload["chainId"]))


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_faucet_contract(request: Request) -> FaucetContract:
    contract = getattr(request.app.state, "faucet_contract", None)
    if contract is None:
        raise ConfigurationError("Faucet contract is not configured")
    return contract
