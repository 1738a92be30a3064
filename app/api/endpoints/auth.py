import logging
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse

from app.core.dependencies import extract_bearer_token, get_auth_service
from app.core.exceptions import FaucetError, ValidationError
from app.core.jwt_utils import create_access_token, verify_token
from app.core.siwe import is_valid_address
from app.services.auth import AuthService
import app.schemas.auth as schemas

logger = logging.getLogger(__name__)

router = APIRouter()
group_tags: List[str | Enum] = ["Auth"]


@router.post(
    "/message",
    tags=group_tags,
    response_model=schemas.MessageResponse,
    status_code=status.HTTP_200_OK,
)
def request_message(
    body: schemas.MessageRequest,
    service: AuthService = Depends(get_auth_service),
) -> schemas.MessageResponse:
    """Generate a SIWE challenge for a wallet address and remember its nonce."""
    address = body.address.strip()
    if not address:
        raise ValidationError("Address is required")
    if not is_valid_address(address):
        raise ValidationError("Invalid address format")

    challenge = service.generate_message(address)
    return schemas.MessageResponse(message=challenge.prepare_message(), nonce=challenge.nonce)


@router.post(
    "/signin",
    tags=group_tags,
    response_model=schemas.SignInResponse,
)
def sign_in(
    body: schemas.SignInRequest,
    service: AuthService = Depends(get_auth_service),
) -> schemas.SignInResponse:
    """Verify a signed challenge and return an access token."""
    signature = body.signature.strip()
    nonce = body.nonce.strip()
    if not signature or not nonce:
        raise ValidationError("Signature and nonce are required")

    address, chain_id = service.verify_signature(nonce, signature)
    token = create_access_token(address, chain_id)
    logger.info("User signed in: %s", address)
    return schemas.SignInResponse(token=token, address=address, success=True)


@router.get(
    "/verify",
    tags=group_tags,
    response_model=schemas.VerifyResponse,
    responses={
        status.HTTP_401_UNAUTHORIZED: {"description": "Token missing"},
        status.HTTP_403_FORBIDDEN: {"description": "Token invalid or expired"},
    },
)
def verify(authorization: Optional[str] = Header(None, alias="Authorization")):
    """Check a bearer token and echo the identity it carries."""
    try:
        payload = verify_token(extract_bearer_token(authorization))
    except FaucetError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"valid": False, "error": exc.message},
        )
    return schemas.VerifyResponse(valid=True, address=payload["address"], chain_id=payload["chainId"])
