import asyncio
import logging
import math
from enum import Enum
from typing import List

from fastapi import APIRouter, Depends, Query

from app.core.config import settings
from app.core.dependencies import CurrentUser, get_current_user, get_faucet_contract
from app.core.exceptions import AlreadyClaimed, Forbidden, ValidationError
from app.core.siwe import is_valid_address
from app.services.blockchain import FaucetContract
from app.schemas.faucet import (
    ClaimResponse,
    FaucetInfoResponse,
    FaucetStatusResponse,
    FaucetUsersResponse,
    Pagination,
    TokenInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter()
group_tags: List[str | Enum] = ["Faucet"]

RECENT_USERS_LIMIT = 10


"""
faucet endpoints, all chain access goes through FaucetContract

protected (bearer token):
- POST /claim: claim the fixed allotment once per address
- GET /status/{address}: claim status and balance, only for the caller's own address

public:
- GET /info: token metadata and faucet amount
- GET /users: addresses that claimed, newest first, paginated
"""


@router.post("/claim", tags=group_tags, response_model=ClaimResponse)
async def claim(
    user: CurrentUser = Depends(get_current_user),
    contract: FaucetContract = Depends(get_faucet_contract),
) -> ClaimResponse:
    if await asyncio.to_thread(contract.has_address_claimed, user.address):
        raise AlreadyClaimed()

    logger.info("%s claiming tokens", user.address)
    tx_hash = await asyncio.to_thread(contract.claim_tokens)
    logger.info("Tokens claimed for %s in %s", user.address, tx_hash)

    return ClaimResponse(
        success=True,
        tx_hash=tx_hash,
        message="Tokens claimed successfully!",
        address=user.address,
    )


@router.get("/status/{address}", tags=group_tags, response_model=FaucetStatusResponse)
async def get_status(
    address: str,
    user: CurrentUser = Depends(get_current_user),
    contract: FaucetContract = Depends(get_faucet_contract),
) -> FaucetStatusResponse:
    """
    Faucet status for the caller's own address.

    Returns:
    - hasClaimed, balance: state of this address
    - faucetAmount, totalUsers, users (last 10), tokenInfo: faucet-wide data
    """
    if not is_valid_address(address):
        raise ValidationError("Invalid address format")
    if not user.owns(address):
        raise Forbidden()

    has_claimed, balance, users, faucet_amount, token_info = await asyncio.gather(
        asyncio.to_thread(contract.has_address_claimed, address),
        asyncio.to_thread(contract.get_token_balance, address),
        asyncio.to_thread(contract.get_faucet_users),
        asyncio.to_thread(contract.get_faucet_amount),
        asyncio.to_thread(contract.get_token_info),
    )

    return FaucetStatusResponse(
        address=address,
        has_claimed=has_claimed,
        balance=balance,
        faucet_amount=faucet_amount,
        total_users=len(users),
        users=users[-RECENT_USERS_LIMIT:],
        token_info=TokenInfo.from_record(token_info),
    )


@router.get("/info", tags=group_tags, response_model=FaucetInfoResponse)
async def get_info(contract: FaucetContract = Depends(get_faucet_contract)) -> FaucetInfoResponse:
    faucet_amount, token_info, users = await asyncio.gather(
        asyncio.to_thread(contract.get_faucet_amount),
        asyncio.to_thread(contract.get_token_info),
        asyncio.to_thread(contract.get_faucet_users),
    )

    return FaucetInfoResponse(
        faucet_amount=faucet_amount,
        token_info=TokenInfo.from_record(token_info),
        total_users=len(users),
        contract_address=contract.contract_address,
        chain_id=settings.CHAIN_ID,
        network_name=settings.NETWORK_NAME,
    )


@router.get("/users", tags=group_tags, response_model=FaucetUsersResponse)
async def get_users(
    page: int = Query(default=1, ge=1, description="Page number, default: 1"),
    limit: int = Query(default=10, ge=1, le=100, description="Users per page, default: 10, max: 100"),
    contract: FaucetContract = Depends(get_faucet_contract),
) -> FaucetUsersResponse:
    all_users = await asyncio.to_thread(contract.get_faucet_users)

    offset = (page - 1) * limit
    newest_first = list(reversed(all_users))

    return FaucetUsersResponse(
        users=newest_first[offset:offset + limit],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=len(all_users),
            total_pages=math.ceil(len(all_users) / limit),
        ),
    )
