import os

os.environ.setdefault("ENCODE_KEY", "test-secret-key-for-jwt-signing-0123456789")

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient
from unittest.mock import Mock
from web3 import Web3

from app.core.challenge_store import ChallengeStore
from app.core.jwt_utils import create_access_token
from app.services.auth import AuthService, SiweConfig
from app.services.blockchain import FaucetContract
from main import create_app


CHAIN_ID = 11155111
CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class FakeClock:
    """Controllable replacement for time.time"""
    def __init__(self, start: float = 1_700_000_000.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def sign_text(account, message: str) -> str:
    """personal_sign the way a browser wallet does, 0x-prefixed hex"""
    signed = account.sign_message(encode_defunct(text=message))
    return Web3.to_hex(signed.signature)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> ChallengeStore:
    return ChallengeStore(clock=clock)


@pytest.fixture
def siwe_config() -> SiweConfig:
    return SiweConfig(
        domain="localhost:3001",
        uri="http://localhost:5173",
        chain_id=CHAIN_ID,
        version="1",
        statement="Sign in to Faucet Token App",
        ttl_seconds=600,
    )


@pytest.fixture
def auth_service(store, siwe_config) -> AuthService:
    return AuthService(store, siwe_config)


@pytest.fixture
def wallet():
    """A fresh local key standing in for the user's browser wallet"""
    return Account.create()


@pytest.fixture
def other_wallet():
    return Account.create()


@pytest.fixture
def mock_contract():
    """Faucet contract double, no RPC involved"""
    contract = Mock(spec=FaucetContract)
    contract.contract_address = CONTRACT_ADDRESS
    contract.has_address_claimed.return_value = False
    contract.claim_tokens.return_value = "0x" + "ab" * 32
    contract.get_token_balance.return_value = "0.0"
    contract.get_faucet_users.return_value = []
    contract.get_faucet_amount.return_value = "100.0"
    contract.get_token_info.return_value = {
        "name": "Faucet Token",
        "symbol": "FTK",
        "decimals": 18,
        "totalSupply": "1000000.0",
    }
    return contract


@pytest.fixture
def client(auth_service, mock_contract) -> TestClient:
    """Create a test client with isolated services"""
    app = create_app(auth_service=auth_service, faucet_contract=mock_contract)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(wallet):
    token = create_access_token(wallet.address, CHAIN_ID)
    return {"Authorization": f"Bearer {token}"}
