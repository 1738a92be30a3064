"""
Faucet contract client — web3 wrapper for the FaucetToken ERC-20 contract.

Reads are plain calls; the claim is a transaction signed by the faucet
operator key. Every RPC or contract failure is logged and re-raised as
``UpstreamError`` so the API never leaks node internals. There is no retry.

Usage:
    faucet = FaucetContract(
        rpc_url="https://sepolia.example/rpc",
        contract_address="0x...",
        private_key="0x...",
    )
    faucet.has_address_claimed("0xUser")
    faucet.claim_tokens()
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, TypeVar

from web3 import Web3
from web3.exceptions import ContractLogicError

from app.core.exceptions import AlreadyClaimed, ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Minimal ABI — only the functions the API calls.
# ---------------------------------------------------------------------------

def _view(name: str, inputs: List[Dict[str, str]], output: str) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": [{"name": "", "type": output}],
        "stateMutability": "view",
    }


_ADDRESS_ARG = [{"name": "account", "type": "address"}]

FAUCET_TOKEN_ABI = [
    {
        "type": "function",
        "name": "claimTokens",
        "inputs": [],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    _view("hasAddressClaimed", _ADDRESS_ARG, "bool"),
    _view("balanceOf", _ADDRESS_ARG, "uint256"),
    _view("getFaucetUsers", [], "address[]"),
    _view("getFaucetAmount", [], "uint256"),
    _view("name", [], "string"),
    _view("symbol", [], "string"),
    _view("decimals", [], "uint8"),
    _view("totalSupply", [], "uint256"),
]

CLAIM_GAS_LIMIT = 200_000


def format_ether(wei: int) -> str:
    """Format a wei amount in token units (18 decimals), e.g. 10**20 -> "100.0"."""
    value = Decimal(Web3.from_wei(wei, "ether"))
    text = format(value.normalize(), "f")
    return text if "." in text else text + ".0"


class FaucetContract:
    """Python wrapper for the faucet token contract."""

    def __init__(self, rpc_url: str, contract_address: str, private_key: str):
        if not rpc_url or not contract_address or not private_key:
            raise ConfigurationError("RPC_URL, CONTRACT_ADDRESS and PRIVATE_KEY are required")

        self._w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.contract_address = Web3.to_checksum_address(contract_address)
        self._contract = self._w3.eth.contract(address=self.contract_address, abi=FAUCET_TOKEN_ABI)
        self._operator_key = private_key
        self._operator_address = self._w3.eth.account.from_key(private_key).address

        logger.info("Faucet contract %s, operator %s", self.contract_address, self._operator_address)

    @classmethod
    def from_settings(cls, settings) -> "FaucetContract":
        return cls(
            rpc_url=settings.RPC_URL,
            contract_address=settings.CONTRACT_ADDRESS,
            private_key=settings.PRIVATE_KEY,
        )

    def _call(self, description: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except Exception as exc:
            logger.exception("Contract call %s failed", description)
            raise UpstreamError() from exc

    # ------------------------------------------------------------------
    # Read methods
    # ------------------------------------------------------------------

    def has_address_claimed(self, address: str) -> bool:
        addr = Web3.to_checksum_address(address)
        return self._call("hasAddressClaimed", self._contract.functions.hasAddressClaimed(addr).call)

    def get_token_balance(self, address: str) -> str:
        addr = Web3.to_checksum_address(address)
        return format_ether(self._call("balanceOf", self._contract.functions.balanceOf(addr).call))

    def get_faucet_users(self) -> List[str]:
        return list(self._call("getFaucetUsers", self._contract.functions.getFaucetUsers().call))

    def get_faucet_amount(self) -> str:
        return format_ether(self._call("getFaucetAmount", self._contract.functions.getFaucetAmount().call))

    def get_token_info(self) -> Dict[str, Any]:
        functions = self._contract.functions
        return {
            "name": self._call("name", functions.name().call),
            "symbol": self._call("symbol", functions.symbol().call),
            "decimals": int(self._call("decimals", functions.decimals().call)),
            "totalSupply": format_ether(self._call("totalSupply", functions.totalSupply().call)),
        }

    # ------------------------------------------------------------------
    # Write methods (operator-signed transactions)
    # ------------------------------------------------------------------

    def claim_tokens(self) -> str:
        """Send ``claimTokens()`` and wait for the receipt. Returns the tx hash hex."""
        try:
            tx = self._contract.functions.claimTokens().build_transaction({
                "from": self._operator_address,
                "nonce": self._w3.eth.get_transaction_count(self._operator_address),
                "gas": CLAIM_GAS_LIMIT,
                "gasPrice": self._w3.eth.gas_price,
            })
            signed = self._w3.eth.account.sign_transaction(tx, self._operator_key)
            tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
            logger.info("Claim transaction sent: %s", tx_hash.hex())
            receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash)
        except ContractLogicError as exc:
            if "Already claimed" in str(exc):
                raise AlreadyClaimed() from exc
            logger.exception("claimTokens reverted")
            raise UpstreamError("Token claim was rejected by the contract") from exc
        except Exception as exc:
            logger.exception("claimTokens failed")
            raise UpstreamError("Token claim failed") from exc

        if receipt["status"] != 1:
            raise UpstreamError("Token claim transaction failed")
        logger.info("Claim transaction confirmed: %s", tx_hash.hex())
        return Web3.to_hex(tx_hash)
