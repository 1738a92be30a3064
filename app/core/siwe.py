"""
Sign-In With Ethereum (EIP-4361) Utilities

This module builds the challenge message a wallet signs and checks the
signature that comes back. Wallets sign the text with ``personal_sign``
(EIP-191), so verification recovers the signer from the exact message text.

Authentication Flow:
1. Backend generates a random nonce -> generate_nonce()
2. Backend binds nonce, address, domain and chain into a Challenge and
   renders it -> Challenge.prepare_message()
3. Frontend signs the rendered text with the wallet
4. Backend re-renders the stored Challenge and recovers the signer
   -> is_valid_signature()

The signature verification uses:
- eth_account for EIP-191 message encoding and public key recovery
- web3 for EIP-55 address checksumming
"""

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from app.core.exceptions import InvalidSignature, ValidationError


NONCE_NUM_BYTES = 16  # 16 bytes = 32 hex characters

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

_HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce for a sign-in challenge.

    EIP-4361 requires at least 8 alphanumeric characters; a hex string
    satisfies that.

    Args:
        num_bytes: Number of random bytes to generate (default: 16 = 32 hex chars)

    Returns:
        Hex-encoded random string (e.g., "a1b2c3d4...")
    """
    if num_bytes <= 0:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


def is_valid_address(address: Optional[str]) -> bool:
    return bool(address) and ADDRESS_RE.match(address) is not None


def normalize_address(address: str) -> str:
    """Lower-case form used for every address comparison."""
    if not is_valid_address(address):
        raise ValidationError("Invalid address format")
    return address.lower()


def _utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Challenge:
    """One outstanding sign-in attempt.

    Every field is embedded verbatim in the rendered message, which is
    what the wallet signs.
    """

    domain: str
    address: str
    uri: str
    version: str
    chain_id: int
    nonce: str
    issued_at: str
    statement: Optional[str] = None

    @classmethod
    def create(
        cls,
        address: str,
        *,
        domain: str,
        uri: str,
        chain_id: int,
        version: str = "1",
        statement: Optional[str] = None,
        nonce: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Challenge":
        if not is_valid_address(address):
            raise ValidationError("Invalid address format")
        return cls(
            domain=domain,
            address=Web3.to_checksum_address(address),
            uri=uri,
            version=str(version),
            chain_id=int(chain_id),
            nonce=nonce or generate_nonce(),
            issued_at=_utc_timestamp(now),
            statement=statement or None,
        )

    def prepare_message(self) -> str:
        lines = [
            f"{self.domain}{_HEADER_SUFFIX}",
            self.address,
            "",
        ]
        if self.statement:
            lines += [self.statement, ""]
        lines += [
            f"URI: {self.uri}",
            f"Version: {self.version}",
            f"Chain ID: {self.chain_id}",
            f"Nonce: {self.nonce}",
            f"Issued At: {self.issued_at}",
        ]
        return "\n".join(lines)


def recover_address(message: str, signature: str) -> str:
    """
    Recover the checksummed address that signed ``message`` with personal_sign.

    Raises:
        InvalidSignature: If the signature is malformed or cannot be recovered
    """
    try:
        encoded = encode_defunct(text=message)
        recovered = Account.recover_message(encoded, signature=signature)
    except Exception as exc:
        raise InvalidSignature() from exc
    return Web3.to_checksum_address(recovered)


def is_valid_signature(challenge: Challenge, signature: str) -> bool:
    """
    Check that ``signature`` was produced over the challenge text by the
    key controlling ``challenge.address``.

    The message is re-rendered from the stored challenge, so any change to
    the signed text yields a different signer and the check fails.
    """
    try:
        signer = recover_address(challenge.prepare_message(), signature)
    except InvalidSignature:
        return False
    return signer.lower() == challenge.address.lower()
