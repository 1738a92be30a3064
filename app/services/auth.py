"""
Sign-in challenge service.

Issues SIWE challenges, consumes them once against a wallet signature and
reaps stale ones in the background. The store is injected so every app
instance (and every test) owns its own state.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from app.core.challenge_store import ChallengeStore
from app.core.exceptions import ChallengeExpired, ChallengeNotFound, InvalidSignature
from app.core.siwe import Challenge, is_valid_signature, normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiweConfig:
    """Static fields embedded in every challenge"""
    domain: str
    uri: str
    chain_id: int
    version: str = "1"
    statement: Optional[str] = None
    ttl_seconds: int = 600

    @classmethod
    def from_settings(cls, settings) -> "SiweConfig":
        return cls(
            domain=settings.SIWE_DOMAIN,
            uri=settings.SIWE_URI,
            chain_id=settings.CHAIN_ID,
            version=settings.SIWE_VERSION,
            statement=settings.SIWE_STATEMENT,
            ttl_seconds=settings.NONCE_EXPIRY_SECONDS,
        )


class AuthService:

    def __init__(self, store: ChallengeStore, config: SiweConfig):
        self.store = store
        self.config = config

    def generate_message(self, address: str) -> Challenge:
        """Create and remember a challenge for ``address``."""
        challenge = Challenge.create(
            address,
            domain=self.config.domain,
            uri=self.config.uri,
            chain_id=self.config.chain_id,
            version=self.config.version,
            statement=self.config.statement,
        )
        self.store.put(challenge)
        logger.info("Challenge issued for %s", challenge.address)
        return challenge

    def verify_signature(self, nonce: str, signature: str) -> Tuple[str, int]:
        """
        Consume the challenge behind ``nonce`` if ``signature`` matches it.

        Returns:
            (lower-case address, chain id) of the verified challenge

        Raises:
            ChallengeNotFound: never issued, already consumed, or lost a race
            ChallengeExpired: older than the TTL, the entry is dropped
            InvalidSignature: signature does not belong to the challenge address;
                the entry stays until it is consumed or swept
        """
        entry = self.store.get(nonce)
        if entry is None:
            raise ChallengeNotFound()

        if entry.is_expired(self.config.ttl_seconds, self.store.now()):
            self.store.delete_if_current(nonce, entry.challenge)
            raise ChallengeExpired()

        challenge = entry.challenge
        if not is_valid_signature(challenge, signature):
            logger.warning("Invalid signature for challenge of %s", challenge.address)
            raise InvalidSignature()

        if not self.store.delete_if_current(nonce, challenge):
            raise ChallengeNotFound()

        logger.info("Signature verified for %s", challenge.address)
        return normalize_address(challenge.address), challenge.chain_id

    def sweep(self) -> int:
        removed = self.store.sweep_expired(self.config.ttl_seconds)
        if removed:
            logger.debug("Swept %d expired challenges", removed)
        return removed


async def run_challenge_sweeper(service: AuthService, interval_seconds: float) -> None:
    """Sweep expired challenges every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            service.sweep()
        except Exception:
            logger.exception("Challenge sweep failed")
