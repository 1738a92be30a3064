import asyncio
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from app.core.exceptions import (
    ChallengeExpired,
    ChallengeNotFound,
    InvalidSignature,
    ValidationError,
)
from app.services.auth import AuthService, SiweConfig, run_challenge_sweeper
from tests.conftest import CHAIN_ID, sign_text


class TestGenerateMessage:

    def test_challenge_is_stored(self, auth_service: AuthService, store, wallet):
        challenge = auth_service.generate_message(wallet.address)

        assert challenge.nonce in store
        assert challenge.address == wallet.address
        assert challenge.chain_id == CHAIN_ID
        assert challenge.domain == "localhost:3001"
        assert challenge.statement == "Sign in to Faucet Token App"

    def test_each_request_gets_new_nonce(self, auth_service: AuthService, store, wallet):
        first = auth_service.generate_message(wallet.address)
        second = auth_service.generate_message(wallet.address)

        assert first.nonce != second.nonce
        assert len(store) == 2

    def test_malformed_address(self, auth_service: AuthService, store):
        with pytest.raises(ValidationError):
            auth_service.generate_message("0xdeadbeef")
        assert len(store) == 0


class TestVerifySignature:

    def test_round_trip(self, auth_service: AuthService, store, wallet):
        challenge = auth_service.generate_message(wallet.address)
        signature = sign_text(wallet, challenge.prepare_message())

        address, chain_id = auth_service.verify_signature(challenge.nonce, signature)

        assert address == wallet.address.lower()
        assert chain_id == CHAIN_ID
        assert challenge.nonce not in store

    def test_lowercase_request_address(self, auth_service: AuthService, wallet):
        challenge = auth_service.generate_message(wallet.address.lower())
        signature = sign_text(wallet, challenge.prepare_message())

        address, _ = auth_service.verify_signature(challenge.nonce, signature)
        assert address == wallet.address.lower()

    def test_replay_fails(self, auth_service: AuthService, wallet):
        challenge = auth_service.generate_message(wallet.address)
        signature = sign_text(wallet, challenge.prepare_message())
        auth_service.verify_signature(challenge.nonce, signature)

        with pytest.raises(ChallengeNotFound):
            auth_service.verify_signature(challenge.nonce, signature)

    def test_unknown_nonce(self, auth_service: AuthService):
        with pytest.raises(ChallengeNotFound):
            auth_service.verify_signature("neverissued1", "0x" + "00" * 65)

    def test_expired_challenge_is_removed(self, auth_service: AuthService, store, clock, wallet):
        challenge = auth_service.generate_message(wallet.address)
        signature = sign_text(wallet, challenge.prepare_message())
        clock.advance(601)

        with pytest.raises(ChallengeExpired):
            auth_service.verify_signature(challenge.nonce, signature)
        assert challenge.nonce not in store

        with pytest.raises(ChallengeNotFound):
            auth_service.verify_signature(challenge.nonce, signature)

    def test_challenge_valid_until_ttl(self, auth_service: AuthService, clock, wallet):
        challenge = auth_service.generate_message(wallet.address)
        signature = sign_text(wallet, challenge.prepare_message())
        clock.advance(600)

        address, _ = auth_service.verify_signature(challenge.nonce, signature)
        assert address == wallet.address.lower()

    def test_wrong_signer_keeps_challenge(self, auth_service: AuthService, store, wallet, other_wallet):
        challenge = auth_service.generate_message(wallet.address)
        forged = sign_text(other_wallet, challenge.prepare_message())

        with pytest.raises(InvalidSignature):
            auth_service.verify_signature(challenge.nonce, forged)
        assert challenge.nonce in store

        # the owner can still finish the sign-in
        signature = sign_text(wallet, challenge.prepare_message())
        address, _ = auth_service.verify_signature(challenge.nonce, signature)
        assert address == wallet.address.lower()

    def test_tampered_message(self, auth_service: AuthService, wallet):
        challenge = auth_service.generate_message(wallet.address)
        message = challenge.prepare_message()
        tampered = message[:-1] + ("0" if message[-1] != "0" else "1")

        with pytest.raises(InvalidSignature):
            auth_service.verify_signature(challenge.nonce, sign_text(wallet, tampered))

    def test_malformed_signature(self, auth_service: AuthService, wallet):
        challenge = auth_service.generate_message(wallet.address)

        with pytest.raises(InvalidSignature):
            auth_service.verify_signature(challenge.nonce, "0xnothex")

    def test_concurrent_signins_consume_once(self, auth_service: AuthService, wallet):
        challenge = auth_service.generate_message(wallet.address)
        signature = sign_text(wallet, challenge.prepare_message())

        def attempt(_):
            try:
                auth_service.verify_signature(challenge.nonce, signature)
                return True
            except ChallengeNotFound:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(16)))

        assert results.count(True) == 1


class TestSweep:

    def test_sweep_uses_configured_ttl(self, auth_service: AuthService, store, clock, wallet):
        old = auth_service.generate_message(wallet.address)
        clock.advance(300)
        fresh = auth_service.generate_message(wallet.address)
        clock.advance(301)

        assert auth_service.sweep() == 1
        assert old.nonce not in store
        assert fresh.nonce in store

    def test_sweeper_runs_until_cancelled(self):
        service = Mock(spec=AuthService)

        async def scenario():
            task = asyncio.create_task(run_challenge_sweeper(service, 0.01))
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert service.sweep.call_count >= 1

    def test_sweeper_survives_sweep_error(self):
        service = Mock(spec=AuthService)
        calls = []

        def flaky_sweep():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

        service.sweep.side_effect = flaky_sweep

        async def scenario():
            task = asyncio.create_task(run_challenge_sweeper(service, 0.01))
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert service.sweep.call_count >= 2


class TestSiweConfig:

    def test_from_settings(self):
        settings = Mock(
            SIWE_DOMAIN="faucet.example",
            SIWE_URI="https://faucet.example",
            CHAIN_ID=1,
            SIWE_VERSION="1",
            SIWE_STATEMENT="Hello",
            NONCE_EXPIRY_SECONDS=60,
        )
        config = SiweConfig.from_settings(settings)

        assert config.domain == "faucet.example"
        assert config.chain_id == 1
        assert config.ttl_seconds == 60
