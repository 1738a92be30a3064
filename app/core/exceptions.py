"""
Domain errors for the faucet API.

Every error carries the HTTP status it maps to and a short message that is
safe to show to the client. ``main.py`` turns any ``FaucetError`` into a
JSON body built by ``to_body()``, so handlers and services only raise.
"""

from fastapi import status


class FaucetError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class ValidationError(FaucetError):
    """Malformed input, the client can retry with corrected data."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


# Sign-in failures: the client has to request a new challenge.
# Not-found and expired share one message so a caller cannot enumerate nonces.
CHALLENGE_GONE_MESSAGE = "Challenge not found or expired"


class AuthenticationError(FaucetError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication failed"


class ChallengeNotFound(AuthenticationError):
    message = CHALLENGE_GONE_MESSAGE


class ChallengeExpired(AuthenticationError):
    message = CHALLENGE_GONE_MESSAGE


class InvalidSignature(AuthenticationError):
    message = "Invalid signature"


# Credential failures: the client has to sign in again.
class MissingCredential(FaucetError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Access token required"


class InvalidOrExpiredCredential(FaucetError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Invalid or expired token"


class Forbidden(FaucetError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not authorized to access this resource"


class AlreadyClaimed(FaucetError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "This address has already claimed tokens"

    def to_body(self) -> dict:
        return {"error": self.message, "hasClaimed": True}


class ConfigurationError(FaucetError):
    """Server misconfiguration, fatal at startup."""

    message = "Server misconfigured"


class UpstreamError(FaucetError):
    """The chain RPC or the faucet contract call failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Blockchain request failed"
