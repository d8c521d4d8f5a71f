"""Auth verifier adapters."""

from .base import AuthVerificationError, TokenVerifier
from .cognito_auth import CognitoTokenVerifier
from .mock_auth import MockTokenVerifier

__all__ = [
    "AuthVerificationError",
    "TokenVerifier",
    "CognitoTokenVerifier",
    "MockTokenVerifier",
]
