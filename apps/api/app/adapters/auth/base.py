"""Identity provider interfaces."""

from abc import ABC, abstractmethod

from app.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a bearer token cannot be resolved to an account."""


class TokenVerifier(ABC):
    """Provider-neutral bearer token verification.

    The account id on the returned principal is trusted as given by every service below
    the route layer.
    """

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return the principal of the account that owns it."""


__all__ = ["AuthVerificationError", "TokenVerifier"]
