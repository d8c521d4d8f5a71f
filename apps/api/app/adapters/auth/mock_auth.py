"""Mock auth verifier for local development and tests."""

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.schemas.auth import AuthPrincipal


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens only.

    Expected token format:
    - ``test:<user_id>``
    - ``test:<user_id>:<email>``
    """

    def verify_token(self, token: str) -> AuthPrincipal:
        parts = token.split(":", 2)
        if len(parts) < 2 or parts[0] != "test":
            raise AuthVerificationError("Invalid bearer token")

        user_id = parts[1].strip()
        email = parts[2].strip() if len(parts) == 3 else None

        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return AuthPrincipal(user_id=user_id, email=email or None)


__all__ = ["MockTokenVerifier"]
