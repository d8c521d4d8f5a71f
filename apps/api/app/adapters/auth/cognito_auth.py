"""Amazon Cognito access-token verifier adapter."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.schemas.auth import AuthPrincipal

_REJECTED_TOKEN_CODES = frozenset({"NotAuthorizedException", "UserNotFoundException"})


class CognitoTokenVerifier(TokenVerifier):
    """Resolves a Cognito access token to the user's ``sub`` via ``GetUser``."""

    def __init__(self, region: str | None, client: Any | None = None) -> None:
        self._client = client or boto3.client("cognito-idp", region_name=region)

    def verify_token(self, token: str) -> AuthPrincipal:
        try:
            response = self._client.get_user(AccessToken=token)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _REJECTED_TOKEN_CODES:
                raise AuthVerificationError("Invalid bearer token") from exc
            raise AuthVerificationError("Identity provider rejected the request") from exc
        except BotoCoreError as exc:
            raise AuthVerificationError("Identity provider is unavailable") from exc

        attributes = {
            item.get("Name"): item.get("Value")
            for item in response.get("UserAttributes", [])
        }
        user_id = str(attributes.get("sub") or "").strip()
        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")

        return AuthPrincipal(user_id=user_id, email=attributes.get("email"))


__all__ = ["CognitoTokenVerifier"]
