"""Dependency wiring for routes."""

from __future__ import annotations

from functools import lru_cache
import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from app.adapters.auth import (
    AuthVerificationError,
    CognitoTokenVerifier,
    MockTokenVerifier,
    TokenVerifier,
)
from app.core.config import Settings, get_settings
from app.core.logging_safety import safe_log_identifier
from app.core.signatures import verify_signature
from app.errors import ApiError
from app.repositories.store import Stores
from app.schemas.auth import AuthPrincipal
from app.services.jobs import JobService
from app.services.notifications import NotificationEmitter, NotificationService
from app.services.quota import QuotaPolicy
from app.services.webhooks import WebhookService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
webhook_signature_scheme = APIKeyHeader(
    name="X-Webhook-Signature",
    auto_error=False,
    scheme_name="webhookSignature",
)
logger = logging.getLogger(__name__)


def _auth_error(message: str) -> ApiError:
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_request_correlation_id(request: Request) -> str:
    return _request_correlation_id(request)


@lru_cache(maxsize=4)
def _cognito_verifier(region: str | None) -> CognitoTokenVerifier:
    return CognitoTokenVerifier(region=region)


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "cognito":
        return _cognito_verifier(settings.cognito_region or settings.aws_region)
    return MockTokenVerifier()


def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthPrincipal:
    """Validate bearer token and attach normalized principal to request context."""
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_or_missing_bearer",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise _auth_error("Invalid or missing bearer token")

    try:
        principal = verifier.verify_token(credentials.credentials)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise _auth_error(str(exc) or "Invalid bearer token") from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
    )
    request.state.auth_principal = principal
    return principal


async def require_webhook_signature(
    request: Request,
    signature: Annotated[str | None, Security(webhook_signature_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> bytes:
    """Verify the HMAC over the raw body and hand the verified bytes to the route."""
    correlation_id = _request_correlation_id(request)
    body = await request.body()
    if not verify_signature(settings.webhook_secret, body, signature):
        logger.warning(
            "webhook.rejected correlation_id=%s method=%s path=%s reason=%s",
            safe_log_identifier(correlation_id, prefix="cid"),
            request.method,
            request.url.path,
            "missing_signature" if not signature else "invalid_signature",
        )
        raise _auth_error("Invalid webhook signature")
    return body


def get_store(request: Request) -> Stores:
    return request.app.state.store


def get_quota_policy(store: Annotated[Stores, Depends(get_store)]) -> QuotaPolicy:
    return QuotaPolicy(store.accounts)


def get_job_service(
    request: Request,
    store: Annotated[Stores, Depends(get_store)],
    quota: Annotated[QuotaPolicy, Depends(get_quota_policy)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JobService:
    state = request.app.state
    return JobService(
        store=store.jobs,
        quota=quota,
        title_resolver=state.title_resolver,
        queue_publisher=state.queue_publisher,
        notifier=NotificationEmitter(store.notifications),
        locks=state.job_locks,
        callback_base_url=settings.api_base_url,
    )


def get_webhook_service(jobs: Annotated[JobService, Depends(get_job_service)]) -> WebhookService:
    return WebhookService(jobs)


def get_notification_service(
    store: Annotated[Stores, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> NotificationService:
    return NotificationService(store.notifications, feed_limit=settings.notification_feed_limit)
