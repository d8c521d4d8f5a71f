"""Internal worker-facing routes."""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.core.config import Settings, get_settings
from app.errors import InvalidInput
from app.routes.dependencies import (
    get_job_service,
    get_request_correlation_id,
    get_webhook_service,
    require_webhook_signature,
)
from app.schemas.error import ErrorResponse, NoLeakNotFoundError
from app.schemas.webhook import (
    ExpireStaleJobsRequest,
    ExpireStaleJobsResponse,
    WebhookPayload,
    WebhookReplayResponse,
)
from app.services.jobs import JobService
from app.services.webhooks import WebhookService

router = APIRouter(prefix="/internal", tags=["Internal"])


def _parse_body(body: bytes, model):
    try:
        return model.model_validate_json(body or b"{}")
    except ValidationError as exc:
        raise InvalidInput(
            "Invalid webhook payload",
            details={"errors": [".".join(str(part) for part in error["loc"]) for error in exc.errors()]},
        ) from exc


@router.post(
    "/jobs/{jobId}/webhook",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        200: {"model": WebhookReplayResponse},
        204: {"description": "Outcome applied"},
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
    },
)
def post_job_webhook(
    job_id: Annotated[str, Path(alias="jobId")],
    body: Annotated[bytes, Depends(require_webhook_signature)],
    correlation_id: Annotated[str, Depends(get_request_correlation_id)],
    webhook_service: Annotated[WebhookService, Depends(get_webhook_service)],
) -> Response:
    payload = _parse_body(body, WebhookPayload)
    result = webhook_service.process(job_id=job_id, payload=payload, correlation_id=correlation_id)
    if result.replayed:
        replay_payload = WebhookReplayResponse(
            job_id=job_id,
            replayed=True,
            current_state=result.current_state,
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=replay_payload.model_dump(mode="json"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/jobs/expire-stale",
    response_model=ExpireStaleJobsResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def expire_stale_jobs(
    body: Annotated[bytes, Depends(require_webhook_signature)],
    service: Annotated[JobService, Depends(get_job_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ExpireStaleJobsResponse:
    request = _parse_body(body, ExpireStaleJobsRequest)
    max_age_hours = request.max_age_hours or settings.stale_processing_after_hours
    if not max_age_hours:
        raise InvalidInput("max_age_hours is required when no default sweep age is configured")
    expired = service.expire_stale_jobs(older_than=timedelta(hours=max_age_hours))
    return ExpireStaleJobsResponse(expired_job_ids=expired)
