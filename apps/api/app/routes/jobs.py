"""Job routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from app.core.config import Settings, get_settings
from app.errors import ApiError
from app.routes.dependencies import get_authenticated_principal, get_job_service
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse, NoLeakNotFoundError, QueuePublishError, QuotaExceededError
from app.schemas.job import CreateJobRequest, Job, JobList
from app.services.jobs import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post(
    "",
    response_model=Job,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": QuotaExceededError},
        502: {"model": QueuePublishError},
    },
)
def create_job(
    payload: CreateJobRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
) -> Job:
    job = service.create_job(owner_id=principal.user_id, source_url=payload.source_url)
    return service.submit_job(job.id)


@router.post(
    "/anonymous",
    response_model=Job,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        502: {"model": QueuePublishError},
    },
)
def create_anonymous_job(
    payload: CreateJobRequest,
    service: Annotated[JobService, Depends(get_job_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Job:
    if not settings.allow_anonymous_jobs:
        raise ApiError(
            status_code=403,
            code="ANONYMOUS_JOBS_DISABLED",
            message="Anonymous transcription is disabled",
        )
    job = service.create_job(owner_id=None, source_url=payload.source_url)
    return service.submit_job(job.id)


@router.get(
    "/anonymous/{jobId}",
    response_model=Job,
    responses={404: {"model": NoLeakNotFoundError}},
)
def get_anonymous_job(
    job_id: Annotated[str, Path(alias="jobId")],
    service: Annotated[JobService, Depends(get_job_service)],
) -> Job:
    return service.get_anonymous_job(job_id=job_id)


@router.get(
    "",
    response_model=JobList,
    responses={401: {"model": ErrorResponse}},
)
def list_jobs(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> JobList:
    return service.list_jobs(owner_id=principal.user_id, limit=limit, offset=offset)


@router.get(
    "/{jobId}",
    response_model=Job,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
def get_job(
    job_id: Annotated[str, Path(alias="jobId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
) -> Job:
    return service.get_job(owner_id=principal.user_id, job_id=job_id)
