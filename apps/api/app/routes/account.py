"""Account usage routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.errors import NotFound
from app.routes.dependencies import get_authenticated_principal, get_quota_policy
from app.schemas.account import UsageResponse
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse, NoLeakNotFoundError
from app.services.quota import QuotaPolicy

router = APIRouter(prefix="/account", tags=["Account"])


@router.get(
    "/usage",
    response_model=UsageResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
def get_usage(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    quota: Annotated[QuotaPolicy, Depends(get_quota_policy)],
) -> UsageResponse:
    usage = quota.usage(principal.user_id)
    if usage is None:
        raise NotFound()
    return UsageResponse(
        tier=usage.tier,
        jobs_used=usage.jobs_used,
        limit=usage.limit,
        remaining=usage.remaining,
    )
