"""Notification routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from app.routes.dependencies import get_authenticated_principal, get_notification_service
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse, NoLeakNotFoundError
from app.schemas.notification import NotificationFeed
from app.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=NotificationFeed,
    responses={401: {"model": ErrorResponse}},
)
def get_notifications(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> NotificationFeed:
    return service.get_feed(account_id=principal.user_id)


@router.patch(
    "/read-all",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse}},
)
def mark_all_notifications_read(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> Response:
    service.mark_all_read(account_id=principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{notificationId}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"model": ErrorResponse}, 404: {"model": NoLeakNotFoundError}},
)
def mark_notification_read(
    notification_id: Annotated[int, Path(alias="notificationId")],
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> Response:
    service.mark_read(account_id=principal.user_id, notification_id=notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
