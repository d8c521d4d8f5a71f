"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from app.adapters.queue import InMemoryQueuePublisher, QueuePublisher, SqsQueuePublisher
from app.adapters.titles import HttpTitleResolver, StaticTitleResolver, TitleResolver
from app.core.config import Settings, get_settings
from app.core.locks import KeyedLock
from app.errors import ApiError
from app.repositories.database import build_engine, build_session_factory, create_schema
from app.repositories.store import build_stores
from app.routes import account_router, internal_router, jobs_router, notifications_router
from app.schemas.error import ErrorResponse
from app.schemas.webhook import WebhookPayload

logger = logging.getLogger(__name__)

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/api/v1/jobs": {"post": {"201", "400", "401", "403", "502"}, "get": {"200", "401"}},
    "/api/v1/jobs/anonymous": {"post": {"201", "400", "403", "502"}},
    "/api/v1/jobs/anonymous/{jobId}": {"get": {"200", "404"}},
    "/api/v1/jobs/{jobId}": {"get": {"200", "401", "404"}},
    "/api/v1/internal/jobs/{jobId}/webhook": {"post": {"200", "204", "400", "401", "404"}},
    "/api/v1/internal/jobs/expire-stale": {"post": {"200", "400", "401"}},
    "/api/v1/notifications": {"get": {"200", "401"}},
    "/api/v1/notifications/read-all": {"patch": {"204", "401"}},
    "/api/v1/notifications/{notificationId}/read": {"patch": {"204", "401", "404"}},
    "/api/v1/account/usage": {"get": {"200", "401", "404"}},
}

_CREATE_JOB_VALIDATION_PATHS: set[tuple[str, str]] = {
    ("POST", "/api/v1/jobs"),
    ("POST", "/api/v1/jobs/anonymous"),
}


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to the ones each route can actually return."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                responses.setdefault(status_code, {"description": "See API contract"})


def _apply_webhook_signature_schema(schema: dict) -> None:
    """Document the raw-body webhook payload, which the route parses after signature checks."""
    operation = schema.get("paths", {}).get("/api/v1/internal/jobs/{jobId}/webhook", {}).get("post")
    if not operation:
        return
    request_body = operation.setdefault("requestBody", {"required": True})
    content = request_body.setdefault("content", {}).setdefault("application/json", {})
    content["schema"] = {"$ref": "#/components/schemas/WebhookPayload"}
    components = schema.setdefault("components", {}).setdefault("schemas", {})
    components["WebhookPayload"] = WebhookPayload.model_json_schema(by_alias=True)


def _build_queue_publisher(settings: Settings) -> QueuePublisher:
    if settings.queue_backend == "sqs":
        if not settings.sqs_queue_url:
            raise ValueError("VIDEOSCRIPT_SQS_QUEUE_URL is required when queue_backend is 'sqs'")
        return SqsQueuePublisher(queue_url=settings.sqs_queue_url, region=settings.aws_region)
    return InMemoryQueuePublisher()


def _build_title_resolver(settings: Settings) -> TitleResolver:
    if settings.title_resolver == "http":
        return HttpTitleResolver(timeout_seconds=settings.title_timeout_seconds)
    return StaticTitleResolver()


def create_app(
    *,
    engine: Engine | None = None,
    queue_publisher: QueuePublisher | None = None,
    title_resolver: TitleResolver | None = None,
) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="VideoScript API", version="1.0.0")

    engine = engine or build_engine(settings.database_url)
    create_schema(engine)
    app.state.engine = engine
    app.state.store = build_stores(build_session_factory(engine))
    app.state.queue_publisher = queue_publisher or _build_queue_publisher(settings)
    app.state.title_resolver = title_resolver or _build_title_resolver(settings)
    app.state.job_locks = KeyedLock()

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        route = request.scope.get("route")
        route_path = getattr(route, "path", request.url.path)
        route_key = (request.method.upper(), route_path)
        if route_key in _CREATE_JOB_VALIDATION_PATHS:
            payload = ErrorResponse(code="INVALID_INPUT", message="Invalid job request payload")
            return JSONResponse(status_code=400, content=payload.model_dump(exclude_none=True))

        return await request_validation_exception_handler(request, exc)

    api_prefix = "/api/v1"
    app.include_router(jobs_router, prefix=api_prefix)
    app.include_router(notifications_router, prefix=api_prefix)
    app.include_router(account_router, prefix=api_prefix)
    app.include_router(internal_router, prefix=api_prefix)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        _apply_webhook_signature_schema(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    logger.info(
        "app.created queue_backend=%s title_resolver=%s auth_provider=%s",
        settings.queue_backend if queue_publisher is None else type(queue_publisher).__name__,
        settings.title_resolver if title_resolver is None else type(title_resolver).__name__,
        settings.auth_provider,
    )
    return app
