"""Authentication dependency and adapter tests."""

from __future__ import annotations

from datetime import UTC, datetime
import os
import unittest
from unittest.mock import patch

from botocore.exceptions import ClientError, EndpointConnectionError
from fastapi import Request
from fastapi.testclient import TestClient

from app.adapters.auth.base import AuthVerificationError
from app.adapters.auth.cognito_auth import CognitoTokenVerifier
from app.adapters.auth.mock_auth import MockTokenVerifier
from app.core.config import Settings, get_settings
from app.main import create_app
from app.routes import dependencies
from app.routes.dependencies import get_job_service, get_token_verifier
from app.schemas.job import Job, JobState


class _CapturingJobService:
    def __init__(self) -> None:
        self.calls: list[tuple[str | None, str]] = []

    def create_job(self, *, owner_id: str | None, source_url: str) -> Job:
        self.calls.append((owner_id, source_url))
        now = datetime.now(UTC)
        return Job(
            id="job-1",
            owner_id=owner_id,
            source_url=source_url,
            state=JobState.PENDING,
            created_at=now,
            updated_at=now,
        )

    def submit_job(self, job_id: str) -> Job:
        now = datetime.now(UTC)
        return Job(
            id=job_id,
            owner_id=self.calls[-1][0],
            source_url=self.calls[-1][1],
            state=JobState.PROCESSING,
            created_at=now,
            updated_at=now,
        )


class _FakeCognitoClient:
    def __init__(self, *, response: dict | None = None, error: Exception | None = None) -> None:
        self.response = response or {}
        self.error = error
        self.tokens: list[str] = []

    def get_user(self, *, AccessToken: str) -> dict:
        self.tokens.append(AccessToken)
        if self.error is not None:
            raise self.error
        return self.response


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = (
        "VIDEOSCRIPT_AUTH_PROVIDER",
        "VIDEOSCRIPT_WEBHOOK_SECRET",
        "VIDEOSCRIPT_DATABASE_URL",
        "VIDEOSCRIPT_QUEUE_BACKEND",
        "VIDEOSCRIPT_TITLE_RESOLVER",
    )

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["VIDEOSCRIPT_AUTH_PROVIDER"] = "mock"
        os.environ["VIDEOSCRIPT_WEBHOOK_SECRET"] = "test-webhook-secret"
        os.environ["VIDEOSCRIPT_DATABASE_URL"] = "sqlite://"
        os.environ["VIDEOSCRIPT_QUEUE_BACKEND"] = "memory"
        os.environ["VIDEOSCRIPT_TITLE_RESOLVER"] = "static"
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()


class AuthApiTests(_SettingsEnvCase):
    def test_openapi_includes_job_paths_and_contract_response_codes(self) -> None:
        app = create_app()
        client = TestClient(app)

        response = client.get("/openapi.json")
        self.assertEqual(response.status_code, 200)
        document = response.json()
        paths = document["paths"]

        self.assertEqual(
            set(paths["/api/v1/jobs"]["post"]["responses"].keys()),
            {"201", "400", "401", "403", "502"},
        )
        self.assertEqual(set(paths["/api/v1/jobs/{jobId}"]["get"]["responses"].keys()), {"200", "401", "404"})
        self.assertEqual(
            paths["/api/v1/jobs/{jobId}"]["get"]["responses"]["404"]["content"]["application/json"]["schema"]["$ref"],
            "#/components/schemas/NoLeakNotFoundError",
        )
        self.assertEqual(
            paths["/api/v1/jobs"]["post"]["responses"]["403"]["content"]["application/json"]["schema"]["$ref"],
            "#/components/schemas/QuotaExceededError",
        )
        self.assertEqual(
            set(paths["/api/v1/internal/jobs/{jobId}/webhook"]["post"]["responses"].keys()),
            {"200", "204", "400", "401", "404"},
        )
        self.assertIn("/api/v1/notifications/{notificationId}/read", paths)
        self.assertIn("/api/v1/account/usage", paths)

        webhook_post = paths["/api/v1/internal/jobs/{jobId}/webhook"]["post"]
        request_schema_ref = webhook_post["requestBody"]["content"]["application/json"]["schema"]["$ref"]
        self.assertEqual(request_schema_ref, "#/components/schemas/WebhookPayload")
        payload_schema = document["components"]["schemas"]["WebhookPayload"]
        self.assertIn("success", payload_schema["properties"])
        self.assertIn("wordCount", payload_schema["properties"])
        self.assertIn("processingTime", payload_schema["properties"])

    def test_missing_authorization_header_returns_401_and_no_job_side_effect(self) -> None:
        app = create_app()
        client = TestClient(app)
        app.state.store.accounts.create("user-1")

        response = client.post("/api/v1/jobs", json={"source_url": "https://video.example/a"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "UNAUTHORIZED")
        self.assertEqual(app.state.store.jobs.list_for_owner("user-1", limit=10, offset=0)[1], 0)
        self.assertEqual(app.state.queue_publisher.messages, [])

    def test_invalid_bearer_token_returns_401_and_no_job_side_effect(self) -> None:
        app = create_app()
        client = TestClient(app)

        for header in ("Bearer not-a-valid-token", "Bearer test:", "Basic dXNlcjpwYXNz"):
            with self.subTest(header=header):
                response = client.post(
                    "/api/v1/jobs",
                    headers={"Authorization": header},
                    json={"source_url": "https://video.example/a"},
                )
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.json()["code"], "UNAUTHORIZED")
        self.assertEqual(app.state.queue_publisher.messages, [])

    def test_valid_bearer_token_resolves_user_id_for_downstream_handler(self) -> None:
        app = create_app()
        client = TestClient(app)

        capturing_service = _CapturingJobService()
        app.dependency_overrides[get_job_service] = lambda: capturing_service

        response = client.post(
            "/api/v1/jobs",
            headers={"Authorization": "Bearer test:user-123:user@example.com"},
            json={"source_url": "https://video.example/a"},
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(capturing_service.calls, [("user-123", "https://video.example/a")])

    def test_auth_principal_is_attached_to_request_state(self) -> None:
        app = create_app()
        client = TestClient(app)

        capturing_service = _CapturingJobService()
        observed: dict[str, str | None] = {}

        def _override_job_service(request: Request) -> _CapturingJobService:
            observed["user_id"] = request.state.auth_principal.user_id
            observed["email"] = request.state.auth_principal.email
            return capturing_service

        app.dependency_overrides[get_job_service] = _override_job_service

        response = client.post(
            "/api/v1/jobs",
            headers={"Authorization": "Bearer test:user-state:state@example.com"},
            json={"source_url": "https://video.example/a"},
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(observed, {"user_id": "user-state", "email": "state@example.com"})

    def test_anonymous_routes_do_not_require_a_token(self) -> None:
        app = create_app()
        client = TestClient(app)

        response = client.post("/api/v1/jobs/anonymous", json={"source_url": "https://video.example/a"})

        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()["owner_id"])


class TokenVerifierTests(_SettingsEnvCase):
    def test_mock_verifier_parses_user_and_optional_email(self) -> None:
        verifier = MockTokenVerifier()

        self.assertEqual(verifier.verify_token("test:user-1").user_id, "user-1")
        self.assertIsNone(verifier.verify_token("test:user-1").email)
        self.assertEqual(verifier.verify_token("test:user-1:a@example.com").email, "a@example.com")
        for token in ("user-1", "prod:user-1", "test: "):
            with self.subTest(token=token):
                with self.assertRaises(AuthVerificationError):
                    verifier.verify_token(token)

    def test_cognito_verifier_maps_sub_and_email(self) -> None:
        client = _FakeCognitoClient(
            response={
                "Username": "alice",
                "UserAttributes": [
                    {"Name": "sub", "Value": "0f6c5d7e-sub"},
                    {"Name": "email", "Value": "alice@example.com"},
                ],
            }
        )
        verifier = CognitoTokenVerifier(region="us-east-1", client=client)

        principal = verifier.verify_token("access-token")

        self.assertEqual(principal.user_id, "0f6c5d7e-sub")
        self.assertEqual(principal.email, "alice@example.com")
        self.assertEqual(client.tokens, ["access-token"])

    def test_cognito_verifier_rejects_expired_token(self) -> None:
        error = ClientError(
            {"Error": {"Code": "NotAuthorizedException", "Message": "Access Token has expired"}},
            "GetUser",
        )
        verifier = CognitoTokenVerifier(region="us-east-1", client=_FakeCognitoClient(error=error))

        with self.assertRaises(AuthVerificationError) as context:
            verifier.verify_token("expired")
        self.assertEqual(str(context.exception), "Invalid bearer token")

    def test_cognito_verifier_reports_unreachable_provider(self) -> None:
        error = EndpointConnectionError(endpoint_url="https://cognito-idp.us-east-1.amazonaws.com/")
        verifier = CognitoTokenVerifier(region="us-east-1", client=_FakeCognitoClient(error=error))

        with self.assertRaises(AuthVerificationError) as context:
            verifier.verify_token("any")
        self.assertEqual(str(context.exception), "Identity provider is unavailable")

    def test_cognito_verifier_requires_sub_attribute(self) -> None:
        client = _FakeCognitoClient(response={"UserAttributes": [{"Name": "email", "Value": "a@example.com"}]})
        verifier = CognitoTokenVerifier(region="us-east-1", client=client)

        with self.assertRaises(AuthVerificationError):
            verifier.verify_token("token")

    def test_token_verifier_follows_configured_provider(self) -> None:
        mock_settings = Settings(auth_provider="mock", webhook_secret="secret")
        self.assertIsInstance(get_token_verifier(mock_settings), MockTokenVerifier)

        cognito_settings = Settings(auth_provider="cognito", webhook_secret="secret", cognito_region="eu-west-1")
        dependencies._cognito_verifier.cache_clear()
        try:
            with patch("app.adapters.auth.cognito_auth.boto3.client") as client_factory:
                verifier = get_token_verifier(cognito_settings)
            self.assertIsInstance(verifier, CognitoTokenVerifier)
            client_factory.assert_called_once_with("cognito-idp", region_name="eu-west-1")
        finally:
            dependencies._cognito_verifier.cache_clear()

    def test_rejected_cognito_token_returns_401(self) -> None:
        os.environ["VIDEOSCRIPT_AUTH_PROVIDER"] = "cognito"
        get_settings.cache_clear()
        app = create_app()
        client = TestClient(app)
        error = ClientError({"Error": {"Code": "NotAuthorizedException", "Message": "Invalid"}}, "GetUser")
        app.dependency_overrides[get_token_verifier] = lambda: CognitoTokenVerifier(
            region="us-east-1",
            client=_FakeCognitoClient(error=error),
        )

        response = client.get("/api/v1/jobs", headers={"Authorization": "Bearer forged"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"code": "UNAUTHORIZED", "message": "Invalid bearer token"})


if __name__ == "__main__":
    unittest.main()
