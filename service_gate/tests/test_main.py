"""
Unit tests for the gate service HTTP surface.
"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from service_gate.app.config import GateConfig
from service_gate.app.main import GateService
from service_gate.app.quota.store import InMemoryUsageStore
from shared.errors import ExternalServiceError
from shared.test_helpers import (
    FakeClock, TEST_JWT_SECRET, T0, DAY, TestDataFactory, bearer, create_test_token,
)


class TestGateService:
    """Test cases for GateService."""

    @pytest.fixture
    def clock(self):
        return FakeClock(T0)

    @pytest.fixture
    def generation_client(self):
        client = AsyncMock()
        client.configured = True
        client.generate_workout.return_value = TestDataFactory.create_workout()
        client.generate_speech.return_value = "UklGRg=="
        return client

    @pytest.fixture
    def usage_store(self):
        return InMemoryUsageStore()

    @pytest.fixture
    def gate_service(self, clock, generation_client, usage_store):
        config = GateConfig(jwt_secret=TEST_JWT_SECRET, max_requests_per_day=3)
        return GateService(config=config, generation_client=generation_client,
                           usage_store=usage_store, clock=clock)

    @pytest.fixture
    def client(self, gate_service):
        return TestClient(gate_service.app)

    @pytest.fixture
    def token(self):
        return create_test_token(user_id="u_alice0001", email="alice@syncfit.app")

    @pytest.fixture
    def workout_body(self):
        return {"type": "HIIT", "goal": "endurance", "rounds": 4}

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gate"
        assert data["version"] == "1.0.0"

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gate"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"generation": "configured"}

    def test_login_success(self, client):
        response = client.post("/auth/login", json={"email": "a@b.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "a@b.com"
        assert data["user"]["id"].startswith("u_")
        assert isinstance(data["token"], str)

    @pytest.mark.parametrize("body", [
        {"email": "not-an-email"}, {"email": ""}, {"email": 7}, {}, [], "a@b.com", ["a@b.com"],
    ])
    def test_login_invalid_email(self, client, body):
        response = client.post("/auth/login", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Email inválido"
        assert data["code"] == "INVALID_INPUT"

    def test_login_without_body(self, client):
        response = client.post("/auth/login")
        assert response.status_code == 400

    def test_login_does_not_touch_quota(self, client, usage_store):
        client.post("/auth/login", json={"email": "a@b.com"})
        assert len(usage_store) == 0

    def test_generate_workout_success(self, client, token, workout_body, generation_client, usage_store):
        response = client.post("/api/generate-workout", json=workout_body, headers=bearer(token))

        assert response.status_code == 200
        assert response.json() == TestDataFactory.create_workout()
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"
        assert response.headers["X-RateLimit-Reset"] == str(DAY)
        generation_client.generate_workout.assert_awaited_once_with("HIIT", "endurance", 4)
        assert usage_store.get("u_alice0001").count == 1

    def test_missing_token(self, client, workout_body, generation_client):
        response = client.post("/api/generate-workout", json=workout_body)

        assert response.status_code == 401
        assert response.json()["error"] == "Token requerido"
        assert response.json()["code"] == "MISSING_CREDENTIAL"
        generation_client.generate_workout.assert_not_awaited()

    def test_malformed_authorization_header(self, client, workout_body):
        response = client.post("/api/generate-workout", json=workout_body,
                               headers={"Authorization": "Bearer"})
        assert response.status_code == 401

    def test_double_space_after_scheme_is_missing_token(self, client, token, workout_body, usage_store):
        response = client.post("/api/generate-workout", json=workout_body,
                               headers={"Authorization": "Bearer  " + token})

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_CREDENTIAL"
        assert len(usage_store) == 0

    def test_invalid_token(self, client, workout_body, usage_store):
        response = client.post("/api/generate-workout", json=workout_body,
                               headers=bearer("invalid.token.value"))

        assert response.status_code == 403
        assert response.json()["error"] == "Token inválido o expirado"
        assert len(usage_store) == 0

    def test_token_signed_with_other_secret(self, client, workout_body):
        token = create_test_token(secret="some-other-secret-with-enough-length-00")
        response = client.post("/api/generate-workout", json=workout_body, headers=bearer(token))
        assert response.status_code == 403

    def test_quota_exceeded(self, client, token, workout_body, generation_client, usage_store):
        for _ in range(3):
            assert client.post("/api/generate-workout", json=workout_body, headers=bearer(token)).status_code == 200

        response = client.post("/api/generate-workout", json=workout_body, headers=bearer(token))

        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "Límite diario alcanzado"
        assert data["message"] == "Has usado tus 3 créditos diarios. Mejora a PRO para uso ilimitado."
        assert data["code"] == "QUOTA_EXCEEDED"
        assert generation_client.generate_workout.await_count == 3
        assert usage_store.get("u_alice0001").count == 3

    def test_downstream_failure_still_charges_quota(self, client, token, workout_body,
                                                    generation_client, usage_store):
        generation_client.generate_workout.side_effect = ExternalServiceError("gemini", "HTTP 503")

        response = client.post("/api/generate-workout", json=workout_body, headers=bearer(token))

        assert response.status_code == 500
        assert response.json() == {"error": "Error al generar la rutina"}
        assert usage_store.get("u_alice0001").count == 1
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"
        assert response.headers["X-RateLimit-Reset"] == str(DAY)

    def test_malformed_body_is_charged(self, client, token, generation_client, usage_store):
        response = client.post("/api/generate-workout", json={"type": "HIIT"}, headers=bearer(token))

        assert response.status_code == 422
        assert usage_store.get("u_alice0001").count == 1
        generation_client.generate_workout.assert_not_awaited()

    def test_generate_tts_is_not_quota_limited(self, client, token, usage_store):
        for _ in range(5):
            response = client.post("/api/generate-tts", json={"text": "Last round!"}, headers=bearer(token))
            assert response.status_code == 200
            assert response.json() == {"audioBase64": "UklGRg=="}

        assert len(usage_store) == 0

    def test_generate_tts_requires_token(self, client, generation_client):
        response = client.post("/api/generate-tts", json={"text": "Last round!"})

        assert response.status_code == 401
        generation_client.generate_speech.assert_not_awaited()

    def test_generate_tts_failure(self, client, token, generation_client):
        generation_client.generate_speech.side_effect = ExternalServiceError("gemini", "No audio data received")

        response = client.post("/api/generate-tts", json={"text": "Go"}, headers=bearer(token))

        assert response.status_code == 500
        assert response.json() == {"error": "Error en el servicio de voz"}

    def test_usage_endpoint(self, client, token, workout_body, clock):
        client.post("/api/generate-workout", json=workout_body, headers=bearer(token))
        clock.advance(60)

        response = client.get("/api/usage", headers=bearer(token))

        assert response.status_code == 200
        data = response.json()
        assert data["user"] == {"id": "u_alice0001", "email": "alice@syncfit.app"}
        assert data["count"] == 1
        assert data["limit"] == 3
        assert data["remaining"] == 2
        assert data["reset_in_seconds"] == DAY - 60

    def test_usage_endpoint_requires_token(self, client):
        assert client.get("/api/usage").status_code == 401

    def test_metrics_endpoint(self, client, token, workout_body):
        client.post("/api/generate-workout", json=workout_body, headers=bearer(token))

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'quota_decisions_total{decision="admitted"} 1.0' in response.text
        assert 'credential_verifications_total{status="valid"} 1.0' in response.text

    def test_request_id_header(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
