"""
Access gate service for SyncFit.
"""

import time
from datetime import timedelta
from typing import Any, Callable, Optional

from fastapi import Body, Depends, Header, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shared.base_service import BaseService
from shared.errors import GateRejectedError
from shared.logging import set_user_context
from .adapters.generation_client import GenerationClient
from .config import DEFAULT_JWT_SECRET, GateConfig, get_gate_config
from .credentials.issuer import CredentialIssuer
from .credentials.models import Identity, IssuedCredential
from .credentials.verifier import CredentialVerifier
from .domain.access_gate import AccessGate
from .domain.failures import GateFailure, GateResult
from .quota.store import InMemoryUsageStore, UsageStore
from .quota.tracker import QuotaDecision, QuotaTracker


class WorkoutRequest(BaseModel):
    type: str
    goal: str
    rounds: int = Field(ge=1)


class SpeechRequest(BaseModel):
    text: str = Field(min_length=1)


def quota_exceeded_hint(limit: int) -> str:
    return f"Has usado tus {limit} créditos diarios. Mejora a PRO para uso ilimitado."


def raise_for_failure(result: GateResult) -> Identity:
    """Single translation point from a gate stage result to the HTTP layer."""
    if result.admitted:
        return result.identity

    if result.failure is GateFailure.QUOTA_EXCEEDED and result.decision is not None:
        raise GateRejectedError(result.failure, hint=quota_exceeded_hint(result.decision.limit))
    raise GateRejectedError(result.failure)


class GateService(BaseService):
    """Access gate service implementation."""

    def __init__(self, config: Optional[GateConfig] = None,
                 generation_client: Optional[GenerationClient] = None,
                 usage_store: Optional[UsageStore] = None,
                 clock: Callable[[], float] = time.time):
        config = config if config is not None else get_gate_config()
        super().__init__("gate", config.port, config=config)
        self.clock = clock

        if self.config.jwt_secret == DEFAULT_JWT_SECRET and self.config.env != "local":
            self.logger.warning("Using the built-in JWT secret outside local environment", env=self.config.env)

        self.issuer = CredentialIssuer(
            self.config.jwt_secret,
            ttl=timedelta(days=self.config.credential_ttl_days),
            algorithm=self.config.jwt_algorithm,
            clock=clock,
            metrics=self.metrics
        )
        self.verifier = CredentialVerifier(
            self.config.jwt_secret,
            algorithm=self.config.jwt_algorithm,
            clock=clock,
            metrics=self.metrics
        )
        self.usage_store = usage_store if usage_store is not None else InMemoryUsageStore()
        self.quota_tracker = QuotaTracker(
            self.usage_store,
            max_requests_per_day=self.config.max_requests_per_day,
            window=timedelta(hours=self.config.quota_window_hours),
            clock=clock,
            metrics=self.metrics
        )
        self.access_gate = AccessGate(self.verifier, self.quota_tracker, clock=clock)

        self.generation_client = generation_client or GenerationClient(
            api_key=self.config.gemini_api_key,
            base_url=self.config.gemini_base_url,
            workout_model=self.config.workout_model,
            tts_model=self.config.tts_model,
            tts_voice=self.config.tts_voice,
            timeout=self.config.generation_timeout_seconds
        )

        self._setup_gate_routes()

        self.app.state.gate_service = self

    def _set_quota_headers(self, response: Response, decision: QuotaDecision) -> None:
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(decision.reset_in_seconds(self.clock()))

    def _setup_gate_routes(self):
        """Set up gate-specific routes."""

        async def authenticated(request: Request,
                                authorization: Optional[str] = Header(default=None)) -> Identity:
            """Verification stage. Attaches the identity to the request."""
            identity = raise_for_failure(self.access_gate.authenticate(authorization))
            request.state.identity = identity
            set_user_context(identity.id)
            return identity

        async def admitted(request: Request, response: Response,
                           identity: Identity = Depends(authenticated)) -> Identity:
            """Quota stage, run after verification."""
            result = self.access_gate.check_quota(identity)
            identity = raise_for_failure(result)
            request.state.quota = result.decision
            self._set_quota_headers(response, result.decision)
            return identity

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "gate",
                "message": "SyncFit - Access Gate",
                "version": "1.0.0"
            }

        @self.app.post("/auth/login", response_model=IssuedCredential)
        async def login(body: Any = Body(default=None)):
            """Issue a credential for a self-asserted email.

            Any JSON body is accepted here so that every malformed request ends
            as INVALID_INPUT from the issuer.
            """
            email = body.get("email") if isinstance(body, dict) else None
            issued = self.issuer.issue(email)
            self.metrics.record_business_event("user_logged_in")
            return issued

        @self.app.get("/api/usage")
        async def usage(identity: Identity = Depends(authenticated)):
            """Current quota status for the caller. Does not consume quota."""
            now = self.clock()
            decision = self.quota_tracker.usage(identity.id, now=now)
            return {
                "user": identity.model_dump(),
                "count": decision.count,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "window_start": decision.window_start,
                "reset_in_seconds": decision.reset_in_seconds(now)
            }

        @self.app.post("/api/generate-workout")
        async def generate_workout(request: Request, body: WorkoutRequest,
                                   identity: Identity = Depends(admitted)):
            """Generate a workout.

            Quota is charged at admission: a failed generation or a malformed
            body (422) still consumes one request.
            """
            try:
                with self.metrics.time_operation("generation_duration_seconds", operation="workout"):
                    workout = await self.generation_client.generate_workout(body.type, body.goal, body.rounds)
            except Exception as e:
                self.logger.error("Workout generation failed", user_id=identity.id, error=str(e))
                self.metrics.record_error("workout_generation")
                response = JSONResponse(status_code=500, content={"error": "Error al generar la rutina"})
                self._set_quota_headers(response, request.state.quota)
                return response

            self.metrics.record_business_event("workout_generated")
            return workout

        @self.app.post("/api/generate-tts")
        async def generate_tts(body: SpeechRequest, identity: Identity = Depends(authenticated)):
            """Synthesize coach speech. Authenticated but not quota-limited."""
            try:
                with self.metrics.time_operation("generation_duration_seconds", operation="tts"):
                    audio = await self.generation_client.generate_speech(body.text)
            except Exception as e:
                self.logger.error("Speech generation failed", user_id=identity.id, error=str(e))
                self.metrics.record_error("tts_generation")
                return JSONResponse(status_code=500, content={"error": "Error en el servicio de voz"})

            self.metrics.record_business_event("speech_generated")
            return {"audioBase64": audio}

    async def _check_dependencies(self):
        """Report whether the generation provider is configured."""
        return {
            "generation": "configured" if self.generation_client.configured else "missing_api_key"
        }


def create_app(**kwargs):
    """Create FastAPI application."""
    service = GateService(**kwargs)
    return service.app


if __name__ == "__main__":
    service = GateService()
    service.run()
