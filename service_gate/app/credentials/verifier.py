"""
Credential verification for the gate.
"""

import time
from typing import Callable, Optional

import jwt

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..domain.failures import GateFailure, GateResult
from .models import Identity

BEARER_PREFIX = "Bearer"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    # Single-space split: "Bearer  <token>" yields an empty token.
    parts = authorization.split(" ")
    if len(parts) < 2:
        return None
    return parts[1] or None


class CredentialVerifier:
    """Validates credential signature and expiry.

    Verification is a pure function of the token, the signing secret and the
    current time. A credential stays valid up to and including its ``exp``
    instant and is rejected strictly after it.
    """

    def __init__(self, secret: str, algorithm: str = "HS256",
                 clock: Callable[[], float] = time.time,
                 metrics: Optional[MetricsCollector] = None):
        self.secret = secret
        self.algorithm = algorithm
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("gate.credential_verifier")

    def verify(self, token: Optional[str], now: Optional[float] = None) -> GateResult:
        """Verify ``token`` and recover the embedded identity."""
        if not token:
            self._record("missing")
            return GateResult.reject(GateFailure.MISSING_CREDENTIAL)

        now = self.clock() if now is None else now

        try:
            # Expiry is checked below against the injected clock.
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "id", "email"],
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidTokenError as e:
            self.logger.warning("Credential verification failed", error=str(e))
            self._record("invalid")
            return GateResult.reject(GateFailure.INVALID_OR_EXPIRED_CREDENTIAL)

        expires_at = claims.get("exp")
        if not isinstance(expires_at, (int, float)) or isinstance(expires_at, bool):
            self.logger.warning("Credential has malformed expiry")
            self._record("invalid")
            return GateResult.reject(GateFailure.INVALID_OR_EXPIRED_CREDENTIAL)

        if now > expires_at:
            self.logger.info("Credential expired", user_id=claims.get("id"), expired_at=expires_at)
            self._record("expired")
            return GateResult.reject(GateFailure.INVALID_OR_EXPIRED_CREDENTIAL)

        identity_id = claims.get("id")
        email = claims.get("email")
        if not isinstance(identity_id, str) or not isinstance(email, str):
            self.logger.warning("Credential carries a malformed identity claim")
            self._record("invalid")
            return GateResult.reject(GateFailure.INVALID_OR_EXPIRED_CREDENTIAL)

        self._record("valid")
        return GateResult(identity=Identity(id=identity_id, email=email))

    def _record(self, status: str):
        if self.metrics:
            self.metrics.increment_counter("credential_verifications_total", status=status)
