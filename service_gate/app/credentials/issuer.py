"""
Credential issuance for the gate.
"""

import time
from datetime import timedelta
from typing import Any, Callable, Optional

import jwt

from shared.errors import ValidationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .models import Identity, IssuedCredential, generate_identity_id

DEFAULT_CREDENTIAL_TTL = timedelta(days=7)


def validate_email(email_raw: Any) -> str:
    """Syntactic check only: a non-empty string containing ``@``."""
    if not isinstance(email_raw, str) or not email_raw or "@" not in email_raw:
        raise ValidationError("Email inválido", details={"field": "email"})
    return email_raw


class CredentialIssuer:
    """Mints signed, time-bounded credentials from a self-asserted email.

    No password or ownership check happens here. Issuance trusts the
    submitted email and never touches quota state.
    """

    def __init__(self, secret: str, ttl: timedelta = DEFAULT_CREDENTIAL_TTL,
                 algorithm: str = "HS256", clock: Callable[[], float] = time.time,
                 metrics: Optional[MetricsCollector] = None):
        self.secret = secret
        self.ttl = ttl
        self.algorithm = algorithm
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("gate.credential_issuer")

    def issue(self, email_raw: Any) -> IssuedCredential:
        """Issue a credential for ``email_raw``."""
        email = validate_email(email_raw)

        identity = Identity(id=generate_identity_id(), email=email)
        issued_at = int(self.clock())
        payload = {
            "id": identity.id,
            "email": identity.email,
            "iat": issued_at,
            "exp": issued_at + int(self.ttl.total_seconds()),
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)

        if self.metrics:
            self.metrics.increment_counter("credentials_issued_total")
        self.logger.info("Credential issued", user_id=identity.id, expires_at=payload["exp"])

        return IssuedCredential(user=identity, token=token)
