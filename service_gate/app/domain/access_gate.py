"""
Two-stage admission gate: credential verification, then quota.
"""

import time
from typing import Callable, Optional

from shared.logging import get_logger
from ..credentials.models import Identity
from ..credentials.verifier import CredentialVerifier, extract_bearer_token
from ..quota.tracker import QuotaTracker
from .failures import GateFailure, GateResult


class AccessGate:
    """Composes CredentialVerifier and QuotaTracker in front of protected operations.

    Unauthenticated -> Authenticated -> Admitted. Any stage may end the
    request early with a GateFailure. Nothing here performs I/O or awaits,
    so one admission runs to completion before another can start.
    """

    def __init__(self, verifier: CredentialVerifier, tracker: QuotaTracker,
                 clock: Callable[[], float] = time.time):
        self.verifier = verifier
        self.tracker = tracker
        self.clock = clock
        self.logger = get_logger("gate.access_gate")

    def authenticate(self, authorization: Optional[str], now: Optional[float] = None) -> GateResult:
        """Verification stage only."""
        now = self.clock() if now is None else now
        return self.verifier.verify(extract_bearer_token(authorization), now=now)

    def check_quota(self, identity: Optional[Identity], now: Optional[float] = None) -> GateResult:
        """Quota stage. Requires an identity from a successful verification."""
        if identity is None:
            # Reaching the quota stage without an identity is a wiring bug.
            self.logger.error("Quota check without authenticated identity")
            return GateResult.reject(GateFailure.UNAUTHENTICATED_QUOTA_CHECK)

        now = self.clock() if now is None else now
        decision = self.tracker.admit(identity.id, now=now, email=identity.email)
        if not decision.admitted:
            return GateResult.reject(decision.reason, identity=identity, decision=decision)
        return GateResult(identity=identity, decision=decision)

    def admit(self, authorization: Optional[str], now: Optional[float] = None) -> GateResult:
        """Run both stages against a single instant."""
        now = self.clock() if now is None else now
        result = self.authenticate(authorization, now=now)
        if not result.admitted:
            return result
        return self.check_quota(result.identity, now=now)
