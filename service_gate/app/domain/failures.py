"""
Gate failure taxonomy and stage results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..credentials.models import Identity
    from ..quota.tracker import QuotaDecision


class GateFailure(Enum):
    """Reasons an admission stage can reject a request."""

    MISSING_CREDENTIAL = (401, "MISSING_CREDENTIAL", "Token requerido")
    INVALID_OR_EXPIRED_CREDENTIAL = (403, "INVALID_OR_EXPIRED_CREDENTIAL", "Token inválido o expirado")
    UNAUTHENTICATED_QUOTA_CHECK = (401, "UNAUTHENTICATED_QUOTA_CHECK", "Usuario no autenticado")
    QUOTA_EXCEEDED = (429, "QUOTA_EXCEEDED", "Límite diario alcanzado")

    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message


@dataclass(frozen=True)
class GateResult:
    """Outcome of one or more admission stages."""

    identity: Optional["Identity"] = None
    failure: Optional[GateFailure] = None
    decision: Optional["QuotaDecision"] = None

    @property
    def admitted(self) -> bool:
        return self.failure is None

    @classmethod
    def reject(cls, failure: GateFailure, identity: Optional["Identity"] = None,
               decision: Optional["QuotaDecision"] = None) -> "GateResult":
        return cls(identity=identity, failure=failure, decision=decision)
