"""
Credential models.
"""

import secrets
import string

from pydantic import BaseModel, ConfigDict

IDENTITY_ID_PREFIX = "u_"
IDENTITY_ID_LENGTH = 9
_ID_ALPHABET = string.ascii_lowercase + string.digits


class Identity(BaseModel):
    """Identity claim embedded in a credential."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class IssuedCredential(BaseModel):
    """Result of a login: the plaintext identity and its signed credential."""

    user: Identity
    token: str


def generate_identity_id() -> str:
    """Generate a fresh opaque identity id such as ``u_k3j9x0a1b``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(IDENTITY_ID_LENGTH))
    return f"{IDENTITY_ID_PREFIX}{suffix}"
