"""
Configuration for the access gate service.
"""

from pydantic import AliasChoices, Field

from shared.config import ServiceConfig

DEFAULT_JWT_SECRET = "syncfit_super_secret_key_2025"


class GateConfig(ServiceConfig):
    """Gate settings, read once at startup.

    Besides the ``SYNCFIT_`` prefixed variables, the bare ``JWT_SECRET``,
    ``API_KEY`` and ``PORT`` variables are honoured.
    """

    service_name: str = "gate"
    port: int = Field(default=3000, validation_alias=AliasChoices("port", "SYNCFIT_PORT", "PORT"))

    # Credentials
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        validation_alias=AliasChoices("jwt_secret", "SYNCFIT_JWT_SECRET", "JWT_SECRET"),
    )
    jwt_algorithm: str = "HS256"
    credential_ttl_days: int = Field(default=7, gt=0)

    # Quota
    max_requests_per_day: int = Field(default=10, ge=0)
    quota_window_hours: int = Field(default=24, gt=0)

    # Generation provider
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "SYNCFIT_GEMINI_API_KEY", "API_KEY"),
    )
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    workout_model: str = "gemini-3-pro-preview"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Kore"
    generation_timeout_seconds: float = 60.0


def get_gate_config(**overrides) -> GateConfig:
    """Load gate configuration from the environment, with explicit overrides."""
    return GateConfig(**overrides)
