"""
Generation provider client for the gate.

Thin wrapper over the Gemini REST ``generateContent`` endpoint. Callers
reach it only after the access gate has admitted the request.
"""

import json
from typing import Any, Dict, List, Optional

import httpx

from shared.logging import get_logger
from shared.errors import ExternalServiceError

PROVIDER = "gemini"

WORKOUT_SYSTEM_INSTRUCTION = (
    "You are an elite fitness coach. Return ONLY a JSON object with an 'exercises' array. "
    "Each exercise must have 'name' and 'description'. Be concise to save tokens."
)

WORKOUT_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "exercises": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "description": {"type": "STRING"},
                },
                "required": ["name", "description"],
            },
        }
    },
    "required": ["exercises"],
}

EMPTY_WORKOUT = '{"exercises":[]}'


class GenerationClient:
    """Client for the workout and coach-voice generation provider."""

    def __init__(self, api_key: str, base_url: str, workout_model: str, tts_model: str,
                 tts_voice: str = "Kore", timeout: float = 60.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.workout_model = workout_model
        self.tts_model = tts_model
        self.tts_voice = tts_voice
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("gate.generation_client")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _generate_content(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``body`` to ``models/<model>:generateContent``."""
        if not self.configured:
            raise ExternalServiceError(PROVIDER, "API key not configured")

        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"x-goog-api-key": self.api_key}
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "Generation provider HTTP error",
                model=model,
                status_code=e.response.status_code
            )
            raise ExternalServiceError(
                PROVIDER,
                f"HTTP {e.response.status_code}",
                details={"model": model, "status_code": e.response.status_code}
            ) from e
        except httpx.HTTPError as e:
            self.logger.error("Generation provider unavailable", model=model, error=str(e))
            raise ExternalServiceError(PROVIDER, "unavailable", details={"model": model}) from e
        except ValueError as e:
            raise ExternalServiceError(PROVIDER, "invalid JSON response", details={"model": model}) from e

    @staticmethod
    def _first_parts(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        candidates = payload.get("candidates") or []
        if not candidates:
            return []
        content = candidates[0].get("content") or {}
        return content.get("parts") or []

    async def generate_workout(self, workout_type: str, goal: str, rounds: int) -> Dict[str, Any]:
        """Generate a structured workout: ``{"exercises": [{"name", "description"}]}``."""
        body = {
            "contents": [{
                "role": "user",
                "parts": [{
                    "text": f"Generate a structured {workout_type} workout focused on {goal} for {rounds} rounds."
                }],
            }],
            "systemInstruction": {"parts": [{"text": WORKOUT_SYSTEM_INSTRUCTION}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": WORKOUT_RESPONSE_SCHEMA,
            },
        }
        payload = await self._generate_content(self.workout_model, body)

        text = "".join(part.get("text", "") for part in self._first_parts(payload))
        try:
            workout = json.loads(text or EMPTY_WORKOUT)
        except ValueError as e:
            raise ExternalServiceError(PROVIDER, "workout is not valid JSON") from e

        if not isinstance(workout, dict):
            raise ExternalServiceError(PROVIDER, "workout is not a JSON object")
        return workout

    async def generate_speech(self, text: str) -> str:
        """Synthesize an encouraging coach voice; returns base64 audio."""
        body = {
            "contents": [{"parts": [{"text": f"Encouraging coach voice: {text}"}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": self.tts_voice},
                    },
                },
            },
        }
        payload = await self._generate_content(self.tts_model, body)

        parts = self._first_parts(payload)
        audio = parts[0].get("inlineData", {}).get("data") if parts else None
        if not audio:
            raise ExternalServiceError(PROVIDER, "No audio data received")
        return audio
