"""ElevenLabs text-to-speech API client."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

ELEVENLABS_BASE_URL = "https://api.elevenlabs.io/v1"
TTS_MODEL_ID = "eleven_turbo_v2_5"


class TextToSpeechError(Exception):
    pass


class ElevenLabsClient:
    def __init__(self, api_key: Optional[str] = None, timeout: float = 60.0):
        self.api_key = api_key if api_key is not None else os.getenv("ELEVENLABS_API_KEY", "")
        if not self.api_key:
            raise TextToSpeechError("ElevenLabs API key is required")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"xi-api-key": self.api_key})

    def text_to_speech(
        self,
        voice_id: str,
        text: str,
        *,
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        style: float = 0.0,
        use_speaker_boost: bool = True,
    ) -> bytes:
        """Return MP3 bytes for ``text`` spoken by ``voice_id``."""
        payload = {
            "text": text,
            "model_id": TTS_MODEL_ID,
            "voice_settings": {
                "stability": stability,
                "similarity_boost": similarity_boost,
                "style": style,
                "use_speaker_boost": use_speaker_boost,
            },
        }
        try:
            response = self.session.post(
                f"{ELEVENLABS_BASE_URL}/text-to-speech/{voice_id}",
                json=payload,
                headers={"Accept": "audio/mpeg"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TextToSpeechError(f"Failed to generate speech: {exc}") from exc
        if response.status_code != 200:
            raise TextToSpeechError(
                f"Failed to generate speech: ElevenLabs API error ({response.status_code}): {response.text[:200]}"
            )
        return response.content

    def get_voice(self, voice_id: str) -> Dict[str, Any]:
        try:
            response = self.session.get(f"{ELEVENLABS_BASE_URL}/voices/{voice_id}", timeout=self.timeout)
        except requests.RequestException as exc:
            raise TextToSpeechError(f"Failed to get voice: {exc}") from exc
        if response.status_code != 200:
            raise TextToSpeechError(f"Failed to get voice: {response.reason}")
        return response.json()

    def get_quota(self) -> Dict[str, Any]:
        try:
            response = self.session.get(f"{ELEVENLABS_BASE_URL}/user", timeout=self.timeout)
        except requests.RequestException as exc:
            raise TextToSpeechError(f"Failed to get quota: {exc}") from exc
        if response.status_code != 200:
            raise TextToSpeechError(f"Failed to get quota: {response.reason}")
        subscription = response.json().get("subscription") or {}
        return {
            "character_count": subscription.get("character_count"),
            "character_limit": subscription.get("character_limit"),
            "can_extend_character_limit": subscription.get("can_extend_character_limit"),
        }


_elevenlabs_client: Optional[ElevenLabsClient] = None


def get_elevenlabs_client() -> ElevenLabsClient:
    global _elevenlabs_client
    if _elevenlabs_client is None:
        _elevenlabs_client = ElevenLabsClient()
    return _elevenlabs_client


def reset_elevenlabs_client_for_tests() -> None:
    global _elevenlabs_client
    _elevenlabs_client = None
