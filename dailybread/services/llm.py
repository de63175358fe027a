"""Structured-output client for Google Gemini.

Every generator in this package asks the model for a JSON document that
matches a response schema and parses ``response.text``. This module holds
the shared configuration and the single call site for ``google-genai``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class LLMError(Exception):
    """Raised when the model cannot be reached or returns unusable output."""


class LLMNotConfiguredError(LLMError):
    pass


@dataclass(frozen=True)
class LLMConfig:
    api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"
    timeout_seconds: float = 120.0
    max_output_tokens: int = 4096

    @classmethod
    def from_environment(cls) -> "LLMConfig":
        return cls(
            api_key=os.getenv("LLM_API_KEY") or None,
            model_name=os.getenv("LLM_MODEL_NAME", "gemini-2.5-flash"),
            timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 120.0),
            max_output_tokens=_env_int("LLM_MAX_OUTPUT_TOKENS", 4096),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class GeminiJSONClient:
    """Thin wrapper over ``genai.Client`` returning parsed JSON objects."""

    def __init__(self, config: Optional[LLMConfig] = None):
        self.config = config or LLMConfig.from_environment()
        self._client = None

    def _get_client(self):
        if not self.config.configured:
            raise LLMNotConfiguredError("LLM_API_KEY is not configured")
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    def generate_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        *,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        client = self._get_client()
        config: Dict[str, Any] = {
            "response_mime_type": "application/json",
            "response_schema": response_schema,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens or self.config.max_output_tokens,
        }
        if system_instruction:
            config["system_instruction"] = system_instruction

        try:
            response = client.models.generate_content(
                model=self.config.model_name,
                contents=prompt,
                config=config,
            )
        except Exception as exc:
            logger.error("llm_request_failed: model=%s error=%s", self.config.model_name, exc)
            raise LLMError(str(exc)) from exc

        result_text = response.text if response.text else ""
        if not result_text:
            raise LLMError("No content generated by the model")
        try:
            parsed = json.loads(result_text)
        except json.JSONDecodeError as exc:
            logger.error("llm_invalid_json: %s", result_text[:200])
            raise LLMError(f"Model returned invalid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise LLMError("Model returned a non-object JSON document")
        return parsed


_llm_client: Optional[GeminiJSONClient] = None


def get_llm_client() -> GeminiJSONClient:
    global _llm_client
    if _llm_client is None:
        _llm_client = GeminiJSONClient()
    return _llm_client


def reset_llm_client_for_tests() -> None:
    global _llm_client
    _llm_client = None
