"""
Scripture text retrieval.

Only the ESV is supported. The ESV API normalizes the requested reference
("jn 3:16" -> "John 3:16"), and that canonical form is what lessons are
keyed on so the same passage is generated once.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

ESV_API_URL = "https://api.esv.org/v3/passage/text/"

_ESV_PARAMS = {
    "include-passage-references": "true",
    "include-verse-numbers": "true",
    "include-first-verse-numbers": "true",
    "include-footnotes": "false",
    "include-footnote-body": "false",
    "include-headings": "true",
    "include-short-copyright": "true",
    "include-passage-horizontal-lines": "false",
    "include-heading-horizontal-lines": "false",
}


class PassageError(Exception):
    pass


@dataclass(frozen=True)
class Passage:
    reference: str
    canonical: str
    text: str
    translation: str


class ESVAdapter:
    translation = "ESV"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 15.0):
        self.api_key = api_key if api_key is not None else os.getenv("ESV_API_KEY", "")
        self.timeout = timeout

    def get_passage_text(self, reference: str, translation: str = "ESV") -> Passage:
        if translation != self.translation:
            raise PassageError(f"ESV adapter only supports ESV translation, got {translation}")
        if not self.api_key:
            raise PassageError("ESV_API_KEY is not configured")

        params = dict(_ESV_PARAMS, q=reference)
        try:
            response = requests.get(
                ESV_API_URL,
                params=params,
                headers={"Authorization": f"Token {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("esv_request_failed: reference=%s error=%s", reference, exc)
            raise PassageError(f"Failed to fetch passage: {exc}") from exc

        if response.status_code != 200:
            raise PassageError(f"ESV API error ({response.status_code}): {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("esv_invalid_response: reference=%s error=%s", reference, exc)
            raise PassageError(f"Invalid ESV response: {exc}") from exc
        if not isinstance(data, dict):
            raise PassageError("Invalid ESV response: expected a JSON object")
        passages = data.get("passages") or []
        if not passages:
            raise PassageError(f"No passages found for reference: {reference}")

        return Passage(
            reference=reference,
            canonical=data.get("canonical") or reference,
            text="\n\n".join(p.strip() for p in passages),
            translation=self.translation,
        )


def get_passage_adapter(translation: str = "ESV") -> ESVAdapter:
    """Return the adapter for ``translation``; ESV is the only one wired up."""
    if translation != "ESV":
        logger.warning("passage_adapter_fallback: translation=%s using ESV", translation)
    return ESVAdapter()
