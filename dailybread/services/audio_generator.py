"""
Lesson narration.

Each story page is narrated separately: scripture pages with the scripture
voice, everything else with the teaching voice. Files are written to
``AUDIO_STORAGE_DIR`` (served under ``/media/lesson-audio``) and described
in an audio manifest stored on the lesson.
"""

from __future__ import annotations

import hashlib
import logging
import math
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from dailybread.db.models import now_utc
from dailybread.services.elevenlabs_client import ElevenLabsClient, TextToSpeechError, get_elevenlabs_client
from dailybread.utils.urls import build_media_url

logger = logging.getLogger(__name__)

TEACHING_VOICE_ID = "v9I7auPeR1xGKYRPwQGG"
SCRIPTURE_VOICE_ID = "ppLqTilh7rH7fbUVlXsf"
AUDIO_BUCKET = "lesson-audio"
MANIFEST_VERSION = "1.0"
WORDS_PER_MINUTE = 150

_VERSE_MARKER = re.compile(r"\[\d+\]")
_TRANSLATION_SUFFIX = re.compile(r"\s*\(?(ESV|English Standard Version)\)?\.?\s*$", re.IGNORECASE)
_BULLET_MARKER = re.compile(r"^(\U0001F4A1|\U0001F914)\s*")


class AudioGenerationError(Exception):
    pass


def extract_narratable_text(page: Dict[str, Any]) -> str:
    """Return the text read aloud for one story page."""
    page_type = page.get("type")
    content = page.get("content") or {}
    parts: List[str] = []

    if page_type == "passage":
        # the title repeats the reference; read the scripture only
        if content.get("text"):
            clean = _VERSE_MARKER.sub("", content["text"])
            clean = _TRANSLATION_SUFFIX.sub("", clean)
            parts.append(clean)
    elif page_type in ("cover", "content", "cta"):
        if content.get("title"):
            parts.append(content["title"])
        if content.get("text"):
            parts.append(content["text"])
    elif page_type == "takeaways":
        if content.get("title"):
            parts.append(content["title"])
        for bullet in content.get("bullets") or []:
            if not bullet:
                continue
            parts.append(_BULLET_MARKER.sub("", bullet).strip())
    else:
        raise AudioGenerationError(f"Unknown page type: {page_type}")

    return ". ".join(parts)


def estimate_duration_seconds(text: str) -> int:
    words = len(text.split())
    return math.ceil(words / WORDS_PER_MINUTE * 60)


def hash_text(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def voice_for_page(page: Dict[str, Any]) -> str:
    return SCRIPTURE_VOICE_ID if page.get("type") == "passage" else TEACHING_VOICE_ID


class AudioGenerator:
    def __init__(self, client: Optional[ElevenLabsClient] = None, storage_dir: Optional[str] = None):
        self.client = client or get_elevenlabs_client()
        self.storage_dir = Path(storage_dir or os.getenv("AUDIO_STORAGE_DIR", "./media/lesson-audio"))

    def generate_audio_for_lesson(self, lesson_id: str, story_manifest: Dict[str, Any]) -> Dict[str, Any]:
        pages_meta = []
        for index, page in enumerate(story_manifest.get("pages") or []):
            try:
                pages_meta.append(self._generate_page(str(lesson_id), page, index))
            except (TextToSpeechError, OSError) as exc:
                logger.error("audio_page_failed: lesson=%s page=%d error=%s", lesson_id, index, exc)
                raise AudioGenerationError(f"Audio generation failed for page {index}: {exc}") from exc

        return {
            "version": MANIFEST_VERSION,
            "generated_at": now_utc().isoformat(),
            "teaching_voice_id": TEACHING_VOICE_ID,
            "scripture_voice_id": SCRIPTURE_VOICE_ID,
            "pages": pages_meta,
        }

    def _generate_page(self, lesson_id: str, page: Dict[str, Any], index: int) -> Dict[str, Any]:
        text = extract_narratable_text(page)
        audio = self.client.text_to_speech(
            voice_for_page(page),
            text,
            stability=0.5,
            similarity_boost=0.75,
            use_speaker_boost=True,
        )

        relative = f"{lesson_id}/page-{index}.mp3"
        target = self.storage_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(audio)

        return {
            "pageIndex": index,
            "pageType": page.get("type"),
            "audioUrl": build_media_url(f"{AUDIO_BUCKET}/{relative}"),
            "duration": estimate_duration_seconds(text),
            "fileSize": len(audio),
            "textHash": hash_text(text),
        }


_audio_generator: Optional[AudioGenerator] = None


def get_audio_generator() -> AudioGenerator:
    global _audio_generator
    if _audio_generator is None:
        _audio_generator = AudioGenerator()
    return _audio_generator


def reset_audio_generator_for_tests() -> None:
    global _audio_generator
    _audio_generator = None
