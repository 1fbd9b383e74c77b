"""TTS audio caching and serving."""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lingua_flow.providers.base import TTSProvider

_log = logging.getLogger("lingua_flow.audio")


def sentence_hash(text: str, language: str = "en-US") -> str:
    return hashlib.sha256(f"{language}:{text}".encode()).hexdigest()[:16]


def audio_path(cache_dir: Path, audio_hash: str) -> Path:
    return cache_dir / f"{audio_hash}.mp3"


async def get_or_create_audio(
    text: str,
    tts: TTSProvider,
    cache_dir: Path,
    language: str = "en-US",
) -> Path | None:
    """Get cached audio or generate new TTS audio.

    Playback is best-effort: a failing provider yields None.
    """
    cache_dir.mkdir(parents=True, exist_ok=True)
    output_path = audio_path(cache_dir, sentence_hash(text, language))
    if output_path.exists():
        return output_path

    try:
        await tts.synthesize(text, output_path, language)
        return output_path
    except Exception as e:
        _log.warning("TTS error (%s): %s", tts.name(), e)
        output_path.unlink(missing_ok=True)
        return None
