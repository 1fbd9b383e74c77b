from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "gemini",
    "llm_model": "gemini-2.5-flash",
    "llm_temperature": 0.7,
    "ollama_url": "http://localhost:11434",
    "tts_provider": "edge-tts",
    "tts_voices": {
        "en-US": "en-US-GuyNeural",
        "ru-RU": "ru-RU-DmitryNeural",
    },
    "elevenlabs_voice_id": "lfBVYbXnblkOddWFfEIg",
    "elevenlabs_model": "eleven_flash_v2_5",
    "audio_cache_dir": "audio_cache",
    "vocabulary_size": 10,
    "default_level": "intermediate",
    "choice_reveal_seconds": 1.5,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    llm_temperature: float = DEFAULTS["llm_temperature"]
    ollama_url: str = DEFAULTS["ollama_url"]
    tts_provider: str = DEFAULTS["tts_provider"]
    tts_voices: dict[str, str] = field(default_factory=lambda: dict(DEFAULTS["tts_voices"]))
    elevenlabs_voice_id: str = DEFAULTS["elevenlabs_voice_id"]
    elevenlabs_model: str = DEFAULTS["elevenlabs_model"]
    audio_cache_dir: str = DEFAULTS["audio_cache_dir"]
    vocabulary_size: int = DEFAULTS["vocabulary_size"]
    default_level: str = DEFAULTS["default_level"]
    choice_reveal_seconds: float = DEFAULTS["choice_reveal_seconds"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def audio_cache_full_path(self) -> Path:
        return self.project_root / self.audio_cache_dir

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "llm_temperature": self.llm_temperature,
            "ollama_url": self.ollama_url,
            "tts_provider": self.tts_provider,
            "tts_voices": dict(self.tts_voices),
            "elevenlabs_voice_id": self.elevenlabs_voice_id,
            "elevenlabs_model": self.elevenlabs_model,
            "audio_cache_dir": self.audio_cache_dir,
            "vocabulary_size": self.vocabulary_size,
            "default_level": self.default_level,
            "choice_reveal_seconds": self.choice_reveal_seconds,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4, ensure_ascii=False) + "\n")
