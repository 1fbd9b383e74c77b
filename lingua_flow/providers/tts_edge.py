from __future__ import annotations

from pathlib import Path

from lingua_flow.providers.base import TTSProvider

DEFAULT_VOICES = {
    "en-US": "en-US-GuyNeural",
    "ru-RU": "ru-RU-DmitryNeural",
}


class EdgeTTSProvider(TTSProvider):
    def __init__(self, voices: dict[str, str] | None = None):
        self.voices = dict(DEFAULT_VOICES)
        if voices:
            self.voices.update(voices)

    def voice_for(self, language: str) -> str:
        return self.voices.get(language, self.voices["en-US"])

    async def synthesize(self, text: str, output_path: Path, language: str = "en-US") -> Path:
        import edge_tts

        communicate = edge_tts.Communicate(text, self.voice_for(language))
        await communicate.save(str(output_path))
        return output_path

    def name(self) -> str:
        return "edge-tts"
