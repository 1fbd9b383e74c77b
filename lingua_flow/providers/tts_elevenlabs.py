from __future__ import annotations

import asyncio
import os
from pathlib import Path

from lingua_flow.providers.base import TTSProvider


class ElevenLabsProvider(TTSProvider):
    """Multilingual model; one voice reads both languages."""

    def __init__(self, voice_id: str = "lfBVYbXnblkOddWFfEIg", model_id: str = "eleven_flash_v2_5"):
        from elevenlabs import ElevenLabs
        self.client = ElevenLabs(
            api_key=os.environ.get("ELEVEN_LABS_API_KEY", ""),
        )
        self.voice_id = voice_id
        self.model_id = model_id

    async def synthesize(self, text: str, output_path: Path, language: str = "en-US") -> Path:
        def _generate():
            audio = self.client.text_to_speech.convert(
                voice_id=self.voice_id,
                text=text,
                model_id=self.model_id,
                output_format="mp3_44100_128",
                language_code=language.split("-")[0],
            )
            # audio is a generator of bytes
            with open(output_path, "wb") as f:
                for chunk in audio:
                    f.write(chunk)
            return output_path

        return await asyncio.get_running_loop().run_in_executor(None, _generate)

    def name(self) -> str:
        return f"elevenlabs/{self.voice_id}"
