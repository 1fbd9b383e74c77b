from __future__ import annotations

import os

from lingua_flow.prompts import SYSTEM_PROMPT
from lingua_flow.providers.base import LLMProvider


class GeminiProvider(LLMProvider):
    def __init__(self, model: str = "gemini-2.5-flash"):
        import google.generativeai as genai
        genai.configure(api_key=os.environ.get("GEMINI_API_KEY", ""))
        self._genai = genai
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7) -> str:
        model = self._genai.GenerativeModel(self.model, system_instruction=SYSTEM_PROMPT)
        response = await model.generate_content_async(
            prompt,
            generation_config={
                "temperature": temperature,
                "response_mime_type": "application/json",
            },
        )
        if not response.parts:
            return ""
        return response.text

    def name(self) -> str:
        return f"gemini/{self.model}"
