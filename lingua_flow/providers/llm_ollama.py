from __future__ import annotations

import logging
import time

import httpx

from lingua_flow.prompts import SYSTEM_PROMPT
from lingua_flow.providers.base import LLMProvider

log = logging.getLogger("lingua_flow.llm")


class OllamaProvider(LLMProvider):
    def __init__(self, base_url: str = "http://localhost:11434", model: str = "qwen3:8b"):
        self.base_url = base_url.rstrip("/")
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7) -> str:
        log.info("Vocabulary prompt for %s:\n%s", self.model, prompt)
        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0) as client:
            resp = await client.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": self.model,
                    "system": SYSTEM_PROMPT,
                    "prompt": prompt,
                    "options": {"temperature": temperature},
                    "stream": False,
                    # Reasoning output only gets in the way of the JSON
                    "think": False,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        log.info(
            "%s answered in %.1fs (%s tokens)",
            self.model, time.monotonic() - t0, data.get("eval_count", "?"),
        )
        log.debug("Raw answer:\n%s", data["response"])
        return data["response"]

    def name(self) -> str:
        return f"ollama/{self.model}"
