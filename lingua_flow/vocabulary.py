"""Ask the LLM for a vocabulary set on a topic and validate the result."""
from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from lingua_flow.models import DifficultyLevel, VocabularyEntry
from lingua_flow.prompts import INVALID_JSON_FEEDBACK, VALIDATION_FEEDBACK, VOCABULARY_PROMPT

if TYPE_CHECKING:
    from lingua_flow.providers.base import LLMProvider

_log = logging.getLogger("lingua_flow.vocab")

MAX_RETRIES = 3
DEFAULT_COUNT = 10

REQUIRED_FIELDS = ("english", "russian", "transcription", "definition", "example")

# Keys an LLM sometimes wraps the array in
WRAPPER_KEYS = ("items", "vocabulary", "words")

FAILURE_MESSAGE = (
    "Could not generate vocabulary. Check your connection or try another topic."
)


class ProviderFailure(Exception):
    """The content provider failed; nothing was installed."""

    def __init__(self, message: str = FAILURE_MESSAGE, reason: str = ""):
        super().__init__(message)
        self.message = message
        self.reason = reason


def _extract_json(text: str) -> list | dict | None:
    """Extract a JSON array (or object) from an LLM response.

    Strips ``<think>`` blocks, then tries a code-fenced block, then balanced
    top-level ``[…]``/``{…}`` candidates, preferring the *last* one since
    models tend to draft before answering.
    """
    text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()

    m = re.search(r"```(?:json)?\s*\n?([\[{].*?[\]}])\s*\n?```", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1))
        except json.JSONDecodeError:
            pass

    for candidate in reversed(_find_json_blocks(text)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    return None


def _find_json_blocks(text: str) -> list[str]:
    """Find balanced top-level ``[…]`` and ``{…}`` substrings in *text*."""
    pairs = {"[": "]", "{": "}"}
    results: list[str] = []
    i = 0
    while i < len(text):
        opener = text[i]
        if opener not in pairs:
            i += 1
            continue
        closer = pairs[opener]
        depth = 0
        in_str = False
        escape = False
        for j in range(i, len(text)):
            ch = text[j]
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
            if ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    results.append(text[i : j + 1])
                    i = j + 1
                    break
        else:
            # Unbalanced, skip this opening bracket
            i += 1
    return results


def _unwrap(data: list | dict) -> list | None:
    if isinstance(data, list):
        return data
    for key in WRAPPER_KEYS:
        if isinstance(data.get(key), list):
            return data[key]
    return None


def _validate_items(items: list) -> str | None:
    """Return None if every item is usable, else a reason for the model."""
    if not items:
        return "the array is empty"
    problems = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            problems.append(f"item[{i}]: expected object, got {type(item).__name__}")
            continue
        missing = [
            f for f in REQUIRED_FIELDS
            if not isinstance(item.get(f), str) or not item[f].strip()
        ]
        if missing:
            problems.append(f"item[{i}] ({item.get('english', '?')}): missing {', '.join(missing)}")
    if problems:
        return "field errors: " + "; ".join(problems)
    return None


def _to_entries(items: list[dict], count: int) -> list[VocabularyEntry]:
    entries: list[VocabularyEntry] = []
    seen: set[str] = set()
    for item in items:
        entry = VocabularyEntry.from_dict({k: item[k] for k in REQUIRED_FIELDS})
        key = entry.headword.lower()
        if key in seen:
            continue
        seen.add(key)
        entries.append(entry)
        if len(entries) >= count:
            break
    return entries


async def fetch_vocabulary(
    llm: LLMProvider,
    topic: str,
    level: DifficultyLevel = DifficultyLevel.INTERMEDIATE,
    count: int = DEFAULT_COUNT,
    temperature: float = 0.7,
) -> list[VocabularyEntry]:
    """Generate a vocabulary set for *topic*.

    Unusable responses are fed back to the model with the reason and
    retried sequentially.  Raises ProviderFailure if the topic is empty,
    the provider call itself fails, or no attempt yields a valid set.
    """
    topic = topic.strip()
    if not topic:
        raise ProviderFailure(reason="empty topic")

    base_prompt = VOCABULARY_PROMPT.format(topic=topic, level=level.label, count=count)
    prompt = base_prompt
    reason = ""
    for attempt in range(MAX_RETRIES):
        _log.info("Generate vocabulary for %r (attempt %d/%d)", topic, attempt + 1, MAX_RETRIES)
        try:
            response = await llm.generate(prompt, temperature=temperature)
        except Exception as e:
            _log.warning("Provider %s failed: %s", llm.name(), e)
            raise ProviderFailure(reason=str(e)) from e

        data = _extract_json(response or "")
        items = _unwrap(data) if data is not None else None
        if items is None:
            reason = "no valid JSON"
            prompt = base_prompt + "\n\n" + INVALID_JSON_FEEDBACK
            _log.info("  No valid JSON, feeding back")
            _log.debug("  Raw response: %.300s", response)
            continue

        reason = _validate_items(items)
        if reason:
            prompt = base_prompt + VALIDATION_FEEDBACK.format(reason=reason)
            _log.info("  Validation failed, feeding back: %s", reason)
            continue

        entries = _to_entries(items, count)
        _log.info("  Got %d entries from %s", len(entries), llm.name())
        return entries

    _log.warning("Vocabulary generation failed after %d attempts: %s", MAX_RETRIES, reason)
    raise ProviderFailure(reason=reason)
