"""Prompt templates for vocabulary generation."""
from __future__ import annotations

VOCABULARY_PROMPT = """\
Generate a list of {count} useful English words, idioms, or phrases related to \
the topic "{topic}" for a student at the "{level}" level. Ensure the Russian \
translations are accurate and natural.

For each item provide:
- "english": the English word or phrase
- "russian": the Russian translation
- "transcription": phonetic transcription (IPA), without slashes
- "definition": a short definition in English
- "example": a simple example sentence using the word

Every item must have a different "english" value.

Respond in this exact JSON format only, with no other text:
[
  {{"english": "...", "russian": "...", "transcription": "...", "definition": "...", "example": "..."}}
]
"""

INVALID_JSON_FEEDBACK = (
    "Your response did not contain a valid JSON array. "
    "Respond with ONLY the JSON array, no other text."
)

VALIDATION_FEEDBACK = (
    "\n\nYour previous response had errors: {reason}\n"
    "Please fix and respond with the corrected JSON array only."
)

SYSTEM_PROMPT = (
    "You write vocabulary lists for Russian-speaking learners of English. "
    "Reply with a single JSON array and nothing else."
)
