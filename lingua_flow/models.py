from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    SOURCE_TO_TARGET = "en-ru"
    TARGET_TO_SOURCE = "ru-en"

    @property
    def prompt_language(self) -> str:
        """Language tag of the side shown to the learner."""
        return "en-US" if self is Direction.SOURCE_TO_TARGET else "ru-RU"


class QuizMode(str, Enum):
    CHOICE = "choice"
    TEXT = "text"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def label(self) -> str:
        return {
            DifficultyLevel.BEGINNER: "Beginner (A1-A2)",
            DifficultyLevel.INTERMEDIATE: "Intermediate (B1-B2)",
            DifficultyLevel.ADVANCED: "Advanced (C1-C2)",
        }[self]


@dataclass(frozen=True)
class VocabularyEntry:
    headword: str
    translation: str
    phonetic_transcription: str
    definition: str
    example_sentence: str

    # provider key -> attribute
    FIELD_ALIASES = {
        "english": "headword",
        "russian": "translation",
        "headword": "headword",
        "translation": "translation",
        "transcription": "phonetic_transcription",
        "phonetic_transcription": "phonetic_transcription",
        "definition": "definition",
        "example": "example_sentence",
        "example_sentence": "example_sentence",
    }

    @classmethod
    def from_dict(cls, data: dict) -> VocabularyEntry:
        kwargs = {}
        for key, value in data.items():
            attr = cls.FIELD_ALIASES.get(key)
            if attr is not None:
                kwargs[attr] = str(value).strip()
        return cls(**kwargs)

    def answer_for(self, direction: Direction) -> str:
        if direction is Direction.SOURCE_TO_TARGET:
            return self.translation
        return self.headword

    def prompt_for(self, direction: Direction) -> str:
        if direction is Direction.SOURCE_TO_TARGET:
            return self.headword
        return self.translation

    def to_dict(self) -> dict:
        return {
            "headword": self.headword,
            "translation": self.translation,
            "phonetic_transcription": self.phonetic_transcription,
            "definition": self.definition,
            "example_sentence": self.example_sentence,
        }


@dataclass(frozen=True)
class Question:
    prompt: str
    expected: str
    options: tuple[str, ...] | None = None  # only in CHOICE mode

    def to_dict(self) -> dict:
        return {
            "prompt": self.prompt,
            "expected": self.expected,
            "options": list(self.options) if self.options is not None else None,
        }


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot of a quiz session."""

    entries: tuple[VocabularyEntry, ...]
    mode: QuizMode
    direction: Direction
    started: bool
    position: int
    score: int
    is_finished: bool
    question: Question | None
    submitted: str | None
    is_checked: bool
    last_correct: bool | None
    token: int

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def percentage(self) -> int:
        if not self.entries:
            return 0
        return round(self.score / len(self.entries) * 100)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "direction": self.direction.value,
            "started": self.started,
            "position": self.position,
            "total": self.total,
            "score": self.score,
            "percentage": self.percentage,
            "is_finished": self.is_finished,
            "prompt_language": self.direction.prompt_language,
            "question": self.question.to_dict() if self.question else None,
            "submitted": self.submitted,
            "is_checked": self.is_checked,
            "last_correct": self.last_correct,
            "token": self.token,
        }
