"""Flashcard browsing for the learn view."""
from __future__ import annotations

from collections.abc import Sequence

from lingua_flow.models import VocabularyEntry


class CardDeck:
    def __init__(self, entries: Sequence[VocabularyEntry]):
        self.entries: tuple[VocabularyEntry, ...] = tuple(entries)
        self.index = 0
        self.is_flipped = False

    @property
    def current(self) -> VocabularyEntry | None:
        if not self.entries:
            return None
        return self.entries[self.index]

    @property
    def has_previous(self) -> bool:
        return self.index > 0

    @property
    def has_next(self) -> bool:
        return self.index < len(self.entries) - 1

    def next(self) -> VocabularyEntry | None:
        if self.has_next:
            self._move_to(self.index + 1)
        return self.current

    def previous(self) -> VocabularyEntry | None:
        if self.has_previous:
            self._move_to(self.index - 1)
        return self.current

    def flip(self) -> bool:
        if self.entries:
            self.is_flipped = not self.is_flipped
        return self.is_flipped

    def _move_to(self, index: int) -> None:
        self.index = index
        # A new card always starts face up
        self.is_flipped = False

    def to_dict(self) -> dict:
        current = self.current
        return {
            "index": self.index,
            "total": len(self.entries),
            "is_flipped": self.is_flipped,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
            "card": current.to_dict() if current else None,
        }
