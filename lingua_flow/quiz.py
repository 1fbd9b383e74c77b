"""Quiz session state machine: question building, distractors, grading."""
from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence

from lingua_flow.models import (
    Direction,
    Question,
    QuizMode,
    SessionState,
    VocabularyEntry,
)

_log = logging.getLogger("lingua_flow.quiz")

DISTRACTOR_COUNT = 3
CHOICE_REVEAL_SECONDS = 1.5


def sample_distractors(
    entries: Sequence[VocabularyEntry],
    current: VocabularyEntry,
    direction: Direction,
    count: int = DISTRACTOR_COUNT,
    rng: random.Random | None = None,
) -> list[str]:
    """Pick up to *count* wrong answers for *current*.

    The current entry is excluded by headword, not by answer string, so
    another entry with a similar translation stays a candidate.  Strings
    identical to the expected answer are dropped so an option list never
    shows the correct answer twice.  Small sets simply yield fewer
    distractors.
    """
    rng = rng or random.Random()
    expected = current.answer_for(direction)
    candidates: list[str] = []
    for entry in entries:
        if entry.headword == current.headword:
            continue
        answer = entry.answer_for(direction)
        if answer == expected or answer in candidates:
            continue
        candidates.append(answer)
    return rng.sample(candidates, min(count, len(candidates)))


def build_question(
    entry: VocabularyEntry,
    direction: Direction,
    mode: QuizMode,
    entries: Sequence[VocabularyEntry] = (),
    rng: random.Random | None = None,
) -> Question:
    rng = rng or random.Random()
    expected = entry.answer_for(direction)
    options = None
    if mode is QuizMode.CHOICE:
        choices = sample_distractors(entries, entry, direction, rng=rng)
        choices.append(expected)
        rng.shuffle(choices)
        options = tuple(choices)
    return Question(prompt=entry.prompt_for(direction), expected=expected, options=options)


def normalize_answer(text: str) -> str:
    return text.strip().lower()


def grade_answer(mode: QuizMode, submitted: str, expected: str) -> bool:
    """Choice answers must match verbatim; typed answers ignore case and
    surrounding whitespace."""
    if mode is QuizMode.CHOICE:
        return submitted == expected
    return normalize_answer(submitted) == normalize_answer(expected)


class QuizSession:
    """Drives one quiz run over a fixed vocabulary set.

    Transition methods return ``True`` when applied and ``False`` when the
    call is not valid in the current state; rejected calls leave the
    session untouched.

    Every question gets a fresh ``token``.  A delayed choice-mode advance
    carries the token it was scheduled for and is dropped if the session
    has moved on (answered via another path, restarted) in the meantime.
    """

    def __init__(
        self,
        entries: Sequence[VocabularyEntry],
        mode: QuizMode,
        direction: Direction,
        rng: random.Random | None = None,
    ):
        self.entries: tuple[VocabularyEntry, ...] = tuple(entries)
        self.mode = mode
        self.direction = direction
        self.rng = rng or random.Random()

        self.started = False
        self.position = 0
        self.score = 0
        self.question: Question | None = None
        self.submitted: str | None = None
        self.is_checked = False
        self.last_correct: bool | None = None
        self.token = 0

    # ── State queries ─────────────────────────────────────────────────────

    @property
    def is_finished(self) -> bool:
        return self.started and self.position >= len(self.entries)

    @property
    def is_active(self) -> bool:
        return self.started and not self.is_finished

    def snapshot(self) -> SessionState:
        return SessionState(
            entries=self.entries,
            mode=self.mode,
            direction=self.direction,
            started=self.started,
            position=self.position,
            score=self.score,
            is_finished=self.is_finished,
            question=self.question,
            submitted=self.submitted,
            is_checked=self.is_checked,
            last_correct=self.last_correct,
            token=self.token,
        )

    # ── Transitions ───────────────────────────────────────────────────────

    def start(self) -> bool:
        if self.started:
            return self._reject("start", "already started, use restart")
        self._begin()
        return True

    def restart(self) -> bool:
        if not self.started:
            return self._reject("restart", "quiz not started")
        self._begin()
        return True

    def submit_choice(self, option: str) -> bool:
        if self.mode is not QuizMode.CHOICE:
            return self._reject("submit_choice", "not in choice mode")
        if not self.is_active:
            return self._reject("submit_choice", "no active question")
        if self.submitted is not None:
            return self._reject("submit_choice", "already answered")
        self.submitted = option
        self._grade(option)
        return True

    def advance_choice(self, token: int) -> bool:
        """Delayed advance after a choice submission."""
        if token != self.token:
            return self._reject("advance_choice", f"stale token {token} (current {self.token})")
        if self.mode is not QuizMode.CHOICE or not self.is_active or not self.is_checked:
            return self._reject("advance_choice", "nothing to advance")
        self._advance()
        return True

    def schedule_advance(self, delay: float = CHOICE_REVEAL_SECONDS) -> asyncio.Task:
        """Advance after *delay* seconds unless the session moved on first."""
        token = self.token

        async def _fire():
            await asyncio.sleep(delay)
            self.advance_choice(token)

        return asyncio.create_task(_fire())

    def check_text(self, answer: str) -> bool:
        if self.mode is not QuizMode.TEXT:
            return self._reject("check_text", "not in text mode")
        if not self.is_active:
            return self._reject("check_text", "no active question")
        if self.is_checked:
            return self._reject("check_text", "already checked")
        if not answer.strip():
            return self._reject("check_text", "empty answer")
        self.submitted = answer
        self._grade(answer)
        return True

    def advance_text(self) -> bool:
        if self.mode is not QuizMode.TEXT:
            return self._reject("advance_text", "not in text mode")
        if not self.is_active or not self.is_checked:
            return self._reject("advance_text", "answer not checked")
        self._advance()
        return True

    # ── Internals ─────────────────────────────────────────────────────────

    def _begin(self) -> None:
        self.started = True
        self.position = 0
        self.score = 0
        self._enter_position()

    def _grade(self, answer: str) -> None:
        correct = grade_answer(self.mode, answer, self.question.expected)
        if correct:
            self.score += 1
        self.is_checked = True
        self.last_correct = correct
        _log.debug("Position %d: %r -> %s", self.position, answer, "correct" if correct else "wrong")

    def _advance(self) -> None:
        self.position += 1
        self._enter_position()

    def _enter_position(self) -> None:
        self.token += 1
        self.submitted = None
        self.is_checked = False
        self.last_correct = None
        if self.position >= len(self.entries):
            self.question = None
            _log.info("Quiz finished: %d/%d", self.score, len(self.entries))
            return
        self.question = build_question(
            self.entries[self.position],
            self.direction,
            self.mode,
            self.entries,
            rng=self.rng,
        )

    def _reject(self, operation: str, reason: str) -> bool:
        _log.debug("Ignored %s: %s", operation, reason)
        return False
