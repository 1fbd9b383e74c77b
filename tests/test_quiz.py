"""Tests for the quiz state machine, question building and grading."""
from __future__ import annotations

import asyncio
import dataclasses
import random

import pytest

from lingua_flow.models import Direction, QuizMode, VocabularyEntry
from lingua_flow.quiz import (
    QuizSession,
    build_question,
    grade_answer,
    normalize_answer,
    sample_distractors,
)

S2T = Direction.SOURCE_TO_TARGET
T2S = Direction.TARGET_TO_SOURCE


def _entry(headword, translation):
    return VocabularyEntry(headword, translation, "", "", "")


def _wrong_option(question):
    return next(o for o in question.options if o != question.expected)


class TestSampleDistractors:
    def test_excludes_current_entry(self, sample_entries):
        for seed in range(20):
            result = sample_distractors(sample_entries, sample_entries[0], S2T, rng=random.Random(seed))
            assert "кошка" not in result
            assert len(result) == 3
            assert len(set(result)) == 3

    def test_uses_headwords_for_target_to_source(self, sample_entries):
        result = sample_distractors(sample_entries, sample_entries[0], T2S, rng=random.Random(0))
        assert set(result) <= {"dog", "house", "apple", "tree"}

    def test_two_entries_gives_one_distractor(self, sample_entries):
        pair = sample_entries[:2]
        result = sample_distractors(pair, pair[0], S2T)
        assert result == ["собака"]

    def test_single_entry_gives_none(self, sample_entries):
        assert sample_distractors(sample_entries[:1], sample_entries[0], S2T) == []

    def test_count_larger_than_pool(self, sample_entries):
        result = sample_distractors(sample_entries, sample_entries[0], S2T, count=10)
        assert sorted(result) == sorted(["собака", "дом", "яблоко", "дерево"])

    def test_exclusion_is_by_headword(self):
        entries = [_entry("cat", "Кошка"), _entry("kitten", "кошка")]
        result = sample_distractors(entries, entries[0], S2T)
        assert result == ["кошка"]

    def test_identical_answer_never_offered(self):
        entries = [_entry("cat", "кошка"), _entry("kitty", "кошка"), _entry("dog", "собака")]
        result = sample_distractors(entries, entries[0], S2T)
        assert result == ["собака"]

    def test_duplicate_answers_collapsed(self):
        entries = [_entry("cat", "кошка"), _entry("big", "большой"), _entry("large", "большой")]
        result = sample_distractors(entries, entries[0], S2T)
        assert result == ["большой"]

    def test_seeded_rng_is_reproducible(self, sample_entries):
        a = sample_distractors(sample_entries, sample_entries[2], S2T, rng=random.Random(7))
        b = sample_distractors(sample_entries, sample_entries[2], S2T, rng=random.Random(7))
        assert a == b


class TestBuildQuestion:
    def test_source_to_target(self, sample_entries):
        q = build_question(sample_entries[0], S2T, QuizMode.TEXT, sample_entries)
        assert q.prompt == "cat"
        assert q.expected == "кошка"
        assert q.options is None

    def test_target_to_source(self, sample_entries):
        q = build_question(sample_entries[0], T2S, QuizMode.TEXT, sample_entries)
        assert q.prompt == "кошка"
        assert q.expected == "cat"

    def test_choice_options(self, sample_entries):
        for seed in range(30):
            entry = sample_entries[seed % len(sample_entries)]
            q = build_question(entry, S2T, QuizMode.CHOICE, sample_entries, rng=random.Random(seed))
            assert q.options.count(q.expected) == 1
            assert len(q.options) == 4
            assert len(set(q.options)) == len(q.options)

    def test_choice_options_small_set(self, sample_entries):
        pair = sample_entries[:2]
        q = build_question(pair[1], S2T, QuizMode.CHOICE, pair)
        assert sorted(q.options) == sorted(["кошка", "собака"])

    def test_choice_options_single_entry(self, sample_entries):
        q = build_question(sample_entries[0], S2T, QuizMode.CHOICE, sample_entries[:1])
        assert q.options == ("кошка",)

    def test_correct_answer_position_varies(self, sample_entries):
        positions = {
            build_question(sample_entries[0], S2T, QuizMode.CHOICE, sample_entries,
                           rng=random.Random(seed)).options.index("кошка")
            for seed in range(50)
        }
        assert len(positions) > 1


class TestGradeAnswer:
    def test_text_ignores_case_and_whitespace(self):
        assert grade_answer(QuizMode.TEXT, " Apple ", "apple") is True

    def test_text_no_partial_credit(self):
        assert grade_answer(QuizMode.TEXT, "apples", "apple") is False

    def test_text_cyrillic_case(self):
        assert grade_answer(QuizMode.TEXT, "КОШКА", "кошка") is True

    def test_text_no_diacritic_folding(self):
        assert grade_answer(QuizMode.TEXT, "ежик", "ёжик") is False

    def test_choice_is_exact(self):
        assert grade_answer(QuizMode.CHOICE, "кошка", "кошка") is True
        assert grade_answer(QuizMode.CHOICE, "Кошка", "кошка") is False
        assert grade_answer(QuizMode.CHOICE, "кошка ", "кошка") is False

    def test_normalize(self):
        assert normalize_answer("  Boarding Pass\n") == "boarding pass"


class TestQuizSessionSetup:
    def test_before_start(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        state = s.snapshot()
        assert state.started is False
        assert state.question is None
        assert state.is_finished is False
        assert s.submit_choice("кошка") is False
        assert s.restart() is False

    def test_start(self, three_entries, rng):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T, rng=rng)
        s.start()
        state = s.snapshot()
        assert state.position == 0
        assert state.score == 0
        assert state.is_finished is False
        assert state.question.prompt == "cat"
        assert state.submitted is None
        assert state.is_checked is False

    def test_start_twice_rejected(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        assert s.start() is True
        s.check_text("кошка")
        assert s.start() is False
        assert s.score == 1
        assert s.is_checked is True

    def test_snapshot_cannot_change_session(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        snap = s.snapshot()
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.question.expected = "forged"
        with pytest.raises(AttributeError):
            snap.question.options.append("forged")
        assert s.question.expected == "кошка"
        assert "forged" not in s.question.options
        assert s.submit_choice("forged") is True
        assert s.last_correct is False
        assert s.score == 0

    def test_empty_entries_finish_immediately(self):
        s = QuizSession([], QuizMode.TEXT, S2T)
        s.start()
        assert s.is_finished
        assert s.question is None
        assert s.snapshot().percentage == 0


class TestChoiceMode:
    def test_scenario_right_wrong_right(self, three_entries, rng):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T, rng=rng)
        s.start()

        assert s.submit_choice(s.question.expected) is True
        assert s.last_correct is True
        assert s.advance_choice(s.token) is True

        assert s.submit_choice(_wrong_option(s.question)) is True
        assert s.last_correct is False
        assert s.advance_choice(s.token) is True

        assert s.submit_choice(s.question.expected) is True
        assert s.advance_choice(s.token) is True

        state = s.snapshot()
        assert state.score == 2
        assert state.is_finished is True
        assert state.question is None
        assert state.percentage == 67

    def test_second_submit_is_noop(self, three_entries, rng):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T, rng=rng)
        s.start()
        s.submit_choice(s.question.expected)
        assert s.score == 1
        assert s.submit_choice(s.question.expected) is False
        assert s.submit_choice(_wrong_option(s.question)) is False
        assert s.score == 1
        assert s.submitted == s.question.expected

    def test_wrong_mode_calls_rejected(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        assert s.check_text("кошка") is False
        assert s.advance_text() is False
        assert s.is_checked is False

    def test_advance_requires_submission(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        assert s.advance_choice(s.token) is False
        assert s.position == 0

    def test_stale_token_ignored(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        token = s.token
        assert s.advance_choice(token) is True
        assert s.advance_choice(token) is False
        assert s.position == 1

    def test_token_stale_after_restart(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        token = s.token
        s.restart()
        assert s.advance_choice(token) is False
        assert s.position == 0
        assert s.submitted is None

    def test_advance_from_last_position_finishes(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        for _ in range(len(three_entries) - 1):
            s.submit_choice(s.question.expected)
            s.advance_choice(s.token)
        assert s.position == len(three_entries) - 1
        s.submit_choice(s.question.expected)
        s.advance_choice(s.token)
        assert s.is_finished
        assert s.question is None
        assert s.position == len(three_entries)

    def test_submit_after_finish_rejected(self, three_entries):
        s = QuizSession(three_entries[:1], QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        s.advance_choice(s.token)
        assert s.submit_choice("кошка") is False
        assert s.score == 1

    def test_each_question_gets_new_token(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        seen = {s.token}
        for _ in range(2):
            s.submit_choice(s.question.expected)
            s.advance_choice(s.token)
            assert s.token not in seen
            seen.add(s.token)

    @pytest.mark.asyncio
    async def test_scheduled_advance(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        await s.schedule_advance(0)
        assert s.position == 1
        assert s.submitted is None

    @pytest.mark.asyncio
    async def test_scheduled_advance_after_manual_advance(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        task = s.schedule_advance(0.01)
        s.advance_choice(s.token)
        await task
        assert s.position == 1

    @pytest.mark.asyncio
    async def test_scheduled_advance_after_restart(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        task = s.schedule_advance(0.01)
        s.restart()
        await task
        assert s.position == 0
        assert s.score == 0

    @pytest.mark.asyncio
    async def test_scheduled_advance_cancellable(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        s.submit_choice(s.question.expected)
        task = s.schedule_advance(10)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert s.position == 0


class TestTextMode:
    def test_check_and_advance(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, T2S)
        s.start()
        assert s.question.prompt == "кошка"
        assert s.check_text("  CAT ") is True
        assert s.last_correct is True
        assert s.score == 1
        # check does not advance
        assert s.position == 0
        assert s.advance_text() is True
        assert s.position == 1
        assert s.is_checked is False

    def test_empty_input_not_graded(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        s.start()
        assert s.check_text("") is False
        assert s.check_text("   ") is False
        assert s.is_checked is False
        assert s.submitted is None
        assert s.score == 0

    def test_second_check_rejected(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        s.start()
        assert s.check_text("кот") is True
        assert s.last_correct is False
        assert s.check_text("кошка") is False
        assert s.score == 0

    def test_advance_requires_check(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        s.start()
        assert s.advance_text() is False
        assert s.position == 0

    def test_choice_calls_rejected(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        s.start()
        assert s.question.options is None
        assert s.submit_choice("кошка") is False
        s.check_text("кошка")
        assert s.advance_choice(s.token) is False
        assert s.position == 0

    def test_full_run(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        s.start()
        for answer in ["кошка", "кот", "Дом"]:
            s.check_text(answer)
            s.advance_text()
        assert s.is_finished
        assert s.score == 2


class TestRestart:
    def test_restart_after_finish(self, three_entries):
        s = QuizSession(three_entries, QuizMode.CHOICE, S2T)
        s.start()
        while not s.is_finished:
            s.submit_choice(s.question.expected)
            s.advance_choice(s.token)
        assert s.score == 3

        assert s.restart() is True
        state = s.snapshot()
        assert state.score == 0
        assert state.position == 0
        assert state.is_finished is False
        assert state.entries == tuple(three_entries)
        assert state.question.prompt == "cat"

    def test_restart_mid_quiz(self, three_entries):
        s = QuizSession(three_entries, QuizMode.TEXT, S2T)
        s.start()
        s.check_text("кошка")
        s.advance_text()
        s.check_text("собака")
        assert s.restart() is True
        assert s.position == 0
        assert s.score == 0
        assert s.is_checked is False


class TestSessionInvariants:
    @pytest.mark.parametrize("mode", [QuizMode.CHOICE, QuizMode.TEXT])
    @pytest.mark.parametrize("direction", [S2T, T2S])
    def test_score_counts_correct_answers(self, sample_entries, mode, direction):
        for seed in range(10):
            picker = random.Random(seed)
            s = QuizSession(sample_entries, mode, direction, rng=random.Random(seed))
            s.start()
            correct = 0
            last_score = 0
            while not s.is_finished:
                q = s.question
                if mode is QuizMode.CHOICE:
                    s.submit_choice(picker.choice(q.options))
                    # double submit never scores
                    s.submit_choice(q.expected)
                else:
                    s.check_text(picker.choice([q.expected, q.expected.upper(), "nope"]))
                correct += s.last_correct
                assert s.score >= last_score
                last_score = s.score
                if mode is QuizMode.CHOICE:
                    s.advance_choice(s.token)
                else:
                    s.advance_text()
                assert 0 <= s.position <= len(sample_entries)
                assert (s.question is None) == s.is_finished
            assert s.score == correct
            assert 0 <= s.score <= len(sample_entries)
