"""Shared test fixtures."""
from __future__ import annotations

import random

import pytest

from lingua_flow.models import VocabularyEntry


@pytest.fixture
def sample_entries():
    """A small vocabulary set with distinct headwords and translations."""
    return [
        VocabularyEntry("cat", "кошка", "kæt", "a small domesticated feline", "The cat sleeps on the sofa."),
        VocabularyEntry("dog", "собака", "dɒɡ", "a domesticated canine", "The dog barks at night."),
        VocabularyEntry("house", "дом", "haʊs", "a building for people to live in", "Their house is by the river."),
        VocabularyEntry("apple", "яблоко", "ˈæp.əl", "a round fruit", "She eats an apple every day."),
        VocabularyEntry("tree", "дерево", "triː", "a tall woody plant", "A tree grows in the yard."),
    ]


@pytest.fixture
def three_entries(sample_entries):
    return sample_entries[:3]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def vocab_json():
    """Provider response in the shape the prompt asks for."""
    return """[
  {"english": "boarding pass", "russian": "посадочный талон", "transcription": "ˈbɔːdɪŋ pɑːs",
   "definition": "a document that lets you board a plane", "example": "Show your boarding pass at the gate."},
  {"english": "layover", "russian": "пересадка", "transcription": "ˈleɪəʊvə",
   "definition": "a short stop between flights", "example": "We had a two-hour layover in Istanbul."},
  {"english": "carry-on", "russian": "ручная кладь", "transcription": "ˈkæri ɒn",
   "definition": "a small bag taken into the cabin", "example": "My carry-on fits under the seat."}
]"""
