"""Metrics derived locally from the input text; no network involved."""

from __future__ import annotations

import math

WORDS_PER_MINUTE = 150


def word_count(text: str) -> int:
    return len(text.split())


def reading_time(text: str) -> int:
    """Estimated reading time in whole minutes, rounded up."""
    return math.ceil(word_count(text) / WORDS_PER_MINUTE)


def extract_main_topic(text: str, words: int = 3) -> str:
    """Default knowledge-search topic: the first few words of the draft."""
    return " ".join(text.split()[:words])
