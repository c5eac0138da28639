"""
Text Metrics

Shared helpers for word, sentence and syllable counting and the
Flesch Reading Ease formula.
"""

import re
from typing import List

SENTENCE_SPLIT = re.compile(r"[.!?]+")
VOWEL_GROUP = re.compile(r"[aeiouyAEIOUY]+")


def split_words(text: str) -> List[str]:
    """Whitespace-delimited words."""
    return [w for w in (text or "").split() if w]


def split_sentences(text: str) -> List[str]:
    """Sentences split on terminal punctuation, empty fragments dropped."""
    return [s for s in SENTENCE_SPLIT.split(text or "") if s.strip()]


def count_syllables(word: str) -> int:
    """
    Approximate syllables as vowel groups.

    A trailing silent "e" is discounted when the word has more than one
    group. Every word counts at least one syllable.
    """
    count = len(VOWEL_GROUP.findall(word))
    if word.endswith("e") and count > 1:
        count -= 1
    return max(1, count)


def flesch_reading_ease(text: str) -> float:
    """
    Flesch Reading Ease, clamped to [0, 100].

    Returns 0 when the text has no sentences or no words.
    """
    sentences = split_sentences(text)
    words = split_words(text)
    if not sentences or not words:
        return 0.0

    syllables = sum(count_syllables(w) for w in words)
    score = (
        206.835
        - 1.015 * (len(words) / len(sentences))
        - 84.6 * (syllables / len(words))
    )
    return max(0.0, min(100.0, score))
