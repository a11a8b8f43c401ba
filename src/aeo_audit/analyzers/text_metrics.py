"""Text extraction and readability formulas."""

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

CONTENT_SELECTOR = "main, article, .content, #content, .post, #post"
NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]

_WORD_SPLIT_RE = re.compile(r"[^\w\s]")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")

IRREGULAR_PARTICIPLES = (
    "built|made|done|given|taken|seen|known|written|shown|found|held|kept|left|"
    "put|set|sold|sent|told|thought|brought|bought|caught|taught|paid|led|read|"
    "won|run|cut|hit|hurt|born|chosen|driven|eaten|forgotten|hidden|spoken|stolen"
)
PASSIVE_RE = re.compile(
    rf"\b(?:am|is|are|was|were|be|been|being)\s+(?:\w+ly\s+)?(\w+ed|\w+en|{IRREGULAR_PARTICIPLES})\b",
    re.IGNORECASE,
)
# Words ending in -en that are not participles
NOT_PARTICIPLES = {"often", "even", "seven", "open", "when", "then", "garden", "heaven", "eleven"}

FLESCH_LEVELS = (
    (90, "Very Easy"),
    (80, "Easy"),
    (70, "Fairly Easy"),
    (60, "Standard"),
    (50, "Fairly Difficult"),
    (30, "Difficult"),
)


@dataclass(frozen=True)
class FleschCurve:
    """
    Maps a Flesch score onto 0-100 points favoring the 60-80 band.

    Scores inside the band are boosted, very easy text is flattened and
    very hard text is discounted.
    """

    optimal_low: float = 60
    optimal_high: float = 80
    optimal_boost: float = 1.2
    easy_slope: float = 0.5
    hard_cutoff: float = 30
    hard_factor: float = 0.7

    def apply(self, score: float) -> float:
        if self.optimal_low <= score <= self.optimal_high:
            return min(100.0, score * self.optimal_boost)
        if score > self.optimal_high:
            return self.optimal_high + (score - self.optimal_high) * self.easy_slope
        if score < self.hard_cutoff:
            return score * self.hard_factor
        return score


def content_root(soup: BeautifulSoup) -> Tag:
    """Strip non-content tags and return the main content container."""
    for tag in soup.find_all(NON_CONTENT_TAGS):
        tag.decompose()
    return soup.select_one(CONTENT_SELECTOR) or soup.body or soup


def tokenize_words(text: str) -> list[str]:
    return _WORD_SPLIT_RE.sub(" ", text.lower()).split()


def split_sentences(text: str) -> list[str]:
    return [sentence.strip() for sentence in _SENTENCE_SPLIT_RE.split(text) if sentence.strip()]


def count_syllables(word: str) -> int:
    """Estimate syllables by counting vowel groups, minus a silent trailing e."""
    letters = re.sub(r"[^a-z]", "", word.lower())
    if not letters:
        return 0
    if len(letters) <= 3:
        return 1
    count = len(_VOWEL_GROUP_RE.findall(letters))
    if letters.endswith("e"):
        count -= 1
    return max(1, count)


def flesch_reading_ease(word_count: int, sentence_count: int, syllable_count: int) -> float:
    """Flesch Reading Ease clamped to 0..100. Empty text scores 0."""
    if word_count == 0 or sentence_count == 0:
        return 0.0
    score = (
        206.835
        - 1.015 * (word_count / sentence_count)
        - 84.6 * (syllable_count / word_count)
    )
    return max(0.0, min(100.0, score))


def flesch_level(score: float) -> str:
    for threshold, label in FLESCH_LEVELS:
        if score >= threshold:
            return label
    return "Very Difficult"


def is_passive(sentence: str) -> bool:
    return any(
        match.group(1).lower() not in NOT_PARTICIPLES for match in PASSIVE_RE.finditer(sentence)
    )
