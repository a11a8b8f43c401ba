"""
Unit tests for text metrics and the readability analyzer.
"""

import pytest

from aeo_audit.analyzers.readability import ReadabilityAnalyzer
from aeo_audit.analyzers.text_metrics import (
    FleschCurve,
    count_syllables,
    flesch_level,
    flesch_reading_ease,
    is_passive,
    split_sentences,
    tokenize_words,
)
from aeo_audit.recommendations.rules import READABILITY_ADVICE
from tests.samples import GOOD_HTML

PASSIVE_TEXT = (
    "The report was written by the team. The code was reviewed by Ana. The bug was fixed quickly."
)


def metric(section, metric_id):
    for subsection in section.subsections:
        for item in subsection.metrics:
            if item.id == metric_id:
                return item
    raise KeyError(metric_id)


class TestTextMetrics:
    """Tokenizing, syllables and the Flesch formula."""

    def test_tokenize_and_split(self):
        assert tokenize_words("Hello, World! It's 2026.") == ["hello", "world", "it", "s", "2026"]
        assert split_sentences("One. Two!  Three?") == ["One", "Two", "Three"]

    @pytest.mark.parametrize(
        "word,expected",
        [("the", 1), ("reading", 2), ("beautiful", 3), ("plane", 1), ("", 0)],
    )
    def test_count_syllables(self, word, expected):
        assert count_syllables(word) == expected

    def test_flesch_of_empty_text_is_zero(self):
        assert flesch_reading_ease(0, 0, 0) == 0.0

    def test_flesch_is_clamped(self):
        assert flesch_reading_ease(10, 10, 10) == 100.0
        assert flesch_reading_ease(100, 1, 400) == 0.0

    def test_levels(self):
        assert flesch_level(95) == "Very Easy"
        assert flesch_level(65) == "Standard"
        assert flesch_level(10) == "Very Difficult"

    def test_curve(self):
        curve = FleschCurve()
        assert curve.apply(70) == pytest.approx(84)
        assert curve.apply(90) == pytest.approx(85)
        assert curve.apply(20) == pytest.approx(14)
        assert curve.apply(45) == pytest.approx(45)

    def test_passive_detection(self):
        assert is_passive("The report was written by the team")
        assert is_passive("Mistakes were quickly corrected")
        assert not is_passive("The team wrote the report")
        assert not is_passive("It is often late")


class TestReadabilityAnalyzer:
    """Section layout and scoring of the main content."""

    @pytest.fixture
    def analyzer(self):
        return ReadabilityAnalyzer()

    def test_prose_page(self, analyzer):
        output = analyzer.evaluate(GOOD_HTML)
        section = output.section

        assert section.error is None
        assert [s.id for s in section.subsections] == [
            "text-clarity",
            "content-organization",
            "linguistic-precision",
        ]
        assert [s.max_score for s in section.subsections] == [40, 35, 25]
        assert 0 < section.total_score <= 100
        assert output.raw_data["paragraphCount"] == 4
        assert output.raw_data["wordCount"] > 200

    def test_page_without_text(self, analyzer):
        output = analyzer.evaluate("<html><body><script>var x = 1;</script></body></html>")
        section = output.section

        assert section.total_score == 0
        assert section.error is None
        recs = section.recommendations()
        assert len(recs) == 1
        assert recs[0].problem == READABILITY_ADVICE["text-insufficient"].problem
        assert recs[0].impact == 10

    def test_passive_heavy_text(self, analyzer):
        output = analyzer.evaluate(f"<html><body><main><p>{PASSIVE_TEXT}</p></main></body></html>")
        passive = metric(output.section, "passive-voice")

        assert passive.score == 8
        assert passive.raw_data["passiveSentences"] == 3
        assert passive.recommendations[0].problem == "100% of sentences use passive voice"

        variance = metric(output.section, "sentence-variance")
        # Short and uniform sentences
        assert variance.score == 10

    def test_missing_paragraphs(self, analyzer):
        output = analyzer.evaluate(
            "<html><body><main>Plain text with no paragraphs. It still has sentences.</main></body></html>"
        )
        paragraphs = metric(output.section, "paragraph-structure")

        assert paragraphs.score == 0
        assert paragraphs.recommendations[0].problem == READABILITY_ADVICE["paragraphs-missing"].problem

    def test_repetitive_vocabulary(self, analyzer):
        output = analyzer.evaluate("<html><body><p>tools tools tools tools. tools tools.</p></body></html>")
        vocabulary = metric(output.section, "vocabulary-diversity")

        assert vocabulary.score == 2
        assert vocabulary.recommendations

    @pytest.mark.asyncio
    async def test_run_uses_fetched_html(self, analyzer, make_context):
        output = await analyzer.run(make_context())
        assert output.error is None
        assert output.category == "readability"
