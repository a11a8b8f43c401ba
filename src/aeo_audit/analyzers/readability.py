"""Readability analysis of the page's main content."""

import asyncio
import logging
import statistics

from aeo_audit.analyzers.base import AnalysisContext, BaseAnalyzer, parse_html
from aeo_audit.analyzers.text_metrics import (
    FleschCurve,
    content_root,
    count_syllables,
    flesch_level,
    flesch_reading_ease,
    is_passive,
    split_sentences,
    tokenize_words,
)
from aeo_audit.models import CanonicalOutput, Metric
from aeo_audit.recommendations.rules import READABILITY_ADVICE as ADVICE
from aeo_audit.sections import build_metric, build_section, build_subsection

logger = logging.getLogger(__name__)

MIN_WORD_COUNT = 300
OPTIMAL_PARAGRAPH_WORDS = (50, 150)

# (minimum value, points) bands, checked in order
PASSIVE_BANDS = ((5, 20), (10, 16), (15, 12))
PARAGRAPH_BANDS = ((0.8, 20), (0.6, 16), (0.4, 12), (0.2, 8))
DENSITY_BANDS = ((0.3, 15), (0.2, 12), (0.15, 9), (0.1, 6))
VOCABULARY_BANDS = ((0.6, 10), (0.5, 8), (0.4, 6), (0.3, 4))


def _band(value: float, bands: tuple[tuple[float, int], ...], floor: int) -> int:
    """Points for the first band whose threshold `value` reaches."""
    for threshold, points in bands:
        if value >= threshold:
            return points
    return floor


class ReadabilityAnalyzer(BaseAnalyzer):
    """
    Scores how easy the main content is to read and quote.

    Checks:
    - Flesch Reading Ease and passive voice
    - Paragraph length and text density
    - Sentence length variety and vocabulary diversity
    """

    category = "readability"
    title = "Readability"
    description = "How clear, well-organized and precise the prose is."

    def __init__(self, curve: FleschCurve | None = None):
        self.curve = curve or FleschCurve()

    @property
    def name(self) -> str:
        return "readability"

    async def analyze(self, context: AnalysisContext) -> CanonicalOutput:
        html = context.require_html()
        return await asyncio.to_thread(self.evaluate, html)

    def evaluate(self, html: str) -> CanonicalOutput:
        soup = parse_html(html)
        root = content_root(soup)
        text = root.get_text(" ", strip=True)
        paragraphs = [
            len(tokenize_words(p.get_text(" ", strip=True))) for p in root.find_all("p")
        ]
        paragraphs = [count for count in paragraphs if count > 0]

        words = tokenize_words(text)
        sentences = split_sentences(text)

        if not words or not sentences:
            metrics = self._insufficient_text()
        else:
            sentence_lengths = [len(tokenize_words(s)) for s in sentences]
            sentence_lengths = [n for n in sentence_lengths if n > 0] or [len(words)]
            metrics = [
                self._check_flesch(words, sentence_lengths),
                self._check_passive_voice(sentences),
                self._check_paragraphs(paragraphs),
                self._check_density(text, html, len(words)),
                self._check_sentence_variance(sentence_lengths),
                self._check_vocabulary(words),
            ]

        section = build_section(
            id=self.category,
            name=self.title,
            description=self.description,
            subsections=[
                build_subsection(
                    id="text-clarity",
                    name="Text Clarity",
                    description="Reading ease and active voice.",
                    max_score=40,
                    metrics=metrics[0:2],
                ),
                build_subsection(
                    id="content-organization",
                    name="Content Organization",
                    description="Paragraphing and the share of substantive text.",
                    max_score=35,
                    metrics=metrics[2:4],
                ),
                build_subsection(
                    id="linguistic-precision",
                    name="Linguistic Precision",
                    description="Sentence rhythm and word choice.",
                    max_score=25,
                    metrics=metrics[4:6],
                ),
            ],
        )
        return CanonicalOutput(
            category=self.category,
            section=section,
            raw_data={
                "wordCount": len(words),
                "sentenceCount": len(sentences),
                "paragraphCount": len(paragraphs),
            },
        )

    def _insufficient_text(self) -> list[Metric]:
        """Zero-score metrics for a page without readable text."""
        specs = [
            ("flesch-score", "Flesch Reading Ease", 20),
            ("passive-voice", "Passive Voice", 20),
            ("paragraph-structure", "Paragraph Structure", 20),
            ("content-density", "Content Density", 15),
            ("sentence-variance", "Sentence Length Variance", 15),
            ("vocabulary-diversity", "Vocabulary Diversity", 10),
        ]
        return [
            build_metric(
                id=metric_id,
                name=name,
                score=0,
                max_score=max_score,
                explanation="No readable text was found in the main content.",
                recommendations=[ADVICE["text-insufficient"].render()] if index == 0 else [],
            )
            for index, (metric_id, name, max_score) in enumerate(specs)
        ]

    def _check_flesch(self, words: list[str], sentence_lengths: list[int]) -> Metric:
        syllables = sum(count_syllables(word) for word in words)
        flesch = flesch_reading_ease(len(words), len(sentence_lengths), syllables)
        curved = self.curve.apply(flesch)

        recs = []
        if flesch < 40:
            recs.append(ADVICE["flesch-complex"].render(flesch=round(flesch, 1)))
        elif flesch > 70:
            recs.append(ADVICE["flesch-simple"].render(flesch=round(flesch, 1)))

        return build_metric(
            id="flesch-score",
            name="Flesch Reading Ease",
            score=curved * 20 / 100,
            max_score=20,
            explanation=f"Flesch Reading Ease {flesch:.1f} ({flesch_level(flesch)}).",
            recommendations=recs,
            success_message="Reading ease is in the optimal range for general audiences.",
            raw_data={
                "flesch": round(flesch, 1),
                "curved": round(curved, 1),
                "level": flesch_level(flesch),
                "syllables": syllables,
            },
        )

    def _check_passive_voice(self, sentences: list[str]) -> Metric:
        passive = sum(1 for sentence in sentences if is_passive(sentence))
        ratio = passive / len(sentences) * 100
        score = next((points for limit, points in PASSIVE_BANDS if ratio < limit), 8)

        recs = []
        if ratio > 15:
            recs.append(ADVICE["passive-high"].render(ratio=round(ratio)))
        elif ratio > 10:
            recs.append(ADVICE["passive-moderate"].render(ratio=round(ratio)))

        return build_metric(
            id="passive-voice",
            name="Passive Voice",
            score=score,
            max_score=20,
            explanation=f"{passive} of {len(sentences)} sentences use passive voice.",
            recommendations=recs,
            success_message="Sentences are predominantly in active voice.",
            raw_data={"passiveSentences": passive, "ratio": round(ratio, 1)},
        )

    def _check_paragraphs(self, paragraphs: list[int]) -> Metric:
        if not paragraphs:
            return build_metric(
                id="paragraph-structure",
                name="Paragraph Structure",
                score=0,
                max_score=20,
                explanation="No <p> paragraphs in the main content.",
                recommendations=[ADVICE["paragraphs-missing"].render()],
                raw_data={"paragraphCount": 0},
            )

        low, high = OPTIMAL_PARAGRAPH_WORDS
        total = len(paragraphs)
        optimal = sum(1 for n in paragraphs if low <= n <= high) / total
        long_share = sum(1 for n in paragraphs if n > high) / total
        short_share = sum(1 for n in paragraphs if n < low) / total
        mean = statistics.fmean(paragraphs)
        spread = statistics.pstdev(paragraphs)

        recs = []
        if long_share > 0.3:
            recs.append(ADVICE["paragraphs-long"].render(percent=round(long_share * 100)))
        if short_share > 0.4:
            recs.append(ADVICE["paragraphs-short"].render(percent=round(short_share * 100)))
        if total > 1 and spread > 0.8 * mean:
            recs.append(ADVICE["paragraphs-inconsistent"].render())

        return build_metric(
            id="paragraph-structure",
            name="Paragraph Structure",
            score=_band(optimal, PARAGRAPH_BANDS, 4),
            max_score=20,
            explanation=f"{round(optimal * 100)}% of {total} paragraphs are 50-150 words.",
            recommendations=recs,
            success_message="Paragraphs are consistently sized.",
            raw_data={
                "paragraphCount": total,
                "optimalShare": round(optimal, 2),
                "averageWords": round(mean, 1),
                "stdDev": round(spread, 1),
            },
        )

    def _check_density(self, text: str, html: str, word_count: int) -> Metric:
        ratio = len(text) / len(html) if html else 0.0

        recs = []
        if ratio < 0.1:
            recs.append(ADVICE["density-low"].render(ratio=round(ratio * 100, 1)))
        if word_count < MIN_WORD_COUNT:
            recs.append(ADVICE["word-count-low"].render(count=word_count))

        return build_metric(
            id="content-density",
            name="Content Density",
            score=_band(ratio, DENSITY_BANDS, 3),
            max_score=15,
            explanation=f"Text is {ratio * 100:.1f}% of the HTML; {word_count} words.",
            recommendations=recs,
            success_message="Substantial content relative to markup.",
            raw_data={"textRatio": round(ratio, 3), "wordCount": word_count},
        )

    def _check_sentence_variance(self, sentence_lengths: list[int]) -> Metric:
        average = statistics.fmean(sentence_lengths)
        spread = statistics.pstdev(sentence_lengths)
        score = 15
        recs = []

        if average > 25:
            score -= 5
            recs.append(ADVICE["sentences-long"].render(average=round(average, 1)))
        elif average < 15:
            score -= 3
            recs.append(ADVICE["sentences-short"].render(average=round(average, 1)))
        if spread < 3:
            score -= 2
            recs.append(ADVICE["sentences-uniform"].render())

        return build_metric(
            id="sentence-variance",
            name="Sentence Length Variance",
            score=score,
            max_score=15,
            explanation=f"Average sentence is {average:.1f} words (std dev {spread:.1f}).",
            recommendations=recs,
            success_message="Sentence lengths are varied and moderate.",
            raw_data={"averageLength": round(average, 1), "stdDev": round(spread, 1)},
        )

    def _check_vocabulary(self, words: list[str]) -> Metric:
        diversity = len(set(words)) / len(words)
        score = _band(diversity, VOCABULARY_BANDS, 2)
        recs = [] if diversity >= 0.4 else [
            ADVICE["vocabulary-repetitive"].render(ratio=round(diversity * 100))
        ]

        return build_metric(
            id="vocabulary-diversity",
            name="Vocabulary Diversity",
            score=score,
            max_score=10,
            explanation=f"{len(set(words))} unique of {len(words)} words.",
            recommendations=recs,
            success_message="Varied vocabulary.",
            raw_data={"uniqueRatio": round(diversity, 3)},
        )


# Convenience function for direct usage
async def run_readability_analysis(context: AnalysisContext) -> CanonicalOutput:
    """Run readability analysis on fetched artifacts."""
    return await ReadabilityAnalyzer().run(context)
