"""
Unit tests for simulated-structure detection and the LLM formatting analyzer.
"""

import pytest

from aeo_audit.analyzers.llm_formatting import (
    LLMFormattingAnalyzer,
    detect_simulated_list,
    detect_simulated_table,
)
from aeo_audit.recommendations.rules import LLM_FORMATTING_ADVICE
from tests.samples import GOOD_HTML


def metric(section, metric_id):
    for subsection in section.subsections:
        for item in subsection.metrics:
            if item.id == metric_id:
                return item
    raise KeyError(metric_id)


def page(body: str) -> str:
    return f"<html><head><title>t</title></head><body>{body}</body></html>"


class TestSimulatedStructure:
    """Plain-text lists and tables."""

    def test_dash_list(self):
        text = "- Free shipping on all orders\n- Lifetime warranty on tools\n- Expert advice by phone"
        found = detect_simulated_list(text)
        assert found["pattern"] == "dash"
        assert found["confidence"] == 1.0

    def test_numbered_list(self):
        text = "1. Measure the board twice\n2. Mark the cut line\n3. Cut on the waste side"
        assert detect_simulated_list(text)["pattern"] == "numbered"

    def test_prose_is_not_a_list(self):
        text = "We sell tools.\nThey are durable and well made.\nOrder today for fast delivery."
        assert detect_simulated_list(text) is None

    def test_single_marked_line_is_not_a_list(self):
        assert detect_simulated_list("- Only one bullet line here\nAnd a normal sentence follows") is None

    def test_pipe_table(self):
        text = "Tool | Price | Stock\nBlock plane | $89 | 12\nChisel set | $120 | 4"
        found = detect_simulated_table(text)
        assert found["pattern"] == "pipe separators"
        assert found["sample"].startswith("Tool")

    def test_aligned_columns(self):
        text = "Block plane      $89      in stock\nChisel set       $120     backorder"
        assert detect_simulated_table(text)["pattern"] == "aligned spaces"


class TestLLMFormattingAnalyzer:
    """Heading, grouping, layout and CTA checks."""

    @pytest.fixture
    def analyzer(self):
        return LLMFormattingAnalyzer()

    def test_well_structured_page_scores_full_marks(self, analyzer):
        section = analyzer.evaluate(GOOD_HTML).section

        assert section.total_score == 100
        assert [s.id for s in section.subsections] == [
            "content-hierarchy",
            "layout-roles",
            "cta-clarity",
        ]
        assert section.recommendations() == []

    def test_missing_h1_and_skipped_levels(self, analyzer):
        section = analyzer.evaluate(page("<main><h2>Intro</h2><h4>Detail</h4><h6>Fine print</h6></main>")).section
        headings = metric(section, "heading-structure")

        # No H1, two skipped levels
        assert headings.score == 10
        problems = [rec.problem for rec in headings.recommendations]
        assert problems[0] == LLM_FORMATTING_ADVICE["h1-missing"].problem
        assert problems[1] == "Heading levels skip 2 time(s), e.g. H2 followed by H4"

    def test_multiple_h1(self, analyzer):
        section = analyzer.evaluate(page("<main><h1>One</h1><h1>Two</h1><h1>Three</h1></main>")).section
        headings = metric(section, "heading-structure")

        assert headings.score == 25
        assert headings.recommendations[0].problem == 'Page has 3 H1 headings: "One", "Two", "Three"'
        assert headings.recommendations[0].impact == 10

    def test_simulated_list_in_paragraph(self, analyzer):
        body = (
            "<main><h1>Offers</h1><div>\n- Free shipping on all orders\n"
            "- Lifetime warranty on tools\n- Expert advice by phone\n</div></main>"
        )
        grouping = metric(analyzer.evaluate(page(body)).section, "data-grouping")

        assert grouping.score == 12
        assert grouping.raw_data["simulated"][0]["kind"] == "list"
        assert grouping.recommendations[0].problem == (
            "Text imitates a list with dash markers instead of <ul>/<ol>"
        )
        assert grouping.recommendations[0].impact == 6

    def test_main_checks(self, analyzer):
        missing = metric(analyzer.evaluate(page("<h1>x</h1>")).section, "main-content")
        assert missing.score == 0
        assert missing.recommendations[0].problem == LLM_FORMATTING_ADVICE["main-missing"].problem

        nested = metric(
            analyzer.evaluate(page("<article><main><h1>x</h1></main></article>")).section, "main-content"
        )
        assert nested.score == 10
        assert nested.raw_data["nestedIn"] == "article"

        duplicated = metric(
            analyzer.evaluate(page("<main><h1>x</h1></main><main>y</main>")).section, "main-content"
        )
        assert duplicated.score == 10

    def test_div_navigation_and_unlabeled_navs(self, analyzer):
        body = (
            '<div class="main-nav"><a href="/a">Alpha section</a><a href="/b">Beta section</a></div>'
            '<nav><a href="/c">Gamma section</a></nav><nav><a href="/d">Delta section</a></nav>'
            "<main><h1>x</h1></main>"
        )
        regions = metric(analyzer.evaluate(page(body)).section, "semantic-regions")

        # -3 for the div, -5 for unlabeled duplicate navs
        assert regions.score == 2
        assert regions.raw_data["navDivs"] == 1
        assert regions.raw_data["unlabeledNavs"] == 2

    def test_generic_and_empty_ctas(self, analyzer):
        body = (
            "<main><h1>x</h1>"
            '<a href="/1">Click here</a><a href="/2">Read more</a><a href="/3">Read more</a>'
            '<a href="/4"></a><button></button>'
            '<a href="/5" aria-label="Read more about block planes">Read more</a>'
            "</main>"
        )
        cta = metric(analyzer.evaluate(page(body)).section, "cta-clarity")

        # 2 empty (x2) + 3 generic
        assert cta.score == 13
        assert cta.raw_data["empty"] == 2
        assert cta.raw_data["generic"] == {"click here": 1, "read more": 2}

    def test_image_alt_counts_as_link_text(self, analyzer):
        body = '<main><h1>x</h1><a href="/"><img src="logo.png" alt="Acme home page"></a></main>'
        cta = metric(analyzer.evaluate(page(body)).section, "cta-clarity")
        assert cta.score == 20
