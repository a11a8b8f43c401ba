"""
Unit tests for the accessibility checks and analyzer.
"""

import asyncio

import pytest

from aeo_audit.analyzers.accessibility import (
    AccessibilityAnalyzer,
    audit_images,
    availability_ratio,
    compare_dom,
    threshold_score,
)
from aeo_audit.errors import AnalyzerFault, ExternalServiceError
from aeo_audit.models import LegacyComponent, LegacyOutput
from aeo_audit.normalizer import legacy_total, normalize
from tests.samples import GOOD_HTML, PAGE_URL, FakePageSpeed, FakeRenderer, error_result

CLIENT_RENDERED_SHELL = '<html><body><div id="root"></div><script src="/app.js"></script></body></html>'

IMAGES_HALF_DESCRIBED = (
    '<img src="a.jpg" alt="A chisel">'
    '<img src="b.jpg">'
    '<img src="c.jpg" alt="">'
    '<img src="spacer.gif" role="presentation">'
)


class TestCriticalDom:
    """Static versus rendered DOM comparison."""

    def test_availability_ratio(self):
        assert availability_ratio(0, 0) == 100.0
        assert availability_ratio(50, 100) == 50.0
        assert availability_ratio(150, 100) == 100.0

    def test_threshold_score(self):
        thresholds = (80, 60, 40)
        assert threshold_score(80, thresholds) == 100
        assert threshold_score(79.9, thresholds) == 75
        assert threshold_score(40, thresholds) == 50
        assert threshold_score(10, thresholds) == 25

    def test_server_rendered_page(self):
        component = compare_dom(GOOD_HTML, GOOD_HTML)

        assert component.score == 100
        assert component.problems == []
        assert component.raw_data["ratios"] == {"content": 100.0, "navigation": 100.0, "semantic": 100.0}

    def test_client_rendered_page(self):
        component = compare_dom(CLIENT_RENDERED_SHELL, GOOD_HTML)

        assert component.score == 25
        assert len(component.problems) == 3
        assert len(component.solutions) == 3
        assert "<main>" in component.solutions[2]
        assert component.raw_data["static"]["navigation"] == 0


class TestImages:
    def test_no_images(self):
        assert audit_images("<html><body><p>text</p></body></html>").score == 100

    def test_missing_alt_and_lazy_loading(self):
        component = audit_images(IMAGES_HALF_DESCRIBED)

        # 2 of 4 images lack alt text; none are lazy
        assert component.score == 50
        assert component.raw_data["missingAlt"] == 2
        assert component.raw_data["decorative"] == 1
        assert component.problems == [
            "2 of 4 images have no alt text",
            "Only 0 of 4 images are lazy-loaded",
        ]

    def test_lazy_bonus_is_capped(self):
        html = '<img src="a.jpg" alt="A" loading="lazy"><img src="b.jpg" alt="B" loading="lazy">'
        assert audit_images(html).score == 100


class TestFlatScore:
    """The flat score always equals the normalized section total."""

    @pytest.mark.asyncio
    async def test_matches_per_subsection_rounding(self, make_context):
        page = f"<html><body><main><p>Tools.</p>{IMAGES_HALF_DESCRIBED}</main></body></html>"
        analyzer = AccessibilityAnalyzer(renderer=FakeRenderer(page), pagespeed=FakePageSpeed(90))
        output = await analyzer.run(make_context(html=page))

        # 40 + round(31.5) + round(12.5) = 85; a plain weighted mean would give 84
        assert output.score == 85
        assert normalize(output).total_score == 85

    def test_reweighted_breakdown(self):
        output = LegacyOutput(
            category="accessibility",
            breakdown={
                "criticalDOM": LegacyComponent(score=80),
                "performance": LegacyComponent(available=False),
                "images": LegacyComponent(score=100),
            },
        )
        # Maxima 62/0/38: 49.6 rounds to 50, plus 38
        assert legacy_total(output) == 88

    def test_nothing_available(self):
        output = LegacyOutput(
            category="accessibility",
            breakdown={"images": LegacyComponent(available=False)},
        )
        with pytest.raises(AnalyzerFault):
            legacy_total(output)


class TestAccessibilityAnalyzer:
    """Concurrent checks with optional external services."""

    @pytest.mark.asyncio
    async def test_all_checks_available(self, make_context):
        analyzer = AccessibilityAnalyzer(renderer=FakeRenderer(), pagespeed=FakePageSpeed(90))
        output = await analyzer.run(make_context())

        assert isinstance(output, LegacyOutput)
        # 40 + round(31.5) + 25
        assert output.score == 97
        assert output.raw_data["completedChecks"] == ["criticalDOM", "performance", "images"]

        section = normalize(output, weight_percentage=15)
        assert section.total_score == 97
        assert [s.max_score for s in section.subsections] == [40, 35, 25]
        assert section.weight_percentage == 15

    @pytest.mark.asyncio
    async def test_missing_services_drop_out(self, make_context):
        output = await AccessibilityAnalyzer().run(make_context())

        assert isinstance(output, LegacyOutput)
        assert output.breakdown["criticalDOM"].available is False
        assert output.breakdown["performance"].available is False
        assert output.score == 100

        section = normalize(output)
        assert [s.max_score for s in section.subsections] == [0, 0, 100]
        assert section.total_score == 100
        unavailable = section.subsections[0].metrics[0]
        assert unavailable.recommendations[0].impact == 3
        assert "Rendering backend not configured" in unavailable.recommendations[0].problem

    @pytest.mark.asyncio
    async def test_renderer_failure_is_contained(self, make_context):
        renderer = FakeRenderer(error=ExternalServiceError("Rendering failed: browser crashed"))
        analyzer = AccessibilityAnalyzer(renderer=renderer, pagespeed=FakePageSpeed(40))
        output = await analyzer.run(make_context())

        assert output.breakdown["criticalDOM"].available is False
        assert output.breakdown["performance"].problems == ["Page performance score is 40/100"]
        assert renderer.calls == [PAGE_URL]

    @pytest.mark.asyncio
    async def test_slow_render_times_out(self, make_context):
        class SlowRenderer:
            async def render(self, url):
                await asyncio.sleep(5)
                return ""

        analyzer = AccessibilityAnalyzer(renderer=SlowRenderer(), render_timeout=0.05)
        output = await analyzer.run(make_context())

        assert "timed out" in output.breakdown["criticalDOM"].details

    @pytest.mark.asyncio
    async def test_missing_html_is_an_error(self, make_context):
        output = await AccessibilityAnalyzer().run(make_context(html=error_result(PAGE_URL)))

        assert output.error is not None
        assert output.section.total_score == 0
        assert output.section.error is not None

    @pytest.mark.asyncio
    async def test_client_rendered_shell(self, make_context):
        analyzer = AccessibilityAnalyzer(renderer=FakeRenderer(GOOD_HTML))
        output = await analyzer.run(make_context(html=CLIENT_RENDERED_SHELL))

        assert output.breakdown["criticalDOM"].score == 25
