"""LLM formatting analysis: heading hierarchy, data grouping, layout roles and CTA text."""

import asyncio
import logging
import re
from collections import Counter

from bs4 import BeautifulSoup, Tag

from aeo_audit.analyzers.base import AnalysisContext, BaseAnalyzer, parse_html
from aeo_audit.models import CanonicalOutput, Metric
from aeo_audit.recommendations.rules import LLM_FORMATTING_ADVICE as ADVICE
from aeo_audit.scoring import round_half_up
from aeo_audit.sections import build_metric, build_section, build_subsection

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

LIST_PATTERNS = [
    ("bullet", re.compile(r"^\s*[•◦▪▫‣⁃●○]\s+")),
    ("dash", re.compile(r"^\s*[-*+]\s+")),
    ("numbered", re.compile(r"^\s*\d+[.)]\s+")),
    ("roman numeral", re.compile(r"^\s*[ivxlcdm]+[.)]\s+", re.IGNORECASE)),
    ("lettered", re.compile(r"^\s*[a-z][.)]\s+", re.IGNORECASE)),
]

TABLE_PATTERNS = [
    ("pipe separators", re.compile(r"\s*\|\s*")),
    ("tab separators", re.compile(r"\t+")),
    ("aligned spaces", re.compile(r" {4,}")),
]

MIN_LINE_LENGTH = 10
SEMANTIC_GROUPING_TAGS = ["ul", "ol", "table", "dl"]
BLOCK_TAGS = ["p", "div", "ul", "ol", "table", "dl", "section", "article"]

MAIN_FORBIDDEN_PARENTS = ["article", "aside", "footer", "header", "nav"]
NAV_PATTERN = re.compile(r"\b(?:nav|navbar|navigation|menu)\b|nav-|-nav\b|menu-", re.IGNORECASE)
SIDEBAR_PATTERN = re.compile(r"side-?bar|\baside\b|\bwidget", re.IGNORECASE)

GENERIC_CTA_TERMS = {
    "click here",
    "click",
    "here",
    "read more",
    "learn more",
    "more",
    "more info",
    "see more",
    "view more",
    "details",
    "continue",
    "link",
    "this",
    "go",
}


def detect_simulated_list(text: str) -> dict | None:
    """
    Detect plain-text lines that imitate a list.

    Requires at least two marked lines making up half or more of the
    substantive lines.

    Returns:
        Dict with pattern, confidence and sample, or None
    """
    lines = [line.strip() for line in text.splitlines() if len(line.strip()) > MIN_LINE_LENGTH]
    if len(lines) < 2:
        return None
    for label, pattern in LIST_PATTERNS:
        matches = [line for line in lines if pattern.match(line)]
        if len(matches) >= 2 and len(matches) / len(lines) >= 0.5:
            return {
                "pattern": label,
                "confidence": len(matches) / len(lines),
                "sample": matches[0][:40],
            }
    return None


def detect_simulated_table(text: str) -> dict | None:
    """Detect two or more lines split into columns by pipes, tabs or runs of spaces."""
    lines = [line for line in text.splitlines() if len(line.strip()) > MIN_LINE_LENGTH]
    if len(lines) < 2:
        return None
    for label, separator in TABLE_PATTERNS:
        matches = [
            line
            for line in lines
            if len([cell for cell in separator.split(line.strip().strip("|")) if cell.strip()]) >= 2
        ]
        if len(matches) >= 2:
            return {
                "pattern": label,
                "confidence": len(matches) / len(lines),
                "sample": matches[0].strip()[:40],
            }
    return None


class LLMFormattingAnalyzer(BaseAnalyzer):
    """
    Evaluates how easily a language model can segment the page.

    Checks:
    - Heading hierarchy (single H1, no skipped levels)
    - Lists and tables expressed with semantic markup
    - A single, correctly placed <main> and semantic regions
    - Descriptive link and button text
    """

    category = "llmFormatting"
    title = "LLM Formatting"
    description = "How clearly the markup conveys structure to language models."

    @property
    def name(self) -> str:
        return "llm_formatting"

    async def analyze(self, context: AnalysisContext) -> CanonicalOutput:
        html = context.require_html()
        return await asyncio.to_thread(self.evaluate, html)

    def evaluate(self, html: str) -> CanonicalOutput:
        soup = parse_html(html)

        hierarchy = build_subsection(
            id="content-hierarchy",
            name="Content Hierarchy",
            description="Headings and grouped data that outline the content.",
            max_score=50,
            metrics=[self._check_headings(soup), self._check_data_grouping(soup)],
        )
        layout = build_subsection(
            id="layout-roles",
            name="Layout & Structural Roles",
            description="Landmark elements that separate content from chrome.",
            max_score=30,
            metrics=[self._check_main_content(soup), self._check_semantic_regions(soup)],
        )
        cta = build_subsection(
            id="cta-clarity",
            name="CTA Context Clarity",
            description="Links and buttons that describe their target.",
            max_score=20,
            metrics=[self._check_cta_clarity(soup)],
        )

        return CanonicalOutput(
            category=self.category,
            section=build_section(
                id=self.category,
                name=self.title,
                description=self.description,
                subsections=[hierarchy, layout, cta],
            ),
        )

    def _check_headings(self, soup: BeautifulSoup) -> Metric:
        """Walk headings in document order: H1 uniqueness and level jumps."""
        headings = [
            (int(tag.name[1]), tag.get_text(" ", strip=True))
            for tag in soup.find_all(HEADING_TAGS)
        ]
        h1_texts = [text for level, text in headings if level == 1]
        recs = []

        if not h1_texts:
            h1_points = 0
            recs.append(ADVICE["h1-missing"].render())
        elif len(h1_texts) == 1:
            h1_points = 15
        else:
            h1_points = max(0, 15 - 5 * (len(h1_texts) - 1))
            recs.append(
                ADVICE["h1-multiple"].render(
                    count=len(h1_texts),
                    texts=", ".join(f'"{text[:50]}"' for text in h1_texts[:3]),
                )
            )

        jumps = [
            (current, following)
            for (current, _), (following, _) in zip(headings, headings[1:])
            if following > current + 1
        ]
        sequence_points = max(0, 20 - 5 * len(jumps))
        if jumps:
            first, second = jumps[0]
            recs.append(
                ADVICE["heading-sequence"].render(
                    count=len(jumps), example=f"H{first} followed by H{second}"
                )
            )

        return build_metric(
            id="heading-structure",
            name="Heading Structure",
            score=h1_points + sequence_points,
            max_score=35,
            explanation=f"{len(headings)} headings, {len(h1_texts)} H1, {len(jumps)} skipped level(s).",
            recommendations=recs,
            success_message="One H1 and a heading hierarchy without skipped levels.",
            raw_data={
                "headings": [{"level": level, "text": text[:80]} for level, text in headings[:50]],
                "h1Count": len(h1_texts),
                "levelJumps": len(jumps),
            },
        )

    def _check_data_grouping(self, soup: BeautifulSoup) -> Metric:
        """Penalize text that imitates lists or tables; reward semantic ones."""
        simulated = []
        for element in soup.find_all(["p", "div"]):
            # Leaf text containers only, so nested content is counted once
            if element.find(BLOCK_TAGS):
                continue
            text = element.get_text()
            found = detect_simulated_list(text)
            kind = "list"
            if found is None:
                found = detect_simulated_table(text)
                kind = "table"
            if found:
                simulated.append({"kind": kind, **found})

        semantic = len(soup.find_all(SEMANTIC_GROUPING_TAGS))
        score = 15 - 3 * len(simulated) + min(2, 0.5 * semantic)

        recs = []
        for item in simulated:
            advice = ADVICE["simulated-list" if item["kind"] == "list" else "simulated-table"]
            recs.append(
                advice.render(
                    impact=round_half_up(item["confidence"] * 6),
                    pattern=item["pattern"],
                    sample=item["sample"],
                )
            )

        if simulated:
            success = ""
        elif semantic:
            success = "Grouped data consistently uses semantic lists and tables."
        else:
            success = "No list-like or tabular text needs semantic markup."

        return build_metric(
            id="data-grouping",
            name="Data Grouping",
            score=max(0, score),
            max_score=15,
            explanation=f"{semantic} semantic list/table element(s), {len(simulated)} simulated.",
            recommendations=recs,
            success_message=success,
            raw_data={
                "semanticCount": semantic,
                "simulated": simulated[:10],
                "semanticRatio": round(semantic / (semantic + len(simulated)), 2)
                if semantic + len(simulated)
                else None,
            },
        )

    def _check_main_content(self, soup: BeautifulSoup) -> Metric:
        """Check for exactly one <main> outside sectioning and chrome elements."""
        mains = soup.find_all("main")
        recs = []
        uniqueness = 0
        nesting = 0
        parent_name = None

        if not mains:
            recs.append(ADVICE["main-missing"].render())
        else:
            if len(mains) == 1:
                uniqueness = 10
            else:
                recs.append(ADVICE["main-multiple"].render(count=len(mains)))
            parent = mains[0].find_parent(MAIN_FORBIDDEN_PARENTS)
            if parent is None:
                nesting = 10
            else:
                parent_name = parent.name
                recs.append(ADVICE["main-nested"].render(parent=parent_name))

        return build_metric(
            id="main-content",
            name="Main Content Definition",
            score=uniqueness + nesting,
            max_score=20,
            explanation=f"{len(mains)} <main> element(s).",
            recommendations=recs,
            success_message="A single top-level <main> wraps the primary content.",
            raw_data={"mainCount": len(mains), "nestedIn": parent_name},
        )

    def _check_semantic_regions(self, soup: BeautifulSoup) -> Metric:
        """Find divs that act as nav or sidebar and unlabeled duplicate navs."""
        nav_divs: list[Tag] = []
        sidebar_divs: list[Tag] = []

        for div in soup.find_all("div"):
            identity = " ".join([div.get("id") or "", *div.get("class", [])])
            if not identity.strip():
                continue
            if (
                NAV_PATTERN.search(identity)
                and len(div.find_all("a")) >= 2
                and div.find_parent("nav") is None
                and div.find("nav") is None
            ):
                nav_divs.append(div)
            elif (
                SIDEBAR_PATTERN.search(identity)
                and len(div.get_text(strip=True)) > 20
                and div.find_parent("aside") is None
                and div.find("aside") is None
            ):
                sidebar_divs.append(div)

        navs = soup.find_all("nav")
        unlabeled = [
            nav for nav in navs if not (nav.get("aria-label") or nav.get("aria-labelledby"))
        ]

        score = 10
        recs = []
        if nav_divs:
            score -= 3 * len(nav_divs)
            recs.append(
                ADVICE["div-navigation"].render(count=len(nav_divs), sample=_describe(nav_divs[0]))
            )
        if sidebar_divs:
            score -= 2 * len(sidebar_divs)
            recs.append(
                ADVICE["div-sidebar"].render(
                    count=len(sidebar_divs), sample=_describe(sidebar_divs[0])
                )
            )
        if len(navs) > 1 and unlabeled:
            score -= 5
            recs.append(ADVICE["nav-unlabeled"].render(count=len(unlabeled)))

        return build_metric(
            id="semantic-regions",
            name="Semantic Region Tagging",
            score=max(0, score),
            max_score=10,
            explanation=f"{len(navs)} <nav>, {len(soup.find_all('aside'))} <aside>.",
            recommendations=recs,
            success_message="Navigation and complementary regions use semantic elements.",
            raw_data={
                "navDivs": len(nav_divs),
                "sidebarDivs": len(sidebar_divs),
                "navCount": len(navs),
                "unlabeledNavs": len(unlabeled),
            },
        )

    def _check_cta_clarity(self, soup: BeautifulSoup) -> Metric:
        """Penalize empty and generic link or button text."""
        empty = 0
        generic: Counter = Counter()
        total = 0

        for element in soup.find_all(["a", "button"]):
            total += 1
            text = element.get_text(" ", strip=True)
            if not text:
                image = element.find("img", alt=True)
                text = image["alt"].strip() if image else ""
            aria_label = (element.get("aria-label") or "").strip()

            if len(text) < 2 and len(aria_label) < 10:
                empty += 1
            elif text.lower() in GENERIC_CTA_TERMS and len(aria_label) < 15:
                generic[text.lower()] += 1

        generic_count = sum(generic.values())
        penalty = min(empty * 2, 10) + min(generic_count, 10)

        recs = []
        if empty:
            recs.append(ADVICE["cta-empty"].render(count=empty))
        if generic_count:
            examples = ", ".join(f'"{term}"' for term, _ in generic.most_common(3))
            recs.append(ADVICE["cta-generic"].render(count=generic_count, examples=examples))

        return build_metric(
            id="cta-clarity",
            name="CTA Context Clarity",
            score=max(0, 20 - penalty),
            max_score=20,
            explanation=f"{total} links and buttons, {empty} empty, {generic_count} generic.",
            recommendations=recs,
            success_message="Links and buttons describe their destination or action.",
            raw_data={"total": total, "empty": empty, "generic": dict(generic)},
        )


def _describe(element: Tag) -> str:
    parts = [f"<{element.name}"]
    if element.get("id"):
        parts.append(f' id="{element["id"]}"')
    if element.get("class"):
        parts.append(f' class="{" ".join(element["class"])}"')
    return "".join(parts) + ">"


# Convenience function for direct usage
async def run_llm_formatting_analysis(context: AnalysisContext) -> CanonicalOutput:
    """Run LLM formatting analysis on fetched artifacts."""
    return await LLMFormattingAnalyzer().run(context)
