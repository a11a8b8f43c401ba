"""Base analyzer interface."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from bs4 import BeautifulSoup

from aeo_audit.config import settings
from aeo_audit.errors import AnalyzerFault
from aeo_audit.models import AnalyzerOutput, CanonicalOutput, FetchBundle
from aeo_audit.sections import error_section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisContext:
    """Everything an analyzer may look at for one audit."""

    url: str
    bundle: FetchBundle

    @property
    def html(self) -> str | None:
        return self.bundle.html.content if self.bundle.html.success else None

    def require_html(self) -> str:
        """Return the page HTML or raise AnalyzerFault if it was not fetched."""
        if not self.html:
            reason = self.bundle.html.error or "empty response"
            raise AnalyzerFault(f"HTML content unavailable: {reason}")
        return self.html


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class BaseAnalyzer(ABC):
    """
    Abstract base class for all analyzers.

    Subclasses implement `analyze`. Callers use `run`, which never raises:
    any failure becomes an error section flagged with `error`.
    """

    category: str = ""
    title: str = ""
    description: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return analyzer name."""
        pass

    @abstractmethod
    async def analyze(self, context: AnalysisContext) -> AnalyzerOutput:
        """
        Run analysis on the fetched artifacts.

        Args:
            context: The page URL and its fetched resources

        Returns:
            Canonical or legacy analyzer output
        """
        pass

    async def run(self, context: AnalysisContext, timeout: float | None = None) -> AnalyzerOutput:
        """Run `analyze`, containing timeouts and faults as an error output."""
        limit = timeout if timeout is not None else settings.analyzer_timeout
        try:
            return await asyncio.wait_for(self.analyze(context), limit)
        except asyncio.TimeoutError:
            message = f"{self.title} analysis timed out after {limit:g}s"
            logger.error(f"{self.name} timed out for {context.url}")
        except AnalyzerFault as e:
            message = f"{self.title} analysis failed: {e}"
            logger.warning(f"{self.name} could not analyze {context.url}: {e}")
        except Exception as e:
            message = f"{self.title} analysis failed: {e}"
            logger.exception(f"{self.name} analysis failed for {context.url}: {e}")

        return self.error_output(message)

    def error_output(self, message: str) -> CanonicalOutput:
        return CanonicalOutput(
            category=self.category,
            section=error_section(self.category, self.title, message, self.description),
            error=message,
        )
