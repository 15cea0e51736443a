"""
Base checker class.

A checker is a read-only consumer of a PageAnalysis: it queries element
lists and reports findings. Checkers keep no state between calls, so one
instance can analyze many pages, including from several threads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from wikilint.analysis import PageAnalysis
from wikilint.config import CheckerProperties
from wikilint.fixer import fix_with_checker
from wikilint.models import ErrorLevel, Finding

if TYPE_CHECKING:
    from wikilint.provider import ContentProvider


class Checker(ABC):
    """Abstract base class for all checkers.

    Subclasses implement find_errors() as a generator; analyze() drives it
    and stops consuming it as soon as the caller only needs to know whether
    an error exists.
    """

    CHECKER_ID: int = 0
    CHECKER_NAME: str = "base"
    CHECKER_DESCRIPTION: str = "Base checker"

    def __init__(self, properties: Optional[CheckerProperties] = None):
        """Initialize checker with its configuration."""
        self.properties = properties or CheckerProperties()
        self.logger = logging.getLogger(f"wikilint.checkers.{self.CHECKER_NAME}")

    @abstractmethod
    def find_errors(self, analysis: PageAnalysis) -> Iterator[Finding]:
        """Yield the findings of the page, in order of appearance."""

    def analyze(
        self,
        analysis: PageAnalysis,
        findings: Optional[List[Finding]] = None,
        only_automatic: bool = False,
    ) -> bool:
        """
        Analyze a page to check if errors are present.

        Args:
            analysis: Page analysis
            findings: List receiving the findings, or None to only check
                whether at least one error is present
            only_automatic: Restrict to findings with an automatic replacement

        Returns:
            True if at least one (qualifying) error was found
        """
        if analysis is None or analysis.page is None:
            return False

        result = False
        for finding in self.find_errors(analysis):
            if only_automatic and not finding.is_automatic:
                continue
            if findings is None:
                return True
            result = True
            findings.append(finding)
        return result

    def create_finding(
        self,
        begin_index: int,
        end_index: int,
        error_level: ErrorLevel = ErrorLevel.ERROR,
        message: str = "",
    ) -> Finding:
        """Create a finding for this checker."""
        return Finding(
            checker_id=self.CHECKER_ID,
            begin_index=begin_index,
            end_index=end_index,
            error_level=error_level,
            message=message or self.CHECKER_DESCRIPTION,
        )

    def automatic_fix(self, analysis: PageAnalysis) -> str:
        """Get the page contents after automatic fixing."""
        return fix_with_checker(analysis, self).modified_content

    def bot_fix(self, analysis: PageAnalysis) -> str:
        """Get the page contents after bot fixing."""
        return fix_with_checker(analysis, self, bot=True).modified_content

    def has_special_list(self) -> bool:
        """Check if the checker can list the pages in error by itself."""
        return False

    def get_special_list(self, provider: "ContentProvider", limit: int) -> List[str]:
        """Retrieve the titles of pages in error."""
        return []

    def get_parameters(self) -> Dict[str, str]:
        """Get the properties understood by the checker (name -> description)."""
        return {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.CHECKER_ID}: {self.CHECKER_NAME}>"
