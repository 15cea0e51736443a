"""
ISBN wrong syntax (error 69).

Reports ISBN magic links which are not written as "ISBN" followed by a
single space and a valid 10 or 13 digit number.
"""

from __future__ import annotations

from typing import Iterator

from wikilint.analysis import PageAnalysis
from wikilint.checkers.base import Checker
from wikilint.models import Finding


class IsbnSyntaxChecker(Checker):
    """Checker for incorrect ISBNs."""

    CHECKER_ID = 69
    CHECKER_NAME = "isbn_syntax"
    CHECKER_DESCRIPTION = "ISBN wrong syntax"

    def find_errors(self, analysis: PageAnalysis) -> Iterator[Finding]:
        for isbn in analysis.get_isbns():
            if not isbn.is_correct:
                yield self.create_finding(
                    isbn.begin_index,
                    isbn.end_index,
                    message=f"{self.CHECKER_DESCRIPTION}: {isbn.extract(analysis.contents)}",
                )
