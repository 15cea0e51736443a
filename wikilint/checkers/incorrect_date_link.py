"""
Incorrect date link (error 526).

Flags internal links displaying a year while targeting another year, such as
[[1985 in music|1984]].
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from wikilint.analysis import PageAnalysis
from wikilint.checkers.base import Checker
from wikilint.common import are_same_title
from wikilint.elements import InternalLink, create_internal_link
from wikilint.models import ErrorLevel, Finding

# Length bounds of a year
MIN_LENGTH = 3
MAX_LENGTH = 4

# Default age limit of abuse log entries
DEFAULT_MAX_DAYS = 10


def _displayed_year(text: str) -> Optional[int]:
    if MIN_LENGTH <= len(text) <= MAX_LENGTH and text.isdecimal():
        return int(text) or None
    return None


def _is_incorrect_target(target: str, year_displayed: int) -> bool:
    digits = 0
    while digits < len(target) and target[digits].isdecimal():
        digits += 1
    if not MIN_LENGTH <= digits <= MAX_LENGTH:
        return False
    year_linked = int(target[:digits])
    if year_linked == 0 or year_linked == year_displayed:
        return False
    if digits == len(target):
        return True
    if target[digits] != " ":
        return False
    return not any(c.isdecimal() for c in target[digits + 1:])


class IncorrectDateLinkChecker(Checker):
    """Checker for links whose text and target are different years."""

    CHECKER_ID = 526
    CHECKER_NAME = "incorrect_date_link"
    CHECKER_DESCRIPTION = "Incorrect date link"

    def find_errors(self, analysis: PageAnalysis) -> Iterator[Finding]:
        contents = analysis.contents
        for link in analysis.get_internal_links():
            target = link.full_link
            text = link.text
            if not target or text is None or are_same_title(target, text):
                continue
            year_displayed = _displayed_year(text)
            if year_displayed is None or not _is_incorrect_target(target, year_displayed):
                continue

            followed_by_template = (
                link.end_index < len(contents) and contents[link.end_index] == "{"
            )
            finding = self.create_finding(
                link.begin_index,
                link.end_index,
                error_level=ErrorLevel.WARNING if followed_by_template else ErrorLevel.ERROR,
            )
            finding.add_replacement(create_internal_link(target, target))
            finding.add_replacement(create_internal_link(text, text))
            self._add_ask_help(analysis, link, finding)
            yield finding

    def _add_ask_help(self, analysis: PageAnalysis, link: InternalLink, finding: Finding) -> None:
        """Add replacements asking for help after the link."""
        contents = analysis.contents
        page = analysis.page
        target = link.full_link
        original = link.extract(contents)

        first = True
        for element in self.properties.get_property_list("ask_help"):
            pipe_index = element.find("|")
            if pipe_index <= 0:
                continue
            suffix = element[pipe_index + 1:]
            bot_replace = (
                page.is_article
                and page.is_in_main_namespace
                and suffix.startswith("{{")
                and link.end_index < len(contents)
                and contents[link.end_index] != "{"
                and not any(c in target for c in "#()")
            )
            finding.add_replacement(
                original + suffix,
                element[:pipe_index],
                automatic=False,
                automatic_bot=first and bot_replace,
            )
            first = False

    def has_special_list(self) -> bool:
        return (
            self.properties.get_property_int("abuse_filter") is not None
            or self.properties.get_property("dump_analysis") is not None
        )

    def get_special_list(self, provider, limit: int) -> List[str]:
        result: List[str] = []

        abuse_filter = self.properties.get_property_int("abuse_filter")
        if abuse_filter is not None:
            max_days = self.properties.get_property_int("max_days") or DEFAULT_MAX_DAYS
            result.extend(provider.fetch_abuse_log(abuse_filter, max_days))

        dump_analysis = self.properties.get_property("dump_analysis")
        if dump_analysis is not None:
            result.extend(provider.fetch_links(dump_analysis.strip()))

        result.sort()
        return result[:limit]

    def get_parameters(self) -> Dict[str, str]:
        return {
            "abuse_filter": "An identifier of an abuse filter that is triggered by incorrect year links",
            "ask_help": "Text added after the link to ask for help",
            "dump_analysis": "A page containing a dump analysis for this error",
            "max_days": "Maximum age in days of the abuse log entries",
        }
