"""
wikilint checkers.

Each checker reports one kind of wikitext error over a PageAnalysis and may
propose replacements, some of them safe for automatic fixing.
"""

from wikilint.checkers.base import Checker
from wikilint.checkers.duplicate_template_argument import DuplicateTemplateArgumentChecker
from wikilint.checkers.incorrect_date_link import IncorrectDateLinkChecker
from wikilint.checkers.isbn_syntax import IsbnSyntaxChecker
from wikilint.checkers.registry import ALIASES, CheckerRegistry
from wikilint.checkers.wiki_external_link import WikiExternalLinkChecker

__all__ = [
    "Checker",
    "CheckerRegistry",
    "ALIASES",
    "IsbnSyntaxChecker",
    "WikiExternalLinkChecker",
    "DuplicateTemplateArgumentChecker",
    "IncorrectDateLinkChecker",
]
