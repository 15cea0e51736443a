"""
wikilint - Wikitext structural analysis and automatic fixing.

This package provides tools for:
- Scanning wikitext into links, templates, titles, tags and other elements
- Checking pages against numbered syntax rules
- Applying the replacements safe for automatic or bot fixing
- Fixing many pages of a MediaWiki wiki in parallel
"""

__version__ = "1.0.0"
__author__ = "wikilint contributors"

from wikilint.config import AnalysisConfig, WikiConfiguration, SUPPORTED_WIKIS
from wikilint.models import (
    ErrorLevel,
    Finding,
    FixResult,
    Page,
    Replacement,
)
from wikilint.elements import ElementKind
from wikilint.analysis import PageAnalysis

__all__ = [
    "__version__",
    "AnalysisConfig",
    "WikiConfiguration",
    "SUPPORTED_WIKIS",
    "ErrorLevel",
    "Finding",
    "FixResult",
    "Page",
    "Replacement",
    "ElementKind",
    "PageAnalysis",
]
