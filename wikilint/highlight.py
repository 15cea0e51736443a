"""
Rich rendering of analyzed wikitext.
"""

from typing import Dict, Iterable, Optional

from rich.text import Text

from wikilint.analysis import PageAnalysis
from wikilint.elements import ElementKind
from wikilint.models import ErrorLevel, Finding

# Styles per element kind
ELEMENT_STYLES: Dict[ElementKind, str] = {
    ElementKind.INTERNAL_LINK: "bold blue",
    ElementKind.TEMPLATE: "bold blue",
    ElementKind.EXTERNAL_LINK: "rgb(128,128,255)",
    ElementKind.TITLE: "bold",
    ElementKind.CATEGORY: "bold cyan",
    ElementKind.TAG: "magenta",
    ElementKind.ISBN: "green",
    ElementKind.COMMENT: "dim",
}

# Styles per finding level, applied over element styles
FINDING_STYLES: Dict[ErrorLevel, str] = {
    ErrorLevel.ERROR: "bold red reverse",
    ErrorLevel.WARNING: "bold dark_orange reverse",
    ErrorLevel.CORRECT: "bold green",
}


def highlight(
    analysis: PageAnalysis,
    findings: Optional[Iterable[Finding]] = None,
    kinds: Optional[Iterable[ElementKind]] = None,
) -> Text:
    """
    Build a styled rendering of the analyzed contents.

    Args:
        analysis: Page analysis
        findings: Findings to emphasize
        kinds: Element kinds to style (default: all)

    Returns:
        Rich Text of the contents
    """
    text = Text(analysis.contents)
    for kind in ELEMENT_STYLES if kinds is None else kinds:
        style = ELEMENT_STYLES.get(kind)
        if not style:
            continue
        for element in analysis.get_elements(kind):
            text.stylize(style, element.begin_index, element.end_index)

    # Less severe first so that errors win on overlaps
    for finding in sorted(findings or [], key=lambda f: f.error_level.rank):
        if finding.end_index > finding.begin_index:
            text.stylize(FINDING_STYLES[finding.error_level], finding.begin_index, finding.end_index)
    return text
