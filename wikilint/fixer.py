"""
Fix application: rewrite page contents from accepted findings.
"""

from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from wikilint.analysis import PageAnalysis
from wikilint.common import logger
from wikilint.config import WikiConfiguration
from wikilint.models import Finding, FixResult, Page, TextEdit

if TYPE_CHECKING:
    from wikilint.checkers.base import Checker


def apply_replacements(contents: str, edits: Iterable[TextEdit]) -> str:
    """
    Apply edits to contents and return the new contents.

    Edits are applied by descending begin index so that the offsets of the
    edits not yet applied stay valid. An edit overlapping an edit already
    applied is skipped.

    Args:
        contents: Original contents (left untouched)
        edits: Edits with spans relative to the original contents

    Returns:
        New contents
    """
    ordered = sorted(edits, key=lambda e: (e.begin_index, e.end_index), reverse=True)
    parts: List[str] = []
    last_begin = len(contents)

    for edit in ordered:
        if edit.begin_index < 0 or edit.end_index > len(contents) or edit.begin_index > edit.end_index:
            logger.warning(f"Ignoring edit with invalid span {edit.begin_index}-{edit.end_index}")
            continue
        if edit.end_index > last_begin:
            logger.warning(
                f"Ignoring edit {edit.begin_index}-{edit.end_index} overlapping an applied edit"
            )
            continue
        parts.append(contents[edit.end_index:last_begin])
        parts.append(edit.text)
        last_begin = edit.begin_index

    parts.append(contents[:last_begin])
    return "".join(reversed(parts))


def select_automatic_edits(findings: Sequence[Finding], bot: bool = False) -> List[TextEdit]:
    """Select the first automatic (or bot) replacement of each finding."""
    edits = []
    for finding in findings:
        replacement = finding.get_automatic_replacement(bot=bot)
        if replacement is not None:
            edits.append(TextEdit.from_finding(finding, replacement))
    return edits


def fix_with_checker(analysis: PageAnalysis, checker: "Checker", bot: bool = False) -> FixResult:
    """
    Apply the automatic replacements proposed by one checker.

    Args:
        analysis: Analysis of the current contents
        checker: Checker providing the findings
        bot: Use replacements safe for unattended bot editing

    Returns:
        FixResult with the new contents
    """
    findings: List[Finding] = []
    try:
        checker.analyze(analysis, findings, only_automatic=not bot)
    except Exception as e:
        checker.logger.error(f"Analysis of {analysis.page.title} failed: {e}")
        return FixResult(success=False, modified_content=analysis.contents, error=str(e))

    edits = select_automatic_edits(findings, bot=bot)
    if not edits:
        return FixResult(success=True, modified_content=analysis.contents)

    new_contents = apply_replacements(analysis.contents, edits)
    changes = []
    if new_contents != analysis.contents:
        changes.append(f"{checker.CHECKER_NAME}: {len(edits)} replacement(s)")
    return FixResult(
        success=True,
        modified_content=new_contents,
        changes_made=changes,
        fixed_checkers=[checker.CHECKER_ID] if changes else [],
    )


def run_fix_passes(
    page: Page,
    contents: str,
    checkers: Sequence["Checker"],
    wiki: Optional[WikiConfiguration] = None,
    bot: bool = False,
    max_passes: int = 3,
) -> FixResult:
    """
    Fix contents with several checkers until they are stable.

    Every checker runs on a fresh analysis of the latest contents; a pass
    ends when all checkers have run, and passes repeat until a pass changes
    nothing or max_passes is reached.
    """
    current = contents
    changes: List[str] = []
    fixed_checkers: List[int] = []

    for pass_number in range(1, max_passes + 1):
        pass_changed = False
        for checker in checkers:
            analysis = PageAnalysis(page, current, wiki)
            result = fix_with_checker(analysis, checker, bot=bot)
            if not result.success:
                return FixResult(
                    success=False,
                    modified_content=current,
                    changes_made=changes,
                    fixed_checkers=fixed_checkers,
                    error=result.error,
                )
            if result.modified_content != current:
                current = result.modified_content
                changes.extend(result.changes_made)
                for checker_id in result.fixed_checkers:
                    if checker_id not in fixed_checkers:
                        fixed_checkers.append(checker_id)
                pass_changed = True
        logger.debug(f"{page.title}: fix pass {pass_number} changed={pass_changed}")
        if not pass_changed:
            break

    return FixResult(
        success=True,
        modified_content=current,
        changes_made=changes,
        fixed_checkers=fixed_checkers,
    )
