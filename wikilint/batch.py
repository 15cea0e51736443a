"""
Batch fixing: fetch, analyze, fix and save many pages in parallel.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, Optional, Sequence

from wikilint.checkers.base import Checker
from wikilint.common import format_duration, logger
from wikilint.config import DEFAULT_CONFIG, AnalysisConfig, WikiConfiguration
from wikilint.fixer import run_fix_passes
from wikilint.models import BatchSummary, Page, PageCycleResult
from wikilint.provider import ContentProvider, ContentUnavailable


class BatchFixer:
    """
    Runs page cycles across pages with a bounded thread pool.

    Each page cycle is independent: it builds its own analyses and shares
    only the read-only checkers and the provider with other cycles.
    """

    def __init__(
        self,
        provider: ContentProvider,
        checkers: Sequence[Checker],
        config: Optional[AnalysisConfig] = None,
        wiki: Optional[WikiConfiguration] = None,
    ):
        """
        Initialize the batch fixer.

        Args:
            provider: Access to the wiki
            checkers: Checkers whose automatic fixes are applied
            config: Configuration (workers, passes, edit comment)
            wiki: Wiki configuration, defaults to the configured wiki
        """
        self.provider = provider
        self.checkers = list(checkers)
        self.config = config or DEFAULT_CONFIG
        self.wiki = wiki or self.config.wiki
        self._stop_event = threading.Event()

    def stop(self) -> None:
        """Request the batch to stop; running page cycles finish."""
        logger.info("Stop requested, pending pages will be skipped")
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def process_page(
        self,
        title: str,
        comment: Optional[str] = None,
        bot: bool = False,
        dry_run: bool = False,
    ) -> PageCycleResult:
        """
        Run one page cycle.

        Args:
            title: Page title
            comment: Edit comment, defaults to the configured comment
            bot: Apply bot replacements and flag the edit as a bot edit
            dry_run: Do not save the modified page

        Returns:
            PageCycleResult describing what happened to the page
        """
        if self._stop_event.is_set():
            return PageCycleResult(title=title, status="skipped")

        try:
            contents, revision_id = self.provider.fetch_page_content(title)
        except ContentUnavailable as e:
            logger.warning(f"Skipping {title}: {e}")
            return PageCycleResult(title=title, status="unavailable", error_message=str(e))

        page = Page(
            title=title,
            namespace=self.wiki.get_namespace(title),
            revision_id=revision_id,
        )
        result = run_fix_passes(
            page,
            contents,
            self.checkers,
            wiki=self.wiki,
            bot=bot,
            max_passes=self.config.max_fix_passes,
        )
        if not result.success:
            return PageCycleResult(title=title, status="failed", error_message=result.error)
        if result.modified_content == contents:
            logger.debug(f"{title}: nothing to fix")
            return PageCycleResult(title=title, status="unchanged")

        if dry_run:
            logger.info(f"[dry-run] {title}: {', '.join(result.changes_made)}")
            return PageCycleResult(
                title=title,
                status="dry_run",
                fixed_checkers=result.fixed_checkers,
                changes_made=result.changes_made,
            )

        edit_comment = comment or self.config.edit_comment
        if result.fixed_checkers:
            edit_comment += " (" + ", ".join(str(c) for c in result.fixed_checkers) + ")"
        try:
            self.provider.save_page(title, result.modified_content, edit_comment, bot=bot)
        except ContentUnavailable as e:
            logger.error(f"Failed to save {title}: {e}")
            return PageCycleResult(
                title=title,
                status="failed",
                fixed_checkers=result.fixed_checkers,
                changes_made=result.changes_made,
                error_message=str(e),
            )
        return PageCycleResult(
            title=title,
            status="saved",
            fixed_checkers=result.fixed_checkers,
            changes_made=result.changes_made,
        )

    def run(
        self,
        titles: Iterable[str],
        comment: Optional[str] = None,
        bot: bool = False,
        dry_run: bool = False,
        on_result: Optional[Callable[[PageCycleResult], None]] = None,
    ) -> BatchSummary:
        """
        Run page cycles for all titles in parallel.

        Args:
            titles: Pages to process
            comment: Edit comment
            bot: Use bot replacements and bot edits
            dry_run: Do not save modified pages
            on_result: Called with each page result as it completes

        Returns:
            BatchSummary of the run
        """
        titles = list(dict.fromkeys(titles))
        summary = BatchSummary(total_pages=len(titles))
        start_time = time.time()
        logger.info(
            f"Processing {len(titles)} page(s) with {self.config.max_workers} worker(s)"
            + (" [dry-run]" if dry_run else "")
        )

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                executor.submit(self.process_page, title, comment, bot, dry_run): title
                for title in titles
            }

            for future in as_completed(futures):
                title = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    logger.error(f"Page cycle failed for {title}: {e}")
                    result = PageCycleResult(title=title, status="failed", error_message=str(e))
                summary.add(result)
                if on_result is not None:
                    on_result(result)

        summary.duration_seconds = int(time.time() - start_time)
        logger.info(
            f"Batch complete in {format_duration(summary.duration_seconds)}: "
            f"{summary.pages_saved} modified, {summary.pages_unchanged} unchanged, "
            f"{summary.pages_unavailable} unavailable, {summary.pages_failed} failed, "
            f"{summary.pages_skipped} skipped"
        )
        return summary


def collect_titles(
    provider: ContentProvider,
    checkers: Sequence[Checker],
    limit: int,
) -> List[str]:
    """Collect the pages listed by the checkers having a special list."""
    titles: List[str] = []
    for checker in checkers:
        if not checker.has_special_list():
            continue
        for title in checker.get_special_list(provider, limit):
            if title not in titles:
                titles.append(title)
    return titles[:limit]
