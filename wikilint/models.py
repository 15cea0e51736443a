"""
Data models for the wikilint solution using Pydantic for validation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from wikilint.config import NAMESPACE_MAIN


class ErrorLevel(str, Enum):
    """Severity of a finding."""
    CORRECT = "correct"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return {"correct": 0, "warning": 1, "error": 2}[self.value]


class Page(BaseModel):
    """A wiki page identity: title, namespace and revision."""
    title: str
    namespace: int = NAMESPACE_MAIN
    revision_id: Optional[int] = None

    @property
    def is_article(self) -> bool:
        """Check if the page is a content page (not a talk page)."""
        return self.namespace >= 0 and self.namespace % 2 == 0

    @property
    def is_in_main_namespace(self) -> bool:
        """Check if the page is in the main namespace."""
        return self.namespace == NAMESPACE_MAIN


class Replacement(BaseModel):
    """A candidate replacement text for a finding."""
    text: str
    description: Optional[str] = None
    automatic: bool = False
    automatic_bot: bool = False

    @property
    def label(self) -> str:
        """Text shown to a user choosing between replacements."""
        if self.description:
            return self.description
        return self.text if self.text else "(remove)"


class Finding(BaseModel):
    """A rule violation reported by a checker over a span of the contents."""
    checker_id: int
    begin_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    error_level: ErrorLevel = ErrorLevel.ERROR
    replacements: List[Replacement] = Field(default_factory=list)
    message: str = ""

    @model_validator(mode="after")
    def check_span(self) -> "Finding":
        """Validate that the span is not reversed."""
        if self.begin_index > self.end_index:
            raise ValueError(
                f"Invalid span: begin {self.begin_index} > end {self.end_index}"
            )
        return self

    def add_replacement(
        self,
        text: str,
        description: Optional[str] = None,
        automatic: bool = False,
        automatic_bot: bool = False,
    ) -> None:
        """Add a replacement, ignoring duplicated texts."""
        if any(r.text == text for r in self.replacements):
            return
        self.replacements.append(Replacement(
            text=text,
            description=description,
            automatic=automatic,
            automatic_bot=automatic_bot,
        ))

    @property
    def is_automatic(self) -> bool:
        """Check if at least one replacement is safe for automatic fixing."""
        return any(r.automatic for r in self.replacements)

    @property
    def is_automatic_bot(self) -> bool:
        """Check if at least one replacement is safe for bot fixing."""
        return any(r.automatic_bot for r in self.replacements)

    def get_automatic_replacement(self, bot: bool = False) -> Optional[Replacement]:
        """
        Get the replacement to apply without user confirmation.

        Bot fixing prefers the first bot replacement and falls back to the
        first automatic one.
        """
        if bot:
            for replacement in self.replacements:
                if replacement.automatic_bot:
                    return replacement
        for replacement in self.replacements:
            if replacement.automatic:
                return replacement
        return None

    @property
    def span(self) -> tuple:
        """Half-open span of the finding."""
        return (self.begin_index, self.end_index)


@dataclass(frozen=True)
class TextEdit:
    """One accepted replacement of a span by a new text."""
    begin_index: int
    end_index: int
    text: str

    @classmethod
    def from_finding(cls, finding: Finding, replacement: Replacement) -> "TextEdit":
        """Create an edit from a finding and its chosen replacement."""
        return cls(finding.begin_index, finding.end_index, replacement.text)


@dataclass
class FixResult:
    """Result of applying fixes to page contents."""
    success: bool
    modified_content: Optional[str] = None
    changes_made: List[str] = field(default_factory=list)
    fixed_checkers: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        """Check if the contents were modified."""
        return bool(self.changes_made)


@dataclass
class PageCycleResult:
    """Result of one fetch-analyze-fix-save cycle in a batch."""
    title: str
    status: str  # "saved", "unchanged", "dry_run", "unavailable", "failed", "skipped"
    fixed_checkers: List[int] = field(default_factory=list)
    changes_made: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def modified(self) -> bool:
        """Check if the page was (or would have been) modified."""
        return self.status in ("saved", "dry_run")


@dataclass
class BatchSummary:
    """Summary of a batch run across pages."""
    total_pages: int = 0
    pages_saved: int = 0
    pages_unchanged: int = 0
    pages_unavailable: int = 0
    pages_failed: int = 0
    pages_skipped: int = 0
    duration_seconds: int = 0
    results: List[PageCycleResult] = field(default_factory=list)

    def add(self, result: PageCycleResult) -> None:
        """Account for one page result."""
        self.results.append(result)
        if result.status in ("saved", "dry_run"):
            self.pages_saved += 1
        elif result.status == "unchanged":
            self.pages_unchanged += 1
        elif result.status == "unavailable":
            self.pages_unavailable += 1
        elif result.status == "skipped":
            self.pages_skipped += 1
        else:
            self.pages_failed += 1
