"""
Checker registry.

Creates the built-in checkers with their configured properties and gives
thread-safe access to them by numeric identifier.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence, Type

from wikilint.checkers.base import Checker
from wikilint.config import DEFAULT_CONFIG, AnalysisConfig

# Renamed checkers: old identifier -> current identifier
ALIASES: Dict[int, int] = {
    512: 91,
}


class CheckerRegistry:
    """Manages checker instances.

    Provides:
    - Registration of checker classes with their properties
    - Thread-safe lookup by identifier or alias
    - Ordered listing of all checkers
    """

    def __init__(self, config: Optional[AnalysisConfig] = None, register_builtins: bool = True):
        """Initialize the registry.

        Args:
            config: Configuration providing checker properties
            register_builtins: Register the built-in checkers
        """
        self.config = config or DEFAULT_CONFIG
        self._checkers: Dict[int, Checker] = {}
        self._lock = threading.Lock()

        if register_builtins:
            self._register_builtin_checkers()

    def _register_builtin_checkers(self):
        """Register all built-in checkers."""
        from wikilint.checkers.duplicate_template_argument import DuplicateTemplateArgumentChecker
        from wikilint.checkers.incorrect_date_link import IncorrectDateLinkChecker
        from wikilint.checkers.isbn_syntax import IsbnSyntaxChecker
        from wikilint.checkers.wiki_external_link import WikiExternalLinkChecker

        builtin_checkers = [
            IsbnSyntaxChecker,                 # 69
            WikiExternalLinkChecker,           # 91 (512)
            DuplicateTemplateArgumentChecker,  # 524
            IncorrectDateLinkChecker,          # 526
        ]

        for checker_class in builtin_checkers:
            self.register_checker(checker_class)

    def register_checker(self, checker_class: Type[Checker]) -> Checker:
        """Register a checker class, replacing any checker with the same identifier.

        Args:
            checker_class: The checker class to register

        Returns:
            The created checker instance
        """
        properties = self.config.get_checker_properties(checker_class.CHECKER_ID)
        checker = checker_class(properties)
        with self._lock:
            self._checkers[checker.CHECKER_ID] = checker
        return checker

    @staticmethod
    def resolve_id(checker_id: int) -> int:
        """Get the current identifier of a possibly renamed checker."""
        return ALIASES.get(checker_id, checker_id)

    def get_checker(self, checker_id: int) -> Optional[Checker]:
        """Get a checker by identifier or alias.

        Args:
            checker_id: Checker identifier

        Returns:
            Checker instance or None
        """
        with self._lock:
            return self._checkers.get(self.resolve_id(checker_id))

    def get_checkers(self, checker_ids: Sequence[int]) -> List[Checker]:
        """Get several checkers, raising KeyError for unknown identifiers."""
        checkers = []
        for checker_id in checker_ids:
            checker = self.get_checker(checker_id)
            if checker is None:
                raise KeyError(f"Unknown checker: {checker_id}")
            if checker not in checkers:
                checkers.append(checker)
        return checkers

    def get_all_checkers(self) -> List[Checker]:
        """Get all registered checkers ordered by identifier."""
        with self._lock:
            return [self._checkers[i] for i in sorted(self._checkers)]

    def __contains__(self, checker_id: int) -> bool:
        return self.get_checker(checker_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._checkers)
