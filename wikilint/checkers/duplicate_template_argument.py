"""
Duplicate template argument (error 524).
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from wikilint.analysis import PageAnalysis
from wikilint.checkers.base import Checker
from wikilint.elements import Parameter
from wikilint.models import Finding


class DuplicateTemplateArgumentChecker(Checker):
    """Checker for template parameters given more than once.

    Each repeated parameter is paired with the previous parameter of the same
    computed name, and the finding covers that earlier parameter: from its
    pipe up to the pipe of the parameter following it. Removing the earlier
    parameter is proposed when both values are equal or the earlier value is
    empty; it is never automatic for numeric names, which may come from a
    wrong positional count.
    """

    CHECKER_ID = 524
    CHECKER_NAME = "duplicate_template_argument"
    CHECKER_DESCRIPTION = "Duplicate template argument"

    def find_errors(self, analysis: PageAnalysis) -> Iterator[Finding]:
        for template in analysis.get_templates():
            if template.parameter_count <= 1:
                continue

            names: Dict[str, Parameter] = {}
            for param in template.parameters:
                existing = names.get(param.computed_name)
                names[param.computed_name] = param
                if existing is None:
                    continue

                next_param = template.get_parameter(existing.index + 1)
                finding = self.create_finding(
                    existing.pipe_index,
                    next_param.pipe_index,
                    message=(
                        f"{self.CHECKER_DESCRIPTION}: "
                        f"{param.computed_name} in {template.name}"
                    ),
                )
                automatic = not any(c.isdigit() for c in param.computed_name)
                if existing.value == param.value or existing.value == "":
                    finding.add_replacement("", "Remove duplicate", automatic=automatic)
                yield finding

    def has_special_list(self) -> bool:
        return self.properties.get_property("category") is not None

    def get_special_list(self, provider, limit: int) -> List[str]:
        category = self.properties.get_property("category")
        if category is None:
            return []
        return provider.fetch_category_members(category.strip(), 0, limit)

    def get_parameters(self) -> Dict[str, str]:
        return {
            "category": "A category containing the list of pages in error",
        }
