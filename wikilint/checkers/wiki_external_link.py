"""
Wiki link written as external link (error 91, formerly 512).
"""

from __future__ import annotations

from typing import Iterator, Optional
from urllib.parse import unquote, urlsplit

from wikilint.analysis import PageAnalysis
from wikilint.checkers.base import Checker
from wikilint.common import normalize_title
from wikilint.config import WikiConfiguration, find_wiki_by_host
from wikilint.elements import ExternalLink, create_internal_link
from wikilint.models import Finding


def _project_domain(wiki: WikiConfiguration) -> str:
    """Domain shared by all language editions of a project (wikipedia.org)."""
    host = wiki.hosts[0]
    return host.split(".", 1)[1] if "." in host else host


class WikiExternalLinkChecker(Checker):
    """Checker for external links pointing to an article of a known wiki.

    Such links are better written as internal links, or as interwiki links
    when the target is another language edition of the same project.
    """

    CHECKER_ID = 91
    CHECKER_NAME = "wiki_external_link"
    CHECKER_DESCRIPTION = "Wiki link written as external link"

    def find_errors(self, analysis: PageAnalysis) -> Iterator[Finding]:
        for link in analysis.get_external_links():
            url = link.url
            if url.startswith("//"):
                url = "https:" + url
            parts = urlsplit(url)
            if not parts.hostname:
                continue
            target_wiki = find_wiki_by_host(parts.hostname)
            if target_wiki is None or not parts.path.startswith(target_wiki.article_path):
                continue
            title = unquote(parts.path[len(target_wiki.article_path):])
            title = normalize_title(title, target_wiki.case_sensitive)
            if not title:
                continue

            finding = self.create_finding(
                link.begin_index,
                link.end_index,
                message=f"{self.CHECKER_DESCRIPTION}: {title}",
            )
            replacement = self._build_link(analysis.wiki, target_wiki, title, parts.fragment, link)
            if replacement is not None:
                automatic = link.has_brackets and not parts.query and not parts.fragment
                finding.add_replacement(replacement, automatic=automatic)
            yield finding

    def _build_link(
        self,
        wiki: WikiConfiguration,
        target_wiki: WikiConfiguration,
        title: str,
        fragment: str,
        link: ExternalLink,
    ) -> Optional[str]:
        """Build the internal or interwiki link equivalent to an external link."""
        target = title
        if fragment:
            target = f"{title}#{unquote(fragment).replace('_', ' ')}"

        if target_wiki.hosts == wiki.hosts:
            return create_internal_link(target, link.text)
        if _project_domain(target_wiki) != _project_domain(wiki):
            return None
        interwiki = f":{target_wiki.code}:{target}"
        return create_internal_link(interwiki, link.text or target)
