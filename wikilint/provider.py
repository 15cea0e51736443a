"""
Content providers: access to page contents and page lists of a wiki.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import requests

from wikilint.common import logger
from wikilint.config import DEFAULT_CONFIG, NAMESPACE_CATEGORY, AnalysisConfig


class ContentUnavailable(Exception):
    """Raised when a page or a page list cannot be retrieved or saved."""

    def __init__(self, message: str, title: Optional[str] = None):
        super().__init__(message)
        self.title = title


class ContentProvider(ABC):
    """Abstract access to a wiki.

    Every method raises ContentUnavailable on failure and never retries;
    retry policy belongs to the caller.
    """

    @abstractmethod
    def fetch_page_content(self, title: str) -> Tuple[str, Optional[int]]:
        """Get the current wikitext of a page and its revision id."""

    @abstractmethod
    def fetch_category_members(self, category: str, max_depth: int, limit: int) -> List[str]:
        """Get the pages of a category, descending into subcategories up to max_depth."""

    @abstractmethod
    def fetch_pages_linking_to(self, title: str, namespaces: Optional[Sequence[int]] = None) -> List[str]:
        """Get the pages linking to a page."""

    @abstractmethod
    def fetch_embedded_in(self, title: str, namespaces: Optional[Sequence[int]] = None) -> List[str]:
        """Get the pages transcluding a page, usually a template."""

    @abstractmethod
    def fetch_links(self, title: str) -> List[str]:
        """Get the pages a page links to."""

    @abstractmethod
    def fetch_abuse_log(self, filter_id: int, max_days: int) -> List[str]:
        """Get the pages recently hit by an abuse filter."""

    @abstractmethod
    def save_page(self, title: str, new_text: str, comment: str, bot: bool = False) -> Optional[int]:
        """Save new contents for a page and return the new revision id."""


class MediaWikiApiClient(ContentProvider):
    """ContentProvider using the MediaWiki action API (api.php)."""

    def __init__(self, config: Optional[AnalysisConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Configuration (API URL, user agent, timeout)
            session: HTTP session, created when not given
        """
        self.config = config or DEFAULT_CONFIG
        self.api_url = self.config.get_api_url()
        self.timeout = self.config.network_timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})
        self._csrf_token: Optional[str] = None

    # -------------------------------------------------------------------------
    # Low level requests
    # -------------------------------------------------------------------------

    def _request(self, params: Dict[str, Any], post: bool = False) -> Dict[str, Any]:
        """Send one API request and return the decoded response."""
        params = dict(params, format="json", formatversion="2")
        try:
            if post:
                response = self.session.post(self.api_url, data=params, timeout=self.timeout)
            else:
                response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ContentUnavailable(f"Request to {self.api_url} failed: {e}") from e
        except ValueError as e:
            raise ContentUnavailable(f"Invalid response from {self.api_url}: {e}") from e

        if "error" in data:
            error = data["error"]
            raise ContentUnavailable(
                f"API error {error.get('code', 'unknown')}: {error.get('info', '')}"
            )
        for warning in data.get("warnings", {}).values():
            logger.debug(f"API warning: {warning}")
        return data

    def _query(self, params: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """Run a query, following continuation, yielding each "query" block."""
        params = dict(params, action="query")
        continuation: Dict[str, Any] = {}
        while True:
            data = self._request({**params, **continuation})
            if "query" in data:
                yield data["query"]
            if "continue" not in data:
                break
            continuation = data["continue"]

    # -------------------------------------------------------------------------
    # ContentProvider
    # -------------------------------------------------------------------------

    def fetch_page_content(self, title: str) -> Tuple[str, Optional[int]]:
        data = self._request({
            "action": "query",
            "prop": "revisions",
            "titles": title,
            "rvprop": "content|ids",
            "rvslots": "main",
        })
        pages = data.get("query", {}).get("pages", [])
        if not pages or pages[0].get("missing") or pages[0].get("invalid"):
            raise ContentUnavailable(f"Page {title} does not exist", title)
        revisions = pages[0].get("revisions", [])
        if not revisions:
            raise ContentUnavailable(f"Page {title} has no revision", title)
        revision = revisions[0]
        content = revision.get("slots", {}).get("main", {}).get("content")
        if content is None:
            raise ContentUnavailable(f"Contents of {title} are hidden", title)
        return content, revision.get("revid")

    def fetch_category_members(self, category: str, max_depth: int, limit: int) -> List[str]:
        if ":" not in category:
            category = f"{self.config.wiki.category_aliases[0]}:{category}"

        result: List[str] = []
        seen = {category}
        current = [category]
        depth = 0
        while current and len(result) < limit:
            subcategories = []
            for name in current:
                for query in self._query({
                    "list": "categorymembers",
                    "cmtitle": name,
                    "cmprop": "title|ns",
                    "cmlimit": "max",
                }):
                    for member in query.get("categorymembers", []):
                        if member.get("ns") == NAMESPACE_CATEGORY:
                            if member["title"] not in seen:
                                seen.add(member["title"])
                                subcategories.append(member["title"])
                        elif member["title"] not in result:
                            result.append(member["title"])
            logger.debug(f"{category}: {len(result)} page(s) at depth {depth}")
            if depth >= max_depth:
                break
            depth += 1
            current = subcategories
        return result[:limit]

    def fetch_pages_linking_to(self, title: str, namespaces: Optional[Sequence[int]] = None) -> List[str]:
        params = {
            "list": "backlinks",
            "bltitle": title,
            "bllimit": "max",
        }
        if namespaces:
            params["blnamespace"] = "|".join(str(ns) for ns in namespaces)
        result = []
        for query in self._query(params):
            result.extend(link["title"] for link in query.get("backlinks", []))
        return result

    def fetch_embedded_in(self, title: str, namespaces: Optional[Sequence[int]] = None) -> List[str]:
        if ":" not in title:
            title = f"Template:{title}"
        params = {
            "list": "embeddedin",
            "eititle": title,
            "eilimit": "max",
        }
        if namespaces:
            params["einamespace"] = "|".join(str(ns) for ns in namespaces)
        result = []
        for query in self._query(params):
            result.extend(page["title"] for page in query.get("embeddedin", []))
        return result

    def fetch_links(self, title: str) -> List[str]:
        result = []
        for query in self._query({
            "prop": "links",
            "titles": title,
            "pllimit": "max",
        }):
            for page in query.get("pages", []):
                if page.get("missing"):
                    raise ContentUnavailable(f"Page {title} does not exist", title)
                result.extend(link["title"] for link in page.get("links", []))
        return result

    def fetch_abuse_log(self, filter_id: int, max_days: int) -> List[str]:
        oldest = datetime.now(timezone.utc) - timedelta(days=max_days)
        result: List[str] = []
        for query in self._query({
            "list": "abuselog",
            "aflfilter": str(filter_id),
            "aflend": oldest.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "aflprop": "title",
            "afllimit": "max",
        }):
            for entry in query.get("abuselog", []):
                title = entry.get("title")
                if title and title not in result:
                    result.append(title)
        return sorted(result)

    def _get_csrf_token(self) -> str:
        if self._csrf_token is None:
            data = self._request({"action": "query", "meta": "tokens", "type": "csrf"})
            token = data.get("query", {}).get("tokens", {}).get("csrftoken")
            if not token:
                raise ContentUnavailable("Unable to retrieve an edit token")
            self._csrf_token = token
        return self._csrf_token

    def save_page(self, title: str, new_text: str, comment: str, bot: bool = False) -> Optional[int]:
        params = {
            "action": "edit",
            "title": title,
            "text": new_text,
            "summary": comment,
            "nocreate": "1",
            "token": self._get_csrf_token(),
        }
        if bot:
            params["bot"] = "1"
        data = self._request(params, post=True)
        edit = data.get("edit", {})
        if edit.get("result") != "Success":
            raise ContentUnavailable(f"Saving {title} failed: {edit}", title)
        logger.info(f"Saved {title}")
        return edit.get("newrevid")
