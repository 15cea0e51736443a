"""
Page analysis: the lazily built, memoized index of wikitext elements.
"""

from bisect import bisect_right
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from wikilint.common import logger, normalize_title
from wikilint.config import WIKI_MAPPINGS, WikiConfiguration
from wikilint.elements import (
    DETECTORS,
    CategoryLink,
    Comment,
    Detector,
    Element,
    ElementKind,
    ExternalLink,
    InternalLink,
    ISBN,
    Tag,
    Template,
    Title,
)
from wikilint.models import Page


class PageAnalysis:
    """
    Element index over the contents of one page.

    Each construct kind is computed on first request by scanning the contents
    from left to right and memoized for the lifetime of the instance. The
    contents are never modified: fixing a page produces new contents and a
    new analysis.

    Instances share no mutable state, so analyses of different pages can run
    in parallel threads without locking.
    """

    def __init__(
        self,
        page: Page,
        contents: str,
        wiki: Optional[WikiConfiguration] = None,
        detectors: Optional[Mapping[ElementKind, Detector]] = None,
    ):
        """
        Initialize the analysis.

        Args:
            page: Page being analyzed
            contents: Wikitext of the page
            wiki: Wiki configuration used for normalization
            detectors: Detector override per kind (defaults to DETECTORS)
        """
        self._page = page
        self._contents = contents or ""
        self._wiki = wiki or WIKI_MAPPINGS["en"]
        self._detectors = dict(DETECTORS)
        if detectors:
            self._detectors.update(detectors)
        self._elements: Dict[ElementKind, Tuple[Element, ...]] = {}
        self._begin_indexes: Dict[ElementKind, List[int]] = {}
        self._matching_tags: Optional[Dict[int, Tag]] = None

    @property
    def page(self) -> Page:
        return self._page

    @property
    def contents(self) -> str:
        return self._contents

    @property
    def wiki(self) -> WikiConfiguration:
        return self._wiki

    def get_page(self) -> Page:
        """Get the analyzed page."""
        return self._page

    def get_contents(self) -> str:
        """Get the analyzed contents."""
        return self._contents

    # -------------------------------------------------------------------------
    # Element lists
    # -------------------------------------------------------------------------

    def get_elements(self, kind: ElementKind) -> Sequence[Element]:
        """
        Get all elements of a kind, sorted by begin index.

        The list is computed on the first call and the same tuple is returned
        by every later call.
        """
        elements = self._elements.get(kind)
        if elements is None:
            elements = tuple(self._scan(kind))
            self._elements[kind] = elements
            self._begin_indexes[kind] = [e.begin_index for e in elements]
            logger.debug(
                f"{self._page.title}: {len(elements)} {kind.value} element(s)"
            )
        return elements

    def _scan(self, kind: ElementKind) -> List[Element]:
        detector = self._detectors[kind]
        contents = self._contents
        length = len(contents)
        comments = [] if kind == ElementKind.COMMENT else self.get_comments()
        next_comment = 0
        elements = []

        index = 0
        while index < length:
            # Markup inside comments is not indexed
            if next_comment < len(comments):
                comment = comments[next_comment]
                if index >= comment.end_index:
                    next_comment += 1
                    continue
                if index >= comment.begin_index:
                    index = comment.end_index
                    next_comment += 1
                    continue

            element = detector(contents, index, self._wiki)
            if element is None or element.begin_index != index or element.end_index <= index:
                index += 1
                continue
            elements.append(element)
            index = element.end_index

        return elements

    def get_internal_links(self) -> List[InternalLink]:
        return list(self.get_elements(ElementKind.INTERNAL_LINK))

    def get_templates(self, name: Optional[str] = None) -> List[Template]:
        """Get templates, optionally restricted to one template name."""
        templates = self.get_elements(ElementKind.TEMPLATE)
        if name is None:
            return list(templates)
        normalized = normalize_title(name)
        return [t for t in templates if t.normalized_name == normalized]

    def get_external_links(self) -> List[ExternalLink]:
        return list(self.get_elements(ElementKind.EXTERNAL_LINK))

    def get_titles(self) -> List[Title]:
        return list(self.get_elements(ElementKind.TITLE))

    def get_isbns(self) -> List[ISBN]:
        return list(self.get_elements(ElementKind.ISBN))

    def get_tags(self, name: Optional[str] = None) -> List[Tag]:
        """Get tags, optionally restricted to one tag name."""
        tags = self.get_elements(ElementKind.TAG)
        if name is None:
            return list(tags)
        return [t for t in tags if t.name == name.lower()]

    def get_categories(self) -> List[CategoryLink]:
        return list(self.get_elements(ElementKind.CATEGORY))

    def get_comments(self) -> List[Comment]:
        return list(self.get_elements(ElementKind.COMMENT))

    # -------------------------------------------------------------------------
    # Position queries
    # -------------------------------------------------------------------------

    def get_element_at(self, kind: ElementKind, index: int) -> Optional[Element]:
        """Get the element of a kind containing an index."""
        elements = self.get_elements(kind)
        pos = bisect_right(self._begin_indexes[kind], index) - 1
        if pos >= 0 and elements[pos].contains(index):
            return elements[pos]
        return None

    def get_elements_at(self, index: int) -> List[Element]:
        """Get the elements of every kind containing an index."""
        result = []
        for kind in ElementKind:
            element = self.get_element_at(kind, index)
            if element is not None:
                result.append(element)
        return result

    def get_elements_in(self, kind: ElementKind, begin: int, end: int) -> List[Element]:
        """Get the elements of a kind fully inside a span."""
        elements = self.get_elements(kind)
        pos = bisect_right(self._begin_indexes[kind], begin - 1)
        result = []
        while pos < len(elements) and elements[pos].begin_index < end:
            if elements[pos].end_index <= end:
                result.append(elements[pos])
            pos += 1
        return result

    def is_in_comment(self, index: int) -> bool:
        """Check if an index is inside a comment."""
        return self.get_element_at(ElementKind.COMMENT, index) is not None

    def get_surrounding_template(self, index: int) -> Optional[Template]:
        """Get the template containing an index."""
        return self.get_element_at(ElementKind.TEMPLATE, index)

    def get_matching_tag(self, tag: Tag) -> Optional[Tag]:
        """Get the closing tag of an opening tag, or the reverse."""
        if self._matching_tags is None:
            self._matching_tags = self._pair_tags()
        return self._matching_tags.get(tag.begin_index)

    def _pair_tags(self) -> Dict[int, Tag]:
        pairs: Dict[int, Tag] = {}
        open_tags: Dict[str, List[Tag]] = {}
        for tag in self.get_tags():
            if tag.is_full_tag:
                continue
            if tag.is_end_tag:
                stack = open_tags.get(tag.name)
                if stack:
                    opening = stack.pop()
                    pairs[opening.begin_index] = tag
                    pairs[tag.begin_index] = opening
            else:
                open_tags.setdefault(tag.name, []).append(tag)
        return pairs
