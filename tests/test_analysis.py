"""Tests for analysis module."""

import pytest

from wikilint.analysis import PageAnalysis
from wikilint.config import WIKI_MAPPINGS
from wikilint.elements import ElementKind, InternalLink, detect_internal_link
from wikilint.models import Page


@pytest.fixture
def page():
    """Main namespace test page."""
    return Page(title="Test page")


def make_analysis(contents, page=None, **kwargs):
    return PageAnalysis(page or Page(title="Test page"), contents, **kwargs)


class TestElementIndex:
    """Tests for the lazy element index."""

    def test_accessors(self, page):
        """Test page, contents and wiki accessors."""
        analysis = PageAnalysis(page, "text")
        assert analysis.page is page
        assert analysis.get_page() is page
        assert analysis.contents == "text"
        assert analysis.get_contents() == "text"
        assert analysis.wiki is WIKI_MAPPINGS["en"]

    def test_elements_in_order(self):
        """Test elements are sorted by begin index."""
        analysis = make_analysis("[[A]] text [[B|b]] and [[C#x]]")
        links = analysis.get_internal_links()
        assert [link.link for link in links] == ["A", "B", "C"]
        assert [link.begin_index for link in links] == [0, 11, 23]

    def test_memoized_identity(self):
        """Test repeated requests return the same list object."""
        analysis = make_analysis("{{T|a}} [[A]]")
        first = analysis.get_elements(ElementKind.TEMPLATE)
        second = analysis.get_elements(ElementKind.TEMPLATE)
        assert first is second

    def test_detector_called_once_per_position(self):
        """Test the contents are scanned only on the first request."""
        calls = []

        def counting_detector(contents, index, wiki=None):
            calls.append(index)
            return detect_internal_link(contents, index, wiki)

        analysis = make_analysis(
            "a [[B]] c", detectors={ElementKind.INTERNAL_LINK: counting_detector}
        )
        links = analysis.get_elements(ElementKind.INTERNAL_LINK)
        count = len(calls)
        assert len(links) == 1
        assert count > 0

        analysis.get_elements(ElementKind.INTERNAL_LINK)
        analysis.get_internal_links()
        assert len(calls) == count

    def test_scan_skips_consumed_positions(self):
        """Test the detector is not called inside a detected element."""
        calls = []

        def counting_detector(contents, index, wiki=None):
            calls.append(index)
            return detect_internal_link(contents, index, wiki)

        analysis = make_analysis("[[Foo]]x", detectors={ElementKind.INTERNAL_LINK: counting_detector})
        analysis.get_elements(ElementKind.INTERNAL_LINK)
        assert calls == [0, 7]

    def test_zero_length_elements_rejected(self):
        """Test elements without length never stop the scan."""
        def empty_detector(contents, index, wiki=None):
            return InternalLink(index, index, "x")

        analysis = make_analysis("abc", detectors={ElementKind.INTERNAL_LINK: empty_detector})
        assert analysis.get_internal_links() == []

    def test_misplaced_elements_rejected(self):
        """Test elements not starting at the scanned index are ignored."""
        def shifted_detector(contents, index, wiki=None):
            return InternalLink(index + 1, index + 2, "x")

        analysis = make_analysis("abc", detectors={ElementKind.INTERNAL_LINK: shifted_detector})
        assert analysis.get_internal_links() == []

    @pytest.mark.parametrize("contents", [
        "[[" * 200,
        "{{" * 200 + "}}",
        "<!--" + "[[{{" * 50,
        "[[a|" * 100 + "]]",
        "{{a|[[b|{{c|" * 30,
        "<" * 100 + ">",
        "=" * 50,
        "ISBN " * 50,
    ])
    def test_pathological_contents(self, contents):
        """Test every kind can be indexed on malformed contents."""
        analysis = make_analysis(contents)
        for kind in ElementKind:
            elements = analysis.get_elements(kind)
            for element in elements:
                assert 0 <= element.begin_index < element.end_index <= len(contents)

    def test_empty_contents(self):
        """Test an empty page has no element."""
        analysis = make_analysis("")
        for kind in ElementKind:
            assert analysis.get_elements(kind) == ()

    def test_nested_templates_not_indexed_separately(self):
        """Test a template inside a parameter is part of the outer template."""
        analysis = make_analysis("{{A|{{B}}}} {{C}}")
        assert [t.name for t in analysis.get_templates()] == ["A", "C"]

    def test_templates_by_name(self):
        """Test filtering templates on their normalized name."""
        analysis = make_analysis("{{cite web|a}} {{Cite_web|b}} {{Other}}")
        assert len(analysis.get_templates("cite web")) == 2
        assert len(analysis.get_templates("Other")) == 1
        assert analysis.get_templates("Missing") == []

    def test_tags_by_name(self):
        """Test filtering tags on their name."""
        analysis = make_analysis("<ref>a</ref><br/>")
        assert len(analysis.get_tags()) == 3
        assert len(analysis.get_tags("REF")) == 2

    def test_localized_categories(self):
        """Test category detection follows the analysis wiki."""
        contents = "[[Kategorie:Foo]] [[Category:Bar]]"
        analysis = make_analysis(contents, wiki=WIKI_MAPPINGS["de"])
        assert [c.category for c in analysis.get_categories()] == ["Foo", "Bar"]


class TestComments:
    """Tests for comment handling in the index."""

    def test_markup_in_comments_not_indexed(self):
        """Test elements inside comments are ignored."""
        analysis = make_analysis("<!-- [[Foo]] {{T}} --> [[Bar]]")
        assert [link.link for link in analysis.get_internal_links()] == ["Bar"]
        assert analysis.get_templates() == []
        assert len(analysis.get_comments()) == 1

    def test_unterminated_comment(self):
        """Test an unterminated comment hides nothing."""
        analysis = make_analysis("<!-- [[Foo]]")
        assert analysis.get_comments() == []
        assert len(analysis.get_internal_links()) == 1

    def test_is_in_comment(self):
        """Test position inside comments."""
        analysis = make_analysis("a<!-- b -->c")
        assert analysis.is_in_comment(0) is False
        assert analysis.is_in_comment(1) is True
        assert analysis.is_in_comment(10) is True
        assert analysis.is_in_comment(11) is False


class TestPositionQueries:
    """Tests for position queries."""

    def test_get_element_at(self):
        """Test finding the element containing an index."""
        analysis = make_analysis("ab [[Foo]] cd")
        assert analysis.get_element_at(ElementKind.INTERNAL_LINK, 2) is None
        assert analysis.get_element_at(ElementKind.INTERNAL_LINK, 3).link == "Foo"
        assert analysis.get_element_at(ElementKind.INTERNAL_LINK, 9).link == "Foo"
        assert analysis.get_element_at(ElementKind.INTERNAL_LINK, 10) is None

    def test_get_elements_at(self):
        """Test elements of several kinds at one index."""
        analysis = make_analysis("[[Category:Foo]]")
        kinds = {element.kind for element in analysis.get_elements_at(3)}
        assert kinds == {ElementKind.INTERNAL_LINK, ElementKind.CATEGORY}

    def test_get_elements_in(self):
        """Test elements fully inside a span."""
        analysis = make_analysis("[[A]] [[B]] [[C]]")
        links = analysis.get_elements_in(ElementKind.INTERNAL_LINK, 0, 11)
        assert [link.link for link in links] == ["A", "B"]
        links = analysis.get_elements_in(ElementKind.INTERNAL_LINK, 1, 17)
        assert [link.link for link in links] == ["B", "C"]

    def test_surrounding_template(self):
        """Test finding the template around an index."""
        analysis = make_analysis("x {{T|a}} y")
        assert analysis.get_surrounding_template(5).name == "T"
        assert analysis.get_surrounding_template(0) is None

    def test_matching_tags(self):
        """Test pairing of opening and closing tags."""
        analysis = make_analysis("<ref>a<ref>b</ref></ref><br/>")
        tags = analysis.get_tags()
        outer_open, inner_open, inner_close, outer_close, br = tags
        assert analysis.get_matching_tag(outer_open) is outer_close
        assert analysis.get_matching_tag(inner_close) is inner_open
        assert analysis.get_matching_tag(br) is None
