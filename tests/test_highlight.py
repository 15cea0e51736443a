"""Tests for highlight module."""

from wikilint.analysis import PageAnalysis
from wikilint.elements import ElementKind
from wikilint.highlight import ELEMENT_STYLES, FINDING_STYLES, highlight
from wikilint.models import ErrorLevel, Finding, Page


def make_analysis(contents):
    """Analysis of a main namespace page."""
    return PageAnalysis(Page(title="Test"), contents)


class TestHighlight:
    """Tests for highlight function."""

    def test_plain_text_kept(self):
        """Test the rendered text is the contents."""
        contents = "A [[link]] and {{template}}."
        assert highlight(make_analysis(contents)).plain == contents

    def test_element_styles(self):
        """Test elements are styled by kind."""
        text = highlight(make_analysis("A [[link]] <!-- c -->"))
        styles = {(span.start, span.end): span.style for span in text.spans}
        assert styles[(2, 10)] == ELEMENT_STYLES[ElementKind.INTERNAL_LINK]
        assert styles[(11, 21)] == ELEMENT_STYLES[ElementKind.COMMENT]

    def test_selected_kinds(self):
        """Test only the selected kinds are styled."""
        text = highlight(make_analysis("A [[link]] {{t}}"), kinds=[ElementKind.TEMPLATE])
        assert [(span.start, span.end) for span in text.spans] == [(11, 16)]

    def test_findings_after_elements(self):
        """Test findings are styled over elements, errors last."""
        analysis = make_analysis("A [[link]] text")
        findings = [
            Finding(checker_id=1, begin_index=2, end_index=10, error_level=ErrorLevel.ERROR),
            Finding(checker_id=2, begin_index=2, end_index=10, error_level=ErrorLevel.WARNING),
            Finding(checker_id=3, begin_index=11, end_index=11),
        ]
        text = highlight(analysis, findings, kinds=[])
        assert [span.style for span in text.spans] == [
            FINDING_STYLES[ErrorLevel.WARNING],
            FINDING_STYLES[ErrorLevel.ERROR],
        ]
