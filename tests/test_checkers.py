"""Tests for checkers package."""

from unittest.mock import MagicMock

import pytest

from wikilint.analysis import PageAnalysis
from wikilint.checkers import (
    CheckerRegistry,
    DuplicateTemplateArgumentChecker,
    IncorrectDateLinkChecker,
    IsbnSyntaxChecker,
    WikiExternalLinkChecker,
)
from wikilint.config import WIKI_MAPPINGS, AnalysisConfig, CheckerProperties
from wikilint.models import ErrorLevel, Page


def analyze(checker, contents, page=None, wiki=None):
    """Run a checker and return its findings."""
    analysis = PageAnalysis(page or Page(title="Test"), contents, wiki)
    findings = []
    checker.analyze(analysis, findings)
    return findings


class TestCheckerBase:
    """Tests for behavior shared by all checkers."""

    def test_no_page(self):
        """Test an analysis without page reports nothing."""
        checker = IsbnSyntaxChecker()
        assert checker.analyze(None) is False
        assert checker.analyze(PageAnalysis(None, "ISBN 123")) is False

    def test_short_circuit_without_list(self):
        """Test the detection-only mode stops at the first finding."""
        checker = IsbnSyntaxChecker()
        consumed = []

        def find_errors(analysis):
            for finding in IsbnSyntaxChecker.find_errors(checker, analysis):
                consumed.append(finding)
                yield finding

        checker.find_errors = find_errors
        analysis = PageAnalysis(Page(title="Test"), "ISBN 1 and ISBN 2 and ISBN 3")
        assert checker.analyze(analysis) is True
        assert len(consumed) == 1

    def test_same_result_with_and_without_list(self):
        """Test both modes agree on the presence of errors."""
        checker = IsbnSyntaxChecker()
        for contents in ("ISBN 123", "ISBN 978-0-306-40615-7", "no isbn"):
            analysis = PageAnalysis(Page(title="Test"), contents)
            findings = []
            assert checker.analyze(analysis) == checker.analyze(analysis, findings)
            assert bool(findings) == checker.analyze(analysis)

    def test_only_automatic(self):
        """Test restricting to findings with an automatic replacement."""
        checker = DuplicateTemplateArgumentChecker()
        analysis = PageAnalysis(Page(title="Test"), "{{T|x=1|y=2|x=3}} {{U|a=1|a=1}}")
        findings = []
        assert checker.analyze(analysis, findings, only_automatic=True) is True
        assert len(findings) == 1
        assert findings[0].is_automatic is True

    def test_repr(self):
        """Test checker representation."""
        assert "524" in repr(DuplicateTemplateArgumentChecker())


class TestIsbnSyntax:
    """Tests for the ISBN syntax checker (69)."""

    def test_incorrect_isbn(self):
        """Test an incorrect ISBN is reported without replacement."""
        findings = analyze(IsbnSyntaxChecker(), "See ISBN 123.")
        assert len(findings) == 1
        assert findings[0].span == (4, 12)
        assert findings[0].error_level == ErrorLevel.ERROR
        assert findings[0].replacements == []
        assert findings[0].checker_id == 69

    def test_correct_isbn(self):
        """Test a correct ISBN is not reported."""
        assert analyze(IsbnSyntaxChecker(), "ISBN 978-0-306-40615-7") == []

    def test_correct_isbn10_before_year(self):
        """Test a correct ISBN-10 followed by a year is not reported."""
        assert analyze(IsbnSyntaxChecker(), "ISBN 0306406152 2010 edition") == []

    def test_isbn_in_comment(self):
        """Test ISBNs inside comments are ignored."""
        assert analyze(IsbnSyntaxChecker(), "<!-- ISBN 123 -->") == []


class TestDuplicateTemplateArgument:
    """Tests for the duplicate template argument checker (524)."""

    def test_different_values(self):
        """Test a duplicate with different values has no automatic fix."""
        findings = analyze(DuplicateTemplateArgumentChecker(), "{{T|x=1|y=2|x=3}}")
        assert len(findings) == 1
        assert findings[0].span == (3, 7)
        assert findings[0].replacements == []
        assert findings[0].is_automatic is False

    def test_equal_values(self):
        """Test a duplicate with the same value is removed automatically."""
        checker = DuplicateTemplateArgumentChecker()
        contents = "{{T|x=1|y=2|x=1}}"
        findings = analyze(checker, contents)
        assert len(findings) == 1
        replacement = findings[0].replacements[0]
        assert replacement.text == ""
        assert replacement.automatic is True

        analysis = PageAnalysis(Page(title="Test"), contents)
        assert checker.automatic_fix(analysis) == "{{T|y=2|x=1}}"

    def test_empty_earlier_value(self):
        """Test an empty earlier parameter is removed automatically."""
        checker = DuplicateTemplateArgumentChecker()
        findings = analyze(checker, "{{T|x=|x=2}}")
        assert findings[0].span == (3, 6)
        assert findings[0].is_automatic is True
        analysis = PageAnalysis(Page(title="Test"), "{{T|x=|x=2}}")
        assert checker.automatic_fix(analysis) == "{{T|x=2}}"

    def test_numeric_name_not_automatic(self):
        """Test numeric names are never fixed automatically."""
        findings = analyze(DuplicateTemplateArgumentChecker(), "{{T|a|1=a}}")
        assert len(findings) == 1
        assert findings[0].span == (3, 5)
        assert findings[0].replacements[0].text == ""
        assert findings[0].is_automatic is False

    def test_three_occurrences(self):
        """Test each duplicate is paired with its predecessor."""
        checker = DuplicateTemplateArgumentChecker()
        contents = "{{T|x=1|x=1|x=1}}"
        findings = analyze(checker, contents)
        assert [f.span for f in findings] == [(3, 7), (7, 11)]
        analysis = PageAnalysis(Page(title="Test"), contents)
        assert checker.automatic_fix(analysis) == "{{T|x=1}}"

    def test_no_duplicate(self):
        """Test templates without duplicates."""
        checker = DuplicateTemplateArgumentChecker()
        assert analyze(checker, "{{T|x=1}} {{T|x=1|y=1}} {{T|a|b}}") == []

    def test_special_list(self):
        """Test listing pages from the configured category."""
        checker = DuplicateTemplateArgumentChecker(
            CheckerProperties({"category": "Pages using duplicate arguments"})
        )
        provider = MagicMock()
        provider.fetch_category_members.return_value = ["A", "B"]
        assert checker.has_special_list() is True
        assert checker.get_special_list(provider, 10) == ["A", "B"]
        provider.fetch_category_members.assert_called_once_with(
            "Pages using duplicate arguments", 0, 10
        )

    def test_no_special_list(self):
        """Test without configured category."""
        checker = DuplicateTemplateArgumentChecker()
        assert checker.has_special_list() is False
        assert checker.get_special_list(MagicMock(), 10) == []
        assert "category" in checker.get_parameters()


class TestIncorrectDateLink:
    """Tests for the incorrect date link checker (526)."""

    def test_year_mismatch(self):
        """Test a link displaying another year."""
        findings = analyze(IncorrectDateLinkChecker(), "[[1985 in music|1984]] text")
        assert len(findings) == 1
        finding = findings[0]
        assert finding.span == (0, 22)
        assert finding.error_level == ErrorLevel.ERROR
        assert [r.text for r in finding.replacements] == ["[[1985 in music]]", "[[1984]]"]
        assert finding.is_automatic is False
        assert finding.is_automatic_bot is False

    def test_followed_by_template(self):
        """Test a link followed by a template is a warning."""
        findings = analyze(IncorrectDateLinkChecker(), "[[1985|1984]]{{cn}}")
        assert findings[0].error_level == ErrorLevel.WARNING

    @pytest.mark.parametrize("contents", [
        "[[1984|1984]]",
        "[[1985]]",
        "[[1985 in 1990s|1984]]",
        "[[1985-86|1984]]",
        "[[Foo|1984]]",
        "[[12|13]]",
        "[[19851|1984]]",
        "[[1985|1984a]]",
        "[[1985|000]]",
        "[[0000|1984]]",
        "[[000 BC|1984]]",
    ])
    def test_not_reported(self, contents):
        """Test links which are not incorrect date links."""
        assert analyze(IncorrectDateLinkChecker(), contents) == []

    def test_ask_help(self):
        """Test help requests, the first one being bot-safe."""
        checker = IncorrectDateLinkChecker(CheckerProperties({
            "ask_help": "Ask for help|{{Help date}}\nMark|<!-- check -->",
        }))
        contents = "[[1985|1984]] text"
        findings = analyze(checker, contents)
        replacements = findings[0].replacements
        assert len(replacements) == 4
        assert replacements[2].text == "[[1985|1984]]{{Help date}}"
        assert replacements[2].description == "Ask for help"
        assert replacements[2].automatic is False
        assert replacements[2].automatic_bot is True
        assert replacements[3].text == "[[1985|1984]]<!-- check -->"
        assert replacements[3].automatic_bot is False

        analysis = PageAnalysis(Page(title="Test"), contents)
        assert checker.bot_fix(analysis) == "[[1985|1984]]{{Help date}} text"
        assert checker.automatic_fix(analysis) == contents

    @pytest.mark.parametrize("contents,page", [
        ("[[1985|1984]] text", Page(title="User:Test", namespace=2)),
        ("[[1985|1984]]", Page(title="Test")),
        ("[[1985 (film)|1984]] text", Page(title="Test")),
    ])
    def test_ask_help_not_bot_safe(self, contents, page):
        """Test conditions preventing bot replacements."""
        checker = IncorrectDateLinkChecker(CheckerProperties({
            "ask_help": "Ask for help|{{Help date}}",
        }))
        findings = analyze(checker, contents, page=page)
        assert len(findings) == 1
        assert findings[0].is_automatic_bot is False

    def test_special_list(self):
        """Test listing pages from abuse log and dump analysis."""
        checker = IncorrectDateLinkChecker(CheckerProperties({
            "abuse_filter": "42",
            "dump_analysis": "Project:Dump",
        }))
        provider = MagicMock()
        provider.fetch_abuse_log.return_value = ["C", "B"]
        provider.fetch_links.return_value = ["A"]
        assert checker.has_special_list() is True
        assert checker.get_special_list(provider, 2) == ["A", "B"]
        provider.fetch_abuse_log.assert_called_once_with(42, 10)
        provider.fetch_links.assert_called_once_with("Project:Dump")

    def test_invalid_abuse_filter(self):
        """Test a non-numeric abuse filter is ignored."""
        checker = IncorrectDateLinkChecker(CheckerProperties({"abuse_filter": "abc"}))
        assert checker.has_special_list() is False

    def test_parameters(self):
        """Test documented properties."""
        parameters = IncorrectDateLinkChecker().get_parameters()
        assert {"abuse_filter", "ask_help", "dump_analysis"} <= set(parameters)


class TestWikiExternalLink:
    """Tests for the wiki link written as external link checker (91)."""

    def test_same_wiki(self):
        """Test an external link to the same wiki."""
        contents = "[https://en.wikipedia.org/wiki/Foo_bar Foo]"
        findings = analyze(WikiExternalLinkChecker(), contents)
        assert len(findings) == 1
        assert findings[0].span == (0, len(contents))
        assert findings[0].replacements[0].text == "[[Foo bar|Foo]]"
        assert findings[0].is_automatic is True

    def test_same_text(self):
        """Test the text is dropped when it is the title."""
        findings = analyze(WikiExternalLinkChecker(), "[https://en.wikipedia.org/wiki/Foo_bar Foo bar]")
        assert findings[0].replacements[0].text == "[[Foo bar]]"

    def test_encoded_title(self):
        """Test percent-encoded titles are decoded."""
        findings = analyze(WikiExternalLinkChecker(), "[https://en.wikipedia.org/wiki/Caf%C3%A9 Café]")
        assert findings[0].replacements[0].text == "[[Café]]"

    def test_protocol_relative(self):
        """Test protocol-relative URLs."""
        findings = analyze(WikiExternalLinkChecker(), "[//en.wikipedia.org/wiki/Foo Foo]")
        assert findings[0].replacements[0].text == "[[Foo]]"

    def test_other_language(self):
        """Test a link to another language edition becomes an interwiki."""
        findings = analyze(WikiExternalLinkChecker(), "[https://fr.wikipedia.org/wiki/Paris Paris]")
        assert findings[0].replacements[0].text == "[[:fr:Paris|Paris]]"
        assert findings[0].is_automatic is True

    def test_other_project(self):
        """Test a link to another project has no replacement."""
        findings = analyze(WikiExternalLinkChecker(), "[https://en.wiktionary.org/wiki/foo foo]")
        assert len(findings) == 1
        assert findings[0].replacements == []

    def test_bare_link_not_automatic(self):
        """Test a bare link is not fixed automatically."""
        findings = analyze(WikiExternalLinkChecker(), "see https://en.wikipedia.org/wiki/Foo here")
        assert findings[0].replacements[0].text == "[[Foo]]"
        assert findings[0].is_automatic is False

    @pytest.mark.parametrize("contents", [
        "[https://en.wikipedia.org/wiki/Foo?action=history Foo]",
        "[https://en.wikipedia.org/wiki/Foo#Bar_baz text]",
    ])
    def test_query_or_fragment_not_automatic(self, contents):
        """Test links with query strings or fragments."""
        findings = analyze(WikiExternalLinkChecker(), contents)
        assert len(findings) == 1
        assert findings[0].is_automatic is False

    def test_fragment_becomes_anchor(self):
        """Test the fragment is kept as an anchor."""
        findings = analyze(WikiExternalLinkChecker(), "[https://en.wikipedia.org/wiki/Foo#Bar_baz text]")
        assert findings[0].replacements[0].text == "[[Foo#Bar baz|text]]"

    @pytest.mark.parametrize("contents", [
        "[https://example.com/wiki/Foo x]",
        "[https://en.wikipedia.org/w/index.php?title=Foo x]",
        "[https://en.wikipedia.org/wiki/ x]",
    ])
    def test_not_reported(self, contents):
        """Test links which do not target an article of a known wiki."""
        assert analyze(WikiExternalLinkChecker(), contents) == []

    def test_localized_wiki(self):
        """Test links to the analyzed wiki itself on another language."""
        findings = analyze(
            WikiExternalLinkChecker(),
            "[https://fr.wikipedia.org/wiki/Paris la ville]",
            wiki=WIKI_MAPPINGS["fr"],
        )
        assert findings[0].replacements[0].text == "[[Paris|la ville]]"


class TestCheckerRegistry:
    """Tests for the checker registry."""

    def test_builtin_checkers(self):
        """Test built-in checkers are registered in order."""
        registry = CheckerRegistry()
        ids = [checker.CHECKER_ID for checker in registry.get_all_checkers()]
        assert ids == [69, 91, 524, 526]
        assert len(registry) == 4

    def test_alias(self):
        """Test renamed checkers are found by their old identifier."""
        registry = CheckerRegistry()
        assert registry.get_checker(512) is registry.get_checker(91)
        assert 512 in registry

    def test_unknown_checker(self):
        """Test lookups of unknown identifiers."""
        registry = CheckerRegistry()
        assert registry.get_checker(999) is None
        with pytest.raises(KeyError):
            registry.get_checkers([524, 999])

    def test_get_checkers_deduplicates_aliases(self):
        """Test an alias and its target give one checker."""
        registry = CheckerRegistry()
        assert len(registry.get_checkers([91, 512])) == 1

    def test_properties_from_config(self):
        """Test checkers receive their configured properties."""
        config = AnalysisConfig(checker_properties={524: {"category": "Foo"}})
        registry = CheckerRegistry(config)
        assert registry.get_checker(524).has_special_list() is True
        assert registry.get_checker(526).has_special_list() is False

    def test_empty_registry(self):
        """Test a registry without built-in checkers."""
        registry = CheckerRegistry(register_builtins=False)
        assert registry.get_all_checkers() == []
        registry.register_checker(IsbnSyntaxChecker)
        assert registry.get_checker(69) is not None
