"""
Wikitext elements and their detectors.

Each detector has the signature ``detect(contents, index, wiki=None)`` and
returns an element starting exactly at ``index`` or None when the markup at
``index`` is not (or not completely) an element of its kind. Detectors never
raise on malformed markup: a missing closing delimiter is simply "no match".
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Optional, Tuple

from wikilint.common import normalize_title, uc_first
from wikilint.config import WIKI_MAPPINGS, WikiConfiguration
from wikilint.scanner import (
    char_at,
    find_line_end,
    find_next,
    is_line_start,
    is_word_char,
    match_literal,
    match_literal_ignore_case,
    skip_whitespace,
)


class ElementKind(str, Enum):
    """Construct kinds indexed by a page analysis."""
    INTERNAL_LINK = "internal_link"
    TEMPLATE = "template"
    EXTERNAL_LINK = "external_link"
    TITLE = "title"
    ISBN = "isbn"
    TAG = "tag"
    CATEGORY = "category"
    COMMENT = "comment"


COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)

TAG_ATTRIBUTE_PATTERN = re.compile(
    r"([A-Za-z_:][-\w:.]*)"
    r"(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s\"'>/]+)))?"
)

# Protocols recognized in external links, longest first
EXTERNAL_LINK_PROTOCOLS = (
    "https://", "http://", "ftps://", "ftp://", "sftp://",
    "ircs://", "irc://", "news:", "mailto:", "//",
)

BARE_URL_STOP_CHARS = " \t\n[]<>\"{}|"
BARE_URL_TRAILING_CHARS = ".,;:!?'"

TEMPLATE_NAME_FORBIDDEN_CHARS = "[]{}<>\n"


def _strip_comments(value: str) -> str:
    return COMMENT_PATTERN.sub("", value)


def _trim(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


@dataclass(frozen=True)
class Element:
    """Base element: a half-open span of the contents."""
    begin_index: int
    end_index: int

    kind: ClassVar[ElementKind]

    @property
    def length(self) -> int:
        return self.end_index - self.begin_index

    def contains(self, index: int) -> bool:
        """Check if an index falls inside the element."""
        return self.begin_index <= index < self.end_index

    def contains_span(self, begin: int, end: int) -> bool:
        """Check if a span is fully inside the element."""
        return self.begin_index <= begin and end <= self.end_index

    def extract(self, contents: str) -> str:
        """Get the raw text of the element."""
        return contents[self.begin_index:self.end_index]


# -----------------------------------------------------------------------------
# Internal links
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class InternalLink(Element):
    """A complete internal link: [[link#anchor|text]]."""
    link_not_trimmed: str
    anchor_not_trimmed: Optional[str] = None
    text_not_trimmed: Optional[str] = None
    case_sensitive: bool = False

    kind: ClassVar[ElementKind] = ElementKind.INTERNAL_LINK

    @property
    def link(self) -> str:
        """Link target, trimmed with its first letter uppercased."""
        link = self.link_not_trimmed.strip()
        return link if self.case_sensitive else uc_first(link)

    @property
    def anchor(self) -> Optional[str]:
        return _trim(self.anchor_not_trimmed)

    @property
    def text(self) -> Optional[str]:
        return _trim(self.text_not_trimmed)

    @property
    def full_link(self) -> str:
        """Link target including the anchor."""
        if self.anchor is None:
            return self.link
        return f"{self.link}#{self.anchor}"

    @property
    def display_text(self) -> str:
        """Text displayed for the link."""
        if self.text is not None:
            return self.text
        return self.full_link

    def to_wikitext(self) -> str:
        """Rebuild the link as it was written."""
        result = "[[" + self.link_not_trimmed
        if self.anchor_not_trimmed is not None:
            result += "#" + self.anchor_not_trimmed
        if self.text_not_trimmed is not None:
            result += "|" + self.text_not_trimmed
        return result + "]]"


def create_internal_link(link: str, text: Optional[str] = None) -> str:
    """Create the wikitext of an internal link."""
    if not text or text == link:
        return f"[[{link}]]"
    if uc_first(text) == uc_first(link):
        return f"[[{text}]]"
    return f"[[{link}|{text}]]"


def detect_internal_link(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[InternalLink]:
    """Detect an internal link starting at index."""
    matched, tmp_index = match_literal(contents, index, "[[")
    if not matched:
        return None
    begin_index = tmp_index

    tmp_index = skip_whitespace(contents, tmp_index, " ")
    if tmp_index >= len(contents):
        return None

    end_index = find_next(contents, tmp_index, "]]")
    if end_index is None:
        return None
    anchor_index = find_next(contents, tmp_index, "#")
    pipe_index = find_next(contents, tmp_index, "|")
    case_sensitive = wiki.case_sensitive if wiki else False

    if pipe_index is not None and pipe_index < end_index:
        if anchor_index is not None and anchor_index < pipe_index:
            return InternalLink(
                index, end_index + 2,
                contents[begin_index:anchor_index],
                contents[anchor_index + 1:pipe_index],
                contents[pipe_index + 1:end_index],
                case_sensitive,
            )
        return InternalLink(
            index, end_index + 2,
            contents[begin_index:pipe_index],
            None,
            contents[pipe_index + 1:end_index],
            case_sensitive,
        )
    if anchor_index is not None and anchor_index < end_index:
        return InternalLink(
            index, end_index + 2,
            contents[begin_index:anchor_index],
            contents[anchor_index + 1:end_index],
            None,
            case_sensitive,
        )
    return InternalLink(
        index, end_index + 2,
        contents[begin_index:end_index],
        None, None,
        case_sensitive,
    )


# -----------------------------------------------------------------------------
# Templates
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Parameter:
    """One parameter of a template."""
    index: int
    name: Optional[str]
    computed_name: str
    pipe_index: int
    value_begin: int
    end_index: int
    value_not_trimmed: str

    @property
    def value(self) -> str:
        return self.value_not_trimmed.strip()

    @property
    def is_named(self) -> bool:
        return self.name is not None


@dataclass(frozen=True)
class Template(Element):
    """A template call: {{name|param|name=value}}."""
    name_not_trimmed: str
    parameters: Tuple[Parameter, ...] = ()

    kind: ClassVar[ElementKind] = ElementKind.TEMPLATE

    @property
    def name(self) -> str:
        return _strip_comments(self.name_not_trimmed).strip()

    @property
    def normalized_name(self) -> str:
        """Template name as MediaWiki resolves it."""
        return normalize_title(self.name)

    @property
    def is_parser_function(self) -> bool:
        return self.name.startswith("#")

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    def get_parameter(self, index: int) -> Optional[Parameter]:
        """Get a parameter by position, None when out of range."""
        if 0 <= index < len(self.parameters):
            return self.parameters[index]
        return None

    def get_parameter_value(self, name: str) -> Optional[str]:
        """Get the value of a parameter, the last occurrence winning."""
        value = None
        for param in self.parameters:
            if param.computed_name == name:
                value = param.value
        return value


def _scan_template_body(
    contents: str, start: int
) -> Optional[Tuple[int, List[int], Dict[int, int]]]:
    """
    Scan a template body for its depth-0 separators.

    Returns:
        Tuple of (index of the closing braces, pipe indexes, first equal sign
        index per parameter number), or None if the template is not closed.
    """
    length = len(contents)
    stack: List[str] = []
    pipes: List[int] = []
    equals: Dict[int, int] = {}
    pos = start

    while pos < length:
        if contents.startswith("<!--", pos):
            close = contents.find("-->", pos + 4)
            if close < 0:
                return None
            pos = close + 3
            continue
        if contents[pos:pos + 8].lower() == "<nowiki>":
            close = contents.lower().find("</nowiki>", pos + 8)
            # Unclosed nowiki is plain text
            pos = close + 9 if close >= 0 else pos + 8
            continue

        top = stack[-1] if stack else None

        if contents.startswith("{{{", pos):
            stack.append("param")
            pos += 3
        elif contents.startswith("{{", pos):
            stack.append("template")
            pos += 2
        elif contents.startswith("[[", pos):
            stack.append("link")
            pos += 2
        elif contents.startswith("}}}", pos) and top == "param":
            stack.pop()
            pos += 3
        elif contents.startswith("}}", pos):
            if top is None:
                return pos, pipes, equals
            if top == "template":
                stack.pop()
                pos += 2
            else:
                # Unbalanced link or parameter: close it and retry
                stack.pop()
        elif contents.startswith("]]", pos):
            if top == "link":
                stack.pop()
            pos += 2
        elif not stack and contents[pos] == "|":
            pipes.append(pos)
            pos += 1
        elif not stack and contents[pos] == "=" and pipes and len(pipes) not in equals:
            equals[len(pipes)] = pos
            pos += 1
        else:
            pos += 1

    return None


def detect_template(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[Template]:
    """Detect a template starting at index."""
    matched, tmp_index = match_literal(contents, index, "{{")
    if not matched:
        return None
    # {{{...}}} is a template parameter, not a template
    if char_at(contents, tmp_index) == "{" or char_at(contents, index - 1) == "{":
        return None

    scan = _scan_template_body(contents, tmp_index)
    if scan is None:
        return None
    close_index, pipes, equals = scan

    name_end = pipes[0] if pipes else close_index
    name_not_trimmed = contents[tmp_index:name_end]
    name = _strip_comments(name_not_trimmed).strip()
    if not name or any(c in TEMPLATE_NAME_FORBIDDEN_CHARS for c in name):
        return None

    parameters = []
    positional = 0
    for num, pipe_index in enumerate(pipes):
        param_end = pipes[num + 1] if num + 1 < len(pipes) else close_index
        equal_index = equals.get(num + 1)
        if equal_index is not None:
            param_name = _strip_comments(contents[pipe_index + 1:equal_index]).strip()
            computed_name = param_name
            value_begin = equal_index + 1
        else:
            positional += 1
            param_name = None
            computed_name = str(positional)
            value_begin = pipe_index + 1
        parameters.append(Parameter(
            index=num,
            name=param_name,
            computed_name=computed_name,
            pipe_index=pipe_index,
            value_begin=value_begin,
            end_index=param_end,
            value_not_trimmed=contents[value_begin:param_end],
        ))

    return Template(index, close_index + 2, name_not_trimmed, tuple(parameters))


# -----------------------------------------------------------------------------
# External links
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ExternalLink(Element):
    """An external link, bracketed ([url text]) or bare."""
    url: str
    text_not_trimmed: Optional[str] = None
    has_brackets: bool = True

    kind: ClassVar[ElementKind] = ElementKind.EXTERNAL_LINK

    @property
    def text(self) -> Optional[str]:
        text = _trim(self.text_not_trimmed)
        return text if text else None


def _match_protocol(contents: str, index: int) -> Optional[str]:
    for protocol in EXTERNAL_LINK_PROTOCOLS:
        matched, _ = match_literal_ignore_case(contents, index, protocol)
        if matched:
            return protocol
    return None


def _detect_bracketed_link(contents: str, index: int) -> Optional[ExternalLink]:
    url_begin = index + 1
    protocol = _match_protocol(contents, url_begin)
    if protocol is None:
        return None

    pos = url_begin + len(protocol)
    while pos < len(contents) and contents[pos] not in " \t\n]<>\"[":
        pos += 1
    if pos == url_begin + len(protocol):
        return None
    url = contents[url_begin:pos]

    current = char_at(contents, pos)
    if current == "]":
        return ExternalLink(index, pos + 1, url, None, True)
    if current not in (" ", "\t"):
        return None

    text_begin = skip_whitespace(contents, pos)
    close = find_next(contents, text_begin, "]")
    if close is None or "\n" in contents[pos:close]:
        return None
    return ExternalLink(index, close + 1, url, contents[text_begin:close], True)


def _detect_bare_link(contents: str, index: int) -> Optional[ExternalLink]:
    if is_word_char(char_at(contents, index - 1)):
        return None
    protocol = _match_protocol(contents, index)
    if protocol is None or protocol == "//":
        return None

    pos = index + len(protocol)
    while pos < len(contents) and contents[pos] not in BARE_URL_STOP_CHARS:
        pos += 1
    url = contents[index:pos]

    # Trailing punctuation is not part of a bare URL
    while url and (
        url[-1] in BARE_URL_TRAILING_CHARS or (url[-1] == ")" and "(" not in url)
    ):
        url = url[:-1]
    if len(url) <= len(protocol):
        return None
    return ExternalLink(index, index + len(url), url, None, False)


def detect_external_link(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[ExternalLink]:
    """Detect an external link starting at index."""
    current = char_at(contents, index)
    if current == "[":
        if char_at(contents, index + 1) == "[":
            return None
        return _detect_bracketed_link(contents, index)
    if current and current.isalpha():
        return _detect_bare_link(contents, index)
    return None


# -----------------------------------------------------------------------------
# Titles
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Title(Element):
    """A section title: == Title ==."""
    first_level: int
    second_level: int
    title_not_trimmed: str

    kind: ClassVar[ElementKind] = ElementKind.TITLE

    @property
    def level(self) -> int:
        return min(self.first_level, self.second_level)

    @property
    def title(self) -> str:
        return self.title_not_trimmed.strip()

    @property
    def is_coherent(self) -> bool:
        """Check if both sides use the same number of equal signs."""
        return self.first_level == self.second_level


def detect_title(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[Title]:
    """Detect a section title starting at index."""
    if char_at(contents, index) != "=" or not is_line_start(contents, index):
        return None

    line_end = find_line_end(contents, index)
    line = contents[index:line_end].rstrip(" \t")
    first_level = len(line) - len(line.lstrip("="))
    second_level = len(line) - len(line.rstrip("="))
    if first_level >= len(line):
        return None

    title = line[first_level:len(line) - second_level]
    if second_level == 0 or not title.strip():
        return None
    return Title(index, line_end, first_level, second_level, title)


# -----------------------------------------------------------------------------
# ISBN
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ISBN(Element):
    """An ISBN magic link, correct or not."""
    keyword: str
    separator: str
    isbn: str

    kind: ClassVar[ElementKind] = ElementKind.ISBN

    @property
    def digits(self) -> str:
        """Significant characters of the number (digits and X)."""
        return "".join(c for c in self.isbn.upper() if c.isdigit() or c == "X")

    @property
    def has_valid_checksum(self) -> bool:
        return is_valid_isbn(self.digits)

    @property
    def is_correct(self) -> bool:
        """Check if the ISBN is written with the correct syntax and number."""
        if self.keyword != "ISBN" or self.separator != " ":
            return False
        return self.has_valid_checksum


def is_valid_isbn(digits: str) -> bool:
    """Check length, characters and checksum of an ISBN-10 or ISBN-13."""
    if len(digits) == 10:
        if not digits[:9].isdigit() or not (digits[9].isdigit() or digits[9] == "X"):
            return False
        total = 0
        for pos, char in enumerate(digits):
            value = 10 if char == "X" else int(char)
            total += (10 - pos) * value
        return total % 11 == 0
    if len(digits) == 13:
        if not digits.isdigit():
            return False
        total = sum(int(char) * (1 if pos % 2 == 0 else 3) for pos, char in enumerate(digits))
        return total % 10 == 0
    return False


def detect_isbn(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[ISBN]:
    """Detect an ISBN starting at index."""
    if is_word_char(char_at(contents, index - 1)):
        return None
    matched, tmp_index = match_literal_ignore_case(contents, index, "ISBN")
    if not matched:
        return None
    keyword = contents[index:tmp_index]
    following = char_at(contents, tmp_index)
    if following.isalpha() or following == "_":
        return None

    separator_begin = tmp_index
    for suffix in ("-10", "-13"):
        matched, tmp_index = match_literal(contents, tmp_index, suffix)
        if matched:
            break
    matched, tmp_index = match_literal(contents, tmp_index, ":")
    while True:
        matched, after = match_literal(contents, tmp_index, "&nbsp;")
        if matched:
            tmp_index = after
            continue
        if char_at(contents, tmp_index) in (" ", "\t", "\u00a0"):
            tmp_index += 1
            continue
        break
    separator = contents[separator_begin:tmp_index]

    number_begin = tmp_index
    digits = ""
    pos = tmp_index
    while pos < len(contents):
        current = contents[pos]
        # Only numbers starting with 978 or 979 go on past 10 digits
        limit = 13 if digits[:3] in ("978", "979") else 10
        if current.isdigit():
            digits += current
            pos += 1
        elif current in "Xx" and digits:
            pos += 1
            break
        elif current in " -" and digits and len(digits) < limit:
            following = char_at(contents, pos + 1)
            if not (following.isdigit() or following in ("X", "x")):
                break
            pos += 1
        else:
            break
    if not digits:
        return None

    return ISBN(index, pos, keyword, separator, contents[number_begin:pos])


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Tag(Element):
    """An HTML-like tag: <name attr="value">, </name> or <name/>."""
    name: str
    is_end_tag: bool = False
    is_full_tag: bool = False
    attribute_pairs: Tuple[Tuple[str, str], ...] = ()

    kind: ClassVar[ElementKind] = ElementKind.TAG

    @property
    def attributes(self) -> Dict[str, str]:
        return dict(self.attribute_pairs)

    @property
    def is_opening_tag(self) -> bool:
        return not self.is_end_tag and not self.is_full_tag


def detect_tag(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[Tag]:
    """Detect a tag starting at index."""
    if char_at(contents, index) != "<" or contents.startswith("<!--", index):
        return None

    tmp_index = index + 1
    is_end_tag = char_at(contents, tmp_index) == "/"
    if is_end_tag:
        tmp_index += 1

    name_begin = tmp_index
    while tmp_index < len(contents) and contents[tmp_index].isalnum():
        tmp_index += 1
    name = contents[name_begin:tmp_index]
    if not name or not name[0].isalpha():
        return None

    close = find_next(contents, tmp_index, ">")
    if close is None:
        return None
    if close > tmp_index and contents[tmp_index] not in " \t\n/":
        return None
    inner = contents[tmp_index:close]
    if "<" in inner:
        return None

    is_full_tag = inner.rstrip().endswith("/")
    if is_full_tag:
        inner = inner.rstrip()[:-1]
    attributes = []
    if not is_end_tag:
        for match in TAG_ATTRIBUTE_PATTERN.finditer(inner):
            value = next((g for g in match.groups()[1:] if g is not None), "")
            attributes.append((match.group(1).lower(), value))

    return Tag(
        index, close + 1, name.lower(),
        is_end_tag, is_full_tag and not is_end_tag, tuple(attributes),
    )


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class CategoryLink(Element):
    """A categorization: [[Category:Name|sort key]]."""
    namespace: str
    name_not_trimmed: str
    sort_key_not_trimmed: Optional[str] = None
    case_sensitive: bool = False

    kind: ClassVar[ElementKind] = ElementKind.CATEGORY

    @property
    def category(self) -> str:
        """Category name without namespace, normalized."""
        return normalize_title(self.name_not_trimmed, self.case_sensitive)

    @property
    def sort_key(self) -> Optional[str]:
        return _trim(self.sort_key_not_trimmed)


def detect_category(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[CategoryLink]:
    """Detect a category link starting at index."""
    matched, tmp_index = match_literal(contents, index, "[[")
    if not matched:
        return None
    tmp_index = skip_whitespace(contents, tmp_index, " ")
    if char_at(contents, tmp_index) == ":":
        return None

    end_index = find_next(contents, tmp_index, "]]")
    colon_index = find_next(contents, tmp_index, ":")
    if end_index is None or colon_index is None or colon_index > end_index:
        return None

    wiki = wiki or WIKI_MAPPINGS["en"]
    namespace = contents[tmp_index:colon_index]
    if not wiki.is_category_namespace(namespace):
        return None

    pipe_index = find_next(contents, colon_index + 1, "|")
    if pipe_index is not None and pipe_index < end_index:
        name = contents[colon_index + 1:pipe_index]
        sort_key = contents[pipe_index + 1:end_index]
    else:
        name = contents[colon_index + 1:end_index]
        sort_key = None
    if not name.strip():
        return None
    return CategoryLink(
        index, end_index + 2, namespace.strip(), name, sort_key, wiki.case_sensitive,
    )


# -----------------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Comment(Element):
    """An HTML comment: <!-- comment -->."""
    comment: str

    kind: ClassVar[ElementKind] = ElementKind.COMMENT


def detect_comment(
    contents: str, index: int, wiki: Optional[WikiConfiguration] = None
) -> Optional[Comment]:
    """Detect a comment starting at index."""
    matched, tmp_index = match_literal(contents, index, "<!--")
    if not matched:
        return None
    close = find_next(contents, tmp_index, "-->")
    if close is None:
        return None
    return Comment(index, close + 3, contents[tmp_index:close])


Detector = Callable[[str, int, Optional[WikiConfiguration]], Optional[Element]]

DETECTORS: Dict[ElementKind, Detector] = {
    ElementKind.INTERNAL_LINK: detect_internal_link,
    ElementKind.TEMPLATE: detect_template,
    ElementKind.EXTERNAL_LINK: detect_external_link,
    ElementKind.TITLE: detect_title,
    ElementKind.ISBN: detect_isbn,
    ElementKind.TAG: detect_tag,
    ElementKind.CATEGORY: detect_category,
    ElementKind.COMMENT: detect_comment,
}
