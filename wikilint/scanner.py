"""
Character-position helpers used by the element detectors.

Every function is total: any integer index, including negative values and
positions at or past the end of the contents, yields "no match" or
"not found" instead of raising.
"""

from typing import Optional, Tuple

WHITESPACE = " \t"


def char_at(contents: str, index: int) -> str:
    """Get the character at an index, empty string when out of range."""
    if 0 <= index < len(contents):
        return contents[index]
    return ""


def match_literal(contents: str, index: int, literal: str) -> Tuple[bool, int]:
    """
    Check if a literal is present at an index.

    Returns:
        Tuple of (matched, index after the literal or the unchanged index)
    """
    if index < 0 or index >= len(contents) or not literal:
        return False, index
    if contents.startswith(literal, index):
        return True, index + len(literal)
    return False, index


def match_literal_ignore_case(contents: str, index: int, literal: str) -> Tuple[bool, int]:
    """Case-insensitive variant of match_literal()."""
    if index < 0 or index >= len(contents) or not literal:
        return False, index
    end = index + len(literal)
    if contents[index:end].lower() == literal.lower():
        return True, end
    return False, index


def skip_whitespace(contents: str, index: int, chars: str = WHITESPACE) -> int:
    """Get the first index at or after index which is not in chars."""
    if index < 0:
        index = 0
    while index < len(contents) and contents[index] in chars:
        index += 1
    return index


def find_next(contents: str, from_index: int, literal: str) -> Optional[int]:
    """Find the next occurrence of a literal, None when not found."""
    if from_index < 0:
        from_index = 0
    if from_index >= len(contents) or not literal:
        return None
    index = contents.find(literal, from_index)
    return index if index >= 0 else None


def find_line_end(contents: str, index: int) -> int:
    """Get the index of the end of the line containing index."""
    if index < 0:
        index = 0
    if index >= len(contents):
        return len(contents)
    end = contents.find("\n", index)
    return end if end >= 0 else len(contents)


def is_line_start(contents: str, index: int) -> bool:
    """Check if an index is at the beginning of a line."""
    if index == 0:
        return True
    if index < 0 or index > len(contents):
        return False
    return contents[index - 1] == "\n"


def is_word_char(char: str) -> bool:
    """Check if a character is part of a word (letter, digit or underscore)."""
    return bool(char) and (char.isalnum() or char == "_")
