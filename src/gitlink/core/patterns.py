"""
Pattern Language
================
Compiles the restricted Lua-style pattern dialect used in platform schemas
into Python regular expressions.

Supported syntax:
- Literal characters; ``%`` escapes any non-alphanumeric character
- Character classes: %a %c %d %g %l %p %s %u %w %x (upper case = complement)
- ``.`` any character
- Bracketed sets: [abc], [^/], [a-z], [%w_]
- Quantifiers on single-character items: + * ? and lazy -
- Anchors: ^ at the start, $ at the end
- Captures (...) and back-references %1..%9

Quantifiers only ever apply to single-character items, so the translated
expressions never nest quantifiers and matching stays linear on the short
tokens gitlink sees.

Usage:
    compiled = compile_pattern("([^/]+/[^/#]+)#(%d+)")
    match = compiled.fullmatch("owner/repo#12")
    match.captures  # ('owner/repo', '12')

    compile_pattern("^" + escape("https://gitlab.com") + "/(%w+)$")
"""
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from gitlink.core.errors import InvalidPatternError


# Lua class letter -> Python set contents (ASCII, as in the C locale)
CHARACTER_CLASSES = {
    "a": "A-Za-z",
    "c": "\\x00-\\x1f\\x7f",
    "d": "0-9",
    "g": "\\x21-\\x7e",
    "l": "a-z",
    "p": "!-/:-@\\[-`{-~",
    "s": "\\t\\n\\x0b\\x0c\\r ",
    "u": "A-Z",
    "w": "A-Za-z0-9",
    "x": "0-9A-Fa-f",
}

# Characters with special meaning in the dialect
MAGIC_CHARACTERS = "^$()%.[]*+-?"

QUANTIFIERS = {"+": "+", "*": "*", "?": "?", "-": "*?"}

_SET_SPECIALS = "\\]^-["


@dataclass(frozen=True)
class PatternMatch:
    """Result of evaluating a compiled pattern against a string."""

    text: str
    captures: Tuple[str, ...]
    start: int
    end: int


@dataclass(frozen=True)
class CompiledPattern:
    """A dialect pattern together with its translated regular expression."""

    source: str
    regex: "re.Pattern"

    @property
    def group_count(self) -> int:
        return self.regex.groups

    def search(self, text: str) -> Optional[PatternMatch]:
        """Find the first match anywhere in text (anchored only by ``^``)."""
        return self._wrap(self.regex.search(text))

    def fullmatch(self, text: str) -> Optional[PatternMatch]:
        """Match the whole of text."""
        return self._wrap(self.regex.fullmatch(text))

    @staticmethod
    def _wrap(m) -> Optional[PatternMatch]:
        if m is None:
            return None
        return PatternMatch(text=m.group(0), captures=m.groups(), start=m.start(), end=m.end())


def escape(literal: str) -> str:
    """Return a pattern matching literal exactly."""
    return "".join("%" + c if c in MAGIC_CHARACTERS else c for c in literal)


def compile_pattern(pattern: str) -> CompiledPattern:
    """
    Compile a dialect pattern.

    Args:
        pattern: Pattern source as written in a platform schema

    Returns:
        CompiledPattern wrapping the translated regular expression

    Raises:
        InvalidPatternError: If the pattern is malformed or uses an
            unsupported construct
    """
    if not isinstance(pattern, str):
        raise InvalidPatternError(repr(pattern), "pattern must be a string")
    return _compile(pattern)


@lru_cache(maxsize=512)
def _compile(pattern: str) -> CompiledPattern:
    translated = _translate(pattern)
    try:
        regex = re.compile(translated, re.DOTALL)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e
    return CompiledPattern(source=pattern, regex=regex)


def is_valid_pattern(pattern: str) -> Tuple[bool, Optional[str]]:
    """Check a pattern, returning (valid, reason)."""
    try:
        compile_pattern(pattern)
    except InvalidPatternError as e:
        return False, e.reason
    return True, None


def _set_escape(c: str) -> str:
    return "\\" + c if c in _SET_SPECIALS else c


def _translate_escape(pattern: str, i: int) -> str:
    """Translate the ``%x`` escape at pattern[i] into a single regex item."""
    if i + 1 >= len(pattern):
        raise InvalidPatternError(pattern, "malformed pattern (ends with '%')")
    e = pattern[i + 1]
    if e in CHARACTER_CLASSES:
        return "[" + CHARACTER_CLASSES[e] + "]"
    if e.lower() in CHARACTER_CLASSES:
        return "[^" + CHARACTER_CLASSES[e.lower()] + "]"
    if e in "bf":
        raise InvalidPatternError(pattern, f"'%{e}' is not supported")
    if e.isalnum():
        raise InvalidPatternError(pattern, f"invalid escape '%{e}'")
    return re.escape(e)


def _translate_set(pattern: str, i: int) -> Tuple[str, int]:
    """Translate the set starting after '[' at index i; return (regex, next index)."""
    n = len(pattern)
    out = ["["]
    if i < n and pattern[i] == "^":
        out.append("^")
        i += 1
    first = True
    while True:
        if i >= n:
            raise InvalidPatternError(pattern, "malformed pattern (missing ']')")
        c = pattern[i]
        if c == "]" and not first:
            out.append("]")
            return "".join(out), i + 1
        first = False
        if c == "%":
            if i + 1 >= n:
                raise InvalidPatternError(pattern, "malformed pattern (ends with '%')")
            e = pattern[i + 1]
            if e in CHARACTER_CLASSES:
                out.append(CHARACTER_CLASSES[e])
            elif e.lower() in CHARACTER_CLASSES:
                raise InvalidPatternError(
                    pattern, f"complemented class '%{e}' inside a set is not supported"
                )
            elif e.isalnum():
                raise InvalidPatternError(pattern, f"invalid escape '%{e}'")
            else:
                out.append(_set_escape(e))
            i += 2
        elif i + 2 < n and pattern[i + 1] == "-" and pattern[i + 2] != "]":
            out.append(_set_escape(c) + "-" + _set_escape(pattern[i + 2]))
            i += 3
        else:
            out.append(_set_escape(c))
            i += 1


def _translate(pattern: str) -> str:
    n = len(pattern)
    out: List[str] = []
    open_groups: List[int] = []
    closed_groups = set()
    group_count = 0
    i = 0

    if pattern.startswith("^"):
        out.append("^")
        i = 1

    while i < n:
        c = pattern[i]

        if c == "(":
            if i + 1 < n and pattern[i + 1] == ")":
                raise InvalidPatternError(pattern, "position captures '()' are not supported")
            group_count += 1
            open_groups.append(group_count)
            out.append("(")
            i += 1
            continue

        if c == ")":
            if not open_groups:
                raise InvalidPatternError(pattern, "invalid pattern capture")
            closed_groups.add(open_groups.pop())
            out.append(")")
            i += 1
            continue

        if c == "$" and i == n - 1:
            out.append(r"\Z")
            i += 1
            continue

        if c == "%" and i + 1 < n and pattern[i + 1].isdigit():
            ref = int(pattern[i + 1])
            if ref not in closed_groups:
                raise InvalidPatternError(pattern, f"invalid capture index %{ref}")
            out.append(f"(?:\\{ref})")
            i += 2
            continue

        if c == "%":
            item = _translate_escape(pattern, i)
            i += 2
        elif c == "[":
            item, i = _translate_set(pattern, i + 1)
        elif c == ".":
            item = "."
            i += 1
        else:
            item = re.escape(c)
            i += 1

        if i < n and pattern[i] in QUANTIFIERS:
            item += QUANTIFIERS[pattern[i]]
            i += 1
        out.append(item)

    if open_groups:
        raise InvalidPatternError(pattern, "unfinished capture")

    return "".join(out)
