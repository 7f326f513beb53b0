"""
Pattern dialect tests.

Validates translation of schema patterns into regular expressions:
- Character classes, sets, anchors and quantifiers
- Captures and back-references
- Rejection of malformed and unsupported constructs
"""
import pytest

from gitlink.core.errors import InvalidPatternError
from gitlink.core.patterns import compile_pattern, escape, is_valid_pattern


@pytest.mark.core
@pytest.mark.parametrize("pattern,text,captures", [
    ("#(%d+)", "#123", ("123",)),
    ("([^/]+/[^/#]+)#(%d+)", "owner/repo#45", ("owner/repo", "45")),
    ("GH%-(%d+)", "GH-7", ("7",)),
    ("^(%x+)$", "deadbeef", ("deadbeef",)),
    ("([^/]+/[^/@]+)@(%x+)", "owner/repo@abc1234", ("owner/repo", "abc1234")),
    ("@([%w%-%.]+)", "@jane.doe-1", ("jane.doe-1",)),
    ("(%a+)=%1", "ab=ab", ("ab",)),
])
def test_fullmatch_captures(pattern, text, captures):
    """
    Given: A schema pattern and a token it describes
    When: Compiling the pattern and matching the whole token
    Then: The captures are returned in order
    """
    match = compile_pattern(pattern).fullmatch(text)

    assert match is not None, f"{pattern!r} should match {text!r}"
    assert match.captures == captures


@pytest.mark.core
@pytest.mark.parametrize("pattern,text", [
    ("#(%d+)", "#12a"),
    ("#(%d+)", "x#12"),
    ("GH%-(%d+)", "GH-"),
    ("^(%x+)$", "xyz1234"),
    ("([^/]+/[^/#]+)#(%d+)", "a/b/c#1"),
    ("(%a+)=%1", "ab=cd"),
])
def test_fullmatch_rejects(pattern, text):
    """
    Given: A token that only partially fits a pattern
    When: Matching the whole token
    Then: There is no match
    """
    assert compile_pattern(pattern).fullmatch(text) is None


@pytest.mark.core
def test_search_is_unanchored_unless_caret():
    """
    Given: One pattern without and one with a leading ^
    When: Searching text with a prefix
    Then: Only the unanchored pattern finds the match
    """
    text = "see @octocat"

    assert compile_pattern("@(%w+)").search(text).captures == ("octocat",)
    assert compile_pattern("^@(%w+)").search(text) is None


@pytest.mark.core
def test_lazy_quantifier_matches_shortest():
    """
    Given: A lazy '-' quantifier followed by a literal
    When: Searching text containing the literal twice
    Then: The shortest run is captured
    """
    match = compile_pattern("<(.-)>").search("<a><b>")

    assert match.captures == ("a",)
    assert (match.start, match.end) == (0, 3)


@pytest.mark.core
@pytest.mark.parametrize("pattern,text,expected", [
    ("%D+", "abc", True),
    ("%D+", "a1c", False),
    ("%S+", "ab", True),
    ("[%w_]+", "snake_case", True),
    ("[a-c]+", "abcab", True),
    ("[a-c]+", "abd", False),
    ("%u%l+", "Hello", True),
    ("%p", "!", True),
    ("a.c", "a\nc", True),
])
def test_character_classes(pattern, text, expected):
    """
    Given: Class escapes, complements, sets and ranges
    When: Matching a whole token
    Then: Membership follows the ASCII class definitions
    """
    assert (compile_pattern(pattern).fullmatch(text) is not None) is expected


@pytest.mark.core
def test_dollar_anchors_only_at_end():
    """
    Given: A '$' in the middle and at the end of a pattern
    When: Searching
    Then: The middle one is literal and the last one anchors
    """
    assert compile_pattern("a$b").search("xa$b").text == "a$b"
    assert compile_pattern("ab$").search("abx") is None
    assert compile_pattern("ab$").search("xab") is not None


@pytest.mark.core
@pytest.mark.parametrize("pattern,reason_fragment", [
    ("#(%d+", "unfinished capture"),
    ("#%d+)", "invalid pattern capture"),
    ("[abc", "missing ']'"),
    ("abc%", "ends with '%'"),
    ("%b()", "not supported"),
    ("%f[%w]", "not supported"),
    ("()", "position captures"),
    ("%q", "invalid escape"),
    ("%1(a)", "invalid capture index"),
])
def test_malformed_patterns_are_rejected(pattern, reason_fragment):
    """
    Given: A malformed or unsupported pattern
    When: Compiling it
    Then: InvalidPatternError carries the pattern and a reason
    """
    with pytest.raises(InvalidPatternError) as excinfo:
        compile_pattern(pattern)

    assert excinfo.value.pattern == pattern
    assert reason_fragment in excinfo.value.reason


@pytest.mark.core
def test_non_string_pattern_is_rejected():
    """
    Given: A pattern that is not a string
    When: Validating it
    Then: It is reported invalid instead of raising TypeError
    """
    valid, reason = is_valid_pattern(["#(%d+)"])

    assert valid is False
    assert "string" in reason


@pytest.mark.core
def test_is_valid_pattern_reports_reason():
    """
    Given: A valid and an invalid pattern
    When: Checking them with is_valid_pattern
    Then: (True, None) and (False, reason) are returned
    """
    assert is_valid_pattern("#(%d+)") == (True, None)

    valid, reason = is_valid_pattern("[%w")
    assert valid is False
    assert reason


@pytest.mark.core
def test_escape_makes_literal():
    """
    Given: A base URL containing dots, hyphens and a question mark
    When: Escaping it into a pattern
    Then: The pattern matches exactly that text
    """
    literal = "https://git-host.example.com/a?b"
    compiled = compile_pattern("^" + escape(literal) + "$")

    assert compiled.fullmatch(literal) is not None
    assert compiled.fullmatch("https://gitXhost.example.com/a?b") is None
    assert compiled.fullmatch("https://git-hostXexample.com/a?b") is None


@pytest.mark.core
def test_compilation_is_memoised():
    """
    Given: The same pattern source compiled twice
    When: Comparing the results
    Then: The same CompiledPattern object is returned
    """
    assert compile_pattern("#(%d+)") is compile_pattern("#(%d+)")
    assert compile_pattern("([^/]+/[^/#]+)#(%d+)").group_count == 2
