"""
Token linker tests.

Validates the host-facing entry points:
- Tokenization keeps whitespace and splits punctuation off words
- Multi-word runs are consumed atomically
- Citations stay citations; mentions become user links
- Disabled contexts pass every token through
"""
import pytest

from gitlink.core.formatter import PlatformLink
from gitlink.core.linker import (
    link_mention,
    link_tokens,
    linkify,
    render_markdown,
    shorten_link,
    tokenize,
)
from gitlink.core.models import ReferenceKind, Token, TokenKind
from gitlink.core.multiword import MultiWordMatcher


@pytest.mark.core
def test_tokenize_boundaries():
    """
    Given: Text with brackets, punctuation, whitespace and a citation
    When: Tokenizing it
    Then: Words, symbols, spaces and citations are separated
    """
    tokens = tokenize("(see #12).\n@knuth1984")

    assert tokens == [
        Token("(", TokenKind.SYMBOL),
        Token("see"),
        Token(" ", TokenKind.SPACE),
        Token("#12"),
        Token(").", TokenKind.SYMBOL),
        Token("\n", TokenKind.SPACE),
        Token("@knuth1984", TokenKind.CITATION),
    ]


@pytest.mark.core
def test_linkify_text(github_context):
    """
    Given: A sentence with an issue and a mention
    When: Linkifying it
    Then: Both become Markdown links and the rest is unchanged
    """
    text = "Fixed in #12 by @octocat."

    assert linkify(text, github_context) == (
        "Fixed in [#12 (GitHub)](https://github.com/owner/repo/issues/12) "
        "by [@octocat (GitHub)](https://github.com/octocat)."
    )


@pytest.mark.core
def test_unmatched_text_is_preserved(github_context):
    """
    Given: Text without references and irregular whitespace
    When: Linkifying it
    Then: The output equals the input
    """
    text = "Nothing  to\tsee\n\nhere, really!"

    assert linkify(text, github_context) == text


@pytest.mark.core
def test_citations_stay_untouched(make_context):
    """
    Given: A document whose bibliography contains knuth1984
    When: Linkifying a sentence citing it and mentioning a user
    Then: Only the user mention becomes a link
    """
    context = make_context(citation_ids={"knuth1984"}, show_platform_badge=False)

    result = linkify("As @knuth1984 notes, ask @octocat", context)

    assert result == "As @knuth1984 notes, ask [@octocat](https://github.com/octocat)"


@pytest.mark.core
def test_link_mention(github_context):
    """
    Given: A mention and a known citation id
    When: Linking the mention with and without that id
    Then: It links only when the id is not a citation
    """
    context = github_context.with_citations({"octocat"})

    assert link_mention("@octocat", context) is None
    assert link_mention("@octocat", github_context).url == "https://github.com/octocat"


@pytest.mark.core
def test_multi_word_is_atomic(bitbucket_context):
    """
    Given: A Bitbucket sentence with "issue #7" and a bare "#8"
    When: Linking the tokens
    Then: "issue #7" is one link and #7 is not linked again
    """
    items = link_tokens(tokenize("See issue #7 and #8"), bitbucket_context)

    links = [item for item in items if isinstance(item, PlatformLink)]
    assert [link.display_text for link in links] == ["issue #7", "#8"]
    assert not any(isinstance(item, Token) and item.text in ("issue", "#7") for item in items)
    assert render_markdown(items) == (
        "See [issue #7 (Bitbucket)](https://bitbucket.org/team/repo/issues/7) "
        "and [#8 (Bitbucket)](https://bitbucket.org/team/repo/issues/8)"
    )


@pytest.mark.core
def test_pull_request_phrase(bitbucket_context):
    """
    Given: "pull request other/repo#5" on Bitbucket
    When: Linkifying it
    Then: One pull request link is produced
    """
    result = linkify("pull request other/repo#5", bitbucket_context)

    assert result == (
        "[pull request other/repo#5 (Bitbucket)]"
        "(https://bitbucket.org/other/repo/pull-requests/5)"
    )


@pytest.mark.core
def test_keywords_only_where_declared(github_context):
    """
    Given: "issue #7" in a GitHub document (no keywords)
    When: Linking the tokens
    Then: Only #7 is linked
    """
    items = link_tokens(tokenize("issue #7"), github_context)

    assert items[0] == Token("issue")
    assert items[2].display_text == "#7"


@pytest.mark.core
def test_multi_word_matcher_direct(bitbucket_context):
    """
    Given: Tokens for "issue #123"
    When: Matching at the start and at the reference itself
    Then: The run of three tokens matches only from its first token
    """
    tokens = tokenize("issue #123")
    matcher = MultiWordMatcher(bitbucket_context)

    match, consumed = matcher.match(tokens, 0)

    assert consumed == 3
    assert match.kind is ReferenceKind.ISSUE
    assert match.keyword == "issue"
    assert match.identifier == "123"
    assert matcher.match(tokens, 2) is None


@pytest.mark.core
def test_multi_word_needs_reference(bitbucket_context):
    """
    Given: The keyword followed by a non-reference
    When: Linking the tokens
    Then: Nothing is linked
    """
    assert linkify("issue tracker", bitbucket_context) == "issue tracker"


@pytest.mark.core
def test_shorten_link(github_context):
    """
    Given: An auto-link whose text is its target and a link with custom text
    When: Shortening them
    Then: Only the auto-link is shortened
    """
    url = "https://github.com/o/r/issues/3"

    assert shorten_link(url, url, github_context).display_text == "o/r#3"
    assert shorten_link("the bug", url, github_context) is None


@pytest.mark.core
def test_autolinks_are_shortened(github_context):
    """
    Given: Angle-bracket autolinks to an issue and to an unrelated site
    When: Linkifying the text
    Then: The issue autolink becomes a short reference link and the other stays as is
    """
    text = "See <https://github.com/o/r/issues/3>, not <https://example.org/docs>."

    assert tokenize(text)[2] == Token("<https://github.com/o/r/issues/3>", TokenKind.LINK)
    assert linkify(text, github_context) == (
        "See [o/r#3 (GitHub)](https://github.com/o/r/issues/3), "
        "not <https://example.org/docs>."
    )


@pytest.mark.core
def test_disabled_context_passes_through(github_context):
    """
    Given: A disabled context
    When: Linking tokens
    Then: The tokens come back unchanged
    """
    tokens = tokenize("See #1 and @octocat")

    assert link_tokens(tokens, github_context.disabled()) == tokens


@pytest.mark.core
def test_badge_settings_carried_on_links(make_context):
    """
    Given: badge-position before
    When: Linking a token
    Then: The link carries the badge position for the host
    """
    context = make_context(badge_position="before")

    link = link_tokens([Token("#2")], context)[0]

    assert link.badge_position == "before"
    assert link.show_badge is True
