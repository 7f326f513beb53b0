"""
Token linker: the host-facing entry points.

Hosts hand over runs of document text as Tokens and substitute whatever
comes back: the same Token when nothing was recognised, or a PlatformLink.
Nothing here mutates the host's document.

Usage:
    context = build_context(meta, registry, citation_ids={"knuth1984"})
    items = link_tokens(tokenize("Fixed in #12 by @octocat"), context)
    render_markdown(items)
"""
import logging
import re
from typing import List, Optional, Sequence, Union

from gitlink.core.context import ResolverContext
from gitlink.core.formatter import LinkFormatter, PlatformLink
from gitlink.core.models import Token, TokenKind
from gitlink.core.multiword import MultiWordMatcher
from gitlink.core.resolver import ReferenceResolver

logger = logging.getLogger(__name__)

LinkedItem = Union[Token, PlatformLink]

_WHITESPACE_RE = re.compile(r"(\s+)")
_LEADING_SYMBOLS_RE = re.compile(r"^[(\[\"']+")
_TRAILING_SYMBOLS_RE = re.compile(r"[.,;:!?)\]\"']+$")
_CITATION_RE = re.compile(r"^@\w[\w:.#$%&+?<>~/-]*$")
_AUTOLINK_RE = re.compile(r"^<([A-Za-z][A-Za-z0-9+.-]*://[^\s<>]+)>$")


def tokenize(text: str) -> List[Token]:
    """
    Split text into word, space, symbol, citation and autolink tokens.

    Leading brackets/quotes and trailing punctuation become symbol tokens so
    that ``(#12).`` still yields a ``#12`` word. ``@id`` words are citations
    and ``<scheme://...>`` words are autolinks.
    """
    tokens: List[Token] = []
    for part in _WHITESPACE_RE.split(text):
        if not part:
            continue
        if part.isspace():
            tokens.append(Token(part, TokenKind.SPACE))
            continue

        leading = _LEADING_SYMBOLS_RE.match(part)
        if leading:
            tokens.append(Token(leading.group(0), TokenKind.SYMBOL))
            part = part[leading.end():]
        trailing = _TRAILING_SYMBOLS_RE.search(part)
        tail = None
        if trailing:
            tail = trailing.group(0)
            part = part[:trailing.start()]

        if part:
            if _AUTOLINK_RE.match(part):
                kind = TokenKind.LINK
            elif _CITATION_RE.match(part):
                kind = TokenKind.CITATION
            else:
                kind = TokenKind.WORD
            tokens.append(Token(part, kind))
        if tail:
            tokens.append(Token(tail, TokenKind.SYMBOL))
    return tokens


def link_token(text: str, context: ResolverContext) -> Optional[PlatformLink]:
    """Convert a single token into a link, or None when it is not a reference."""
    match = ReferenceResolver(context).resolve_any(text)
    return LinkFormatter(context).format(match)


def link_mention(
    mention_text: str, context: ResolverContext, citation_id: Optional[str] = None
) -> Optional[PlatformLink]:
    """Convert a ``@name`` citation into a user link unless it is a real citation."""
    match = ReferenceResolver(context).resolve_mention(mention_text, citation_id)
    return LinkFormatter(context).format(match)


def shorten_link(text: str, target: str, context: ResolverContext) -> Optional[PlatformLink]:
    """
    Shorten an auto-link whose text is its own target URL.

    Returns:
        The shortened link, or None for links with custom text or
        unrecognised targets
    """
    if text != target:
        return None
    return link_token(target, context)


def link_tokens(tokens: Sequence[Token], context: ResolverContext) -> List[LinkedItem]:
    """
    Replace recognised references in a token sequence.

    Multi-word references are tried first at each position; a matched run is
    consumed whole and its tokens are not looked at again.
    """
    if not context.enabled:
        logger.debug("Context disabled; leaving %d token(s) unchanged", len(tokens))
        return list(tokens)

    resolver = ReferenceResolver(context)
    formatter = LinkFormatter(context)
    multi_word = MultiWordMatcher(context, resolver)

    items: List[LinkedItem] = []
    i = 0
    while i < len(tokens):
        found = multi_word.match(tokens, i)
        if found is not None:
            match, consumed = found
            link = formatter.format(match)
            if link is not None:
                items.append(link)
                i += consumed
                continue

        token = tokens[i]
        link = None
        if token.kind is TokenKind.CITATION:
            link = formatter.format(resolver.resolve_mention(token.text))
        elif token.kind is TokenKind.WORD:
            link = formatter.format(resolver.resolve_any(token.text))
        elif token.kind is TokenKind.LINK:
            target = _AUTOLINK_RE.match(token.text).group(1)
            link = shorten_link(target, target, context)
        items.append(link if link is not None else token)
        i += 1

    return items


def render_markdown(items: Sequence[LinkedItem]) -> str:
    """Join linked items back into Markdown text."""
    return "".join(
        item.to_markdown() if isinstance(item, PlatformLink) else item.text
        for item in items
    )


def linkify(text: str, context: ResolverContext) -> str:
    """Tokenize, link and render a plain text fragment as Markdown."""
    return render_markdown(link_tokens(tokenize(text), context))
