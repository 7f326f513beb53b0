"""
Multi-word references.

Some platforms (Bitbucket) spell references with a keyword in front of
the marker: ``issue #123``, ``pull request owner/repo#456``. A schema
enables this through ``keywords``; the matcher then recognises the run
``word space word ... space reference`` and consumes it as one unit.
"""
import dataclasses
from typing import Optional, Sequence, Tuple

from gitlink.core.context import ResolverContext
from gitlink.core.models import ReferenceKind, ReferenceMatch, Token, TokenKind
from gitlink.core.resolver import ReferenceResolver


class MultiWordMatcher:
    """Matches keyword-prefixed references spanning several tokens."""

    def __init__(self, context: ResolverContext, resolver: Optional[ReferenceResolver] = None):
        self.context = context
        self.resolver = resolver or ReferenceResolver(context)

    def match(self, tokens: Sequence[Token], start: int) -> Optional[Tuple[ReferenceMatch, int]]:
        """
        Try every keyword phrase of the active platform at tokens[start].

        Returns:
            (match, number of tokens consumed) or None
        """
        schema = self.context.schema
        if schema is None or not schema.keywords:
            return None

        for kind, words in schema.keywords:
            length = 2 * len(words) + 1
            run = tokens[start:start + length]
            if len(run) < length or not self._is_keyword_run(run, words):
                continue
            reference = self.resolver.match_issue_token(run[-1].text)
            if reference is None:
                continue
            return (
                dataclasses.replace(reference, kind=ReferenceKind(kind), keyword=" ".join(words)),
                length,
            )
        return None

    @staticmethod
    def _is_keyword_run(run: Sequence[Token], words: Sequence[str]) -> bool:
        for index, word in enumerate(words):
            head, gap = run[2 * index], run[2 * index + 1]
            if head.kind is not TokenKind.WORD or head.text != word:
                return False
            if gap.kind is not TokenKind.SPACE:
                return False
        return run[-1].kind is TokenKind.WORD
