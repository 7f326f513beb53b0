"""
Reference Resolution Engine
===========================
Turns a single text token into a typed ReferenceMatch.

Resolution order for a token (first success wins, no backtracking):
1. Issue / merge-request patterns of the active platform, then full
   issue, merge-request and pull-request URLs of any registered platform
2. Commit patterns of the active platform, then commit URLs
3. User profile URLs of any registered platform

Citation-style mentions (``@name``) take a separate path through
resolve_mention(), which leaves genuine bibliographic citations alone.

URL scan order is deterministic: the active platform with the document's
base URL first, then PlatformRegistry.iter_platforms() with each schema's
default URL.
"""
import logging
import re
from typing import Iterator, List, Optional, Sequence, Tuple

from gitlink.core.context import ResolverContext
from gitlink.core.models import (
    COMMIT_SHA_FULL_LENGTH,
    COMMIT_SHA_MIN_LENGTH,
    PlatformSchema,
    ReferenceKind,
    ReferenceMatch,
)
from gitlink.core.patterns import CompiledPattern, compile_pattern, escape

logger = logging.getLogger(__name__)

# Path forms appended to an escaped base URL, tried in order
ISSUE_URL_FORMS = (
    (ReferenceKind.ISSUE, "/([^/]+/[^/]+)/%-?/?issues?/(%d+)"),
    (ReferenceKind.MERGE_REQUEST, "/([^/]+/[^/]+)/%-?/?merge[_%-]requests?/(%d+)"),
    (ReferenceKind.PULL, "/([^/]+/[^/]+)/%-?/?pull%-requests/(%d+)"),
    (ReferenceKind.PULL, "/([^/]+/[^/]+)/%-?/?pulls?/(%d+)"),
)
COMMIT_URL_FORM = "/([^/]+/[^/]+)/%-?/?commits?/(%x+)"
USER_URL_FORM = "/([%w%-%.]+)$"

# What may follow the number or SHA of a matched URL
URL_TAIL_CHARACTERS = "/#?"

_COMMIT_SHA_RE = re.compile(
    r"[0-9A-Fa-f]{%d,%d}" % (COMMIT_SHA_MIN_LENGTH, COMMIT_SHA_FULL_LENGTH)
)


def is_commit_sha(text: str) -> bool:
    """True for 7 to 40 hexadecimal characters."""
    return bool(_COMMIT_SHA_RE.fullmatch(text))


def url_pattern(base_url: str, form: str) -> CompiledPattern:
    """Compile a URL matching pattern for a base URL and a path form."""
    return compile_pattern("^" + escape(base_url.rstrip("/")) + form)


def _url_tail_ok(token: str, end: int) -> bool:
    return end == len(token) or token[end] in URL_TAIL_CHARACTERS


class ReferenceResolver:
    """
    Resolves tokens against the active platform and all registered platforms.

    Never raises for token input: a token that is not a reference yields None.
    """

    def __init__(self, context: ResolverContext):
        self.context = context

    @property
    def schema(self) -> Optional[PlatformSchema]:
        return self.context.schema

    def resolve_any(self, token: str) -> Optional[ReferenceMatch]:
        """Try issue/MR, then commit, then user URL resolution."""
        if not token or self.schema is None:
            return None
        match = (
            self.resolve_issue_or_mr(token)
            or self.resolve_commit(token)
            or self.resolve_user(token)
        )
        if match:
            logger.debug("Resolved %r as %s on %s", token, match.kind.value, match.platform_id)
        return match

    # -------------------------------------------------------------------------
    # Issues, merge requests and pull requests
    # -------------------------------------------------------------------------

    def _issue_rules(self, schema: PlatformSchema) -> List[Tuple[ReferenceKind, CompiledPattern]]:
        rules = [(ReferenceKind.ISSUE, p) for p in schema.compiled("issue")]
        rules += [(ReferenceKind.MERGE_REQUEST, p) for p in schema.compiled("merge_request")]
        return rules

    def _from_captures(
        self, kind: ReferenceKind, captures: Sequence[str], schema: PlatformSchema
    ) -> Optional[ReferenceMatch]:
        identifier = captures[-1]
        repo = captures[0] if len(captures) >= 2 else self.context.repository_name
        if not repo or not identifier:
            return None
        return ReferenceMatch(
            kind=kind,
            repo=repo,
            identifier=identifier,
            platform_id=schema.id,
            base_url=self.context.base_url,
        )

    def resolve_issue_or_mr(self, token: str) -> Optional[ReferenceMatch]:
        """
        Resolve ``#N``, ``owner/repo#N``, ``!N``, platform prefixes and URLs.

        The first pattern that matches the whole token decides the outcome,
        even if it cannot be resolved (a bare ``#N`` without a current
        repository).
        """
        schema = self.schema
        if schema is None or not token:
            return None

        for kind, compiled in self._issue_rules(schema):
            m = compiled.fullmatch(token)
            if m is not None and m.captures:
                return self._from_captures(kind, m.captures, schema)

        return self._match_issue_url(token)

    def match_issue_token(self, token: str) -> Optional[ReferenceMatch]:
        """Match a token against the active platform's issue patterns only."""
        schema = self.schema
        if schema is None:
            return None
        for compiled in schema.compiled("issue"):
            m = compiled.fullmatch(token)
            if m is not None and m.captures:
                return self._from_captures(ReferenceKind.ISSUE, m.captures, schema)
        return None

    def _url_candidates(self) -> Iterator[Tuple[PlatformSchema, str]]:
        seen = set()
        active = self.schema
        if active is not None:
            seen.add((active.id, self.context.base_url))
            yield active, self.context.base_url
        for schema in self.context.registry.iter_platforms():
            base_url = schema.default_url.rstrip("/")
            if (schema.id, base_url) in seen:
                continue
            seen.add((schema.id, base_url))
            yield schema, base_url

    def _match_issue_url(self, token: str) -> Optional[ReferenceMatch]:
        if "://" not in token:
            return None
        for schema, base_url in self._url_candidates():
            for kind, form in ISSUE_URL_FORMS:
                m = url_pattern(base_url, form).search(token)
                if m is not None and _url_tail_ok(token, m.end):
                    repo, number = m.captures
                    return ReferenceMatch(
                        kind=kind,
                        repo=repo,
                        identifier=number,
                        platform_id=schema.id,
                        base_url=base_url,
                    )
        return None

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    def resolve_commit(self, token: str) -> Optional[ReferenceMatch]:
        """Resolve bare SHAs, ``owner/repo@sha``, ``user@sha`` and commit URLs."""
        schema = self.schema
        if schema is None or not token:
            return None

        for compiled in schema.compiled("commit"):
            m = compiled.fullmatch(token)
            if m is None or not m.captures:
                continue
            match = self._commit_from_captures(m.captures, schema)
            if match is not None:
                return match

        return self._match_commit_url(token)

    def _commit_from_captures(
        self, captures: Sequence[str], schema: PlatformSchema
    ) -> Optional[ReferenceMatch]:
        sha = captures[-1]
        if not is_commit_sha(sha):
            return None

        current = self.context.repository_name
        repo_label = None
        if len(captures) == 1:
            repo = current
        elif "/" in captures[0]:
            repo = captures[0]
        else:
            # user@sha: same repository name under another owner
            if not current or "/" not in current:
                return None
            repo_label = captures[0]
            repo = f"{repo_label}/{current.split('/', 1)[1]}"

        if not repo:
            return None
        return ReferenceMatch(
            kind=ReferenceKind.COMMIT,
            repo=repo,
            identifier=sha,
            platform_id=schema.id,
            base_url=self.context.base_url,
            repo_label=repo_label,
        )

    def _match_commit_url(self, token: str) -> Optional[ReferenceMatch]:
        if "://" not in token:
            return None
        for schema, base_url in self._url_candidates():
            m = url_pattern(base_url, COMMIT_URL_FORM).search(token)
            if m is None or not _url_tail_ok(token, m.end):
                continue
            repo, sha = m.captures
            if not is_commit_sha(sha):
                continue
            return ReferenceMatch(
                kind=ReferenceKind.COMMIT,
                repo=repo,
                identifier=sha,
                platform_id=schema.id,
                base_url=base_url,
            )
        return None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def resolve_user(self, token: str) -> Optional[ReferenceMatch]:
        """Resolve a profile URL ``{base}/{username}`` of any registered platform."""
        if self.schema is None or "://" not in (token or ""):
            return None
        for schema, base_url in self._url_candidates():
            m = url_pattern(base_url, USER_URL_FORM).search(token)
            if m is not None:
                return ReferenceMatch(
                    kind=ReferenceKind.USER,
                    repo=self.context.repository_name or "",
                    identifier=m.captures[0],
                    platform_id=schema.id,
                    base_url=base_url,
                )
        return None

    def resolve_mention(
        self, mention_text: str, citation_id: Optional[str] = None
    ) -> Optional[ReferenceMatch]:
        """
        Resolve a citation-style ``@name`` mention.

        Args:
            mention_text: Mention as written, e.g. ``@octocat``
            citation_id: Citation key, defaults to the mention without ``@``

        Returns:
            A user match, or None for real citations and non-matching text
        """
        schema = self.schema
        if schema is None or not mention_text:
            return None

        key = citation_id if citation_id is not None else mention_text.lstrip("@")
        if key in self.context.citation_ids:
            return None

        m = compile_pattern(schema.user_pattern).search(mention_text)
        if m is None:
            return None
        username = m.captures[0] if m.captures else m.text
        if not username:
            return None
        return ReferenceMatch(
            kind=ReferenceKind.USER,
            repo=self.context.repository_name or "",
            identifier=username,
            platform_id=schema.id,
            base_url=self.context.base_url,
        )
