"""
gitlink data model.

- ReferenceKind: the kinds of hosting-platform entity a reference denotes
- PlatformSchema: validated, immutable description of one hosting platform
- ReferenceMatch: a recognised reference, before formatting
- Token: a run of document text handed over by the host
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from gitlink.core.patterns import CompiledPattern, compile_pattern


class ReferenceKind(Enum):
    """Kinds of reference, keyed by their normalised schema name."""

    ISSUE = "issue"
    MERGE_REQUEST = "merge_request"
    PULL = "pull"
    COMMIT = "commit"
    USER = "user"

    @property
    def label(self) -> str:
        """External (hyphenated) spelling used in configuration files."""
        return self.value.replace("_", "-")

    @property
    def marker(self) -> str:
        return "!" if self is ReferenceKind.MERGE_REQUEST else "#"


REQUIRED_PATTERN_KINDS = ("issue", "merge_request", "commit", "user")
REQUIRED_URL_FORMAT_KINDS = ("issue", "merge_request", "pull", "commit", "user")
KEYWORD_KINDS = ("issue", "merge_request", "pull")

COMMIT_SHA_MIN_LENGTH = 7
COMMIT_SHA_FULL_LENGTH = 40
COMMIT_SHA_SHORT_LENGTH = 7

# Display names for the built-in platforms when a schema gives none
KNOWN_PLATFORM_LABELS = {
    "github": "GitHub",
    "gitlab": "GitLab",
    "codeberg": "Codeberg",
    "gitea": "Gitea",
    "bitbucket": "Bitbucket",
}


def normalise_keys(value: Any) -> Any:
    """Recursively convert hyphenated mapping keys to underscores."""
    if isinstance(value, Mapping):
        return {
            (k.replace("-", "_") if isinstance(k, str) else k): normalise_keys(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [normalise_keys(v) for v in value]
    return value


def platform_label(platform_id: str, display_name: Optional[str] = None) -> str:
    """Human-readable platform name."""
    if display_name:
        return display_name
    known = KNOWN_PLATFORM_LABELS.get(platform_id.lower())
    if known:
        return known
    return platform_id[:1].upper() + platform_id[1:]


@dataclass(frozen=True)
class PlatformSchema:
    """
    A validated platform configuration.

    Attributes:
        id: Lowercase platform identifier (unique in a registry)
        default_url: Absolute base URL of the hosting service
        patterns: Ordered pattern sources for issue, merge_request and commit
        user_pattern: Single pattern source for user mentions
        url_formats: URL template per reference kind
        display_name: Optional human-readable name
        keywords: (kind, words) pairs enabling multi-word references
    """

    id: str
    default_url: str
    patterns: Dict[str, Tuple[str, ...]]
    user_pattern: str
    url_formats: Dict[str, str]
    display_name: Optional[str] = None
    keywords: Tuple[Tuple[str, Tuple[str, ...]], ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, platform_id: str, config: Mapping[str, Any]) -> "PlatformSchema":
        """Build a schema from a normalised, already validated config mapping."""
        patterns = config["patterns"]
        keywords = config.get("keywords") or {}
        return cls(
            id=platform_id.lower(),
            default_url=config["default_url"],
            patterns={
                kind: tuple(patterns[kind])
                for kind in REQUIRED_PATTERN_KINDS
                if kind != "user"
            },
            user_pattern=patterns["user"],
            url_formats={
                kind: config["url_formats"][kind]
                for kind in REQUIRED_URL_FORMAT_KINDS
            },
            display_name=config.get("display_name"),
            keywords=tuple(
                (kind.replace("-", "_"), tuple(phrase.split()))
                for kind, phrase in keywords.items()
            ),
        )

    @property
    def label(self) -> str:
        return platform_label(self.id, self.display_name)

    def compiled(self, kind: str) -> List[CompiledPattern]:
        """Compiled patterns for a kind, in declaration order."""
        if kind == "user":
            return [compile_pattern(self.user_pattern)]
        return [compile_pattern(p) for p in self.patterns.get(kind, ())]

    def url_format(self, kind: ReferenceKind) -> Optional[str]:
        return self.url_formats.get(kind.value)

    def to_config(self) -> Dict[str, Any]:
        """Serialise back to the external (hyphenated) configuration shape."""
        patterns: Dict[str, Any] = {
            kind.replace("_", "-"): list(sources) for kind, sources in self.patterns.items()
        }
        patterns["user"] = self.user_pattern
        config: Dict[str, Any] = {
            "default-url": self.default_url,
            "patterns": patterns,
            "url-formats": {k.replace("_", "-"): v for k, v in self.url_formats.items()},
        }
        if self.display_name:
            config["display-name"] = self.display_name
        if self.keywords:
            config["keywords"] = {k.replace("_", "-"): " ".join(w) for k, w in self.keywords}
        return config


@dataclass(frozen=True)
class ReferenceMatch:
    """
    A recognised reference.

    Attributes:
        kind: Reference kind
        repo: owner/repo the reference points into (empty only for users)
        identifier: Issue/MR number, commit SHA or username
        platform_id: Platform whose schema formats the link
        base_url: Base URL the link is resolved against
        repo_label: Repo prefix as written by the author (``user`` in ``user@sha``)
        keyword: Keyword phrase of a multi-word reference
    """

    kind: ReferenceKind
    repo: str
    identifier: str
    platform_id: str
    base_url: str
    repo_label: Optional[str] = None
    keyword: Optional[str] = None


class TokenKind(Enum):
    """Boundary class of a text token."""

    WORD = "word"
    SPACE = "space"
    SYMBOL = "symbol"
    CITATION = "citation"
    LINK = "link"


@dataclass(frozen=True)
class Token:
    """A run of document text with its boundary class."""

    text: str
    kind: TokenKind = TokenKind.WORD
