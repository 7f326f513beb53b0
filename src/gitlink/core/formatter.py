"""
Link Formatter
==============
Turns a ReferenceMatch into display text and a target URL.

Display rules:
- issue / pull:   #N, or owner/repo#N outside the current repository
- merge request:  !N, or owner/repo!N
- commit:         first 7 characters, or owner/repo@abc1234 (user@abc1234)
- user:           @username
- multi-word:     keyword phrase + space + the above (``issue #12``)

URL templates are expanded in one pass; substituted values are never
re-scanned, and a template with an unknown placeholder yields no link.
"""
import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from gitlink.core.context import ResolverContext
from gitlink.core.models import COMMIT_SHA_SHORT_LENGTH, ReferenceKind, ReferenceMatch

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def expand_template(template: str, values: Mapping[str, str]) -> Optional[str]:
    """
    Substitute ``{name}`` placeholders.

    Returns:
        The expanded string, or None if a placeholder has no value
    """
    missing = []

    def substitute(m):
        name = m.group(1)
        if name in values:
            return values[name]
        missing.append(name)
        return m.group(0)

    expanded = _PLACEHOLDER_RE.sub(substitute, template)
    if missing:
        logger.debug("Unresolved placeholders %s in %r", missing, template)
        return None
    return expanded


@dataclass(frozen=True)
class PlatformLink:
    """
    A resolved reference, ready for the host to substitute.

    Attributes:
        display_text: Short link text (e.g. ``#123``)
        url: Absolute target URL
        platform_id: Platform the link points into
        platform_label: Human-readable platform name for badges/tooltips
        kind: Reference kind
        show_badge: Whether the host should render a platform badge
        badge_position: "before" or "after" the link
    """

    display_text: str
    url: str
    platform_id: str
    platform_label: str
    kind: ReferenceKind
    show_badge: bool = True
    badge_position: str = "after"

    def to_markdown(self) -> str:
        """Markdown link with a parenthetical platform label (non-HTML output)."""
        text = self.display_text.replace("[", "\\[").replace("]", "\\]")
        if self.show_badge:
            text = f"{text} ({self.platform_label})"
        return f"[{text}]({self.url})"

    def to_dict(self) -> dict:
        return {
            "display_text": self.display_text,
            "url": self.url,
            "platform": self.platform_id,
            "platform_label": self.platform_label,
            "kind": self.kind.value,
        }


class LinkFormatter:
    """Formats matches using the schema of the platform each match carries."""

    def __init__(self, context: ResolverContext):
        self.context = context

    def display_text(self, match: ReferenceMatch) -> str:
        current = self.context.repository_name
        prefix = match.repo_label or match.repo

        if match.kind is ReferenceKind.USER:
            text = f"@{match.identifier}"
        elif match.kind is ReferenceKind.COMMIT:
            short = match.identifier[:COMMIT_SHA_SHORT_LENGTH]
            text = short if match.repo == current else f"{prefix}@{short}"
        else:
            number = f"{match.kind.marker}{match.identifier}"
            text = number if match.repo == current else f"{prefix}{number}"

        if match.keyword:
            text = f"{match.keyword} {text}"
        return text

    def url(self, match: ReferenceMatch) -> Optional[str]:
        schema = self.context.registry.get(match.platform_id)
        if schema is None:
            return None
        template = schema.url_format(match.kind)
        if not template:
            return None
        path = expand_template(template, {
            "repo": match.repo,
            "number": match.identifier,
            "sha": match.identifier,
            "username": match.identifier,
        })
        if path is None:
            return None
        return match.base_url.rstrip("/") + path

    def format(self, match: Optional[ReferenceMatch]) -> Optional[PlatformLink]:
        """Build a PlatformLink, or None if any part would be empty or malformed."""
        if match is None or not match.identifier:
            return None
        url = self.url(match)
        text = self.display_text(match)
        if not url or not text:
            return None
        return PlatformLink(
            display_text=text,
            url=url,
            platform_id=match.platform_id,
            platform_label=self.context.registry.display_name(match.platform_id),
            kind=match.kind,
            show_badge=self.context.show_badge,
            badge_position=self.context.badge_position,
        )
