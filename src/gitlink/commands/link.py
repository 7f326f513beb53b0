"""
Link CLI Command
================
Resolves individual tokens and linkifies documents from the command line.

Usage:
    gitlink resolve '#12' owner/repo@abc1234 --repo owner/repo
    gitlink link "Fixed in !34" --platform gitlab --repo group/project
    gitlink link --file notes.md
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from gitlink.core.context import ResolverContext, build_context
from gitlink.core.linker import link_mention, link_token, linkify
from gitlink.core.registry import PlatformRegistry
from gitlink.utils.config import collect_citation_ids, load_front_matter, strip_front_matter

logger = logging.getLogger(__name__)


def build_meta(
    file_meta: Optional[Dict[str, Any]] = None,
    platform: Optional[str] = None,
    repo: Optional[str] = None,
    base_url: Optional[str] = None,
    custom_platforms: Optional[str] = None,
    show_badge: Optional[bool] = None,
    badge_position: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge command-line options over document metadata."""
    meta = dict(file_meta or {})
    section = dict(meta.get("gitlink") or {})
    extensions = meta.get("extensions")
    if isinstance(extensions, dict) and isinstance(extensions.get("gitlink"), dict):
        section = {**extensions["gitlink"], **section}

    overrides = {
        "platform": platform,
        "repository-name": repo,
        "base-url": base_url,
        "custom-platforms-file": custom_platforms,
        "show-platform-badge": show_badge,
        "badge-position": badge_position,
    }
    section.update({k: v for k, v in overrides.items() if v is not None})
    meta["gitlink"] = section
    meta.pop("extensions", None)
    return meta


class LinkCommand:
    """CLI command handler for token resolution and document linkification."""

    def __init__(self, registry: Optional[PlatformRegistry] = None):
        self.registry = registry or PlatformRegistry()

    def _context(
        self,
        meta: Dict[str, Any],
        citation_ids: List[str],
        base_dir: Optional[Path] = None,
    ) -> ResolverContext:
        return build_context(
            meta,
            registry=self.registry,
            citation_ids=citation_ids,
            base_dir=base_dir,
            sink=logger,
        )

    def resolve(
        self,
        tokens: List[str],
        meta: Dict[str, Any],
        citation_ids: Optional[List[str]] = None,
        format: str = "text",
    ) -> int:
        """
        Resolve each token and print the outcome.

        Returns:
            Exit code (0 if every token resolved, 1 otherwise)
        """
        context = self._context(meta, citation_ids or [])
        results = []
        for token in tokens:
            if token.startswith("@"):
                link = link_mention(token, context)
            else:
                link = link_token(token, context)
            results.append((token, link))

        if format == "json":
            print(json.dumps(
                [{"token": t, "link": link.to_dict() if link else None} for t, link in results],
                indent=2,
            ))
        else:
            for token, link in results:
                if link:
                    print(f"{token:<24} → {link.display_text:<24} {link.url}  ({link.platform_label})")
                else:
                    print(f"{token:<24} → (no match)")

        return 0 if all(link for _, link in results) else 1

    def link(
        self,
        text: Optional[str],
        meta: Dict[str, Any],
        citation_ids: Optional[List[str]] = None,
        file: Optional[Path] = None,
    ) -> int:
        """
        Linkify text (or a document's body) and print Markdown.

        Document front matter supplies options and bibliographic ids;
        command-line options take precedence.
        """
        base_dir = None
        ids = set(citation_ids or [])
        if file is not None:
            try:
                body = Path(file).read_text(encoding="utf-8")
            except OSError as e:
                print(f"Error reading {file}: {e}", file=sys.stderr)
                return 1
            file_meta = load_front_matter(file)
            ids |= collect_citation_ids(file_meta)
            gitlink_overrides = meta.get("gitlink", {})
            meta = build_meta(file_meta)
            meta["gitlink"].update(gitlink_overrides)
            text = strip_front_matter(body)
            base_dir = Path(file).parent

        if text is None:
            text = sys.stdin.read()

        context = self._context(meta, sorted(ids), base_dir=base_dir)
        print(linkify(text, context), end="" if text.endswith("\n") else "\n")
        return 0
