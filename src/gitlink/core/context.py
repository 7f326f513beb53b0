"""
Resolver Context
================
Per-document state for reference resolution.

A ResolverContext is built once per document render, during metadata
resolution and before any token is processed. It is immutable
afterwards and carries its own registry snapshot, so concurrent renders
never share mutable state.

Diagnostics (custom platform load failures, unsupported platforms) are
reported once through the supplied logger. The render then continues
with a disabled context that leaves every token unchanged.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, FrozenSet, Iterable, Mapping, Optional

from gitlink.core.errors import LoadError, UnsupportedPlatformError
from gitlink.core.models import PlatformSchema
from gitlink.core.registry import PlatformRegistry
from gitlink.utils.config import get_gitlink_options, parse_bool
from gitlink.utils.repo import detect_repository

logger = logging.getLogger(__name__)

EXTENSION_NAME = "gitlink"
DEFAULT_PLATFORM = "github"
BADGE_POSITIONS = ("before", "after")


@dataclass(frozen=True)
class ResolverContext:
    """
    Document-scoped resolution state.

    Attributes:
        platform_id: Active platform id
        base_url: Base URL for the active platform (option or schema default)
        repository_name: Current ``owner/repo``, if known
        show_badge: Whether hosts should render a platform badge
        badge_position: "before" or "after" the link
        citation_ids: Bibliographic ids that must stay citations
        registry: Registry snapshot used for every lookup
        enabled: False when metadata resolution failed
    """

    platform_id: str = DEFAULT_PLATFORM
    base_url: str = "https://github.com"
    repository_name: Optional[str] = None
    show_badge: bool = True
    badge_position: str = "after"
    citation_ids: FrozenSet[str] = frozenset()
    registry: PlatformRegistry = field(default_factory=PlatformRegistry, compare=False, repr=False)
    enabled: bool = True

    @property
    def schema(self) -> Optional[PlatformSchema]:
        """Schema of the active platform, or None when disabled/unknown."""
        if not self.enabled:
            return None
        return self.registry.get(self.platform_id)

    def with_citations(self, citation_ids: Iterable[str]) -> "ResolverContext":
        return dataclasses.replace(self, citation_ids=frozenset(citation_ids))

    def disabled(self) -> "ResolverContext":
        return dataclasses.replace(self, enabled=False)


def build_context(
    meta: Optional[Mapping[str, Any]] = None,
    registry: Optional[PlatformRegistry] = None,
    citation_ids: Iterable[str] = (),
    repository_detector: Optional[Callable[[], Optional[str]]] = None,
    base_dir: Optional[Path] = None,
    sink: Optional[logging.Logger] = None,
) -> ResolverContext:
    """
    Resolve document metadata into a ResolverContext.

    Args:
        meta: Document metadata (options under ``gitlink`` or
            ``extensions.gitlink``)
        registry: Shared registry; built-ins are loaded on demand and it is
            never modified (custom platforms load into a snapshot)
        citation_ids: Ids of the document's bibliographic references
        repository_detector: Fallback for a missing ``repository-name``
            (default: git remote detection)
        base_dir: Directory relative custom platform files resolve against
        sink: Logger receiving diagnostics (default: this module's logger)

    Returns:
        An enabled context, or a disabled one after reporting a diagnostic
    """
    log = sink or logger
    registry = registry if registry is not None else PlatformRegistry()
    options = get_gitlink_options(meta)
    ids = frozenset(citation_ids)

    try:
        registry.initialise()
    except LoadError as e:
        log.error("[%s] Failed to load built-in platforms:\n%s", EXTENSION_NAME, e)
        return ResolverContext(citation_ids=ids, registry=registry.snapshot(), enabled=False)

    # Custom platforms go into this document's copy only
    registry = registry.snapshot()
    custom_file = options.get("custom-platforms-file")
    if custom_file:
        custom_path = Path(custom_file)
        if base_dir and not custom_path.is_absolute():
            custom_path = Path(base_dir) / custom_path
        try:
            registry.initialise(custom_path)
        except LoadError as e:
            log.error("[%s] Failed to load custom platforms from '%s':\n%s", EXTENSION_NAME, custom_file, e)
            return ResolverContext(citation_ids=ids, registry=registry, enabled=False)

    platform_id = str(options.get("platform") or DEFAULT_PLATFORM).lower()
    schema = registry.get(platform_id)
    if schema is None:
        log.error("[%s] %s", EXTENSION_NAME, UnsupportedPlatformError(platform_id, registry.list_ids()))
        return ResolverContext(
            platform_id=platform_id, citation_ids=ids, registry=registry, enabled=False
        )

    base_url = str(options.get("base-url") or schema.default_url).rstrip("/")

    repository = options.get("repository-name")
    if not repository:
        detector = repository_detector or (lambda: detect_repository(base_dir))
        repository = detector()
        if repository:
            log.debug("[%s] Detected repository %s", EXTENSION_NAME, repository)

    show_badge = parse_bool(options.get("show-platform-badge"), default=True)

    badge_position = str(options.get("badge-position") or "after").lower()
    if badge_position not in BADGE_POSITIONS:
        log.warning(
            "[%s] Invalid badge-position '%s' (expected 'before' or 'after'); using 'after'",
            EXTENSION_NAME, badge_position,
        )
        badge_position = "after"

    return ResolverContext(
        platform_id=platform_id,
        base_url=base_url,
        repository_name=str(repository) if repository else None,
        show_badge=show_badge,
        badge_position=badge_position,
        citation_ids=ids,
        registry=registry,
    )
