"""
gitlink Configuration Loader.

Reads per-document options from YAML front matter and applies defaults.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Set

import yaml

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = {
    "platform": "github",
    "base-url": None,
    "repository-name": None,
    "custom-platforms-file": None,
    "show-platform-badge": True,
    "badge-position": "after",
}

FRONT_MATTER_DELIMITER = "---"


def load_front_matter(path: Path) -> Dict[str, Any]:
    """
    Load document metadata.

    For ``.yml``/``.yaml`` files the whole file is the metadata; for any
    other file, the leading ``---`` delimited YAML block is read.

    Args:
        path: Document or metadata file path

    Returns:
        Parsed metadata dict, or empty dict if there is none

    Example document:
        ---
        title: Release notes
        gitlink:
          platform: gitlab
          repository-name: group/project
          badge-position: before
        ---
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return {}

    if Path(path).suffix.lower() not in (".yml", ".yaml"):
        text = _front_matter_block(text)
        if text is None:
            return {}

    try:
        meta = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.warning("Invalid YAML metadata in %s: %s", path, e)
        return {}
    return meta if isinstance(meta, dict) else {}


def _front_matter_block(text: str) -> Optional[str]:
    lines = text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return None
    for index, line in enumerate(lines[1:], 1):
        if line.strip() in (FRONT_MATTER_DELIMITER, "..."):
            return "\n".join(lines[1:index])
    return None


def strip_front_matter(text: str) -> str:
    """Return document text without its leading front matter block."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return text
    for index, line in enumerate(lines[1:], 1):
        if line.strip() in (FRONT_MATTER_DELIMITER, "..."):
            return "".join(lines[index + 1:])
    return text


def get_gitlink_options(meta: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Get gitlink options with defaults applied.

    Options are read from ``extensions.gitlink`` or, failing that, from a
    top-level ``gitlink`` mapping.

    Args:
        meta: Document metadata

    Returns:
        Options dict keyed by the hyphenated option names
    """
    meta = meta or {}
    section: Any = None
    extensions = meta.get("extensions")
    if isinstance(extensions, Mapping):
        section = extensions.get("gitlink")
    if section is None:
        section = meta.get("gitlink")
    if not isinstance(section, Mapping):
        section = {}

    options = dict(DEFAULT_OPTIONS)
    for key, value in section.items():
        key = str(key).replace("_", "-")
        if key not in DEFAULT_OPTIONS:
            logger.warning("Ignoring unknown gitlink option: %s", key)
            continue
        if value is not None:
            options[key] = value
    return options


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret a metadata flag given as a boolean or a "true"/"false" string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
    return default


def collect_citation_ids(meta: Optional[Mapping[str, Any]]) -> Set[str]:
    """Collect bibliographic reference ids from inline ``references`` metadata."""
    references = (meta or {}).get("references")
    ids: Set[str] = set()
    if isinstance(references, list):
        for reference in references:
            if isinstance(reference, Mapping) and reference.get("id"):
                ids.add(str(reference["id"]))
    return ids
