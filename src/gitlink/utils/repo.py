"""
Repository name detection.

Derives ``owner/repo`` from the ``origin`` remote of the git checkout a
document lives in. Used when a document does not set ``repository-name``.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_SCP_LIKE_RE = re.compile(r"^(?:[^@/]+@)?[^:/]+:(?P<path>.+)$")


def parse_remote_url(url: str) -> Optional[str]:
    """
    Extract ``owner/repo`` from a git remote URL.

    Handles ``https://host/owner/repo.git``, ``ssh://git@host:22/owner/repo``
    and scp-like ``git@host:owner/repo.git`` forms. Nested groups are kept
    (``group/sub/repo``).

    Returns:
        Repository path, or None if the URL has no owner/repo path
    """
    url = url.strip()
    if not url:
        return None

    if "://" in url:
        path = urlparse(url).path
    else:
        match = _SCP_LIKE_RE.match(url)
        if not match:
            return None
        path = match.group("path")

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return path if "/" in path else None


def detect_repository(cwd: Optional[Path] = None, remote: str = "origin") -> Optional[str]:
    """
    Detect the repository name from a git remote.

    Args:
        cwd: Directory inside the checkout (default: current directory)
        remote: Remote name to query

    Returns:
        ``owner/repo`` or None when git is unavailable or no remote is set
    """
    cmd = ["git", "remote", "get-url", remote]
    logger.debug("%s (cwd=%s)", " ".join(cmd), cwd or ".")
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, timeout=10,
            cwd=str(cwd) if cwd else None,
        )
    except (FileNotFoundError, NotADirectoryError, subprocess.TimeoutExpired) as e:
        logger.debug("git remote lookup failed: %s", e)
        return None

    if result.returncode != 0:
        logger.debug("git remote lookup failed: %s", result.stderr.strip())
        return None

    return parse_remote_url(result.stdout)
