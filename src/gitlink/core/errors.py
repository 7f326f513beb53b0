"""
gitlink error types.

Per-token resolution never raises; these exceptions surface from schema
compilation, registry loading and registration only.
"""
from typing import Any, Dict, Optional


class GitLinkError(Exception):
    """Base exception for gitlink."""


class InvalidPatternError(GitLinkError):
    """Raised when a schema pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"malformed pattern {pattern!r}: {reason}")


class LoadError(GitLinkError):
    """Raised when a platforms document is unreadable, unparsable or invalid."""

    def __init__(self, message: str, results: Optional[Dict[str, Any]] = None):
        self.results = results or {}
        super().__init__(message)


class RegistrationError(GitLinkError):
    """Raised when a platform schema fails validation on registration."""

    def __init__(self, platform_id: str, result: Any):
        self.platform_id = platform_id
        self.result = result
        lines = "\n".join(f"  - {err}" for err in result.errors)
        super().__init__(f'Invalid platform configuration "{platform_id}":\n{lines}')


class UnsupportedPlatformError(GitLinkError):
    """Raised when a document requests a platform that is not registered."""

    def __init__(self, platform_id: str, available: list):
        self.platform_id = platform_id
        self.available = available
        super().__init__(
            f"Unsupported platform: '{platform_id}'. "
            f"Supported platforms are: {', '.join(available)}."
        )
