"""
Schema Validator
================
Validates platform configurations before they enter a registry.

Checks (accumulated, never fail-fast):
- Platform id is a non-empty string and the configuration is a mapping
- default_url is present and starts with http:// or https://
- patterns defines issue, merge-request and commit lists plus a single
  user pattern, every one of which compiles
- url_formats defines issue, merge-request, pull, commit and user
  templates, each starting with '/' and holding a {placeholder}
- Optional keywords map issue/merge-request/pull to word phrases

Severity levels:
- error: The configuration is rejected
- warning: Accepted, but probably not what the author meant
- info: Informational only

Validation is pure: nothing here touches a registry.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping

from gitlink.core.models import (
    KEYWORD_KINDS,
    REQUIRED_PATTERN_KINDS,
    REQUIRED_URL_FORMAT_KINDS,
)
from gitlink.core.patterns import is_valid_pattern


class IssueSeverity(Enum):
    """Severity level for validation issues."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCode(Enum):
    """Types of validation issues."""

    INVALID_PLATFORM = "invalid_platform"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_BASE_URL = "invalid_base_url"
    MISSING_PATTERN_TYPE = "missing_pattern_type"
    INVALID_PATTERN = "invalid_pattern"
    EMPTY_PATTERN_LIST = "empty_pattern_list"
    UNKNOWN_PATTERN_TYPE = "unknown_pattern_type"
    MISSING_URL_FORMAT = "missing_url_format"
    INVALID_URL_FORMAT = "invalid_url_format"
    UNKNOWN_URL_FORMAT = "unknown_url_format"
    INVALID_KEYWORD = "invalid_keyword"
    INVALID_DISPLAY_NAME = "invalid_display_name"
    MULTI_WORD_ENABLED = "multi_word_enabled"


URL_FORMAT_EXAMPLES = {
    "issue": "/{repo}/issues/{number}",
    "merge_request": "/{repo}/pull/{number}",
    "pull": "/{repo}/pull/{number}",
    "commit": "/{repo}/commit/{sha}",
    "user": "/{username}",
}

_BASE_URL_RE = re.compile(r"^https?://")
_PLACEHOLDER_RE = re.compile(r"\{\w+\}")
_KEYWORD_RE = re.compile(r"^[A-Za-z]+(?: [A-Za-z]+)*$")


def _label(kind: str) -> str:
    return kind.replace("_", "-")


@dataclass
class ValidationIssue:
    """A single problem found in a platform configuration."""

    code: IssueCode
    severity: IssueSeverity
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.message}"


@dataclass
class ValidationResult:
    """
    Aggregated result of validating one platform configuration.

    Attributes:
        platform_id: Platform the result belongs to
        issues: Every issue found, in check order
    """

    platform_id: str = ""
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> List[str]:
        return self._messages(IssueSeverity.ERROR)

    @property
    def warnings(self) -> List[str]:
        return self._messages(IssueSeverity.WARNING)

    @property
    def info(self) -> List[str]:
        return self._messages(IssueSeverity.INFO)

    def _messages(self, severity: IssueSeverity) -> List[str]:
        return [i.message for i in self.issues if i.severity == severity]

    def add_error(self, code: IssueCode, message: str) -> None:
        self.issues.append(ValidationIssue(code, IssueSeverity.ERROR, message))

    def add_warning(self, code: IssueCode, message: str) -> None:
        self.issues.append(ValidationIssue(code, IssueSeverity.WARNING, message))

    def add_info(self, code: IssueCode, message: str) -> None:
        self.issues.append(ValidationIssue(code, IssueSeverity.INFO, message))

    def format(self) -> str:
        """Human-readable multi-line report."""
        lines = []
        if self.valid:
            lines.append("Validation passed.")
        else:
            lines.append(f"Validation failed with {len(self.errors)} error(s):")
            lines.extend(f"  [Error {i}] {msg}" for i, msg in enumerate(self.errors, 1))

        for title, kind, messages in (
            ("warning(s)", "Warning", self.warnings),
            ("info message(s)", "Info", self.info),
        ):
            if messages:
                lines.append("")
                lines.append(f"{len(messages)} {title}:")
                lines.extend(f"  [{kind} {i}] {msg}" for i, msg in enumerate(messages, 1))

        return "\n".join(lines)

    def summary(self) -> str:
        status = "PASSED" if self.valid else "FAILED"
        return f"Status: {status} | Errors: {len(self.errors)} | Warnings: {len(self.warnings)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform_id,
            "valid": self.valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "info": self.info,
        }


def validate_platform(platform_id: Any, config: Any) -> ValidationResult:
    """
    Validate a complete platform configuration.

    Args:
        platform_id: Name of the platform being validated
        config: Normalised configuration mapping (underscored keys)

    Returns:
        ValidationResult listing every error, warning and info message
    """
    result = ValidationResult(platform_id=platform_id if isinstance(platform_id, str) else "")

    if not isinstance(platform_id, str) or not platform_id:
        result.add_error(IssueCode.INVALID_PLATFORM, "Platform name must be a non-empty string")
        return result

    if not isinstance(config, Mapping):
        result.add_error(
            IssueCode.INVALID_PLATFORM,
            f"Platform configuration must be a mapping, got {type(config).__name__}",
        )
        return result

    _validate_base_url(config.get("default_url"), result)
    _validate_patterns_section(config.get("patterns"), result)
    _validate_url_formats_section(config.get("url_formats"), result)
    _validate_optional_fields(config, result)

    return result


def validate_all(platforms: Any) -> Dict[str, ValidationResult]:
    """Validate every platform in a mapping of id -> configuration."""
    if not isinstance(platforms, Mapping):
        result = ValidationResult(platform_id="__global__")
        result.add_error(IssueCode.INVALID_PLATFORM, "Platforms configuration must be a mapping")
        return {"__global__": result}

    return {
        str(platform_id): validate_platform(platform_id, config)
        for platform_id, config in platforms.items()
    }


def _validate_base_url(url: Any, result: ValidationResult) -> None:
    if not url:
        result.add_error(
            IssueCode.MISSING_REQUIRED_FIELD,
            'Missing required field: "default-url" (e.g., https://github.com)',
        )
    elif not isinstance(url, str):
        result.add_error(
            IssueCode.INVALID_BASE_URL,
            "Invalid default-url: Base URL must be a string (e.g., https://git.example.com)",
        )
    elif not _BASE_URL_RE.match(url):
        result.add_error(
            IssueCode.INVALID_BASE_URL,
            "Invalid default-url: Base URL must start with http:// or https:// "
            "(e.g., https://git.example.com)",
        )


def _validate_patterns(patterns: Any, kind: str, result: ValidationResult) -> None:
    label = _label(kind)

    if patterns is None:
        result.add_error(
            IssueCode.MISSING_PATTERN_TYPE,
            f'Missing required pattern type: "{label}" '
            f"(Expected: patterns:\n      {label}: ['pattern1', 'pattern2'])",
        )
        return

    if kind == "user":
        if not isinstance(patterns, str):
            result.add_error(
                IssueCode.INVALID_PATTERN,
                f"Pattern type \"user\" must be a single pattern string, got "
                f"{type(patterns).__name__} (e.g., \"@([%w%-%.]+)\")",
            )
            return
        valid, reason = is_valid_pattern(patterns)
        if not valid:
            result.add_error(
                IssueCode.INVALID_PATTERN,
                f'Invalid pattern in user: {reason} (e.g., "@([%w%-%.]+)")',
            )
        return

    if not isinstance(patterns, list):
        result.add_error(
            IssueCode.INVALID_PATTERN,
            f'Pattern type "{label}" must be a list of patterns, got '
            f"{type(patterns).__name__} (e.g., ['#(%d+)', '([^/]+/[^/#]+)#(%d+)'])",
        )
        return

    if not patterns:
        result.add_warning(
            IssueCode.EMPTY_PATTERN_LIST,
            f'Pattern type "{label}" is empty (add at least one pattern)',
        )
        return

    for index, pattern in enumerate(patterns, 1):
        valid, reason = is_valid_pattern(pattern)
        if not valid:
            result.add_error(
                IssueCode.INVALID_PATTERN,
                f"Invalid pattern in {label}[{index}]: {reason}",
            )


def _validate_patterns_section(patterns: Any, result: ValidationResult) -> None:
    if patterns is None:
        result.add_error(
            IssueCode.MISSING_REQUIRED_FIELD,
            'Missing required field: "patterns" '
            "(add patterns section with: issue, merge-request, commit, user)",
        )
        return

    if not isinstance(patterns, Mapping):
        result.add_error(
            IssueCode.MISSING_REQUIRED_FIELD,
            f'Field "patterns" must be a mapping, got {type(patterns).__name__}',
        )
        return

    for kind in REQUIRED_PATTERN_KINDS:
        _validate_patterns(patterns.get(kind), kind, result)

    for key in patterns:
        if key not in REQUIRED_PATTERN_KINDS:
            result.add_warning(
                IssueCode.UNKNOWN_PATTERN_TYPE,
                f'Unknown pattern type: "{_label(str(key))}" (not recognised)',
            )


def _validate_url_formats_section(url_formats: Any, result: ValidationResult) -> None:
    if url_formats is None:
        result.add_error(
            IssueCode.MISSING_REQUIRED_FIELD,
            'Missing required field: "url-formats" '
            "(add url-formats section with: issue, pull, merge-request, commit, user)",
        )
        return

    if not isinstance(url_formats, Mapping):
        result.add_error(
            IssueCode.MISSING_REQUIRED_FIELD,
            f'Field "url-formats" must be a mapping, got {type(url_formats).__name__}',
        )
        return

    for kind in REQUIRED_URL_FORMAT_KINDS:
        template = url_formats.get(kind)
        label = _label(kind)
        if template is None:
            result.add_error(
                IssueCode.MISSING_URL_FORMAT,
                f'Missing required URL format: "{label}" (e.g., "{URL_FORMAT_EXAMPLES[kind]}")',
            )
        elif not isinstance(template, str):
            result.add_error(
                IssueCode.INVALID_URL_FORMAT,
                f"Invalid url-formats.{label}: URL format must be a string",
            )
        elif not template.startswith("/"):
            result.add_error(
                IssueCode.INVALID_URL_FORMAT,
                f"Invalid url-formats.{label}: URL format must start with a forward slash "
                f'(e.g., "{URL_FORMAT_EXAMPLES[kind]}")',
            )
        elif not _PLACEHOLDER_RE.search(template):
            result.add_error(
                IssueCode.INVALID_URL_FORMAT,
                f"Invalid url-formats.{label}: URL format must contain at least one "
                "placeholder (e.g., {repo}, {number})",
            )

    for key in url_formats:
        if key not in REQUIRED_URL_FORMAT_KINDS:
            result.add_warning(
                IssueCode.UNKNOWN_URL_FORMAT,
                f'Unknown URL format type: "{_label(str(key))}" (not recognised)',
            )


def _validate_optional_fields(config: Mapping, result: ValidationResult) -> None:
    display_name = config.get("display_name")
    if display_name is not None and not isinstance(display_name, str):
        result.add_warning(
            IssueCode.INVALID_DISPLAY_NAME,
            f'Field "display-name" should be a string, got {type(display_name).__name__} (ignored)',
        )

    keywords = config.get("keywords")
    if keywords is None:
        return

    if not isinstance(keywords, Mapping):
        result.add_error(
            IssueCode.INVALID_KEYWORD,
            f'Field "keywords" must be a mapping, got {type(keywords).__name__} '
            "(e.g., keywords:\n      issue: issue\n      pull: pull request)",
        )
        return

    for kind, phrase in keywords.items():
        if kind not in KEYWORD_KINDS:
            result.add_error(
                IssueCode.INVALID_KEYWORD,
                f'Keyword for "{_label(str(kind))}" is not supported '
                "(use one of: issue, merge-request, pull)",
            )
        elif not isinstance(phrase, str) or not _KEYWORD_RE.match(phrase):
            result.add_error(
                IssueCode.INVALID_KEYWORD,
                f'Invalid keyword for "{_label(kind)}": {phrase!r} '
                "(expected words separated by single spaces, e.g., \"pull request\")",
            )

    if result.valid and keywords:
        result.add_info(
            IssueCode.MULTI_WORD_ENABLED,
            "Multi-word references enabled for: "
            + ", ".join(_label(str(k)) for k in keywords),
        )
