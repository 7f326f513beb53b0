"""
Platform Registry
=================
Stores built-in and custom platform schemas.

- Built-in schemas are loaded once from the packaged platforms.yml
- Custom schemas (from a custom platforms file or register()) shadow
  built-ins with the same id and never discard them
- Every schema is validated before it is stored; a rejected document or
  registration leaves the registry untouched

The custom map is the only shared mutable state in gitlink. Mutations are
guarded by a lock, and snapshot() hands each document render its own copy.

Usage:
    registry = PlatformRegistry()
    registry.initialise()                          # built-ins
    registry.initialise("custom-platforms.yml")    # + custom, additive
    registry.get("gitlab").default_url
"""
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from jsonschema import Draft7Validator

from gitlink.core.errors import LoadError, RegistrationError
from gitlink.core.models import PlatformSchema, normalise_keys, platform_label
from gitlink.core.schema import ValidationResult, validate_all, validate_platform

logger = logging.getLogger(__name__)

GITLINK_DIR = Path(__file__).resolve().parent.parent
BUILTIN_PLATFORMS_PATH = GITLINK_DIR / "platforms.yml"

# Envelope of a platforms document; per-platform checks live in schema.py
PLATFORMS_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["platforms"],
    "properties": {
        "platforms": {"type": "object"},
    },
}

Source = Union[str, Path, Mapping[str, Any]]


def read_platforms_document(source: Source) -> Dict[str, Any]:
    """
    Read a platforms document and return its normalised ``platforms`` mapping.

    Args:
        source: Path to a YAML file, or an already parsed document mapping

    Returns:
        Mapping of platform id -> configuration with underscored keys

    Raises:
        LoadError: If the file is missing, unparsable or not shaped like
            ``platforms: {<id>: ...}``
    """
    if isinstance(source, Mapping):
        document = source
        origin = "<mapping>"
    else:
        path = Path(source)
        origin = str(path)
        try:
            with open(path, encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except OSError as e:
            raise LoadError(f"Failed to load platforms from {origin}: {e.strerror or e}") from e
        except yaml.YAMLError as e:
            raise LoadError(f"Failed to parse platforms from {origin}: {e}") from e

    if document is None:
        raise LoadError(f"Failed to load platforms from {origin}: document is empty")

    errors = sorted(
        Draft7Validator(PLATFORMS_DOCUMENT_SCHEMA).iter_errors(document),
        key=lambda e: list(e.path),
    )
    if errors:
        details = "\n".join(f"  - {e.message}" for e in errors)
        raise LoadError(f"Invalid platforms document {origin}:\n{details}")

    return normalise_keys(document["platforms"])


def format_failures(results: Mapping[str, ValidationResult]) -> str:
    """Format failed validation results as ``id:\\n  - error`` blocks."""
    blocks = []
    for platform_id, result in sorted(results.items()):
        if not result.valid:
            lines = "\n".join(f"  - {err}" for err in result.errors)
            blocks.append(f"{platform_id}:\n{lines}")
    return "\n".join(blocks)


class PlatformRegistry:
    """
    Registry of platform schemas.

    Lookups are case-insensitive. Custom entries take precedence over
    built-ins of the same id.
    """

    def __init__(self, builtin_path: Optional[Path] = None):
        self.builtin_path = Path(builtin_path) if builtin_path else BUILTIN_PLATFORMS_PATH
        self._builtin: Optional[Dict[str, PlatformSchema]] = None
        self._custom: Dict[str, PlatformSchema] = {}
        self._builtin_results: Dict[str, ValidationResult] = {}
        self._custom_results: Dict[str, ValidationResult] = {}
        self._lock = threading.RLock()

    @property
    def loaded(self) -> bool:
        """True once built-ins have been loaded (or failed to load)."""
        return self._builtin is not None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def initialise(self, source: Optional[Source] = None) -> None:
        """
        Load built-in schemas, then optionally merge a custom document.

        Built-ins are loaded only once. A custom source is merged additively;
        if any platform in it is invalid, nothing from it is stored.

        Raises:
            LoadError: If the built-in or custom document cannot be used
        """
        with self._lock:
            if self._builtin is None:
                try:
                    self._builtin, self._builtin_results = self._load(self.builtin_path)
                except LoadError:
                    self._builtin = {}
                    raise
                logger.info("Loaded %d built-in platform(s)", len(self._builtin))

            if source is None:
                return

            schemas, results = self._load(source)
            self._custom.update(schemas)
            self._custom_results.update(results)
            logger.info("Loaded %d custom platform(s): %s", len(schemas), ", ".join(sorted(schemas)))

    def _load(self, source: Source) -> Tuple[Dict[str, PlatformSchema], Dict[str, ValidationResult]]:
        platforms = read_platforms_document(source)
        results = validate_all(platforms)

        if any(not r.valid for r in results.values()):
            raise LoadError(format_failures(results), results=results)

        schemas = {
            str(platform_id).lower(): PlatformSchema.from_config(str(platform_id), config)
            for platform_id, config in platforms.items()
        }
        return schemas, {str(platform_id).lower(): result for platform_id, result in results.items()}

    def _ensure_loaded(self) -> None:
        if self._builtin is None:
            try:
                self.initialise()
            except LoadError as e:
                logger.error("Failed to load built-in platforms:\n%s", e)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, platform_id: str, config: Mapping[str, Any]) -> ValidationResult:
        """
        Validate and register a custom platform.

        Args:
            platform_id: Platform id (stored lower-cased)
            config: Configuration mapping (hyphenated or underscored keys)

        Returns:
            The ValidationResult (valid, possibly with warnings)

        Raises:
            RegistrationError: If the configuration has validation errors
        """
        normalised = normalise_keys(config)
        result = validate_platform(platform_id, normalised)
        if not result.valid:
            raise RegistrationError(str(platform_id), result)

        schema = PlatformSchema.from_config(platform_id, normalised)
        with self._lock:
            self._custom[schema.id] = schema
            self._custom_results[schema.id] = result
        logger.debug("Registered custom platform %s", schema.id)
        return result

    def register_from_yaml(self, yaml_text: str, platform_id: str) -> ValidationResult:
        """Parse a ``platforms:`` YAML document and register one platform from it."""
        if not yaml_text or not platform_id:
            raise LoadError("YAML string and platform name are required")
        try:
            document = yaml.safe_load(yaml_text)
        except yaml.YAMLError as e:
            raise LoadError(f"Failed to parse YAML: {e}") from e

        platforms = (document or {}).get("platforms") if isinstance(document, dict) else None
        if not isinstance(platforms, dict) or platform_id not in platforms:
            raise LoadError(f'No platform configuration found for "{platform_id}" in YAML')

        return self.register(platform_id, platforms[platform_id])

    def clear_custom(self) -> None:
        """Remove every custom platform; built-ins are untouched."""
        with self._lock:
            self._custom = {}
            self._custom_results = {}

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def _maps(self) -> Tuple[Dict[str, PlatformSchema], Dict[str, PlatformSchema]]:
        """Copies of the built-in and custom maps, taken under the lock."""
        self._ensure_loaded()
        with self._lock:
            return dict(self._builtin or {}), dict(self._custom)

    def get(self, platform_id: str) -> Optional[PlatformSchema]:
        """Return the schema for a platform id, or None."""
        if not platform_id:
            return None
        self._ensure_loaded()
        name = platform_id.lower()
        with self._lock:
            if name in self._custom:
                return self._custom[name]
            return (self._builtin or {}).get(name)

    def is_available(self, platform_id: str) -> bool:
        return self.get(platform_id) is not None

    def list_ids(self) -> List[str]:
        """Sorted ids of every available platform."""
        builtin, custom = self._maps()
        return sorted(set(builtin) | set(custom))

    def iter_platforms(self) -> Iterator[PlatformSchema]:
        """
        Yield schemas in URL-scan order.

        Built-in ids come first, alphabetically, then custom-only ids
        alphabetically. A custom schema shadowing a built-in takes the
        built-in's slot.
        """
        builtin, custom = self._maps()
        for platform_id in sorted(builtin):
            yield custom.get(platform_id, builtin[platform_id])
        for platform_id in sorted(set(custom) - set(builtin)):
            yield custom[platform_id]

    def get_validation_result(self, platform_id: str) -> Optional[ValidationResult]:
        """Result for the schema currently served under this id."""
        name = platform_id.lower()
        with self._lock:
            if name in self._custom_results:
                return self._custom_results[name]
            return self._builtin_results.get(name)

    def display_name(self, platform_id: str) -> str:
        schema = self.get(platform_id)
        return schema.label if schema else platform_label(platform_id)

    def snapshot(self) -> "PlatformRegistry":
        """Return an independent copy for use by a single document render."""
        self._ensure_loaded()
        with self._lock:
            copy = PlatformRegistry(self.builtin_path)
            copy._builtin = dict(self._builtin or {})
            copy._custom = dict(self._custom)
            copy._builtin_results = dict(self._builtin_results)
            copy._custom_results = dict(self._custom_results)
        return copy
