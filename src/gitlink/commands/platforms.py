"""
Platform CLI Command
====================
Lists available platforms and validates custom platform files.

Usage:
    gitlink platforms
    gitlink platforms --custom-platforms custom-platforms.yml --format json
    gitlink validate custom-platforms.yml
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

from gitlink.core.errors import LoadError
from gitlink.core.registry import PlatformRegistry, read_platforms_document
from gitlink.core.schema import validate_all


class PlatformCommand:
    """CLI command handler for platform listing and schema validation."""

    def __init__(self, registry: Optional[PlatformRegistry] = None):
        self.registry = registry or PlatformRegistry()

    def list_platforms(self, custom_platforms: Optional[Path] = None, format: str = "text") -> int:
        """
        Print every available platform.

        Args:
            custom_platforms: Optional custom platforms file to merge first
            format: "text" or "json"

        Returns:
            Exit code (0 for success)
        """
        try:
            self.registry.initialise(custom_platforms)
        except LoadError as e:
            print(f"Error loading platforms:\n{e}", file=sys.stderr)
            return 1

        schemas = [self.registry.get(platform_id) for platform_id in self.registry.list_ids()]

        if format == "json":
            print(json.dumps({s.id: s.to_config() for s in schemas}, indent=2))
            return 0

        print(f"Available platforms ({len(schemas)}):")
        for schema in schemas:
            extra = "  [multi-word]" if schema.keywords else ""
            print(f"  {schema.id:<12} {schema.label:<12} {schema.default_url}{extra}")
        return 0

    def validate(self, path: Path, format: str = "text") -> int:
        """
        Validate every platform in a custom platforms file.

        Returns:
            Exit code (0 if all platforms are valid, 1 otherwise)
        """
        try:
            platforms = read_platforms_document(path)
        except LoadError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1

        results = validate_all(platforms)
        all_valid = all(r.valid for r in results.values())

        if format == "json":
            print(json.dumps(
                {"valid": all_valid, "platforms": [r.to_dict() for r in results.values()]},
                indent=2,
            ))
            return 0 if all_valid else 1

        for platform_id, result in results.items():
            icon = "✅" if result.valid else "❌"
            print(f"{icon} {platform_id}: {result.summary()}")
            if result.issues:
                for line in result.format().splitlines():
                    print(f"    {line}")

        print()
        print(f"{len(results)} platform(s) checked in {path}")
        return 0 if all_valid else 1
