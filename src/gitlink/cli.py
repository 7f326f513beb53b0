#!/usr/bin/env python3
"""
gitlink - command-line interface.

Commands:
- platforms: List built-in (and custom) platforms
- validate: Validate a custom platforms file
- resolve: Resolve individual reference tokens
- link: Linkify text or a Markdown document

Usage:
    gitlink platforms                                  # List platforms
    gitlink validate custom-platforms.yml              # Validate custom schemas
    gitlink resolve '#12' --repo owner/repo            # Resolve one token
    gitlink link "See GH-7 and @octocat" --repo o/r    # Linkify text
    gitlink link --file notes.md                       # Linkify a document
    gitlink --help                                     # Show help
"""

import argparse
import logging
import sys
from pathlib import Path

from gitlink.commands.link import LinkCommand, build_meta
from gitlink.commands.platforms import PlatformCommand
from gitlink.core.registry import PlatformRegistry


def _add_context_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by commands that build a resolver context."""
    parser.add_argument(
        "--platform", "-p",
        type=str,
        help="Active platform id (default: github)"
    )
    parser.add_argument(
        "--repo", "-r",
        type=str,
        help="Current repository as owner/repo (default: detected from git remote)"
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="Base URL for the active platform (e.g., https://gitlab.example.com)"
    )
    parser.add_argument(
        "--custom-platforms",
        type=str,
        help="YAML file with custom platform definitions"
    )
    parser.add_argument(
        "--bib-id",
        action="append",
        default=[],
        metavar="ID",
        help="Bibliographic id that must stay a citation (repeatable)"
    )
    parser.add_argument(
        "--no-badge",
        action="store_true",
        help="Do not append the platform label to links"
    )
    parser.add_argument(
        "--badge-position",
        type=str,
        choices=["before", "after"],
        help="Where hosts place the platform badge"
    )


def _meta_from_args(args) -> dict:
    custom = args.custom_platforms
    if custom:
        custom = str(Path(custom).resolve())
    return build_meta(
        platform=args.platform,
        repo=args.repo,
        base_url=args.base_url,
        custom_platforms=custom,
        show_badge=False if args.no_badge else None,
        badge_position=args.badge_position,
    )


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="gitlink - turn git hosting references into links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Platforms
  %(prog)s platforms                          List available platforms
  %(prog)s platforms --format json            Dump platform schemas (JSON)
  %(prog)s validate custom-platforms.yml      Validate custom platforms

  # Resolution
  %(prog)s resolve '#12' --repo owner/repo
  %(prog)s resolve '!34' --platform gitlab --repo group/project
  %(prog)s resolve https://github.com/owner/repo/pull/5

  # Linkify
  %(prog)s link "Fixed in #12 by @octocat" --repo owner/repo
  %(prog)s link "issue #7" --platform bitbucket --repo team/repo
  %(prog)s link --file notes.md               Front matter supplies options
        """
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show diagnostic logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ----- gitlink platforms -----
    platforms_parser = subparsers.add_parser(
        "platforms",
        help="List available platforms",
        description="List built-in platforms plus any custom platforms file"
    )
    platforms_parser.add_argument(
        "--custom-platforms",
        type=str,
        help="YAML file with custom platform definitions"
    )
    platforms_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- gitlink validate <file> -----
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a custom platforms file",
        description="Check every platform in a file and report errors, warnings and info"
    )
    validate_parser.add_argument(
        "file",
        type=str,
        help="Path to the custom platforms YAML file"
    )
    validate_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- gitlink resolve <token>... -----
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve reference tokens",
        description="Resolve each token to display text and URL (exit 1 if any does not match)"
    )
    resolve_parser.add_argument(
        "tokens",
        nargs="+",
        type=str,
        help="Tokens such as '#12', owner/repo@abc1234, @user or a URL"
    )
    _add_context_options(resolve_parser)
    resolve_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- gitlink link [text] -----
    link_parser = subparsers.add_parser(
        "link",
        help="Linkify text or a document",
        description="Replace references with Markdown links (reads stdin when no text or file is given)"
    )
    link_parser.add_argument(
        "text",
        nargs="?",
        type=str,
        help="Text to linkify"
    )
    link_parser.add_argument(
        "--file",
        type=str,
        help="Markdown document with optional YAML front matter"
    )
    _add_context_options(link_parser)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    registry = PlatformRegistry()

    if args.command == "platforms":
        custom = Path(args.custom_platforms) if args.custom_platforms else None
        return PlatformCommand(registry).list_platforms(custom, format=args.format)

    elif args.command == "validate":
        return PlatformCommand(registry).validate(Path(args.file), format=args.format)

    elif args.command == "resolve":
        return LinkCommand(registry).resolve(
            args.tokens,
            _meta_from_args(args),
            citation_ids=args.bib_id,
            format=args.format,
        )

    elif args.command == "link":
        return LinkCommand(registry).link(
            args.text,
            _meta_from_args(args),
            citation_ids=args.bib_id,
            file=Path(args.file) if args.file else None,
        )

    else:
        parser.print_help()
        return 0


def cli() -> int:
    """CLI entry point."""
    return main()


if __name__ == "__main__":
    sys.exit(cli())
