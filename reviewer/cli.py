#!/usr/bin/env python3
"""CLI for the PR Reviewer."""

import argparse
import asyncio
import logging
import sys

from rich.logging import RichHandler

from .config import (
    COMMIT_LIMIT,
    DIFF_MODE,
    DIFF_MODES,
    EXCLUDE_PATTERNS,
    REASONING_EFFORT,
    REASONING_EFFORTS,
    SEVERITY,
    TOKEN_LIMIT,
)
from .diff_types import SEVERITY_ORDER
from .github import GitHubService
from .render import (
    console,
    print_comments,
    print_error,
    print_info,
    print_prompt,
    print_result,
    print_run_header,
)
from .review import ReviewOptions, run_review
from .validators import (
    is_valid_commit_limit,
    is_valid_diff_mode,
    is_valid_exclude_patterns,
    is_valid_reasoning_effort,
    is_valid_severity_level,
    is_valid_token_limit,
    parse_exclude_patterns,
)


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    # Suppress noisy loggers
    for name in ("httpx", "LiteLLM", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def build_options(args: argparse.Namespace) -> ReviewOptions:
    """Validate CLI arguments and turn them into ReviewOptions.

    Raises:
        ValueError: On the first invalid input
    """
    checks = [
        ("diff mode", args.diff_mode, is_valid_diff_mode),
        ("severity", args.severity, is_valid_severity_level),
        ("reasoning effort", args.reasoning_effort, is_valid_reasoning_effort),
        ("token limit", args.token_limit, is_valid_token_limit),
        ("commit limit", args.commit_limit, is_valid_commit_limit),
        ("exclude patterns", args.exclude, is_valid_exclude_patterns),
    ]
    for name, value, is_valid in checks:
        if not is_valid(value):
            raise ValueError(f"Invalid {name}: {value}")

    return ReviewOptions(
        diff_mode=args.diff_mode,
        severity=args.severity,
        reasoning_effort=args.reasoning_effort,
        token_limit=int(args.token_limit),
        commit_limit=int(args.commit_limit),
        exclude_patterns=parse_exclude_patterns(args.exclude),
        dry_run=args.dry_run,
    )


async def run(args: argparse.Namespace) -> None:
    """Review one pull request."""
    options = build_options(args)
    service = GitHubService.from_url(args.pr)

    print_run_header(args.pr, options.diff_mode, options.token_limit)
    outcome = await run_review(service, options)

    if outcome is None:
        print_info("Nothing to review.")
        return
    if options.dry_run:
        print_prompt(outcome.prompt)
        return
    if outcome.comments:
        print_comments(outcome.comments)
    if outcome.result:
        print_result(outcome.result)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="AI review of GitHub pull requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    review_parser = subparsers.add_parser("review", help="Review a pull request and post comments")
    review_parser.add_argument("--pr", "-p", type=str, required=True, help="Pull request URL")
    review_parser.add_argument(
        "--diff-mode", type=str, default=DIFF_MODE, help=f"One of {', '.join(DIFF_MODES)} (default: {DIFF_MODE})"
    )
    review_parser.add_argument(
        "--severity", type=str, default=SEVERITY,
        help=f"Lowest severity that requests changes: {', '.join(SEVERITY_ORDER)} (default: {SEVERITY})",
    )
    review_parser.add_argument(
        "--reasoning-effort", type=str, default=REASONING_EFFORT,
        help=f"One of {', '.join(REASONING_EFFORTS)} (default: {REASONING_EFFORT})",
    )
    review_parser.add_argument("--token-limit", type=str, default=str(TOKEN_LIMIT), help="Prompt token budget")
    review_parser.add_argument(
        "--commit-limit", type=str, default=str(COMMIT_LIMIT), help="Newest commits to review in commits mode"
    )
    review_parser.add_argument(
        "--exclude", type=str, default=",".join(EXCLUDE_PATTERNS), help="Comma-separated globs of files to skip"
    )
    review_parser.add_argument(
        "--dry-run", action="store_true", help="Print the packed prompt without calling the model"
    )

    args = parser.parse_args()

    if args.command == "review":
        setup_logging(args.verbose)
        try:
            asyncio.run(run(args))
        except Exception as e:
            print_error(str(e))
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
