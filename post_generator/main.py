#!/usr/bin/env python3
"""Main entry point for the AI Post Generator.

This module provides the CLI interface for generating draft posts and
inspecting the usage log.

Usage:
    python -m post_generator.main generate --topic "Coffee Brewing" --count 10
    python -m post_generator.main logs --limit 20
    python -m post_generator.main stats
    python -m post_generator.main test-connection
    python -m post_generator.main models
"""

import argparse
import sys

from post_generator.agent.runner import (
    run_generate,
    run_logs,
    run_models,
    run_stats,
    run_test_connection,
)
from post_generator.engines.models import MAX_POST_COUNT, MIN_POST_COUNT


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="post-generator",
        description="AI Post Generator - bulk-generate draft articles with OpenAI",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a batch of draft posts")
    generate.add_argument("--topic", required=True, help="Topic to write about")
    generate.add_argument(
        "--count",
        type=int,
        required=True,
        help=f"Number of posts to generate ({MIN_POST_COUNT}-{MAX_POST_COUNT})",
    )
    generate.add_argument(
        "--content-type",
        default="post",
        help="Content type to store posts as (default: post)",
    )
    generate.add_argument(
        "--category",
        type=int,
        default=0,
        help="Category ID to file posts under (default: none)",
    )

    logs = subparsers.add_parser("logs", help="Show recent generation batches")
    logs.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Number of entries to show (default: 50)",
    )

    subparsers.add_parser("stats", help="Show usage totals and estimated cost")
    subparsers.add_parser("test-connection", help="Check the API key and endpoint")
    subparsers.add_parser("models", help="List supported models")

    return parser.parse_args(args)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the post generator.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parsed = parse_args(args)

    if parsed.command == "generate":
        return run_generate(
            topic=parsed.topic,
            count=parsed.count,
            content_type=parsed.content_type,
            category_id=parsed.category,
            verbose=parsed.verbose,
        )
    if parsed.command == "logs":
        return run_logs(limit=parsed.limit, verbose=parsed.verbose)
    if parsed.command == "stats":
        return run_stats(verbose=parsed.verbose)
    if parsed.command == "test-connection":
        return run_test_connection(verbose=parsed.verbose)
    return run_models()


if __name__ == "__main__":
    sys.exit(main())
