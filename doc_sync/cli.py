"""CLI entrypoint for ``doc-sync``."""

import argparse
import asyncio
import logging
import os
import sys
import webbrowser
from pathlib import Path

import click

from doc_sync.config import load_config
from doc_sync.errors import SyncError
from doc_sync.models import ScanMode
from doc_sync.orchestrator import SyncOrchestrator
from doc_sync.prompts import SyncPrompter
from doc_sync.security import RepositoryValidator


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc-sync",
        description="Sync the MDX documentation of a git repository to the processing service.",
    )
    parser.add_argument(
        "--repo",
        default=".",
        help="Path to the git working tree (default: current directory)",
    )
    parser.add_argument(
        "--project-id",
        default=None,
        help="Project ID (prompted for when omitted)",
    )
    scan = parser.add_mutually_exclusive_group()
    scan.add_argument(
        "--full",
        dest="scan_mode",
        action="store_const",
        const=ScanMode.FULL,
        help="Sync every tracked file",
    )
    scan.add_argument(
        "--incremental",
        dest="scan_mode",
        action="store_const",
        const=ScanMode.INCREMENTAL,
        help="Sync only files changed since the last push",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Print the login URL instead of opening a browser",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for doc-sync."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)

    is_valid, error, repo_path = RepositoryValidator.validate_local_path(args.repo)
    if not is_valid:
        parser.exit(1, f"[Error] {error}\n")

    try:
        config = load_config()
    except SyncError as exc:
        parser.exit(1, f"[Error] {exc}\n")

    prompter = SyncPrompter(
        project_id=args.project_id,
        api_key=os.getenv("DOC_SYNC_API_KEY"),
        scan_mode=args.scan_mode,
    )
    orchestrator = SyncOrchestrator(
        config,
        prompter,
        Path(repo_path),
        open_browser=None if args.no_browser else webbrowser.open,
    )

    print("=" * 70)
    print("[DocSync] Welcome! Let's sync your docs.")
    print("=" * 70)

    try:
        result = asyncio.run(orchestrator.run())
    except SyncError as exc:
        parser.exit(1, f"[Error] {exc}\n")
    except click.exceptions.Abort:
        parser.exit(1, "[Error] Aborted\n")

    if result.submitted:
        print(f"[Done] {len(result.files)} document(s) synced.")


if __name__ == "__main__":
    main(sys.argv[1:])
