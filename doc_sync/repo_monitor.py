"""
Git working-tree discovery utilities.

Lists the documentation files to synchronize, either every tracked file or
only those changed since the last push, and reads them from disk.
"""

import logging
import subprocess
from pathlib import Path
from typing import List

from doc_sync.errors import DiscoveryError, FileAccessError
from doc_sync.models import ScanMode
from doc_sync.security import PathValidator

logger = logging.getLogger(__name__)


def _git_paths(repo_path: Path, args: List[str]) -> List[str]:
    """Run a NUL-separated (`-z`) git listing and return the raw paths."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo_path,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True
        )
    except FileNotFoundError as e:
        raise DiscoveryError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise DiscoveryError(f"git {args[0]} failed: {stderr or e}") from e

    return [path for path in result.stdout.split("\0") if path]


def _filter_paths(paths: List[str], extension: str) -> List[str]:
    """Keep safe paths with the extension, first occurrence only."""
    selected = []
    seen = set()
    for path in paths:
        if not path.endswith(extension):
            continue
        is_valid, error, sanitized = PathValidator.validate_repo_path(path)
        if not is_valid:
            logger.warning("Skipping %r: %s", path, error)
            continue
        if sanitized in seen:
            continue
        seen.add(sanitized)
        selected.append(sanitized)
    return selected


def list_tracked_files(repo_path: Path, extension: str = ".mdx") -> List[str]:
    """
    List every tracked file ending in ``extension``.

    Args:
        repo_path: Path to the git working tree
        extension: Suffix filter, e.g. ``.mdx``

    Returns:
        Repo-relative paths in git's listing order

    Raises:
        DiscoveryError: git is missing or the listing failed
    """
    paths = _git_paths(repo_path, ["ls-files", "-z"])
    return _filter_paths(paths, extension)


def list_changed_since_push(repo_path: Path, extension: str = ".mdx") -> List[str]:
    """
    List files ending in ``extension`` that differ from the push target.

    Uses ``@{push}``, the branch the current branch pushes to, so committed
    but unpushed work and uncommitted edits are both included.

    Raises:
        DiscoveryError: No push target is configured or git failed
    """
    paths = _git_paths(repo_path, ["diff", "--name-only", "-z", "@{push}"])
    return _filter_paths(paths, extension)


def discover_files(repo_path: Path, mode: ScanMode, extension: str = ".mdx") -> List[str]:
    """Dispatch to the listing that matches ``mode``."""
    if mode == ScanMode.FULL:
        return list_tracked_files(repo_path, extension)
    return list_changed_since_push(repo_path, extension)


def read_repo_file(repo_path: Path, rel_path: str) -> str:
    """
    Read a repo-relative file as UTF-8.

    Raises:
        FileAccessError: Unsafe path, missing file (e.g. deleted since the
            last push), or undecodable content
    """
    is_valid, error, sanitized = PathValidator.validate_repo_path(rel_path)
    if not is_valid:
        raise FileAccessError(f"{rel_path}: {error}")

    try:
        return (repo_path / sanitized).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileAccessError(f"Couldn't read {rel_path}: {e}") from e
