"""Security validators for input validation."""

import re
from pathlib import Path, PurePosixPath
from typing import Tuple, Optional


class RepositoryValidator:
    """Validates repository locations supplied by the user or the CI context."""

    @staticmethod
    def validate_local_path(path_str: str) -> Tuple[bool, str, Optional[str]]:
        """Validate a local repository path.

        Args:
            path_str: Filesystem path to validate

        Returns:
            Tuple of (is_valid, error_message, resolved_path)
        """
        path = Path(path_str)
        if not path.exists():
            return False, f"Path does not exist: {path_str}", None
        if not path.is_dir():
            return False, f"Path is not a directory: {path_str}", None
        if not (path / ".git").exists():
            return False, f"Path is not a git repository (no .git directory): {path_str}", None
        return True, "", str(path.resolve())

    @staticmethod
    def validate_repo_slug(slug: str) -> Tuple[bool, str, Optional[Tuple[str, str]]]:
        """
        Validate an ``owner/repo`` slug such as ``GITHUB_REPOSITORY``.

        Returns:
            Tuple of (is_valid, error_message, (owner, repo))
        """
        if not slug or len(slug) > 200:
            return False, "Invalid repository slug length", None

        parts = slug.strip().split("/")
        if len(parts) != 2:
            return False, "Invalid repository slug (expected owner/repo)", None

        for part in parts:
            if part in ['..', '.', ''] or not re.match(r'^[\w\-\.]+$', part):
                return False, "Invalid repository slug component", None

        return True, "", (parts[0], parts[1])


class PathValidator:
    """Validates repo-relative file paths to prevent traversal attacks."""

    @staticmethod
    def validate_repo_path(path: str) -> Tuple[bool, str, Optional[str]]:
        """
        Validate a path reported by git or the GitHub API.

        Prevents:
        - Path traversal (../)
        - Absolute paths (/)
        - Control characters
        - Excessive length

        Returns:
            Tuple of (is_valid, error_message, sanitized_path)
        """
        if not path:
            return False, "Empty path", None

        if len(path) > 4096:
            return False, "Path too long", None

        if re.search(r'[\x00-\x1f\x7f]', path):
            return False, "Control characters in path", None

        if path.startswith("/") or re.match(r'^[A-Za-z]:[\\/]', path):
            return False, "Absolute path not allowed", None

        parts = PurePosixPath(path.replace("\\", "/")).parts
        if ".." in parts:
            return False, "Path traversal detected", None

        # Normalize: drop empty parts and dots
        sanitized = "/".join(p for p in parts if p not in ("", "."))
        if not sanitized:
            return False, "Empty path", None

        return True, "", sanitized
