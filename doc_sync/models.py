"""Data carried between the sync stages."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class ScanMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class RepositoryFile:
    """A file identified by its repo-relative path."""

    path: str
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"path": self.path, "content": self.content}


@dataclass(frozen=True)
class SyncRequest:
    """The single outbound payload of an interactive run."""

    api_key: str
    project_id: str
    token: str
    files: Tuple[RepositoryFile, ...] = ()

    def __post_init__(self):
        paths = [f.path for f in self.files]
        if len(paths) != len(set(paths)):
            raise ValueError("SyncRequest files must have unique paths")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "apiKey": self.api_key,
            "projectId": self.project_id,
            "token": self.token,
            "files": [f.to_payload() for f in self.files],
        }

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        return (
            f"SyncRequest(project_id={self.project_id!r}, "
            f"files={len(self.files)})"
        )


@dataclass(frozen=True)
class SyncResult:
    """Outcome of an interactive run."""

    submitted: bool
    files: Tuple[str, ...] = field(default_factory=tuple)
    message: str = ""
