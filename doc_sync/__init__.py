"""Sync MDX documentation to the processing service."""

from doc_sync.errors import (
    AuthError,
    ConfigError,
    DiscoveryError,
    FileAccessError,
    InputValidationError,
    NormalizationError,
    RemoteFetchError,
    SubmissionError,
    SyncError,
)
from doc_sync.models import RepositoryFile, ScanMode, SyncRequest, SyncResult
from doc_sync.normalizer import normalize

__all__ = [
    "AuthError",
    "ConfigError",
    "DiscoveryError",
    "FileAccessError",
    "InputValidationError",
    "NormalizationError",
    "RemoteFetchError",
    "RepositoryFile",
    "ScanMode",
    "SubmissionError",
    "SyncError",
    "SyncRequest",
    "SyncResult",
    "normalize",
]
