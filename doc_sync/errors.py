"""Error taxonomy for doc-sync.

Fatal errors end the run with a non-zero exit status. Recoverable errors are
logged by the caller and the affected file is dropped (or, for remote fetches,
replaced by empty content).
"""


class SyncError(Exception):
    """Base class for every error raised by doc-sync."""


class AuthError(SyncError):
    """No or invalid token, listener bind failure, abandoned handshake."""


class InputValidationError(SyncError):
    """A required user-supplied value is missing or malformed."""


class ConfigError(SyncError):
    """An environment setting could not be parsed."""


class DiscoveryError(SyncError):
    """Git could not list the files to synchronize."""


class FileAccessError(SyncError):
    """A single file could not be read. Recoverable."""


class NormalizationError(SyncError):
    """A single file could not be cleaned. Recoverable."""


class RemoteFetchError(SyncError):
    """A remote comparison or content lookup failed."""


class SubmissionError(SyncError):
    """The processing endpoint or webhook rejected the payload."""
