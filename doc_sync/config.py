"""Runtime configuration read from the environment.

Every setting has a default that matches the hosted service, so a bare
``doc-sync`` invocation works. A local ``.env`` file is honoured.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from doc_sync.errors import ConfigError

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_WEBHOOK_URL = "https://smee.io/fFmI0AYEiUYxEoR7"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
MAX_BATCH_SIZE = 10
PACING_KINDS = ("fixed", "interval")


@dataclass(frozen=True)
class SyncConfig:
    """Settings shared by the CLI and the pipeline variant."""

    api_url: str = DEFAULT_API_URL
    callback_host: str = "127.0.0.1"
    callback_port: int = 8008
    auth_timeout: Optional[float] = None
    request_timeout: float = 30
    extension: str = ".mdx"
    batch_size: int = MAX_BATCH_SIZE
    batch_delay: float = 1.0
    pacing: str = "fixed"
    webhook_url: str = DEFAULT_WEBHOOK_URL
    github_api_url: str = DEFAULT_GITHUB_API_URL

    def __post_init__(self):
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ConfigError(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        if self.pacing not in PACING_KINDS:
            raise ConfigError(
                f"Unknown pacing '{self.pacing}'. Supported: {', '.join(PACING_KINDS)}"
            )
        if self.batch_delay < 0:
            raise ConfigError("batch_delay must not be negative")

    @property
    def auth_url(self) -> str:
        return f"{self.api_url}/api/auth/cli-auth"

    @property
    def process_docs_url(self) -> str:
        return f"{self.api_url}/api/integration/process-docs"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_config(dotenv: bool = True) -> SyncConfig:
    """Build a SyncConfig from ``DOC_SYNC_*`` environment variables."""
    if dotenv:
        load_dotenv()

    return SyncConfig(
        api_url=os.getenv("DOC_SYNC_API_URL", DEFAULT_API_URL).rstrip("/"),
        callback_host=os.getenv("DOC_SYNC_CALLBACK_HOST", "127.0.0.1"),
        callback_port=_env_int("DOC_SYNC_CALLBACK_PORT", 8008),
        auth_timeout=_env_float("DOC_SYNC_AUTH_TIMEOUT", None),
        request_timeout=_env_float("DOC_SYNC_REQUEST_TIMEOUT", 30),
        extension=os.getenv("DOC_SYNC_EXTENSION", ".mdx"),
        batch_size=_env_int("DOC_SYNC_BATCH_SIZE", MAX_BATCH_SIZE),
        batch_delay=_env_float("DOC_SYNC_BATCH_DELAY", 1.0),
        pacing=os.getenv("DOC_SYNC_PACING", "fixed").strip().lower(),
        webhook_url=os.getenv("DOC_SYNC_WEBHOOK_URL", DEFAULT_WEBHOOK_URL),
        github_api_url=os.getenv("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/"),
    )
