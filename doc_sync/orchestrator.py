"""Sequencing of an interactive sync run.

auth -> credentials -> scan mode -> discovery -> normalization -> submission.
Everything runs on one event loop; the only concurrent piece is the callback
listener serving while the browser handshake is in progress.
"""

import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from doc_sync.api_client import ProcessingAPIClient
from doc_sync.callback_listener import CallbackListener
from doc_sync.config import SyncConfig
from doc_sync.errors import (
    AuthError,
    FileAccessError,
    InputValidationError,
    NormalizationError,
)
from doc_sync.models import RepositoryFile, ScanMode, SyncRequest, SyncResult
from doc_sync.normalizer import normalize
from doc_sync.repo_monitor import discover_files, read_repo_file

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Runs one synchronization of a local repository.

    Args:
        config: Runtime settings.
        prompter: Supplies project id, API key and scan mode
                  (see ``SyncPrompter``).
        repo_path: Root of the git working tree.
        listener: Callback listener; a fresh one per run by default.
        api_client: Processing endpoint client.
        open_browser: Callable opening a URL, returning False when it could
                      not. ``None`` skips the browser and only prints the URL.
    """

    def __init__(
        self,
        config: SyncConfig,
        prompter,
        repo_path: Path,
        listener: Optional[CallbackListener] = None,
        api_client: Optional[ProcessingAPIClient] = None,
        open_browser: Optional[Callable[[str], bool]] = webbrowser.open,
    ):
        self.config = config
        self.prompter = prompter
        self.repo_path = Path(repo_path)
        self.listener = listener or CallbackListener(
            host=config.callback_host, port=config.callback_port
        )
        self.api_client = api_client or ProcessingAPIClient(
            config.api_url, timeout=config.request_timeout
        )
        self.open_browser = open_browser

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self) -> str:
        """Complete the browser handshake and return the token.

        The listener is stopped on every exit path.

        Raises:
            AuthError: Bind failure, callback without token, listener error,
                or no callback within ``auth_timeout``.
        """
        try:
            pending = await self.listener.start()
            if pending.done() and pending.exception() is not None:
                # Bind failed; no callback can ever arrive
                exc = pending.exception()
                if isinstance(exc, AuthError):
                    raise exc
                raise AuthError(f"Authentication failed: {exc}") from exc

            print("[Auth] Time to authenticate! Opening your browser...")
            print(f"   {self.config.auth_url}")
            self._open_auth_page()

            print("[Auth] Waiting for authentication...")
            try:
                if self.config.auth_timeout:
                    token = await asyncio.wait_for(pending, self.config.auth_timeout)
                else:
                    token = await pending
            except asyncio.TimeoutError:
                raise AuthError(
                    f"No authentication callback within {self.config.auth_timeout:g}s"
                )
            except AuthError:
                raise
            except Exception as exc:
                raise AuthError(f"Authentication failed: {exc}") from exc
        finally:
            await self.listener.stop()

        print("[Auth] Authentication successful!")
        return token

    def _open_auth_page(self) -> None:
        if self.open_browser is None:
            print("[Auth] Open the URL above in your browser.")
            return
        try:
            opened = self.open_browser(self.config.auth_url)
        except Exception as exc:
            logger.warning("Could not open browser: %s", exc)
            opened = False
        if not opened:
            print("[Auth] Couldn't open your browser automatically. Copy the URL above into it.")

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def collect_credentials(self) -> Tuple[str, str]:
        """Return ``(project_id, api_key)``.

        Raises:
            InputValidationError: Either value is empty.
        """
        project_id = (self.prompter.project_id() or "").strip()
        if not project_id:
            raise InputValidationError("Project ID is required")

        api_key = (self.prompter.api_key() or "").strip()
        if not api_key:
            raise InputValidationError("API Key is required")

        return project_id, api_key

    # ------------------------------------------------------------------
    # Discovery & normalization
    # ------------------------------------------------------------------

    def discover(self, mode: ScanMode) -> List[str]:
        """List candidate files. Raises DiscoveryError on git failure."""
        paths = discover_files(self.repo_path, mode, self.config.extension)
        logger.info("Discovered %d file(s) in %s mode", len(paths), mode.value)
        return paths

    def prepare_files(self, paths: List[str]) -> List[RepositoryFile]:
        """Read and normalize each path, dropping the ones that fail."""
        files: List[RepositoryFile] = []
        for path in paths:
            try:
                raw = read_repo_file(self.repo_path, path)
                files.append(RepositoryFile(path=path, content=normalize(raw)))
            except (FileAccessError, NormalizationError) as exc:
                print(f"[Error] Couldn't process {path}: {exc}")
                logger.debug("Dropped %s", path, exc_info=True)
        return files

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> SyncResult:
        """Execute the full sequence.

        Raises:
            SyncError: Any fatal error (auth, input, discovery, submission).
        """
        token = await self.authenticate()

        project_id, api_key = self.collect_credentials()
        mode = self.prompter.scan_mode()

        paths = self.discover(mode)
        if not paths:
            print("[Scan] Nothing to process! Your work here is done.")
            return SyncResult(submitted=False, message="Nothing to process")

        print(f"\n[Scan] Found {len(paths)} file(s):")
        for path in paths:
            print(f"   - {path}")

        print("[Sync] Processing your files...")
        files = self.prepare_files(paths)

        request = SyncRequest(
            api_key=api_key,
            project_id=project_id,
            token=token,
            files=tuple(files),
        )
        ack = self.api_client.submit(request)

        message = ack.get("message") or "Your documents have been processed successfully!"
        print(f"[Sync] {message}")
        return SyncResult(
            submitted=True,
            files=tuple(f.path for f in files),
            message=message,
        )
