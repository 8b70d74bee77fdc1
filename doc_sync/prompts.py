"""Interactive questions asked after authentication.

Values supplied up front (command-line flags, ``DOC_SYNC_API_KEY``) skip the
corresponding prompt. Empty answers are returned as-is; the orchestrator
decides whether they are acceptable.
"""

from typing import Optional

import click

from doc_sync.models import ScanMode

SCAN_MODE_HELP = {
    ScanMode.FULL: "Full sync: every tracked file",
    ScanMode.INCREMENTAL: "Partial sync: just the changes since your last push",
}


class SyncPrompter:
    def __init__(
        self,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        scan_mode: Optional[ScanMode] = None,
    ):
        self._project_id = project_id
        self._api_key = api_key
        self._scan_mode = scan_mode

    def project_id(self) -> str:
        if self._project_id:
            return self._project_id
        return click.prompt("Project ID", default="", show_default=False)

    def api_key(self) -> str:
        if self._api_key:
            return self._api_key
        return click.prompt("API key", default="", show_default=False, hide_input=True)

    def scan_mode(self) -> ScanMode:
        if self._scan_mode is not None:
            return self._scan_mode

        for mode, description in SCAN_MODE_HELP.items():
            click.echo(f"  {mode.value:<12} {description}")
        choice = click.prompt(
            "How much should we scan?",
            type=click.Choice([mode.value for mode in ScanMode]),
            default=ScanMode.INCREMENTAL.value,
        )
        return ScanMode(choice)
