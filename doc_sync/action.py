"""GitHub Actions entry point.

Compares the pushed range (``before...GITHUB_SHA``) through the GitHub API,
fetches every changed file and forwards the contents to the webhook.
Log records are written as workflow commands so warnings show up as run
annotations.
"""

import asyncio
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import httpx

from doc_sync.api_client import WebhookClient
from doc_sync.config import SyncConfig, load_config
from doc_sync.diff_fetcher import BatchedDiffFetcher
from doc_sync.errors import InputValidationError, SyncError
from doc_sync.github_client import GitHubClient
from doc_sync.pacing import build_pacer
from doc_sync.security import RepositoryValidator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Workflow commands
# ---------------------------------------------------------------------------

def escape_data(message: str) -> str:
    """Escape a message for a ``::command::`` line."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandHandler(logging.StreamHandler):
    """Render DEBUG/WARNING/ERROR records as ``::debug::`` etc."""

    def __init__(self, stream=None):
        super().__init__(stream or sys.stdout)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"::error::{escape_data(message)}"
        if record.levelno >= logging.WARNING:
            return f"::warning::{escape_data(message)}"
        if record.levelno <= logging.DEBUG:
            return f"::debug::{escape_data(message)}"
        return message


def install_workflow_logging(level: int = logging.DEBUG) -> WorkflowCommandHandler:
    handler = WorkflowCommandHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    return handler


# ---------------------------------------------------------------------------
# Inputs & context
# ---------------------------------------------------------------------------

def get_input(name: str, required: bool = False, environ: Optional[Mapping[str, str]] = None) -> str:
    """Read an action input from ``INPUT_<NAME>``.

    Raises:
        InputValidationError: ``required`` and the value is empty.
    """
    environ = os.environ if environ is None else environ
    value = environ.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
    if required and not value:
        raise InputValidationError(f"Input required and not supplied: {name}")
    return value


@dataclass(frozen=True)
class ActionContext:
    """The parts of the workflow run the fetch needs."""

    owner: str
    repo: str
    sha: str
    before: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ActionContext":
        environ = os.environ if environ is None else environ

        is_valid, error, slug = RepositoryValidator.validate_repo_slug(
            environ.get("GITHUB_REPOSITORY", "")
        )
        if not is_valid:
            raise InputValidationError(f"GITHUB_REPOSITORY: {error}")

        sha = environ.get("GITHUB_SHA", "").strip()
        if not sha:
            raise InputValidationError("GITHUB_SHA is not set")

        event = _load_event(environ.get("GITHUB_EVENT_PATH"))
        before = str(event.get("before") or "").strip()
        if not before or set(before) == {"0"}:
            raise InputValidationError(
                "The triggering event has no base revision ('before'); "
                "run this action on push events to an existing branch"
            )

        owner, repo = slug
        return cls(owner=owner, repo=repo, sha=sha, before=before)


def _load_event(event_path: Optional[str]) -> dict:
    if not event_path:
        return {}
    try:
        data = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise InputValidationError(f"Cannot read event payload {event_path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

async def _fetch(
    context: ActionContext,
    token: str,
    config: SyncConfig,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, str]:
    async with GitHubClient(
        context.owner,
        context.repo,
        token,
        api_url=config.github_api_url,
        timeout=config.request_timeout,
        http_client=http_client,
    ) as client:
        fetcher = BatchedDiffFetcher(
            client,
            batch_size=config.batch_size,
            pacer=build_pacer(config.pacing, config.batch_delay),
        )
        return await fetcher.fetch_changed_contents(context.before, context.sha)


def run_action(
    config: SyncConfig,
    environ: Optional[Mapping[str, str]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, str]:
    """Fetch the pushed changes and forward them to the webhook.

    Returns:
        The ``{path: content}`` mapping that was sent.

    Raises:
        SyncError: Missing inputs, failed comparison, or webhook failure.
    """
    token = get_input("github-token", required=True, environ=environ)
    project_id = get_input("project_id", required=True, environ=environ)
    api_key = get_input("api_key", required=True, environ=environ)
    context = ActionContext.from_env(environ)

    logger.info(
        "Comparing %s/%s %s...%s", context.owner, context.repo, context.before[:8], context.sha[:8]
    )
    changed = asyncio.run(_fetch(context, token, config, http_client))

    WebhookClient(config.webhook_url, timeout=config.request_timeout).post_changes(
        project_id, api_key, changed
    )

    for path, content in changed.items():
        logger.debug("Processing file: %s (%d chars)", path, len(content))
    return changed


def main() -> None:
    """Console entry point for ``doc-sync-action``."""
    install_workflow_logging()
    try:
        changed = run_action(load_config(dotenv=False))
    except SyncError as exc:
        logger.error(str(exc))
        sys.exit(1)
    logger.info("Forwarded %d changed file(s)", len(changed))


if __name__ == "__main__":
    main()
