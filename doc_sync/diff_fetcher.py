"""Batched retrieval of every file changed between two revisions.

Batches run one after another with a pacing pause in between; the files of a
batch are fetched concurrently. A file that cannot be fetched maps to an
empty string so the caller always gets every changed path exactly once.
"""

import asyncio
import logging
from typing import Dict, List, Sequence

from doc_sync.config import MAX_BATCH_SIZE
from doc_sync.errors import RemoteFetchError
from doc_sync.pacing import FixedDelayPacer

logger = logging.getLogger(__name__)


def make_batches(paths: Sequence[str], size: int) -> List[List[str]]:
    """Split ``paths`` into contiguous, order-preserving slices of ``size``."""
    if size < 1:
        raise ValueError("batch size must be positive")
    return [list(paths[i:i + size]) for i in range(0, len(paths), size)]


class BatchedDiffFetcher:
    """Turns a revision range into an ordered ``{path: content}`` mapping.

    Args:
        client: Object exposing async ``compare_commits(base, head)`` and
                ``get_file_content(path, ref)`` (see ``GitHubClient``).
        batch_size: Files per batch, 1-10.
        pacer: Pause policy between batches. Defaults to a fixed 1s delay.
    """

    def __init__(self, client, batch_size: int = MAX_BATCH_SIZE, pacer=None):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.client = client
        self.batch_size = batch_size
        self.pacer = pacer or FixedDelayPacer(1.0)
        self.last_failures: List[str] = []

    async def fetch_changed_contents(self, base: str, head: str) -> Dict[str, str]:
        """Fetch the content at ``head`` of every file changed since ``base``.

        Raises:
            RemoteFetchError: The comparison itself failed. Per-file failures
                never raise.
        """
        changed = await self.client.compare_commits(base, head)
        # Collapse duplicates up front so batching cannot introduce any
        paths = list(dict.fromkeys(changed))
        self.last_failures = []

        results: Dict[str, str] = {}
        if not paths:
            logger.info("No changed files between %s and %s", base[:8], head[:8])
            return results

        batches = make_batches(paths, self.batch_size)
        for index, batch in enumerate(batches):
            if index > 0:
                await self.pacer.pause()
            self.pacer.mark_batch_start()

            logger.debug("Batch %d/%d: %d file(s)", index + 1, len(batches), len(batch))
            contents = await asyncio.gather(
                *(self._fetch_one(path, head) for path in batch)
            )
            for path, content in zip(batch, contents):
                results[path] = content

        logger.info(
            "Fetched %d file(s) in %d batch(es), %d failed",
            len(results), len(batches), len(self.last_failures),
        )
        return results

    async def _fetch_one(self, path: str, ref: str) -> str:
        try:
            return await self.client.get_file_content(path, ref)
        except RemoteFetchError as exc:
            logger.warning("Failed to get content for %s: %s", path, exc)
        except Exception as exc:
            logger.warning("Failed to get content for %s: %s: %s", path, type(exc).__name__, exc)
        self.last_failures.append(path)
        return ""


async def fetch_changed_contents(
    client,
    base: str,
    head: str,
    batch_size: int = MAX_BATCH_SIZE,
    pacer=None,
) -> Dict[str, str]:
    """Convenience wrapper around ``BatchedDiffFetcher``."""
    fetcher = BatchedDiffFetcher(client, batch_size=batch_size, pacer=pacer)
    return await fetcher.fetch_changed_contents(base, head)
