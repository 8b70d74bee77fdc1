"""Shared test data and helpers for the doc-sync test suite."""

import asyncio
import base64

import httpx

from doc_sync.models import ScanMode

SAMPLE_MDX = """import { Callout } from '@/components/callout'
export const meta = { title: 'Intro' }

# Getting Started

Welcome to the **docs**. Read the [guide](/guide) first.

<Callout type="info">
Install the _CLI_ before continuing.
</Callout>

---

![diagram](/img/flow.png)
"""

SAMPLE_MDX_NORMALIZED = (
    "Getting Started Welcome to the docs. Read the guide first. "
    "Install the CLI before continuing. diagram"
)

SAMPLE_MDX_WITH_CODE = """## API

Call `client.sync()` to start.

```python
client = Client()
client.sync()
```

<!-- internal note -->
Done.
"""

SAMPLE_MDX_WITH_CODE_NORMALIZED = "API Call to start. Done."


def encode_content(text: str) -> dict:
    """Build a GitHub contents API response body for ``text``."""
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    # GitHub wraps base64 at 60 characters
    wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
    return {"type": "file", "encoding": "base64", "content": wrapped + "\n"}


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self, events=None):
        self.calls = []
        self.events = events

    async def __call__(self, seconds):
        self.calls.append(seconds)
        if self.events is not None:
            self.events.append(("pause", seconds))
        await asyncio.sleep(0)


class FakeGitHub:
    """Mock GitHub REST API for ``httpx.MockTransport``.

    Tracks how many content requests are in flight so tests can check batch
    concurrency.
    """

    def __init__(self, files, missing=(), compare_status=200, events=None):
        self.files = files
        self.missing = set(missing)
        self.compare_status = compare_status
        self.events = events if events is not None else []
        self.in_flight = 0
        self.content_requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if "/compare/" in path:
            if self.compare_status != 200:
                return httpx.Response(self.compare_status, json={"message": "Not Found"})
            return httpx.Response(
                200, json={"files": [{"filename": name} for name in self.files]}
            )

        file_path = path.split("/contents/", 1)[1]
        self.content_requests.append(file_path)
        self.in_flight += 1
        self.events.append(("start", self.in_flight))
        try:
            # Yield so the rest of the batch can start
            for _ in range(3):
                await asyncio.sleep(0)
            if file_path in self.missing:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=encode_content(self.files[file_path]))
        finally:
            self.in_flight -= 1

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def batch_peaks(events):
    """Split recorded events at pauses; return the peak concurrency per batch."""
    peaks = []
    current = 0
    for kind, value in events:
        if kind == "pause":
            peaks.append(current)
            current = 0
        else:
            current = max(current, value)
    peaks.append(current)
    return peaks


class FakeListener:
    """Stands in for CallbackListener; settles immediately."""

    def __init__(self, token="tok-123", error=None):
        self.token = token
        self.error = error
        self.started = False
        self.stopped = False

    async def start(self):
        self.started = True
        future = asyncio.get_running_loop().create_future()
        if self.error is not None:
            future.set_exception(self.error)
        else:
            future.set_result(self.token)
        return future

    async def stop(self):
        self.stopped = True


class FakePrompter:
    def __init__(self, project_id="proj-1", api_key="key-1", scan_mode=ScanMode.FULL):
        self._project_id = project_id
        self._api_key = api_key
        self._scan_mode = scan_mode
        self.asked = []

    def project_id(self):
        self.asked.append("project_id")
        return self._project_id

    def api_key(self):
        self.asked.append("api_key")
        return self._api_key

    def scan_mode(self):
        self.asked.append("scan_mode")
        return self._scan_mode
