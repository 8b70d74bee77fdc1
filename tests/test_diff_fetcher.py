"""Tests for the batched diff fetcher and the GitHub client it drives.

GitHub is mocked with httpx.MockTransport; pauses use a recording sleep so
no test waits in real time.
"""

import asyncio

import httpx
import pytest

from doc_sync.diff_fetcher import BatchedDiffFetcher, make_batches
from doc_sync.errors import RemoteFetchError
from doc_sync.github_client import GitHubClient
from doc_sync.pacing import FixedDelayPacer, MinimumIntervalPacer, build_pacer
from tests.fixtures import FakeGitHub, RecordingSleep, batch_peaks, encode_content


def _files(count):
    return {f"docs/page-{i:02d}.mdx": f"content {i}" for i in range(count)}


def _run(github, batch_size=10, events=None, base="base-sha", head="head-sha"):
    sleep = RecordingSleep(events)

    async def scenario():
        async with GitHubClient("octo", "docs", "gh-token", http_client=github.client()) as client:
            fetcher = BatchedDiffFetcher(
                client, batch_size=batch_size, pacer=FixedDelayPacer(1.0, sleep=sleep)
            )
            result = await fetcher.fetch_changed_contents(base, head)
            return result, fetcher

    result, fetcher = asyncio.run(scenario())
    return result, fetcher, sleep


# ---------------------------------------------------------------------------
# Batching helper
# ---------------------------------------------------------------------------

class TestMakeBatches:

    def test_short_final_batch(self):
        batches = make_batches([str(i) for i in range(25)], 10)
        assert [len(b) for b in batches] == [10, 10, 5]

    def test_preserves_order(self):
        paths = [str(i) for i in range(12)]
        assert sum(make_batches(paths, 5), []) == paths

    def test_empty(self):
        assert make_batches([], 10) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            make_batches(["a"], 0)


# ---------------------------------------------------------------------------
# Completeness & ordering
# ---------------------------------------------------------------------------

class TestCompleteness:

    @pytest.mark.parametrize("count", [1, 9, 10, 11, 20, 23])
    def test_every_path_exactly_once(self, count):
        files = _files(count)
        result, _, _ = _run(FakeGitHub(files))

        assert list(result) == list(files)
        assert result == files

    def test_empty_change_list_issues_no_batch(self):
        github = FakeGitHub({})
        result, _, sleep = _run(github)

        assert result == {}
        assert github.content_requests == []
        assert sleep.calls == []

    def test_duplicate_paths_collapsed(self):
        github = FakeGitHub({"a.mdx": "A", "b.mdx": "B"})

        async def compare_with_dupes(base, head):
            return ["a.mdx", "b.mdx", "a.mdx"]

        async def scenario():
            async with GitHubClient("octo", "docs", "t", http_client=github.client()) as client:
                client.compare_commits = compare_with_dupes
                fetcher = BatchedDiffFetcher(client, pacer=FixedDelayPacer(0))
                return await fetcher.fetch_changed_contents("b", "h")

        result = asyncio.run(scenario())
        assert list(result) == ["a.mdx", "b.mdx"]
        assert github.content_requests == ["a.mdx", "b.mdx"]


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------

class TestIsolation:

    def test_failed_file_maps_to_empty_string(self):
        files = _files(12)
        github = FakeGitHub(files, missing={"docs/page-03.mdx"})

        result, fetcher, _ = _run(github)

        assert len(result) == 12
        assert result["docs/page-03.mdx"] == ""
        for path, content in files.items():
            if path != "docs/page-03.mdx":
                assert result[path] == content
        assert fetcher.last_failures == ["docs/page-03.mdx"]

    def test_failure_is_logged_as_warning(self, caplog):
        github = FakeGitHub({"a.mdx": "A"}, missing={"a.mdx"})

        with caplog.at_level("WARNING"):
            result, _, _ = _run(github)

        assert result == {"a.mdx": ""}
        assert "Failed to get content for a.mdx" in caplog.text

    def test_unexpected_exception_isolated(self):
        class ExplodingClient:
            async def compare_commits(self, base, head):
                return ["ok.mdx", "boom.mdx"]

            async def get_file_content(self, path, ref):
                if path == "boom.mdx":
                    raise KeyError("content")
                return "fine"

        fetcher = BatchedDiffFetcher(ExplodingClient(), pacer=FixedDelayPacer(0))
        result = asyncio.run(fetcher.fetch_changed_contents("b", "h"))

        assert result == {"ok.mdx": "fine", "boom.mdx": ""}

    def test_compare_failure_raises(self):
        github = FakeGitHub(_files(3), compare_status=404)

        with pytest.raises(RemoteFetchError, match="compare"):
            _run(github)


# ---------------------------------------------------------------------------
# Pacing & concurrency
# ---------------------------------------------------------------------------

class TestPacing:

    def test_25_files_three_batches_two_pauses(self):
        events = []
        github = FakeGitHub(_files(25), events=events)

        result, _, sleep = _run(github, events=events)

        assert len(result) == 25
        assert sleep.calls == [1.0, 1.0]
        assert batch_peaks(events) == [10, 10, 5]

    def test_batches_run_in_comparison_order(self):
        files = _files(25)
        github = FakeGitHub(files)

        _run(github)

        paths = list(files)
        assert sorted(github.content_requests[:10]) == sorted(paths[:10])
        assert sorted(github.content_requests[10:20]) == sorted(paths[10:20])
        assert sorted(github.content_requests[20:]) == sorted(paths[20:])

    def test_single_batch_no_pause(self):
        _, _, sleep = _run(FakeGitHub(_files(10)))
        assert sleep.calls == []

    def test_smaller_batch_size(self):
        events = []
        github = FakeGitHub(_files(7), events=events)

        _, _, sleep = _run(github, batch_size=3, events=events)

        assert len(sleep.calls) == 2
        assert batch_peaks(events) == [3, 3, 1]

    @pytest.mark.parametrize("size", [0, 11])
    def test_batch_size_bounds(self, size):
        with pytest.raises(ValueError):
            BatchedDiffFetcher(object(), batch_size=size)


class TestPacers:

    def test_fixed_delay_zero_skips_sleep(self):
        sleep = RecordingSleep()
        asyncio.run(FixedDelayPacer(0, sleep=sleep).pause())
        assert sleep.calls == []

    def test_minimum_interval_sleeps_remainder(self):
        sleep = RecordingSleep()
        now = [100.0]
        pacer = MinimumIntervalPacer(1.0, sleep=sleep, clock=lambda: now[0])

        pacer.mark_batch_start()
        now[0] = 100.25
        asyncio.run(pacer.pause())

        assert sleep.calls == [pytest.approx(0.75)]

    def test_minimum_interval_slow_batch_no_sleep(self):
        sleep = RecordingSleep()
        now = [100.0]
        pacer = MinimumIntervalPacer(1.0, sleep=sleep, clock=lambda: now[0])

        pacer.mark_batch_start()
        now[0] = 102.0
        asyncio.run(pacer.pause())

        assert sleep.calls == []

    def test_build_pacer(self):
        assert isinstance(build_pacer("fixed", 1.0), FixedDelayPacer)
        assert isinstance(build_pacer("interval", 1.0), MinimumIntervalPacer)


# ---------------------------------------------------------------------------
# GitHub client
# ---------------------------------------------------------------------------

class TestGitHubClient:

    def _client(self, handler):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GitHubClient("octo", "docs", "gh-token", http_client=http)

    def test_compare_request_shape(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"files": [{"filename": "a.mdx"}, {"filename": "b.md"}]})

        paths = asyncio.run(self._client(handler).compare_commits("abc", "def"))

        assert paths == ["a.mdx", "b.md"]
        assert seen["url"] == "https://api.github.com/repos/octo/docs/compare/abc...def"
        assert seen["auth"] == "Bearer gh-token"

    def test_compare_without_files_key(self):
        client = self._client(lambda request: httpx.Response(200, json={"status": "identical"}))
        assert asyncio.run(client.compare_commits("a", "b")) == []

    def test_get_content_decodes_base64(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json=encode_content("héllo\nworld"))

        content = asyncio.run(self._client(handler).get_file_content("docs/a b.mdx", "sha1"))

        assert content == "héllo\nworld"
        assert seen["url"] == "https://api.github.com/repos/octo/docs/contents/docs/a%20b.mdx?ref=sha1"

    def test_directory_listing_not_retrievable(self):
        client = self._client(lambda request: httpx.Response(200, json=[{"name": "x"}]))
        with pytest.raises(RemoteFetchError, match="no retrievable content"):
            asyncio.run(client.get_file_content("docs", "sha1"))

    def test_unsafe_path_rejected_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(RemoteFetchError, match="traversal"):
            asyncio.run(self._client(handler).get_file_content("../secrets", "sha1"))
        assert calls == []

    def test_http_error_wrapped(self):
        client = self._client(lambda request: httpx.Response(500))
        with pytest.raises(RemoteFetchError):
            asyncio.run(client.get_file_content("a.mdx", "sha1"))

    def test_empty_file_decodes_to_empty_string(self):
        client = self._client(
            lambda request: httpx.Response(200, json={"type": "file", "encoding": "base64", "content": ""})
        )
        assert asyncio.run(client.get_file_content("empty.mdx", "sha1")) == ""

    def test_submodule_without_content_not_retrievable(self):
        client = self._client(lambda request: httpx.Response(200, json={"type": "submodule"}))
        with pytest.raises(RemoteFetchError, match="no retrievable content"):
            asyncio.run(client.get_file_content("vendor/lib", "sha1"))

    def test_empty_file_is_not_a_failure(self, caplog):
        def handler(request):
            if "/compare/" in request.url.path:
                return httpx.Response(200, json={"files": [{"filename": "empty.mdx"}]})
            return httpx.Response(200, json={"type": "file", "encoding": "base64", "content": ""})

        async def scenario():
            async with self._client(handler) as client:
                fetcher = BatchedDiffFetcher(client, pacer=FixedDelayPacer(0))
                return await fetcher.fetch_changed_contents("base", "head"), fetcher

        with caplog.at_level("WARNING"):
            result, fetcher = asyncio.run(scenario())

        assert result == {"empty.mdx": ""}
        assert fetcher.last_failures == []
        assert "Failed to get content" not in caplog.text
