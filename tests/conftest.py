"""Shared fixtures for the doc-sync test suite.

All tests run with zero network access beyond loopback. The processing
service, GitHub and the browser are mocked.
"""

import sys
from pathlib import Path

import pytest

# Ensure the repository root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from doc_sync.config import SyncConfig
from doc_sync.errors import AuthError
from tests.fixtures import SAMPLE_MDX, SAMPLE_MDX_WITH_CODE, FakeListener, FakePrompter


@pytest.fixture
def config():
    return SyncConfig(api_url="http://test:3000", batch_delay=0)


@pytest.fixture
def tmp_repo(tmp_path):
    """Temp directory mimicking a git working tree with MDX docs."""
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".git").mkdir()
    (repo / "docs").mkdir()
    (repo / "docs" / "intro.mdx").write_text(SAMPLE_MDX)
    (repo / "docs" / "api.mdx").write_text(SAMPLE_MDX_WITH_CODE)
    (repo / "README.md").write_text("# Test Repo\n")
    return repo


@pytest.fixture
def fake_listener():
    return FakeListener()


@pytest.fixture
def failing_listener():
    return FakeListener(error=AuthError("No token received"))


@pytest.fixture
def fake_prompter():
    return FakePrompter()
