"""Shared fixtures for the publish-project-zips tests."""

from __future__ import annotations

import typing as typ

import pytest
from _helpers import REPOSITORY, FakeGithub, write_file

from project_zips.github_api import GithubClient

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def fake_github() -> FakeGithub:
    """Return an empty in-memory GitHub."""
    return FakeGithub()


@pytest.fixture
def sleeps() -> list[float]:
    """Collect the delays requested between retry attempts."""
    return []


@pytest.fixture
def github_client(
    fake_github: FakeGithub, sleeps: list[float]
) -> typ.Iterator[GithubClient]:
    """Return a client wired to ``fake_github`` that never really sleeps."""
    http_client = fake_github.client()
    client = GithubClient(
        REPOSITORY, "test-token", http_client=http_client, sleep=sleeps.append
    )
    yield client
    http_client.close()


@pytest.fixture
def projects_root(tmp_path: Path) -> Path:
    """Create a ``projects`` directory with two sample projects."""
    root = tmp_path / "projects"
    write_file(root / "Alpha Beta" / "README.md", b"# Alpha Beta\n")
    write_file(root / "Alpha Beta" / "src" / "main.py", b"print('alpha')\n")
    write_file(root / "gamma" / "gamma.txt", b"gamma\n")
    return root


@pytest.fixture(autouse=True)
def _isolate_github_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the runner's own GitHub variables out of the tests."""
    for name in (
        "GITHUB_OUTPUT",
        "GITHUB_STEP_SUMMARY",
        "GITHUB_REPOSITORY",
        "GITHUB_REF_NAME",
        "GITHUB_TOKEN",
        "GH_TOKEN",
        "GITHUB_ACTOR",
        "GITHUB_API_URL",
        "INPUT_GITHUB_TOKEN",
        "INPUT_REPOSITORY",
        "INPUT_TAG",
        "INPUT_REGISTRY",
    ):
        monkeypatch.delenv(name, raising=False)
