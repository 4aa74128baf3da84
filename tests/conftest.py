import os
import shutil
import subprocess

import pytest

GIT = shutil.which("git")

requires_git = pytest.mark.skipif(GIT is None, reason="git is not installed")

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test Author",
    "GIT_AUTHOR_EMAIL": "author@example.com",
    "GIT_COMMITTER_NAME": "Test Author",
    "GIT_COMMITTER_EMAIL": "author@example.com",
    "GIT_AUTHOR_DATE": "2024-01-01T00:00:00+0000",
    "GIT_COMMITTER_DATE": "2024-01-01T00:00:00+0000",
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(repo, *args):
    env = dict(os.environ, **_GIT_ENV)
    env["HOME"] = str(repo)
    subprocess.run(
        ["git", "-C", str(repo), "-c", "commit.gpgsign=false", *args],
        check=True,
        capture_output=True,
        env=env,
    )


@pytest.fixture
def make_repo(tmp_path):
    """Create a git repository on branch `main` with `commits` commits."""

    def _make(commits=5, name="repo with spaces"):
        repo = tmp_path / name
        repo.mkdir()
        git(repo, "init", "-q")
        git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
        for i in range(1, commits + 1):
            (repo / f"file{i}.txt").write_text(f"line {i}\n")
            git(repo, "add", f"file{i}.txt")
            git(repo, "commit", "-q", "-m", f"commit number {i}")
        return repo

    return _make


@pytest.fixture
def not_a_repo(tmp_path, monkeypatch):
    path = tmp_path / "plain"
    path.mkdir()
    # Keep git from discovering a repository in a parent directory
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    return path
