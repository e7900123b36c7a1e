"""Pytest configuration and fixtures for aiblame tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

from aiblame.config import NotesConfig
from aiblame.record import AttributionEntry, AttributionRecord
from aiblame.store import NotesStore
from aiblame.sync import AttributionSync
from aiblame.vcs import GitRepository


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="aiblame_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def git_repo(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    env = os.environ.copy()
    env.update({
        "GIT_AUTHOR_NAME": "Test User",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test User",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    })

    def run_git(args: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git"] + args,
            cwd=repo_path,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )

    # Initialize repository
    run_git(["init"])
    run_git(["config", "user.name", "Test User"])
    run_git(["config", "user.email", "test@example.com"])
    run_git(["config", "commit.gpgsign", "false"])

    # Create initial commit
    (repo_path / "README.md").write_text("# Test Repository\n")
    run_git(["add", "README.md"])
    run_git(["commit", "-m", "Initial commit"])

    yield repo_path


class GitRepoHelper:
    """Helper class for git repository operations in tests."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.env = os.environ.copy()
        self.env.update({
            "GIT_AUTHOR_NAME": "Test User",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test User",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        })

    def run_git(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run git command in the repository."""
        return subprocess.run(
            ["git"] + args,
            cwd=self.repo_path,
            env=self.env,
            check=True,
            capture_output=True,
            text=True,
        )

    def create_file(self, path: str, content: str) -> None:
        """Create a file with content."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    def add_and_commit(self, message: str, files: Optional[List[str]] = None) -> str:
        """Add files and create a commit, return commit SHA."""
        if files:
            for file in files:
                self.run_git(["add", file])
        else:
            self.run_git(["add", "-A"])

        self.run_git(["commit", "-m", message])
        return self.get_current_sha()

    def commit_file(self, path: str, content: str, message: Optional[str] = None) -> str:
        """Write a file and commit it, return commit SHA."""
        self.create_file(path, content)
        return self.add_and_commit(message or f"Update {path}", [path])

    def get_current_sha(self) -> str:
        """Get current commit SHA."""
        result = self.run_git(["rev-parse", "HEAD"])
        return result.stdout.strip()

    def raw_note(self, commit: str, notes_ref: str = "refs/notes/ai-blame") -> Optional[str]:
        """Note content as git itself sees it, or None."""
        result = subprocess.run(
            ["git", "notes", f"--ref={notes_ref}", "show", commit],
            cwd=self.repo_path,
            env=self.env,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            return None
        return result.stdout


@pytest.fixture
def git_helper(git_repo: Path) -> GitRepoHelper:
    """Create a git repository helper."""
    return GitRepoHelper(git_repo)


@pytest.fixture
def notes_config(git_repo: Path) -> NotesConfig:
    """Notes configuration pointing at the test repository."""
    return NotesConfig(repo_path=str(git_repo))


@pytest.fixture
def repository(notes_config: NotesConfig) -> GitRepository:
    return GitRepository(notes_config)


@pytest.fixture
def store(repository: GitRepository, notes_config: NotesConfig) -> NotesStore:
    return NotesStore(repository, notes_config)


@pytest.fixture
def attribution_sync(
    store: NotesStore, repository: GitRepository, notes_config: NotesConfig
) -> AttributionSync:
    return AttributionSync(store, repository, notes_config)


def make_record(*entries, fingerprint: Optional[str] = None) -> AttributionRecord:
    """Build a record from ``(contributor, tool, portion)`` tuples."""
    return AttributionRecord(
        entries=[
            AttributionEntry(contributor=contributor, tool=tool, portion=portion)
            for contributor, tool, portion in entries
        ],
        content_fingerprint=fingerprint,
    )


def portions(record: AttributionRecord) -> list:
    """``(contributor, tool, portion)`` tuples of a record, in order."""
    return [(entry.contributor, entry.tool, entry.portion) for entry in record.entries]
