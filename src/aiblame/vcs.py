"""Version control system operations for aiblame."""

import hashlib
import logging
import os
import re
import subprocess
import uuid
from pathlib import Path
from typing import List, Optional, Union

from .config import NotesConfig
from .errors import (
    CommitNotFoundError,
    GitCommandError,
    GitVersionUnsupportedError,
    RepositoryNotFoundError,
)

logger = logging.getLogger(__name__)

MIN_GIT_VERSION = (2, 30)


class GitRepository:
    """Git repository operations: commit lookup and notes-ref plumbing."""

    def __init__(self, config: NotesConfig):
        """Initialize with configuration."""
        self.config = config
        self.workdir = Path(config.repo_path or os.getcwd())
        self._git_version: Optional[str] = None

    def _run_git(
        self,
        args: List[str],
        timeout: Optional[int] = None,
        check: bool = True,
        input_data: Optional[Union[str, bytes]] = None,
        binary: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run git command with proper environment and error handling."""
        # Enforce deterministic git behavior across platforms
        cmd = [
            "git",
            "-c",
            "core.autocrlf=false",
            "-c",
            "color.ui=false",
        ] + args
        timeout = timeout or self.config.git_timeout
        try:
            return subprocess.run(
                cmd,
                cwd=self.workdir,
                env=self.config.git_env,
                timeout=timeout,
                check=check,
                capture_output=True,
                input=input_data,
                text=not binary,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(args, f"timed out after {timeout}s") from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else e.stderr
            raise GitCommandError(args, (stderr or str(e)).strip()) from e
        except OSError as e:
            raise GitCommandError(args, str(e)) from e

    def validate_git_version(self) -> str:
        """Validate Git version meets minimum requirements."""
        if self._git_version:
            return self._git_version

        required = ".".join(str(part) for part in MIN_GIT_VERSION)
        try:
            result = subprocess.run(
                ["git", "--version"],
                capture_output=True,
                text=True,
                check=True,
                timeout=10,
            )
        except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            raise GitVersionUnsupportedError("unavailable", required) from e

        # Extract version number from "git version 2.34.1"
        match = re.search(r"git version (\d+\.\d+(?:\.\d+)?)", result.stdout.strip())
        if not match:
            raise GitVersionUnsupportedError("unknown", required)

        version_str = match.group(1)
        version_parts = tuple(int(x) for x in version_str.split(".")[:2])
        if version_parts < MIN_GIT_VERSION:
            raise GitVersionUnsupportedError(version_str, required)

        self._git_version = version_str
        return version_str

    def ensure_repository(self) -> None:
        """Fail unless the working directory is inside a git repository."""
        result = self._run_git(["rev-parse", "--git-dir"], check=False)
        if result.returncode != 0:
            raise RepositoryNotFoundError(str(self.workdir))

    # ------------------------------------------------------------------
    # Commit lookup
    # ------------------------------------------------------------------

    def resolve(self, rev: str) -> str:
        """Resolve a revision to its full commit id."""
        if not rev or rev.startswith("-"):
            raise CommitNotFoundError(rev, str(self.workdir))
        result = self._run_git(
            ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"],
            check=False,
        )
        if result.returncode != 0 or not result.stdout.strip():
            raise CommitNotFoundError(rev, str(self.workdir))
        return result.stdout.strip()

    def diff_fingerprint(self, commit: str) -> str:
        """Hash of the commit's patch, falling back to its tree for empty diffs."""
        result = self._run_git(
            [
                "diff-tree",
                "-p",
                "--root",
                "--no-color",
                "--full-index",
                "--no-commit-id",
                commit,
            ],
            binary=True,
        )
        payload = result.stdout
        if not payload.strip():
            tree = self._run_git(["rev-parse", f"{commit}^{{tree}}"])
            payload = f"tree {tree.stdout.strip()}".encode("utf-8")
        return "sha256:" + hashlib.sha256(payload).hexdigest()

    # ------------------------------------------------------------------
    # Notes plumbing
    # ------------------------------------------------------------------

    def notes_tip(self, notes_ref: str) -> Optional[str]:
        """Current commit of the notes ref, or None when it does not exist."""
        result = self._run_git(
            ["rev-parse", "--verify", "--quiet", notes_ref],
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def read_note(self, notes_ref: str, commit: str) -> Optional[bytes]:
        """Raw note attached to ``commit``, or None when there is none."""
        listing = self._run_git(
            ["notes", f"--ref={notes_ref}", "list", commit],
            check=False,
        )
        if listing.returncode != 0 or not listing.stdout.strip():
            return None
        blob = listing.stdout.strip().split()[0]
        result = self._run_git(["cat-file", "blob", blob], binary=True)
        return result.stdout

    def stage_note(
        self,
        notes_ref: str,
        base_tip: Optional[str],
        commit: str,
        data: Optional[bytes],
    ) -> Optional[str]:
        """Build a notes commit on top of ``base_tip`` without moving ``notes_ref``.

        The new history is assembled in a throwaway ref so the published
        ref is only ever advanced by ``compare_and_swap_ref``. ``data=None``
        removes the note. Returns the new notes commit id.
        """
        scratch_ref = f"{notes_ref}-staging-{uuid.uuid4().hex}"
        try:
            if base_tip:
                self._run_git(["update-ref", scratch_ref, base_tip])

            if data is not None:
                blob = self._run_git(
                    ["hash-object", "-w", "--stdin"],
                    input_data=data,
                    binary=True,
                ).stdout.decode("ascii").strip()
                self._run_git(
                    ["notes", f"--ref={scratch_ref}", "add", "-f", "-C", blob, commit]
                )
            else:
                self._run_git(
                    ["notes", f"--ref={scratch_ref}", "remove", "--ignore-missing", commit]
                )

            return self.notes_tip(scratch_ref)
        finally:
            self._run_git(["update-ref", "-d", scratch_ref], check=False)

    def compare_and_swap_ref(
        self, ref: str, new_value: str, expected_old: Optional[str]
    ) -> bool:
        """Move ``ref`` to ``new_value`` only if it still points at ``expected_old``."""
        result = self._run_git(
            [
                "update-ref",
                "-m",
                "aiblame: update attribution notes",
                ref,
                new_value,
                expected_old or "",
            ],
            check=False,
        )
        if result.returncode != 0:
            logger.debug(
                "Ref update rejected",
                extra={"ref": ref, "expected": expected_old, "stderr": result.stderr.strip()},
            )
            return False
        return True
