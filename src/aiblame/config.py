"""Configuration management for aiblame."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_NOTES_REF = "refs/notes/ai-blame"


@dataclass(frozen=True)
class NotesConfig:
    """Configuration for attribution notes storage and propagation."""

    # Notes storage
    notes_ref: str = DEFAULT_NOTES_REF
    max_write_retries: int = 3

    # Repository location (None means the current working directory)
    repo_path: Optional[str] = None

    # Git subprocess timeout (seconds)
    git_timeout: int = 60

    # Allowed rounding slack when checking that portions sum to at most 1
    portion_tolerance: float = 1e-9

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.notes_ref.startswith("refs/notes/"):
            raise ValueError("notes_ref must live under refs/notes/")
        if self.max_write_retries < 1:
            raise ValueError("max_write_retries must be at least 1")
        if self.git_timeout <= 0:
            raise ValueError("git_timeout must be positive")
        if not (0 <= self.portion_tolerance < 1):
            raise ValueError("portion_tolerance must be between 0 and 1")

    @property
    def git_env(self) -> Dict[str, str]:
        """Get Git environment variables for deterministic output.

        Global config is left alone: notes commits need the user's
        committer identity.
        """
        env = os.environ.copy()
        env.update(
            {
                "LC_ALL": "C",
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_ASKPASS": "echo",
                "SSH_ASKPASS": "echo",
                "GCM_INTERACTIVE": "never",
                "GIT_NOTES_DISPLAY_REF": self.notes_ref,
            }
        )
        return env

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary for output."""
        return {
            "notes_ref": self.notes_ref,
            "max_write_retries": self.max_write_retries,
            "repo_path": self.repo_path,
            "git_timeout": self.git_timeout,
            "portion_tolerance": self.portion_tolerance,
        }
