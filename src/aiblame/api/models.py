"""Pydantic models for aiblame API requests and responses."""

import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

_REV_PATTERN = re.compile(r"^[^\s\-][^\s]*$")


def _validate_repo_path(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("repo_path cannot be empty")
    if not (v.startswith("/") or (len(v) > 2 and v[1] == ":")):
        raise ValueError("repo_path must be an absolute path")
    return v


def _validate_rev(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("commit cannot be empty")
    if not _REV_PATTERN.match(v):
        raise ValueError("commit must be a single revision without leading '-'")
    return v


class CopyNotesRequest(BaseModel):
    """Request model for copying attribution between commits."""

    repo_path: str = Field(
        ...,
        description="Absolute path of the local repository",
        examples=["/srv/checkouts/project"],
    )
    source: str = Field(
        ...,
        description="Source commit (before rewrite)",
        examples=["ba7765dd48c0ba51f4fd12cde48fd100aecdb743"],
    )
    target: str = Field(
        ...,
        description="Target commit (after rewrite)",
        examples=["d7a39abec5a282b9955afdd1649a5f1bafae35f7"],
    )
    dry_run: bool = Field(False, description="Plan the copy without writing")

    @field_validator("repo_path")
    @classmethod
    def repo_path_must_be_absolute(cls, v):
        """Only absolute local paths are accepted."""
        return _validate_repo_path(v)

    @field_validator("source", "target")
    @classmethod
    def commit_must_be_revision(cls, v):
        """Basic validation for commit revisions."""
        return _validate_rev(v)


class SyncRewriteRequest(BaseModel):
    """Request model for propagating a rewrite mapping."""

    repo_path: str = Field(..., description="Absolute path of the local repository")
    lines: List[str] = Field(
        ...,
        description="Rewrite mapping lines in 'old new [kind]' form",
        examples=[["ba7765dd48c0ba51f4fd12cde48fd100aecdb743 d7a39abec5a282b9955afdd1649a5f1bafae35f7 rebase"]],
    )
    strict: bool = Field(True, description="Fail on malformed lines instead of skipping them")

    @field_validator("repo_path")
    @classmethod
    def repo_path_must_be_absolute(cls, v):
        """Only absolute local paths are accepted."""
        return _validate_repo_path(v)


class HealthResponse(BaseModel):
    """Whether git can host attribution notes, optionally for one repository."""

    status: str = Field(..., examples=["healthy", "degraded"])
    git_version: Optional[str] = Field(None, examples=["2.43.0"])
    git_supported: bool = Field(..., description="Git meets the minimum version for notes plumbing")
    notes_ref: str = Field(..., examples=["refs/notes/ai-blame"])
    repo_path: Optional[str] = Field(None, examples=["/srv/checkouts/project"])
    repository_ok: Optional[bool] = Field(None, description="repo_path is inside a git repository")
    notes_tip: Optional[str] = Field(
        None,
        description="Current commit of the notes ref, null when no note was ever written",
    )


class VersionResponse(BaseModel):
    """Versions of the package and of the stored record layout."""

    version: str = Field(..., examples=["1.0.0"])
    api_version: str = Field(..., examples=["v1"])
    schema_versions: List[int] = Field(..., examples=[[1]])
    current_schema_version: int = Field(..., examples=[1])
    min_git_version: str = Field(..., examples=["2.30"])
    merge_modes: List[str] = Field(..., examples=[["overwrite", "augment"]])
