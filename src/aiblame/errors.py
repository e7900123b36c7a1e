"""Error definitions and handling for aiblame."""

from typing import Any, Dict, List, Optional


class AiBlameError(Exception):
    """Base exception for aiblame errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with code, message, and optional details."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class GitVersionUnsupportedError(AiBlameError):
    """Git version is not supported."""

    def __init__(self, detected_version: str, required_version: str = "2.30"):
        super().__init__(
            code="GIT_VERSION_UNSUPPORTED",
            message=f"Git version {detected_version} is not supported. "
            f"Minimum required: {required_version}",
            details={
                "detected_version": detected_version,
                "required_version": required_version,
            },
        )


class GitCommandError(AiBlameError):
    """A git invocation failed unexpectedly."""

    def __init__(self, args: List[str], reason: str):
        super().__init__(
            code="GIT_COMMAND_FAILED",
            message=f"git {' '.join(args)} failed: {reason}",
            details={"args": args, "reason": reason},
        )


class CommitNotFoundError(AiBlameError):
    """A commit identifier does not resolve in the repository."""

    def __init__(self, commit: str, repo_path: Optional[str] = None):
        details: Dict[str, Any] = {"commit": commit}
        if repo_path:
            details["repo_path"] = repo_path
        super().__init__(
            code="COMMIT_NOT_FOUND",
            message=f"Commit not found: {commit}",
            details=details,
        )
        self.commit = commit


class SchemaError(AiBlameError):
    """A stored attribution blob cannot be decoded."""

    def __init__(self, reason: str, schema_version: Any = None):
        details: Dict[str, Any] = {"reason": reason}
        if schema_version is not None:
            details["schema_version"] = schema_version
        super().__init__(
            code="SCHEMA_ERROR",
            message=f"Invalid attribution record: {reason}",
            details=details,
        )


class RewriteParseError(AiBlameError):
    """A line of the rewrite mapping feed is malformed."""

    def __init__(self, line_number: int, line: str, reason: str):
        super().__init__(
            code="REWRITE_PARSE_ERROR",
            message=f"Malformed rewrite mapping at line {line_number}: {reason}",
            details={"line_number": line_number, "line": line, "reason": reason},
        )
        self.line_number = line_number


class WriteConflictError(AiBlameError):
    """The notes ref kept moving underneath us and retries ran out."""

    def __init__(self, commit: str, notes_ref: str, attempts: int):
        super().__init__(
            code="WRITE_CONFLICT",
            message=f"Concurrent update of {notes_ref} while writing {commit}; "
            f"gave up after {attempts} attempts",
            details={"commit": commit, "notes_ref": notes_ref, "attempts": attempts},
        )


class RepositoryNotFoundError(AiBlameError):
    """The working directory is not inside a git repository."""

    def __init__(self, path: str):
        super().__init__(
            code="REPO_NOT_FOUND",
            message=f"Not in a git repository: {path}",
            details={"path": path},
        )
