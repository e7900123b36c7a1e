"""Service metadata endpoints: git readiness and record layout versions."""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from ... import __version__
from ...codec import SUPPORTED_SCHEMA_VERSIONS
from ...errors import AiBlameError
from ...merge import MergeMode
from ...record import CURRENT_SCHEMA_VERSION
from ...settings import get_notes_config
from ...vcs import MIN_GIT_VERSION, GitRepository
from ..models import HealthResponse, VersionResponse
from .notes import notes_service

router = APIRouter(tags=["meta"])

logger = logging.getLogger(__name__)


def _min_git_version() -> str:
    return ".".join(str(part) for part in MIN_GIT_VERSION)


@router.get("/health", response_model=HealthResponse)
def health_check(
    repo_path: Optional[str] = Query(None, description="Repository to check as well"),
) -> HealthResponse:
    """Report whether notes can be read and written here.

    Without ``repo_path`` only the git installation is checked. With it,
    the repository and the current tip of the notes ref are reported too.
    """
    config = get_notes_config()
    git_version: Optional[str] = None
    try:
        git_version = GitRepository(config).validate_git_version()
        git_supported = True
    except AiBlameError as exc:
        git_supported = False
        git_version = exc.details.get("detected_version")

    response = HealthResponse(
        status="healthy" if git_supported else "degraded",
        git_version=git_version,
        git_supported=git_supported,
        notes_ref=config.notes_ref,
    )
    if repo_path:
        status = notes_service.notes_status(repo_path)
        response.repo_path = repo_path
        response.repository_ok = status["repository_ok"]
        response.notes_tip = status["notes_tip"]
        if not status["repository_ok"]:
            response.status = "degraded"

    logger.info(
        "Health check invoked",
        extra={"status": response.status, "git_version": git_version, "repo": repo_path},
    )
    return response


@router.get("/version", response_model=VersionResponse)
def version_info() -> VersionResponse:
    """Package version and the attribution record layouts it understands."""
    return VersionResponse(
        version=__version__,
        api_version="v1",
        schema_versions=sorted(SUPPORTED_SCHEMA_VERSIONS),
        current_schema_version=CURRENT_SCHEMA_VERSION,
        min_git_version=_min_git_version(),
        merge_modes=[mode.value for mode in MergeMode],
    )


@router.get("/", include_in_schema=False)
def root() -> dict:
    return {
        "name": "aiblame API",
        "version": __version__,
        "notes_ref": get_notes_config().notes_ref,
        "endpoints": {
            "notes": "GET /notes/{commit}?repo_path=...",
            "copy-notes": "POST /copy-notes",
            "sync-rewrite": "POST /sync-rewrite",
            "health": "GET /health[?repo_path=...]",
            "version": "GET /version",
        },
    }
