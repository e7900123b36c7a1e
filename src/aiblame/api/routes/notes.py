"""Attribution notes routes for aiblame API."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Query

from ..models import CopyNotesRequest, SyncRewriteRequest
from ..services import NotesService

router = APIRouter(tags=["notes"])

logger = logging.getLogger(__name__)

notes_service = NotesService()


@router.get("/notes/{commit}")
def show_notes(commit: str, repo_path: str = Query(..., min_length=1)) -> Dict[str, Any]:
    """Return the attribution attached to a commit."""
    logger.info("Received show request", extra={"repo": repo_path, "commit": commit})
    return notes_service.show_notes(repo_path, commit)


@router.post("/copy-notes")
def copy_notes(request: CopyNotesRequest) -> Dict[str, Any]:
    """Copy attribution from one commit onto another."""
    result = notes_service.copy_notes(
        repo_path=request.repo_path,
        source=request.source,
        target=request.target,
        dry_run=request.dry_run,
    )
    logger.info(
        "Copy request completed",
        extra={"repo": request.repo_path, "ok": result.get("ok")},
    )
    return result


@router.post("/sync-rewrite")
def sync_rewrite(request: SyncRewriteRequest) -> Dict[str, Any]:
    """Propagate attribution for an 'old new [kind]' rewrite mapping."""
    result = notes_service.sync_rewrite(
        repo_path=request.repo_path,
        lines=request.lines,
        strict=request.strict,
    )
    logger.info(
        "Rewrite request completed",
        extra={"repo": request.repo_path, "ok": result.get("ok")},
    )
    return result
