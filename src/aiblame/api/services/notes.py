"""Service layer for aiblame API - shares the engine with the CLI."""

import logging
from typing import Any, Callable, Dict, List

from ...codec import record_to_dict
from ...config import NotesConfig
from ...errors import AiBlameError
from ...rewrite import parse_rewrite_mapping
from ...serialize import OutputSerializer
from ...settings import get_notes_config
from ...store import NotesStore
from ...sync import AttributionSync
from ...vcs import GitRepository

logger = logging.getLogger(__name__)


class NotesService:
    """Service class that runs engine operations and wraps results in envelopes."""

    def __init__(self) -> None:
        self.serializer = OutputSerializer()

    def _config_for(self, repo_path: str) -> NotesConfig:
        base = get_notes_config()
        return NotesConfig(
            notes_ref=base.notes_ref,
            max_write_retries=base.max_write_retries,
            repo_path=repo_path,
            git_timeout=base.git_timeout,
            portion_tolerance=base.portion_tolerance,
        )

    def _build_sync(self, repo_path: str) -> AttributionSync:
        config = self._config_for(repo_path)
        repo = GitRepository(config)
        repo.validate_git_version()
        repo.ensure_repository()
        return AttributionSync(NotesStore(repo, config), repo, config)

    def _run(self, repo_path: str, action: Callable[[AttributionSync], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            sync = self._build_sync(repo_path)
            return action(sync)

        except AiBlameError as exc:
            logger.warning(
                "Known aiblame error",
                extra={"repo": repo_path, "code": exc.code},
            )
            return self.serializer.create_error_envelope(exc.code, exc.message, exc.details)

        except Exception as exc:  # pragma: no cover
            logger.exception("Unexpected error during notes operation", extra={"repo": repo_path})
            return self.serializer.create_error_envelope(
                "INTERNAL_ERROR",
                f"Internal error: {str(exc)}",
                {"exception_type": type(exc).__name__},
            )

    def notes_status(self, repo_path: str) -> Dict[str, Any]:
        """Whether ``repo_path`` is a repository, and where its notes ref points."""
        config = self._config_for(repo_path)
        repo = GitRepository(config)
        try:
            repo.ensure_repository()
        except AiBlameError as exc:
            logger.info(
                "Health check on unusable repository",
                extra={"repo": repo_path, "code": exc.code},
            )
            return {"repository_ok": False, "notes_tip": None}
        return {"repository_ok": True, "notes_tip": repo.notes_tip(config.notes_ref)}

    def show_notes(self, repo_path: str, commit: str) -> Dict[str, Any]:
        """Return the attribution stored for ``commit``."""

        def action(sync: AttributionSync) -> Dict[str, Any]:
            commit_id = sync.repo.resolve(commit)
            record = sync.store.read(commit_id)
            return self.serializer.create_success_envelope(
                {
                    "commit": commit_id,
                    "record": record_to_dict(record) if record is not None else None,
                }
            )

        return self._run(repo_path, action)

    def copy_notes(self, repo_path: str, source: str, target: str, dry_run: bool) -> Dict[str, Any]:
        """Copy attribution from ``source`` to ``target``."""
        logger.info(
            "Processing copy request",
            extra={"repo": repo_path, "source": source, "target": target, "dry_run": dry_run},
        )

        def action(sync: AttributionSync) -> Dict[str, Any]:
            outcome = sync.copy_notes(source, target, dry_run=dry_run)
            return self.serializer.create_success_envelope(outcome.to_dict())

        return self._run(repo_path, action)

    def sync_rewrite(self, repo_path: str, lines: List[str], strict: bool) -> Dict[str, Any]:
        """Propagate attribution for a rewrite mapping."""
        logger.info(
            "Processing rewrite request",
            extra={"repo": repo_path, "lines": len(lines), "strict": strict},
        )

        def action(sync: AttributionSync) -> Dict[str, Any]:
            mapping = parse_rewrite_mapping(lines, strict=strict)
            outcome = sync.sync_rewrite(mapping.groups, warnings=mapping.warnings)
            if outcome.ok:
                return self.serializer.create_success_envelope(outcome.to_dict())
            return self.serializer.create_error_envelope(
                "PARTIAL_FAILURE",
                "Attribution propagation failed for some commits",
                outcome.to_dict(),
            )

        return self._run(repo_path, action)
