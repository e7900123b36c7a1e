"""Copy and rewrite propagation of attribution notes."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from .codec import record_to_dict
from .config import NotesConfig
from .errors import AiBlameError
from .merge import MergeMode, merge_records
from .record import AttributionRecord
from .rewrite import RewriteGroup
from .store import NotesStore
from .vcs import GitRepository

logger = logging.getLogger(__name__)


class CopyStatus(str, Enum):
    NOOP = "noop"
    PREVIEW = "preview"
    APPLIED = "applied"


class GroupStatus(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    NOOP = "noop"
    FAILED = "failed"


def short_id(commit: str) -> str:
    """First eight characters of a commit id, for display."""
    return commit[:8]


@dataclass
class CopyOutcome:
    """Result of copying attribution from one commit to another."""

    status: CopyStatus
    source: str
    target: str
    record: Optional[AttributionRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "status": self.status.value,
            "source": self.source,
            "target": self.target,
        }
        if self.record is not None:
            result["record"] = record_to_dict(self.record)
        return result


@dataclass
class GroupResult:
    """Outcome of propagating attribution for one rewrite group."""

    new_id: str
    old_ids: List[str]
    status: GroupStatus
    record: Optional[AttributionRecord] = None
    error: Optional[Dict[str, Any]] = None
    skipped_old_ids: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is not GroupStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "new_id": self.new_id,
            "old_ids": list(self.old_ids),
            "status": self.status.value,
        }
        if self.record is not None:
            result["record"] = record_to_dict(self.record)
        if self.error is not None:
            result["error"] = self.error
        if self.skipped_old_ids:
            result["skipped_old_ids"] = list(self.skipped_old_ids)
        return result


@dataclass
class BatchOutcome:
    """Aggregate result of a rewrite propagation run."""

    results: List[GroupResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.ok)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [result.to_dict() for result in self.results],
            "succeeded": self.succeeded,
            "failed": self.failed,
            "warnings": list(self.warnings),
        }


class AttributionSync:
    """Drives the merger and the store for manual copies and rewrite events.

    This is the only place that writes to the store.
    """

    def __init__(self, store: NotesStore, repo: GitRepository, config: NotesConfig):
        """Initialize with store, repository and configuration."""
        self.store = store
        self.repo = repo
        self.config = config

    def copy_notes(self, source: str, target: str, dry_run: bool = False) -> CopyOutcome:
        """Copy attribution from ``source`` onto ``target``, replacing what it had.

        Raises:
            CommitNotFoundError: either commit does not resolve.
        """
        source_id = self.repo.resolve(source)
        target_id = self.repo.resolve(target)

        source_record = self.store.read(source_id)
        if source_record is None or source_record.is_empty():
            logger.info("Source has no attribution", extra={"source": source_id})
            return CopyOutcome(CopyStatus.NOOP, source_id, target_id)

        planned = merge_records(
            self.store.read(target_id),
            [source_record],
            MergeMode.OVERWRITE,
            fingerprint=self.repo.diff_fingerprint(target_id),
            tolerance=self.config.portion_tolerance,
        )
        if planned is None:
            return CopyOutcome(CopyStatus.NOOP, source_id, target_id)

        if dry_run:
            logger.info(
                "Dry run, attribution not copied",
                extra={"source": source_id, "target": target_id},
            )
            return CopyOutcome(CopyStatus.PREVIEW, source_id, target_id, planned)

        self.store.write(target_id, planned)
        logger.info(
            "Copied attribution",
            extra={"source": source_id, "target": target_id},
        )
        return CopyOutcome(CopyStatus.APPLIED, source_id, target_id, planned)

    def sync_rewrite(
        self, groups: Iterable[RewriteGroup], warnings: Optional[List[str]] = None
    ) -> BatchOutcome:
        """Propagate attribution for every group of a rewrite event.

        A failing group is recorded and the remaining groups still run.
        """
        outcome = BatchOutcome(warnings=list(warnings or []))
        consumed: Set[str] = set()

        for group in groups:
            result = self._sync_group(group, consumed, outcome.warnings)
            outcome.results.append(result)

        logger.info(
            "Rewrite propagation finished",
            extra={"succeeded": outcome.succeeded, "failed": outcome.failed},
        )
        return outcome

    def _sync_group(
        self, group: RewriteGroup, consumed: Set[str], warnings: List[str]
    ) -> GroupResult:
        # An old commit split across several new ones passes its
        # attribution to the first of them only.
        old_ids = [old for old in group.old_ids if old not in consumed]
        skipped = [old for old in group.old_ids if old in consumed]
        for old in skipped:
            message = (
                f"{short_id(old)} was split; attribution kept on its first "
                f"rewrite only, not copied to {short_id(group.new_id)}"
            )
            warnings.append(message)
            logger.warning(
                "Split commit, attribution not duplicated",
                extra={"old_id": old, "new_id": group.new_id},
            )
        consumed.update(group.old_ids)

        try:
            target_id = self.repo.resolve(group.new_id)
            sources = [self.store.read(old) for old in old_ids]
            sources = [
                record for record in sources if record is not None and not record.is_empty()
            ]
            if not sources:
                return GroupResult(
                    group.new_id, list(group.old_ids), GroupStatus.NOOP,
                    skipped_old_ids=skipped,
                )

            existing = self.store.read(target_id)
            merged = merge_records(
                existing,
                sources,
                MergeMode.AUGMENT,
                fingerprint=self.repo.diff_fingerprint(target_id),
                tolerance=self.config.portion_tolerance,
            )
            if merged is None or merged == existing:
                return GroupResult(
                    group.new_id, list(group.old_ids), GroupStatus.UNCHANGED,
                    record=merged, skipped_old_ids=skipped,
                )

            self.store.write(target_id, merged)
            return GroupResult(
                group.new_id, list(group.old_ids), GroupStatus.APPLIED,
                record=merged, skipped_old_ids=skipped,
            )

        except AiBlameError as exc:
            logger.error(
                "Attribution propagation failed for group",
                extra={"new_id": group.new_id, "code": exc.code},
            )
            return GroupResult(
                group.new_id, list(group.old_ids), GroupStatus.FAILED,
                error=exc.to_dict(), skipped_old_ids=skipped,
            )
