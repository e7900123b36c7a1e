"""Attribution storage on top of git notes."""

import logging
from typing import Optional

from .codec import decode, encode
from .config import NotesConfig
from .errors import SchemaError, WriteConflictError
from .record import AttributionRecord
from .vcs import GitRepository

logger = logging.getLogger(__name__)


class NotesStore:
    """Maps commit ids to at most one attribution record.

    Writes are optimistic: the new notes commit is staged off the tip we
    read, then published with a compare-and-swap of the notes ref. If
    another writer moved the ref in between, the change is rebuilt on the
    new tip, up to ``config.max_write_retries`` times after the first try.
    """

    def __init__(self, repo: GitRepository, config: NotesConfig):
        """Initialize with repository and configuration."""
        self.repo = repo
        self.config = config

    @property
    def notes_ref(self) -> str:
        return self.config.notes_ref

    def read_raw(self, commit: str) -> Optional[bytes]:
        """Stored blob for ``commit`` without decoding it."""
        commit_id = self.repo.resolve(commit)
        return self.repo.read_note(self.notes_ref, commit_id)

    def read(self, commit: str) -> Optional[AttributionRecord]:
        """Attribution for ``commit``; undecodable notes count as absent."""
        commit_id = self.repo.resolve(commit)
        data = self.repo.read_note(self.notes_ref, commit_id)
        if data is None:
            return None

        try:
            return decode(data)
        except SchemaError as exc:
            logger.warning(
                "Ignoring undecodable attribution note",
                extra={"commit": commit_id, "reason": exc.details.get("reason")},
            )
            return None

    def exists(self, commit: str) -> bool:
        commit_id = self.repo.resolve(commit)
        return self.repo.read_note(self.notes_ref, commit_id) is not None

    def write(self, commit: str, record: AttributionRecord) -> None:
        """Atomically replace the attribution stored for ``commit``."""
        commit_id = self.repo.resolve(commit)
        self._update(commit_id, encode(record))
        logger.info(
            "Attribution written",
            extra={"commit": commit_id, "entries": len(record.entries)},
        )

    def delete(self, commit: str) -> None:
        """Remove the attribution for ``commit``; absent notes are left alone."""
        commit_id = self.repo.resolve(commit)
        if self.repo.read_note(self.notes_ref, commit_id) is None:
            return
        self._update(commit_id, None)
        logger.info("Attribution deleted", extra={"commit": commit_id})

    def _update(self, commit_id: str, data: Optional[bytes]) -> None:
        # One initial attempt, then up to max_write_retries more.
        attempts = self.config.max_write_retries + 1
        for attempt in range(1, attempts + 1):
            tip = self.repo.notes_tip(self.notes_ref)
            new_tip = self.repo.stage_note(self.notes_ref, tip, commit_id, data)
            if new_tip is None or new_tip == tip:
                return

            if self.repo.compare_and_swap_ref(self.notes_ref, new_tip, tip):
                logger.debug(
                    "Notes ref advanced",
                    extra={"ref": self.notes_ref, "old": tip, "new": new_tip, "attempt": attempt},
                )
                return

            logger.warning(
                "Notes ref moved during update, retrying",
                extra={"ref": self.notes_ref, "commit": commit_id, "attempt": attempt},
            )

        raise WriteConflictError(commit_id, self.notes_ref, attempts)
