"""Application-wide settings and environment loading."""

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv

from .config import DEFAULT_NOTES_REF, NotesConfig

logger = logging.getLogger(__name__)

load_dotenv()
logger.debug("Environment variables loaded from .env if present")


@lru_cache(maxsize=1)
def get_notes_config() -> NotesConfig:
    """Return the notes configuration derived from environment variables."""
    notes_ref = os.getenv("AIBLAME_NOTES_REF", DEFAULT_NOTES_REF)
    retries = int(os.getenv("AIBLAME_WRITE_RETRIES", "3"))
    timeout = int(os.getenv("AIBLAME_GIT_TIMEOUT", "60"))
    logger.debug(
        "Notes configuration resolved",
        extra={"notes_ref": notes_ref, "retries": retries, "timeout": timeout},
    )
    return NotesConfig(
        notes_ref=notes_ref,
        max_write_retries=retries,
        git_timeout=timeout,
    )
