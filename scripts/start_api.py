#!/usr/bin/env python3
"""Serve the aiblame API with uvicorn.

The notes ref and the git timeout are read by ``aiblame.settings`` from the
environment, so the options below are exported before the app is imported.
"""

import argparse
import logging
import os

import uvicorn

from aiblame.config import DEFAULT_NOTES_REF
from aiblame.logging_utils import configure_logging

logger = logging.getLogger("aiblame.start_api")


def main():
    parser = argparse.ArgumentParser(description="Serve the aiblame attribution API")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument(
        "--notes-ref",
        help="Notes ref holding attribution (default: $AIBLAME_NOTES_REF or refs/notes/ai-blame)",
    )
    parser.add_argument("--git-timeout", type=int, help="Seconds allowed per git call")
    parser.add_argument("--reload", action="store_true", help="Reload when src/ changes")
    parser.add_argument("--log-level", default="info", help="Log level (default: info)")
    args = parser.parse_args()

    if args.notes_ref:
        os.environ["AIBLAME_NOTES_REF"] = args.notes_ref
    if args.git_timeout:
        os.environ["AIBLAME_GIT_TIMEOUT"] = str(args.git_timeout)
    os.environ.setdefault("AIBLAME_LOG_LEVEL", args.log_level.upper())

    configure_logging()
    logger.info(
        "Starting aiblame API",
        extra={
            "host": args.host,
            "port": args.port,
            "notes_ref": os.getenv("AIBLAME_NOTES_REF", DEFAULT_NOTES_REF),
        },
    )

    uvicorn.run(
        "aiblame.api.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        reload=args.reload,
        reload_dirs=["src"] if args.reload else None,
    )


if __name__ == "__main__":
    main()
