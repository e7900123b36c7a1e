"""Main CLI entry point for aiblame."""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .codec import record_to_dict
from .config import NotesConfig
from .errors import AiBlameError
from .logging_utils import configure_logging
from .rewrite import parse_rewrite_mapping, read_rewrite_mapping
from .serialize import OutputSerializer
from .settings import get_notes_config
from .store import NotesStore
from .sync import AttributionSync, BatchOutcome, CopyStatus, short_id
from .vcs import GitRepository

CommandResult = Tuple[Dict[str, Any], List[str], int]


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="aiblame",
        description="Keep AI attribution notes attached to commits across history rewrites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  aiblame copy-notes abc1234 def5678
  aiblame copy-notes abc1234 def5678 --dry-run
  aiblame sync-rewrite --file mapping.txt     # one 'old new' pair per line
  aiblame post-rewrite rebase < mapping.txt   # from .git/hooks/post-rewrite
        """,
    )

    parser.add_argument(
        "--repo",
        help="Path inside the git repository (default: current directory)",
    )
    parser.add_argument(
        "--notes-ref",
        help="Notes ref holding attribution (default: refs/notes/ai-blame)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON envelope instead of text",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: WARNING, or $AIBLAME_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    copy_parser = subparsers.add_parser(
        "copy-notes",
        help="Copy attribution from one commit to another",
    )
    copy_parser.add_argument("source", help="Source commit (before rewrite)")
    copy_parser.add_argument("target", help="Target commit (after rewrite)")
    copy_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be copied without copying",
    )

    sync_parser = subparsers.add_parser(
        "sync-rewrite",
        help="Propagate attribution for 'old new [kind]' lines",
    )
    sync_parser.add_argument(
        "--file",
        help="Read the mapping from a file instead of stdin",
    )
    sync_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Skip malformed lines instead of failing",
    )

    hook_parser = subparsers.add_parser(
        "post-rewrite",
        help="Entry point for git's post-rewrite hook (reads stdin)",
    )
    hook_parser.add_argument(
        "kind",
        nargs="?",
        help="Rewrite kind passed by git (amend or rebase)",
    )

    show_parser = subparsers.add_parser(
        "show",
        help="Show the attribution stored for a commit",
    )
    show_parser.add_argument("commit", help="Commit to inspect")

    return parser


def create_config(args: argparse.Namespace) -> NotesConfig:
    """Create configuration from command line arguments and environment."""
    base = get_notes_config()
    return NotesConfig(
        notes_ref=args.notes_ref or base.notes_ref,
        max_write_retries=base.max_write_retries,
        repo_path=args.repo,
        git_timeout=base.git_timeout,
        portion_tolerance=base.portion_tolerance,
    )


def build_sync(config: NotesConfig) -> AttributionSync:
    """Wire repository, store and orchestrator together."""
    repo = GitRepository(config)
    repo.validate_git_version()
    repo.ensure_repository()
    store = NotesStore(repo, config)
    return AttributionSync(store, repo, config)


def run_copy_notes(args: argparse.Namespace, sync: AttributionSync) -> CommandResult:
    outcome = sync.copy_notes(args.source, args.target, dry_run=args.dry_run)
    source, target = short_id(outcome.source), short_id(outcome.target)

    if outcome.status is CopyStatus.NOOP:
        lines = [f"Source commit {args.source} has no attribution."]
    elif outcome.status is CopyStatus.PREVIEW:
        lines = [f"Would copy attribution: {source} -> {target}"]
        lines.extend(OutputSerializer().format_record(outcome.record))
    else:
        lines = [f"Copied attribution: {source} -> {target}"]
    return outcome.to_dict(), lines, 0


def _batch_result(outcome: BatchOutcome) -> CommandResult:
    lines = [f"warning: {warning}" for warning in outcome.warnings]
    for result in outcome.results:
        olds = ",".join(short_id(old) for old in result.old_ids)
        line = f"{result.status.value:9} {olds} -> {short_id(result.new_id)}"
        if result.error:
            line += f" ({result.error['message']})"
        lines.append(line)
    lines.append(f"{outcome.succeeded} succeeded, {outcome.failed} failed")
    return outcome.to_dict(), lines, 0 if outcome.ok else 1


def run_sync_rewrite(args: argparse.Namespace, sync: AttributionSync) -> CommandResult:
    strict = not args.lenient
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
        mapping = parse_rewrite_mapping(text.splitlines(), strict=strict)
    else:
        mapping = read_rewrite_mapping(sys.stdin, strict=strict)

    outcome = sync.sync_rewrite(mapping.groups, warnings=mapping.warnings)
    return _batch_result(outcome)


def run_post_rewrite(args: argparse.Namespace, sync: AttributionSync) -> CommandResult:
    # A single bad line must not abandon a whole rebase.
    mapping = read_rewrite_mapping(sys.stdin, strict=False)
    if args.kind:
        for group in mapping.groups:
            group.kind = group.kind or args.kind

    outcome = sync.sync_rewrite(mapping.groups, warnings=mapping.warnings)
    return _batch_result(outcome)


def run_show(args: argparse.Namespace, sync: AttributionSync) -> CommandResult:
    commit_id = sync.repo.resolve(args.commit)
    record = sync.store.read(commit_id)
    payload: Dict[str, Any] = {"commit": commit_id, "record": None}
    if record is None:
        return payload, [f"Commit {short_id(commit_id)} has no attribution."], 0

    payload["record"] = record_to_dict(record)
    lines = [f"Attribution for {short_id(commit_id)}:"]
    lines.extend(OutputSerializer().format_record(record))
    return payload, lines, 0


COMMANDS = {
    "copy-notes": run_copy_notes,
    "sync-rewrite": run_sync_rewrite,
    "post-rewrite": run_post_rewrite,
    "show": run_show,
}


def output_result(result: Dict[str, Any], lines: List[str], as_json: bool) -> None:
    """Output result to stdout as JSON envelope or text lines."""
    if as_json:
        print(OutputSerializer().to_json_string(result))
    else:
        for line in lines:
            print(line)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, default="WARNING")
    serializer = OutputSerializer()

    try:
        config = create_config(args)
        sync = build_sync(config)
        payload, lines, exit_code = COMMANDS[args.command](args, sync)

        if exit_code == 0:
            result = serializer.create_success_envelope(payload)
        else:
            result = serializer.create_error_envelope(
                "PARTIAL_FAILURE", "Attribution propagation failed for some commits", payload
            )
        output_result(result, lines, args.json)
        return exit_code

    except AiBlameError as e:
        # Handle known aiblame errors
        result = serializer.create_error_envelope(e.code, e.message, e.details)
        if args.json:
            output_result(result, [], True)
        else:
            print(f"aiblame: {e.message}", file=sys.stderr)
        return 1

    except Exception as e:
        # Handle unexpected errors
        result = serializer.create_error_envelope(
            "INTERNAL_ERROR",
            f"Internal error: {str(e)}",
            {"type": type(e).__name__},
        )
        if args.json:
            output_result(result, [], True)
        else:
            print(f"aiblame: internal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
