"""Parsing of rewrite mappings (``old_sha new_sha [kind]`` lines).

Git's ``post-rewrite`` hook provides one such line per rewritten commit on
stdin. Lines are grouped by the new commit id: one old id per group is an
amend/rebase of a single commit, several old ids is a squash, and an old
id that shows up under more than one new id is a split.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, TextIO

from .errors import RewriteParseError

logger = logging.getLogger(__name__)

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{4,64}$")


@dataclass
class RewriteGroup:
    """All old commits that were rewritten into one new commit."""

    new_id: str
    old_ids: List[str] = field(default_factory=list)
    kind: Optional[str] = None  # hint such as "amend" or "rebase"

    @property
    def is_squash(self) -> bool:
        return len(self.old_ids) > 1

    @property
    def is_simple(self) -> bool:
        return len(self.old_ids) == 1


@dataclass
class RewriteMapping:
    """Parsed rewrite event."""

    groups: List[RewriteGroup] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    split_ids: List[str] = field(default_factory=list)

    @property
    def pair_count(self) -> int:
        return sum(len(group.old_ids) for group in self.groups)


def _check_line(line: str) -> List[str]:
    """Return the tokens of a line or raise ValueError describing the problem."""
    tokens = line.split()
    if len(tokens) not in (2, 3):
        raise ValueError(f"expected 2 or 3 fields, got {len(tokens)}")
    for token in tokens[:2]:
        if not _OBJECT_ID.match(token):
            raise ValueError(f"{token!r} is not an object id")
    return tokens


def parse_rewrite_mapping(lines: Iterable[str], strict: bool = True) -> RewriteMapping:
    """Group ``old new [kind]`` lines by new commit id.

    Blank lines are ignored. In strict mode a malformed line raises
    RewriteParseError; otherwise it is skipped and a warning is recorded.
    """
    mapping = RewriteMapping()
    groups: Dict[str, RewriteGroup] = {}
    targets_by_old: Dict[str, List[str]] = {}

    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue

        try:
            tokens = _check_line(line)
        except ValueError as e:
            if strict:
                raise RewriteParseError(line_number, line, str(e)) from e
            warning = f"line {line_number}: {e}; skipped"
            mapping.warnings.append(warning)
            logger.warning(
                "Skipping malformed rewrite line",
                extra={"line_number": line_number, "reason": str(e)},
            )
            continue

        old_id, new_id = tokens[0].lower(), tokens[1].lower()
        kind = tokens[2] if len(tokens) == 3 else None

        group = groups.get(new_id)
        if group is None:
            group = RewriteGroup(new_id=new_id, kind=kind)
            groups[new_id] = group
            mapping.groups.append(group)
        elif group.kind is None:
            group.kind = kind

        if old_id in group.old_ids:
            continue
        group.old_ids.append(old_id)

        targets = targets_by_old.setdefault(old_id, [])
        targets.append(new_id)
        if len(targets) == 2:
            mapping.split_ids.append(old_id)

    logger.debug(
        "Parsed rewrite mapping",
        extra={
            "groups": len(mapping.groups),
            "pairs": mapping.pair_count,
            "splits": len(mapping.split_ids),
            "warnings": len(mapping.warnings),
        },
    )
    return mapping


def read_rewrite_mapping(stream: TextIO, strict: bool = True) -> RewriteMapping:
    """Parse a rewrite mapping from a text stream such as stdin."""
    return parse_rewrite_mapping(stream, strict=strict)
