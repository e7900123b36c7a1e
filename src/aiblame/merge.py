"""Merging of attribution records across history rewrites.

``merge_records`` is pure: it never touches storage and never mutates its
inputs. Every record it returns has portions summing to at most 1.

Sources are first averaged (each non-empty source is weighted
``1 / N_effective``), then entries sharing a ``(contributor, tool)`` key
are summed with a cap of 1. In AUGMENT mode the target's existing record
is folded in afterwards: keys coming from the sources take the source
value, and keys only the target knows about keep their share of whatever
budget the sources left over. Target entries squeezed to nothing are
dropped rather than kept at 0. Re-running the same merge is therefore a
no-op.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .record import (
    CURRENT_SCHEMA_VERSION,
    PORTION_TOLERANCE,
    AttributionEntry,
    AttributionRecord,
)

logger = logging.getLogger(__name__)

EntryKey = Tuple[str, Optional[str]]


class MergeMode(str, Enum):
    """How the target's existing attribution is treated."""

    OVERWRITE = "overwrite"  # manual copy: target record is replaced
    AUGMENT = "augment"  # post-rewrite: target record is kept and merged


@dataclass
class _Accumulated:
    contributor: str
    tool: Optional[str]
    portion: float
    timestamp: Optional[str]
    extra: Dict[str, Any] = field(default_factory=dict)

    def absorb(self, entry: AttributionEntry, portion: float) -> None:
        self.portion = min(1.0, self.portion + portion)
        if self.timestamp is None:
            self.timestamp = entry.timestamp
        for key, value in entry.extra.items():
            self.extra.setdefault(key, value)

    def to_entry(self, factor: float = 1.0) -> AttributionEntry:
        return AttributionEntry(
            contributor=self.contributor,
            tool=self.tool,
            portion=min(1.0, max(0.0, self.portion * factor)),
            timestamp=self.timestamp,
            extra=dict(self.extra),
        )


def _accumulate(
    entries: Iterable[Tuple[AttributionEntry, float]],
) -> Dict[EntryKey, _Accumulated]:
    """Deduplicate by key, summing portions capped at 1, in first-seen order."""
    merged: Dict[EntryKey, _Accumulated] = {}
    for entry, portion in entries:
        current = merged.get(entry.key)
        if current is None:
            merged[entry.key] = _Accumulated(
                contributor=entry.contributor,
                tool=entry.tool,
                portion=min(1.0, portion),
                timestamp=entry.timestamp,
                extra=dict(entry.extra),
            )
        else:
            current.absorb(entry, portion)
    return merged


def _total(merged: Dict[EntryKey, _Accumulated]) -> float:
    return sum(item.portion for item in merged.values())


def _fit(merged: Dict[EntryKey, _Accumulated], budget: float, tolerance: float) -> float:
    """Scale factor that brings the total down to ``budget`` if it overshoots."""
    total = _total(merged)
    if total <= budget + tolerance or total == 0:
        return 1.0
    return budget / total


def merge_records(
    existing: Optional[AttributionRecord],
    sources: Sequence[Optional[AttributionRecord]],
    mode: MergeMode = MergeMode.AUGMENT,
    fingerprint: Optional[str] = None,
    tolerance: float = PORTION_TOLERANCE,
) -> Optional[AttributionRecord]:
    """Combine source attributions into the record for a rewritten commit.

    Args:
        existing: Record currently attached to the target, if any.
        sources: Records of the commits the target was rewritten from.
            ``None`` and empty records are ignored and do not dilute the rest.
        mode: OVERWRITE replaces ``existing``; AUGMENT keeps what it holds,
            scaled into the budget the sources leave, and drops target-only
            entries whose scaled portion is zero.
        fingerprint: Content fingerprint of the target commit.
        tolerance: Rounding slack allowed on the portion total.

    Returns:
        The merged record, ``existing`` unchanged when no source carries
        attribution, or None when nothing is left to attribute.
    """
    effective = [source for source in sources if source is not None and source.entries]
    if not effective:
        return existing

    scale = 1.0 / len(effective)
    merged = _accumulate(
        (entry, entry.portion * scale) for source in effective for entry in source.entries
    )

    factor = _fit(merged, 1.0, tolerance)
    if factor != 1.0:
        logger.warning(
            "Source attribution exceeds the whole commit, rescaling",
            extra={"total": _total(merged), "sources": len(effective)},
        )
    entries: List[AttributionEntry] = [item.to_entry(factor) for item in merged.values()]

    if mode is MergeMode.AUGMENT and existing is not None and existing.entries:
        budget = max(0.0, 1.0 - sum(entry.portion for entry in entries))
        leftovers = _accumulate(
            (entry, entry.portion) for entry in existing.entries if entry.key not in merged
        )
        leftover_factor = _fit(leftovers, budget, tolerance)
        for item in leftovers.values():
            entry = item.to_entry(leftover_factor)
            if entry.portion > tolerance:
                entries.append(entry)

    if not entries:
        return None

    if fingerprint is None:
        fingerprint = existing.content_fingerprint if existing is not None else None
    if fingerprint is None:
        fingerprint = effective[0].content_fingerprint

    result = AttributionRecord(
        entries=entries,
        schema_version=CURRENT_SCHEMA_VERSION,
        content_fingerprint=fingerprint,
    )
    logger.debug(
        "Merged attribution",
        extra={
            "mode": mode.value,
            "sources": len(effective),
            "entries": len(result.entries),
            "total": result.total_portion,
        },
    )
    return result
