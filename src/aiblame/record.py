"""Attribution data model for aiblame."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

CURRENT_SCHEMA_VERSION = 1
PORTION_TOLERANCE = 1e-9


@dataclass(frozen=True)
class AttributionEntry:
    """One contribution claim against a commit."""

    contributor: str
    tool: Optional[str] = None
    portion: float = 1.0
    timestamp: Optional[str] = None  # ISO-8601
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the entry and normalize portion to float."""
        if not isinstance(self.contributor, str) or not self.contributor:
            raise ValueError("contributor must be a non-empty string")
        if isinstance(self.portion, bool) or not isinstance(self.portion, (int, float)):
            raise ValueError("portion must be a number")
        if not (0.0 <= self.portion <= 1.0):
            raise ValueError(f"portion must be between 0 and 1, got {self.portion}")
        object.__setattr__(self, "portion", float(self.portion))

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        """Identity used to deduplicate entries."""
        return (self.contributor, self.tool)


@dataclass(frozen=True)
class AttributionRecord:
    """Attribution attached to exactly one commit."""

    entries: Sequence[AttributionEntry] = ()
    schema_version: int = CURRENT_SCHEMA_VERSION
    content_fingerprint: Optional[str] = None

    def __post_init__(self) -> None:
        """Store entries as a tuple so records compare by value."""
        object.__setattr__(self, "entries", tuple(self.entries))

    @property
    def total_portion(self) -> float:
        """Sum of all entry portions."""
        return sum(entry.portion for entry in self.entries)

    def is_conserved(self, tolerance: float = PORTION_TOLERANCE) -> bool:
        """Whether the portions sum to at most 1."""
        return self.total_portion <= 1.0 + tolerance

    def is_empty(self) -> bool:
        return not self.entries
