"""aiblame attribution notes.

Attaches attribution records to commits through git notes and keeps them
attached while history is amended, rebased, squashed or cherry-picked.
"""

__version__ = "1.0.0"

from .merge import MergeMode, merge_records
from .record import AttributionEntry, AttributionRecord
from .rewrite import parse_rewrite_mapping, read_rewrite_mapping
from .store import NotesStore
from .sync import AttributionSync

__all__ = [
    "AttributionEntry",
    "AttributionRecord",
    "AttributionSync",
    "MergeMode",
    "NotesStore",
    "merge_records",
    "parse_rewrite_mapping",
    "read_rewrite_mapping",
]
