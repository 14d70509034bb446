"""TimeEntry class for representing a tracked span of time."""
from datetime import datetime, date, tzinfo
from typing import Any, FrozenSet, List, Optional

from ..utils.date_utils import as_local
from ..utils.format_utils import format_hm, format_tags, short_ref, percent

class TimeEntry:
    """A span during which one event's tags applied.

    The span runs from the event's start to the next event's start, or to
    "now" for the open entry, clipped to the queried window.
    """

    def __init__(self, index: int, event_ref: str, start: datetime, end: datetime,
                 tags: FrozenSet[str], is_open: bool = False, tz: Optional[tzinfo] = None):
        """Initialize a TimeEntry.

        Args:
            index: Position of this entry in the listing
            event_ref: Ref of the event that opened the span
            start: Start of the span (UTC)
            end: End of the span (UTC)
            tags: Tags of the event
            is_open: Whether this is the still running entry
            tz: Zone used for display (system zone when None)
        """
        self.index = index
        self.event_ref = event_ref
        self.start = start
        self.end = end
        self.tags = frozenset(tags)
        self.is_open = is_open
        self.tz = tz

    def __repr__(self) -> str:
        return f"TimeEntry({self.event_ref[:8]}, {self.start.isoformat()} -> {self.end.isoformat()}, {sorted(self.tags)})"

    @property
    def duration_sec(self) -> int:
        return int((self.end - self.start).total_seconds())

    @property
    def tags_str(self) -> str:
        return format_tags(self.tags)

    @property
    def start_date(self) -> date:
        """Get the local date the span starts on."""
        return as_local(self.start, self.tz).date()

    @property
    def start_hm(self) -> str:
        return as_local(self.start, self.tz).strftime("%H:%M")

    @property
    def end_hm(self) -> str:
        """Get formatted end time, marked with '…' while the entry is running."""
        hm = as_local(self.end, self.tz).strftime("%H:%M")
        return f"{hm}…" if self.is_open else hm

    @property
    def duration_hm(self) -> str:
        return format_hm(self.duration_sec)

    def to_row(self, total_duration: int) -> List[Any]:
        """Convert to a table row.

        Args:
            total_duration: Total duration of all entries (for percentage calculation)

        Returns:
            Table row as a list
        """
        return [
            self.index,
            short_ref(self.event_ref),
            str(self.start_date),
            self.start_hm,
            self.end_hm,
            self.duration_hm,
            self.tags_str,
            percent(self.duration_sec, total_duration),
        ]
