"""Timesheet: the flattened, conflict free view of all events."""
import bisect
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .time_entry import TimeEntry
from ..errors import AmbiguousEventError, UnknownEventError


@dataclass(frozen=True)
class Event:
    """A point in time from which on a set of tags applies.

    An event without tags marks the end of tracked time.
    """
    start: datetime
    tags: FrozenSet[str]

    @property
    def is_stop(self) -> bool:
        return not self.tags


def tags_match(filter_tags: Iterable[str], tags: FrozenSet[str]) -> bool:
    """Check an entry's tags against a filter.

    Every filter tag must be present, and untracked time never matches.
    """
    return bool(tags) and set(filter_tags) <= tags


def find_ref(refs: Iterable[str], prefix: str) -> str:
    """Resolve a unique prefix of an event ref.

    Raises:
        UnknownEventError: If no ref matches
        AmbiguousEventError: If several refs match
    """
    refs = list(refs)
    if prefix in refs:
        return prefix
    matches = [ref for ref in refs if ref.startswith(prefix)] if prefix else []
    if not matches:
        raise UnknownEventError(prefix)
    if len(matches) > 1:
        raise AmbiguousEventError(prefix, matches)
    return matches[0]


class Timesheet:
    """Events keyed by ref, ordered by start time."""

    def __init__(self, events: Optional[Dict[str, Event]] = None):
        self._events: Dict[str, Event] = dict(events or {})
        self._order: List[Tuple[datetime, str]] = sorted((e.start, ref) for ref, e in self._events.items())
        self._starts = [start for start, _ in self._order]

    def __len__(self) -> int:
        return len(self._events)

    def get(self, ref: str) -> Event:
        try:
            return self._events[ref]
        except KeyError:
            raise UnknownEventError(ref)

    def events(self) -> List[Tuple[str, Event]]:
        """Get all events sorted by start time."""
        return [(ref, self._events[ref]) for _, ref in self._order]

    def event_ref_at(self, dt: datetime) -> Optional[str]:
        """Get the ref of the event in effect at `dt`."""
        i = bisect.bisect_right(self._starts, dt)
        if i == 0:
            return None
        return self._order[i - 1][1]

    def tags_at_time(self, dt: datetime) -> Optional[FrozenSet[str]]:
        """Get the tags in effect at `dt`, or None before the first event."""
        ref = self.event_ref_at(dt)
        return self.get(ref).tags if ref is not None else None

    def first(self) -> Optional[Tuple[str, Event]]:
        """Get the earliest event."""
        if not self._order:
            return None
        ref = self._order[0][1]
        return ref, self.get(ref)

    def latest(self) -> Optional[Tuple[str, Event]]:
        """Get the most recent event, which opened the running entry."""
        if not self._order:
            return None
        ref = self._order[-1][1]
        return ref, self.get(ref)

    def _spans(self, start: datetime, end: datetime, now: datetime):
        """Yield (ref, event, span_start, span_end, is_last) clipped to [start, end)."""
        count = len(self._order)
        for i, (ev_start, ref) in enumerate(self._order):
            is_last = i == count - 1
            span_end = self._order[i + 1][0] if not is_last else max(ev_start, now)
            s = max(ev_start, start)
            e = min(span_end, end)
            if e > s:
                yield ref, self._events[ref], s, e, is_last

    def entries(self, start: datetime, end: datetime, now: datetime,
                tags: Iterable[str] = (), tz: Optional[tzinfo] = None) -> List[TimeEntry]:
        """Get the tracked spans overlapping a window.

        Args:
            start: Window start (inclusive, UTC)
            end: Window end (exclusive, UTC)
            now: End of the running entry
            tags: Only include entries carrying all of these tags
            tz: Display zone for the resulting entries

        Returns:
            TimeEntry objects in chronological order
        """
        filter_tags = set(tags)
        result = []
        for ref, event, s, e, is_last in self._spans(start, end, now):
            if not tags_match(filter_tags, event.tags):
                continue
            result.append(TimeEntry(len(result) + 1, ref, s, e, event.tags, is_open=is_last, tz=tz))
        return result

    def untracked_seconds(self, start: datetime, end: datetime, now: datetime) -> int:
        """Sum the time inside a window covered by stop markers."""
        total = 0
        for _, event, s, e, _ in self._spans(start, end, now):
            if event.is_stop:
                total += int((e - s).total_seconds())
        return total
