"""Tag index: the distinct tags in use and how much time each received."""
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from tabulate import tabulate

from .timesheet import Timesheet
from ..utils.format_utils import format_hm


@dataclass
class TagStats:
    tag: str
    events: int = 0
    duration_sec: int = 0


def build_tag_index(timesheet: Timesheet, now: datetime,
                    start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[TagStats]:
    """Collect tag usage, optionally limited to a window.

    Args:
        timesheet: Flattened timesheet
        now: End of the running entry
        start: Window start (UTC), all history when None
        end: Window end (UTC), up to `now` when None

    Returns:
        TagStats sorted by tag name (case-sensitive)
    """
    events = timesheet.events()
    if not events:
        return []
    start = start or events[0][1].start
    end = end or max(now, events[-1][1].start)

    stats = {}
    def stats_for(tag: str) -> TagStats:
        if tag not in stats:
            stats[tag] = TagStats(tag)
        return stats[tag]

    for _, event in events:
        if start <= event.start < end:
            for tag in event.tags:
                stats_for(tag).events += 1

    durations = defaultdict(int)
    for entry in timesheet.entries(start, end, now):
        for tag in entry.tags:
            durations[tag] += entry.duration_sec
    for tag, secs in durations.items():
        stats_for(tag).duration_sec += secs

    return [stats[tag] for tag in sorted(stats)]


def render_tag_index(index: List[TagStats], plain: bool = False) -> str:
    """Render the index as a table, or one tag per line when `plain`."""
    if plain:
        return "".join(f"{s.tag}\n" for s in index)
    rows = [[s.tag, s.events, format_hm(s.duration_sec)] for s in index]
    return tabulate(rows, headers=["Tag", "Events", "ΣDuration"], tablefmt="github") + "\n"
