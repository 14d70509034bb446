"""PatchedEvent: an event as the sum of all patches touching it."""
from datetime import datetime
from typing import Set, Tuple

from ..errors import MultipleStartTimesError, NoStartTimesError
from ..reports.timesheet import Event


class PatchedEvent:
    """Event state that may still hold several start times.

    Values are stored together with the patch that added them, so a removal
    only cancels the addition made by that specific patch. Concurrent edits
    from different devices therefore never overwrite each other silently.
    """

    def __init__(self):
        self.starts_added: Set[Tuple[str, datetime]] = set()
        self.starts_removed: Set[Tuple[str, datetime]] = set()
        self.tags_added: Set[Tuple[str, str]] = set()
        self.tags_removed: Set[Tuple[str, str]] = set()
        # Patches applied to this event that no later patch names as a
        # parent. Usually one; several after concurrent edits.
        self.latest_patches: Set[str] = set()

    def add_start(self, patch: str, time: datetime) -> None:
        self.starts_added.add((patch, time))

    def remove_start(self, patch: str, time: datetime) -> None:
        self.starts_removed.add((patch, time))

    def starts(self) -> Set[Tuple[str, datetime]]:
        return self.starts_added - self.starts_removed

    def add_tag(self, patch: str, tag: str) -> None:
        self.tags_added.add((patch, tag))

    def remove_tag(self, patch: str, tag: str) -> None:
        self.tags_removed.add((patch, tag))

    def tags(self) -> Set[Tuple[str, str]]:
        return self.tags_added - self.tags_removed

    def add_patch_to_latest(self, patch: str) -> None:
        self.latest_patches.add(patch)

    def remove_patch_from_latest(self, patch: str) -> None:
        self.latest_patches.discard(patch)

    def flatten(self, event_ref: str) -> Event:
        """Collapse into a plain Event.

        Raises:
            MultipleStartTimesError: If concurrent edits left several starts
            NoStartTimesError: If every start has been removed
        """
        start_times = {time for _, time in self.starts()}
        if len(start_times) > 1:
            raise MultipleStartTimesError(event_ref)
        if not start_times:
            raise NoStartTimesError(event_ref)
        return Event(next(iter(start_times)), frozenset(tag for _, tag in self.tags()))
