"""PatchedTimesheet: all events with their unresolved patch history."""
from datetime import datetime
from typing import Dict, List

from .patched_event import PatchedEvent
from ..errors import (
    TagclockError, DuplicateEventIdError, DuplicateEventTimeError,
    PatchRejectedError, TimesheetConflictError, UnknownEventError,
)
from ..reports.timesheet import Event, Timesheet
from ..store.patch import Patch


class PatchedTimesheet:
    """Intermediate form of a timesheet in which an event may have several starts."""

    def __init__(self):
        self.events: Dict[str, PatchedEvent] = {}

    def verify_patch(self, patch: Patch) -> List[TagclockError]:
        """Check that a patch can be applied.

        Args:
            patch: Patch to check

        Returns:
            List of problems, empty if the patch is valid
        """
        errors: List[TagclockError] = []
        edits = [*patch.add_starts, *patch.remove_starts, *patch.add_tags, *patch.remove_tags]
        for op in sorted(edits, key=lambda op: op.event):
            if op.event not in self.events:
                errors.append(UnknownEventError(op.event, patch.id))
        for op in sorted(patch.create_events, key=lambda op: op.event):
            if op.event in self.events:
                errors.append(DuplicateEventIdError(op.event))
        created = [op.event for op in patch.create_events]
        for event in sorted({e for e in created if created.count(e) > 1}):
            errors.append(DuplicateEventIdError(event))
        return errors

    def apply_patch(self, patch: Patch) -> None:
        """Apply a patch.

        Edits are applied before events are created, so a patch cannot edit
        an event it creates itself.

        Raises:
            PatchRejectedError: If the patch fails verification; nothing is applied
        """
        errors = self.verify_patch(patch)
        if errors:
            raise PatchRejectedError(patch.id, errors)

        for op in patch.add_starts:
            event = self.events[op.event]
            event.add_start(patch.id, op.time)
            for parent in op.parents:
                event.remove_patch_from_latest(parent)
            event.add_patch_to_latest(patch.id)

        for op in patch.remove_starts:
            event = self.events[op.event]
            event.remove_start(op.patch, op.time)
            event.remove_patch_from_latest(op.patch)
            for parent in op.parents:
                event.remove_patch_from_latest(parent)
            event.add_patch_to_latest(patch.id)

        for op in patch.add_tags:
            event = self.events[op.event]
            event.add_tag(patch.id, op.tag)
            for parent in op.parents:
                event.remove_patch_from_latest(parent)
            event.add_patch_to_latest(patch.id)

        for op in patch.remove_tags:
            event = self.events[op.event]
            event.remove_tag(op.patch, op.tag)
            event.remove_patch_from_latest(op.patch)
            for parent in op.parents:
                event.remove_patch_from_latest(parent)
            event.add_patch_to_latest(patch.id)

        for op in patch.create_events:
            event = PatchedEvent()
            event.add_start(patch.id, op.start)
            for tag in op.tags:
                event.add_tag(patch.id, tag)
            event.add_patch_to_latest(patch.id)
            self.events[op.event] = event

    def flatten(self) -> Timesheet:
        """Resolve every event to a single start time.

        Raises:
            TimesheetConflictError: Listing every event that could not be resolved
        """
        errors: List[TagclockError] = []
        flat: Dict[str, Event] = {}
        refs_by_start: Dict[datetime, str] = {}
        for event_ref in sorted(self.events):
            try:
                event = self.events[event_ref].flatten(event_ref)
            except TagclockError as e:
                errors.append(e)
                continue
            if event.start in refs_by_start:
                errors.append(DuplicateEventTimeError(refs_by_start[event.start], event_ref))
                continue
            refs_by_start[event.start] = event_ref
            flat[event_ref] = event

        if errors:
            raise TimesheetConflictError(errors)
        return Timesheet(flat)
