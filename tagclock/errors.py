"""Exception types raised by tagClock."""
from typing import Iterable, List


class TagclockError(Exception):
    """Base class for all tagClock errors."""


class PatchFormatError(TagclockError):
    """A patch or meta file could not be parsed."""


class PatchNotFoundError(TagclockError):
    """A patch is referenced but its file is not (yet) present."""

    def __init__(self, patch: str):
        self.patch = patch
        super().__init__(f"Patch {patch} not found")


class PatchExistsError(TagclockError):
    """A patch with the same id has already been written."""

    def __init__(self, patch: str):
        self.patch = patch
        super().__init__(f"Patch {patch} already exists")


class UnknownEventError(TagclockError):
    """A patch or command refers to an event that does not exist."""

    def __init__(self, event: str, patch: str = None):
        self.event = event
        self.patch = patch
        if patch:
            super().__init__(f"Unknown event {event} in patch {patch}")
        else:
            super().__init__(f"Unknown event {event}")


class AmbiguousEventError(TagclockError):
    """An event prefix matches more than one event."""

    def __init__(self, prefix: str, matches: Iterable[str]):
        self.prefix = prefix
        self.matches = sorted(matches)
        super().__init__(f"Event prefix '{prefix}' is ambiguous: {', '.join(self.matches)}")


class DuplicateEventIdError(TagclockError):
    """Two events were created with the same id."""

    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Two events were created with the same id {event}")


class DuplicateEventTimeError(TagclockError):
    """Two events start at the same instant."""

    def __init__(self, event_a: str, event_b: str):
        self.event_a = event_a
        self.event_b = event_b
        super().__init__(f'Two events have the same start time (events "{event_a}" and "{event_b}")')


class MultipleStartTimesError(TagclockError):
    """Concurrent edits left an event with more than one start time."""

    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Could not flatten event {event}: Event has multiple start times")


class NoStartTimesError(TagclockError):
    """Every start time of an event has been removed."""

    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Could not flatten event {event}: Event has no start times")


class MissingParentError(TagclockError):
    """A patch depends on a patch that was never applied."""

    def __init__(self, patch: str, parents: Iterable[str]):
        self.patch = patch
        self.parents = sorted(parents)
        super().__init__(f"Patch {patch} depends on missing patches: {', '.join(self.parents)}")


class InvalidInputError(TagclockError):
    """User input (tags, times, ranges) was rejected."""


class PatchRejectedError(TagclockError):
    """A patch failed verification and was not applied."""

    def __init__(self, patch: str, errors: List[TagclockError]):
        self.patch = patch
        self.errors = errors
        details = "; ".join(str(e) for e in errors)
        super().__init__(f"Patch {patch} rejected: {details}")


class TimesheetConflictError(TagclockError):
    """The merged patches cannot be flattened into a consistent timesheet."""

    def __init__(self, errors: List[TagclockError]):
        self.errors = errors
        lines = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Timesheet has {len(errors)} conflict(s):\n{lines}")


class MarkdownValidationError(TagclockError):
    """An exported Markdown report could not be rendered."""

    def __init__(self, path: str, reason: Exception):
        self.path = path
        super().__init__(f"Markdown validation failed for '{path}': {reason}")
