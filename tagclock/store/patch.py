"""Patch: an immutable set of edits to the timesheet, stored one per file."""
import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from ..errors import PatchFormatError
from ..utils.date_utils import parse_timestamp, format_timestamp


@dataclass(frozen=True)
class CreateEvent:
    """Create a new event with a start time and initial tags."""
    event: str
    start: datetime
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AddStart:
    """Add a start time to an existing event."""
    event: str
    time: datetime
    parents: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class RemoveStart:
    """Remove the start time that `patch` added to an event."""
    patch: str
    event: str
    time: datetime
    parents: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class AddTag:
    """Add a tag to an existing event."""
    event: str
    tag: str
    parents: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class RemoveTag:
    """Remove the tag that `patch` added to an event."""
    patch: str
    event: str
    tag: str
    parents: FrozenSet[str] = frozenset()


def new_ref() -> str:
    """Generate a fresh patch or event reference."""
    return str(uuid.uuid4())


class Patch:
    """A set of operations applied to the timesheet as a unit.

    The builder methods return the patch itself so they can be chained:

        Patch().create_event(event_ref, start, ["work"])
    """

    def __init__(self, patch_id: Optional[str] = None):
        self.id = patch_id or new_ref()
        self.create_events: Set[CreateEvent] = set()
        self.add_starts: Set[AddStart] = set()
        self.remove_starts: Set[RemoveStart] = set()
        self.add_tags: Set[AddTag] = set()
        self.remove_tags: Set[RemoveTag] = set()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Patch):
            return NotImplemented
        return (
            self.id == other.id
            and self.create_events == other.create_events
            and self.add_starts == other.add_starts
            and self.remove_starts == other.remove_starts
            and self.add_tags == other.add_tags
            and self.remove_tags == other.remove_tags
        )

    def __repr__(self) -> str:
        return f"Patch(id={self.id!r})"

    def is_empty(self) -> bool:
        return not (self.create_events or self.add_starts or self.remove_starts
                    or self.add_tags or self.remove_tags)

    def parents(self) -> Set[str]:
        """Get every patch this patch depends on.

        Returns:
            Union of all `parents` fields and every patch named by a removal
        """
        refs: Set[str] = set()
        for op in self.add_starts:
            refs.update(op.parents)
        for op in self.add_tags:
            refs.update(op.parents)
        for op in self.remove_starts:
            refs.add(op.patch)
            refs.update(op.parents)
        for op in self.remove_tags:
            refs.add(op.patch)
            refs.update(op.parents)
        return refs

    # --- Builders ---
    def create_event(self, event: str, start: datetime, tags: Iterable[str]) -> "Patch":
        self.create_events.add(CreateEvent(event, start, tuple(tags)))
        return self

    def add_start(self, parents: Iterable[str], event: str, time: datetime) -> "Patch":
        self.add_starts.add(AddStart(event, time, frozenset(parents)))
        return self

    def remove_start(self, patch: str, event: str, time: datetime) -> "Patch":
        self.remove_starts.add(RemoveStart(patch, event, time))
        return self

    def add_tag(self, parents: Iterable[str], event: str, tag: str) -> "Patch":
        self.add_tags.add(AddTag(event, tag, frozenset(parents)))
        return self

    def remove_tag(self, patch: str, event: str, tag: str) -> "Patch":
        self.remove_tags.add(RemoveTag(patch, event, tag))
        return self

    # --- Serialization ---
    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk representation.

        Empty operation sets are omitted and each set is sorted, so a patch
        always serializes to the same text.
        """
        data: Dict[str, Any] = {"id": self.id}
        sections = [
            ("create-event", [{"event": op.event, "start": format_timestamp(op.start), "tags": list(op.tags)}
                              for op in self.create_events]),
            ("add-start", [{"parents": sorted(op.parents), "event": op.event, "time": format_timestamp(op.time)}
                           for op in self.add_starts]),
            ("remove-start", [_with_parents({"patch": op.patch, "event": op.event,
                                             "time": format_timestamp(op.time)}, op.parents)
                              for op in self.remove_starts]),
            ("add-tag", [{"parents": sorted(op.parents), "event": op.event, "tag": op.tag}
                         for op in self.add_tags]),
            ("remove-tag", [_with_parents({"patch": op.patch, "event": op.event, "tag": op.tag}, op.parents)
                            for op in self.remove_tags]),
        ]
        for key, items in sections:
            if items:
                data[key] = sorted(items, key=lambda item: json.dumps(item, sort_keys=True))
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Patch":
        """Build a patch from its on-disk representation.

        Raises:
            PatchFormatError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise PatchFormatError("Patch must be a JSON object")
        patch_id = data.get("id")
        if not isinstance(patch_id, str) or not patch_id:
            raise PatchFormatError("Patch has no id")
        patch = cls(patch_id)
        try:
            for item in _section(data, "create-event"):
                tags = item.get("tags", [])
                if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
                    raise PatchFormatError(f"Patch {patch_id}: tags must be a list of strings")
                patch.create_events.add(CreateEvent(_text(item, "event"), parse_timestamp(item["start"]), tuple(tags)))
            for item in _section(data, "add-start"):
                patch.add_starts.add(AddStart(_text(item, "event"), parse_timestamp(item["time"]), _parents(item)))
            for item in _section(data, "remove-start"):
                patch.remove_starts.add(RemoveStart(_text(item, "patch"), _text(item, "event"),
                                                    parse_timestamp(item["time"]), _parents(item)))
            for item in _section(data, "add-tag"):
                patch.add_tags.add(AddTag(_text(item, "event"), _text(item, "tag"), _parents(item)))
            for item in _section(data, "remove-tag"):
                patch.remove_tags.add(RemoveTag(_text(item, "patch"), _text(item, "event"), _text(item, "tag"),
                                                _parents(item)))
        except KeyError as e:
            raise PatchFormatError(f"Patch {patch_id}: missing field {e}")
        except (TypeError, ValueError, AttributeError) as e:
            raise PatchFormatError(f"Patch {patch_id}: {e}")
        return patch

    @classmethod
    def from_json(cls, text: str) -> "Patch":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PatchFormatError(f"Invalid patch JSON: {e}")
        return cls.from_dict(data)


def _with_parents(item: Dict[str, Any], parents: FrozenSet[str]) -> Dict[str, Any]:
    if parents:
        item["parents"] = sorted(parents)
    return item

def _parents(item: Dict[str, Any]) -> FrozenSet[str]:
    parents = item.get("parents") or []
    if not isinstance(parents, list) or not all(isinstance(p, str) and p for p in parents):
        raise TypeError("parents must be a list of patch ids")
    return frozenset(parents)

def _text(item: Dict[str, Any], key: str) -> str:
    value = item[key]
    if not isinstance(value, str) or not value:
        raise TypeError(f"'{key}' must be a non-empty string")
    return value

def _section(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise PatchFormatError(f"Patch {data.get('id')}: '{key}' must be a list")
    return items
