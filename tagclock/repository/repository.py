"""Repository: loads patches from a FileStore and records new edits."""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from .patched_timesheet import PatchedTimesheet
from ..errors import (
    TagclockError, DuplicateEventTimeError, InvalidInputError, MissingParentError,
    PatchFormatError, PatchNotFoundError, PatchRejectedError,
)
from ..reports.timesheet import Timesheet, find_ref
from ..store.file_store import FileStore
from ..store.meta import Meta
from ..store.patch import Patch, new_ref
from ..utils.date_utils import to_utc


def clean_tags(tags: Iterable[str]) -> List[str]:
    """Normalize user supplied tags.

    Args:
        tags: Raw tags

    Returns:
        Sorted, de-duplicated tags (case is preserved)

    Raises:
        InvalidInputError: If a tag is blank
    """
    cleaned = set()
    for tag in tags:
        tag = tag.strip()
        if not tag:
            raise InvalidInputError("Tags must not be empty")
        cleaned.add(tag)
    return sorted(cleaned)


class Repository:
    """All patches visible in the sync directory, merged into one state."""

    def __init__(self, store: FileStore):
        """Initialize an empty Repository. Use `Repository.load` to read a store.

        Args:
            store: Store to read patches from and write new patches to
        """
        self.store = store
        self.state = PatchedTimesheet()
        self.applied: Set[str] = set()
        self.warnings: List[TagclockError] = []
        self.merged: List[str] = []

    @classmethod
    def load(cls, store: FileStore) -> "Repository":
        """Read every patch named by any device and apply it.

        Patches are applied parents first. Patches that have not been
        synced yet, are malformed, are rejected, or depend on such patches
        are skipped and collected in `warnings`. So are the meta files of
        other devices that cannot be parsed.

        Raises:
            PatchFormatError: If this device's own meta cannot be parsed
        """
        repo = cls(store)
        metas, broken = store.metas()
        if store.device_id in broken:
            raise broken[store.device_id]
        repo.warnings.extend(broken[device] for device in sorted(broken))

        refs: Set[str] = set()
        for meta in metas.values():
            refs |= meta.patches

        pending: Dict[str, Patch] = {}
        for ref in sorted(refs):
            try:
                pending[ref] = store.get_patch(ref)
            except (PatchNotFoundError, PatchFormatError) as e:
                repo.warnings.append(e)

        while pending:
            ready = sorted(ref for ref, patch in pending.items() if patch.parents() <= repo.applied)
            if not ready:
                break
            for ref in ready:
                patch = pending.pop(ref)
                try:
                    repo.state.apply_patch(patch)
                except PatchRejectedError as e:
                    repo.warnings.append(e)
                    continue
                repo.applied.add(ref)

        for ref in sorted(pending):
            repo.warnings.append(MissingParentError(ref, pending[ref].parents() - repo.applied))

        own = metas.get(store.device_id) or Meta(store.device_id)
        repo.merged = [ref for ref in sorted(repo.applied) if own.add_patch(ref)]
        if repo.merged:
            store.save_meta(own)
        return repo

    def timesheet(self) -> Timesheet:
        """Flatten the merged state.

        Raises:
            TimesheetConflictError: If concurrent edits need to be resolved
        """
        return self.state.flatten()

    def find_event(self, prefix: str) -> str:
        """Resolve an event ref prefix, even while the timesheet has conflicts."""
        return find_ref(self.state.events, prefix)

    def commit(self, patch: Patch) -> Patch:
        """Verify, persist and apply a new patch.

        Raises:
            PatchRejectedError: If the patch does not apply; nothing is written
        """
        errors = self.state.verify_patch(patch)
        if errors:
            raise PatchRejectedError(patch.id, errors)
        self.store.add_patch(patch)
        self.state.apply_patch(patch)
        self.applied.add(patch.id)
        return patch

    def _check_time_free(self, at: datetime, event_ref: str) -> None:
        for other_ref, event in self.state.events.items():
            if other_ref == event_ref:
                continue
            if any(time == at for _, time in event.starts()):
                raise DuplicateEventTimeError(other_ref, event_ref)

    # --- Edits ---
    def start(self, tags: Iterable[str], at: datetime) -> Patch:
        """Record that the tagged activity starts at `at`.

        Raises:
            InvalidInputError: If no tags are given
            DuplicateEventTimeError: If another event starts at the same time
        """
        tags = clean_tags(tags)
        if not tags:
            raise InvalidInputError("At least one tag is required to start tracking")
        return self._create(tags, at)

    def stop(self, at: datetime) -> Patch:
        """Record that tracking stops at `at`.

        Raises:
            InvalidInputError: If nothing is being tracked at that time
        """
        at = _normalize(at)
        tags = self.timesheet().tags_at_time(at)
        if not tags:
            raise InvalidInputError("Nothing is being tracked at that time")
        return self._create([], at)

    def _create(self, tags: List[str], at: datetime) -> Patch:
        at = _normalize(at)
        event_ref = new_ref()
        self._check_time_free(at, event_ref)
        return self.commit(Patch().create_event(event_ref, at, tags))

    def set_start(self, event_prefix: str, at: datetime) -> Optional[Patch]:
        """Move an event to a new start time.

        Replaces every current start, which also resolves concurrent edits
        that left the event with several starts.

        Returns:
            The new patch, or None if the event already starts at `at`
        """
        at = _normalize(at)
        event_ref = self.find_event(event_prefix)
        event = self.state.events[event_ref]
        current = event.starts()
        times = {time for _, time in current}
        if times == {at}:
            return None
        self._check_time_free(at, event_ref)

        patch = Patch()
        for patch_ref, time in current:
            if time != at:
                patch.remove_start(patch_ref, event_ref, time)
        if at not in times:
            patch.add_start(event.latest_patches, event_ref, at)
        return self.commit(patch)

    def set_tags(self, event_prefix: str, tags: Iterable[str]) -> Optional[Patch]:
        """Replace the tags of an event.

        Returns:
            The new patch, or None if the event already has exactly these tags
        """
        wanted = set(clean_tags(tags))
        if not wanted:
            raise InvalidInputError("At least one tag is required; use 'stop' to end tracking")
        event_ref = self.find_event(event_prefix)
        event = self.state.events[event_ref]
        current = event.tags()
        current_tags = {tag for _, tag in current}

        patch = Patch()
        for patch_ref, tag in current:
            if tag not in wanted:
                patch.remove_tag(patch_ref, event_ref, tag)
        for tag in wanted - current_tags:
            patch.add_tag(event.latest_patches, event_ref, tag)
        if patch.is_empty():
            return None
        return self.commit(patch)


def _normalize(at: datetime) -> datetime:
    if at.tzinfo is None:
        raise InvalidInputError("Times must carry a timezone")
    return to_utc(at).replace(microsecond=0)
