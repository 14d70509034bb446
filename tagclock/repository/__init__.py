"""Merging of patches into a timesheet."""

from .patched_event import PatchedEvent
from .patched_timesheet import PatchedTimesheet
from .repository import Repository, clean_tags

__all__ = ['PatchedEvent', 'PatchedTimesheet', 'Repository', 'clean_tags']
