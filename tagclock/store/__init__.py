"""Event store: patch files and device metas kept in a synced directory."""

from .patch import Patch, CreateEvent, AddStart, RemoveStart, AddTag, RemoveTag, new_ref
from .meta import Meta
from .file_store import FileStore

__all__ = [
    'Patch', 'CreateEvent', 'AddStart', 'RemoveStart', 'AddTag', 'RemoveTag', 'new_ref',
    'Meta', 'FileStore'
]
