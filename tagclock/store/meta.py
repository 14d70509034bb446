"""Meta: the list of patches a single device has applied."""
import json
from typing import Any, Dict, Iterable, Set

from ..errors import PatchFormatError


class Meta:
    """Per-device record of applied patches.

    Each device only ever writes its own meta file, so a file sync service
    never has to reconcile concurrent writes to the same file.
    """

    def __init__(self, device_id: str, patches: Iterable[str] = ()):
        self.device_id = device_id
        self.patches: Set[str] = set(patches)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Meta):
            return NotImplemented
        return self.device_id == other.device_id and self.patches == other.patches

    def __repr__(self) -> str:
        return f"Meta(device_id={self.device_id!r}, patches={len(self.patches)})"

    def add_patch(self, patch_ref: str) -> bool:
        """Record a patch as applied.

        Returns:
            True if the patch was not recorded before
        """
        if patch_ref in self.patches:
            return False
        self.patches.add(patch_ref)
        return True

    def to_json(self) -> str:
        return json.dumps({"patches": sorted(self.patches)}, indent=2) + "\n"

    @classmethod
    def from_json(cls, device_id: str, text: str) -> "Meta":
        try:
            data: Dict[str, Any] = json.loads(text)
        except json.JSONDecodeError as e:
            raise PatchFormatError(f"Invalid meta file for device {device_id}: {e}")
        patches = data.get("patches", []) if isinstance(data, dict) else None
        if not isinstance(patches, list) or not all(isinstance(p, str) for p in patches):
            raise PatchFormatError(f"Meta file for device {device_id} must list patch ids")
        return cls(device_id, patches)
