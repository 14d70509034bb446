"""
FileStore: patch and meta files inside a directory shared by a sync service.

Layout:
    <root>/patches/<patch-id>.json
    <root>/meta/<device-id>.json
"""
import os
import tempfile
from pathlib import Path
from typing import Dict, Tuple

from .meta import Meta
from .patch import Patch
from ..errors import PatchExistsError, PatchFormatError, PatchNotFoundError

PATCH_DIR = "patches"
META_DIR = "meta"
SUFFIX = ".json"


class FileStore:
    """Reads and writes patches and device metas below a root directory."""

    def __init__(self, root: str, device_id: str):
        """Initialize a FileStore.

        Args:
            root: Sync directory
            device_id: Name of this device's meta file
        """
        self.root = Path(root).expanduser()
        self.device_id = device_id
        self.patch_dir = self.root / PATCH_DIR
        self.meta_dir = self.root / META_DIR

    def _ensure_dirs(self) -> None:
        self.patch_dir.mkdir(parents=True, exist_ok=True)
        self.meta_dir.mkdir(parents=True, exist_ok=True)

    def _patch_path(self, patch_ref: str) -> Path:
        if "/" in patch_ref or "\\" in patch_ref or patch_ref.startswith("."):
            raise PatchFormatError(f"Invalid patch id '{patch_ref}'")
        return self.patch_dir / f"{patch_ref}{SUFFIX}"

    def get_patch(self, patch_ref: str) -> Patch:
        """Read a patch.

        Raises:
            PatchNotFoundError: If the file does not exist
            PatchFormatError: If the file cannot be parsed or its id differs
        """
        path = self._patch_path(patch_ref)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise PatchNotFoundError(patch_ref)
        patch = Patch.from_json(text)
        if patch.id != patch_ref:
            raise PatchFormatError(f"Patch file {path.name} contains patch {patch.id}")
        return patch

    def add_patch(self, patch: Patch) -> Meta:
        """Write a new patch and record it in this device's meta.

        Returns:
            The updated meta of this device

        Raises:
            PatchExistsError: If a patch with the same id was written before
        """
        self._ensure_dirs()
        path = self._patch_path(patch.id)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(patch.to_json())
        except FileExistsError:
            raise PatchExistsError(patch.id)
        meta = self.get_meta()
        meta.add_patch(patch.id)
        self.save_meta(meta)
        return meta

    def get_meta(self) -> Meta:
        """Read this device's meta, or an empty one on first use.

        Raises:
            PatchFormatError: If the meta file cannot be parsed
        """
        path = self.meta_dir / f"{self.device_id}{SUFFIX}"
        if not path.exists():
            return Meta(self.device_id)
        return Meta.from_json(self.device_id, path.read_text(encoding="utf-8"))

    def metas(self) -> Tuple[Dict[str, Meta], Dict[str, PatchFormatError]]:
        """Read the metas of every device sharing this directory.

        A meta that is still being synced may be cut off, so a file that
        cannot be parsed does not stop the others from being read.

        Returns:
            Tuple of (metas by device, parse errors by device)
        """
        metas: Dict[str, Meta] = {}
        errors: Dict[str, PatchFormatError] = {}
        if self.meta_dir.is_dir():
            for path in sorted(self.meta_dir.glob(f"*{SUFFIX}")):
                try:
                    metas[path.stem] = Meta.from_json(path.stem, path.read_text(encoding="utf-8"))
                except PatchFormatError as e:
                    errors[path.stem] = e
        return metas, errors

    def save_meta(self, meta: Meta) -> None:
        """Atomically replace this device's meta file."""
        if meta.device_id != self.device_id:
            raise ValueError(f"Refusing to write meta of device {meta.device_id}")
        self._ensure_dirs()
        target = self.meta_dir / f"{meta.device_id}{SUFFIX}"
        fd, tmp_path = tempfile.mkstemp(dir=str(self.meta_dir), prefix=".meta-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(meta.to_json())
            os.replace(tmp_path, target)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
