from __future__ import annotations

import logging
import mimetypes
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# ---------- Local uploads directory ----------


@dataclass(frozen=True)
class StoredFile:
    filename: str   # name under the uploads root, what Media.url holds
    mime_type: str


class LocalMediaStore:
    """
    Files live flat under one uploads root, named by a millisecond timestamp
    plus the original extension. Writes never overwrite; removal is idempotent.
    """

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)

    def path_for(self, filename: str) -> Path:
        # names come from the database; keep them inside the root
        name = os.path.basename(filename)
        if not name or name != filename:
            raise ValueError(f"Invalid stored filename: {filename!r}")
        return self.root / name

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def store(
        self,
        *,
        data: bytes,
        mime_type: str,
        original_filename: Optional[str] = None,
    ) -> StoredFile:
        self.root.mkdir(parents=True, exist_ok=True)
        ext = _extension_for(original_filename, mime_type)
        stamp = int(time.time() * 1000)

        suffix = 0
        while True:
            name = f"{stamp}{ext}" if suffix == 0 else f"{stamp}-{suffix}{ext}"
            try:
                # "x" fails if the name is taken; never overwrite
                with open(self.root / name, "xb") as fh:
                    fh.write(data)
                break
            except FileExistsError:
                suffix += 1

        logger.info("Stored media file %s (%s, %d bytes)", name, mime_type, len(data))
        return StoredFile(filename=name, mime_type=mime_type)

    def remove(self, filename: str) -> bool:
        """Delete by name. Returns False (and logs) when the file was already gone."""
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Media file not found on disk (skipping): %s", path)
            return False
        logger.info("Media removed from disk: %s", path)
        return True

    def remove_many(self, filenames) -> int:
        """Best-effort bulk removal for cascades; individual failures are logged, not raised."""
        removed = 0
        for name in filenames:
            if not name:
                continue
            try:
                if self.remove(name):
                    removed += 1
            except (OSError, ValueError) as e:
                logger.error("Failed to remove media file %s: %s", name, e)
        return removed


def _extension_for(original_filename: Optional[str], mime_type: str) -> str:
    if original_filename:
        ext = os.path.splitext(original_filename)[1].lower()
        if ext and len(ext) <= 10 and ext[1:].isalnum():
            return ext
    return mimetypes.guess_extension(mime_type) or ""
