# services/asset_store.py
"""
Filesystem-backed store for uploaded images.

Files live under <root>/<category>/<generated name> and are addressed publicly
as <prefix>/<category>/<generated name> (prefix defaults to /uploads).
"""
from __future__ import annotations

import os
import secrets
import time
from pathlib import Path
from typing import Optional

from gis_backend.util.log import get_logger, log_event

logger = get_logger("assets")


class AssetStore:
    def __init__(self, root: Path, public_prefix: str = "/uploads"):
        self.root = Path(root).resolve()
        self.public_prefix = "/" + public_prefix.strip("/")

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_name(extension: str) -> str:
        ext = (extension or "").lower()
        if ext and not ext.startswith("."):
            ext = "." + ext
        millis = int(time.time() * 1000)
        suffix = secrets.randbelow(10**9)
        return f"{millis}-{suffix}{ext}"

    def is_store_owned(self, path: Optional[str]) -> bool:
        return bool(path) and str(path).startswith(self.public_prefix + "/")

    def resolve(self, path: str) -> Optional[Path]:
        """Maps a public path to its file on disk; None if not store-owned or escaping the root."""
        if not self.is_store_owned(path):
            return None
        rel = str(path)[len(self.public_prefix) + 1:]
        if not rel or "\x00" in rel:
            return None
        full = (self.root / rel).resolve()
        if full == self.root or self.root not in full.parents:
            return None
        return full

    def exists(self, path: Optional[str]) -> bool:
        full = self.resolve(path) if path else None
        if full is None:
            return False
        try:
            return full.is_file()
        except OSError:
            # e.g. a name longer than the filesystem allows
            return False

    def put(self, category: str, data: bytes, extension: str) -> str:
        folder = self.root / category
        folder.mkdir(parents=True, exist_ok=True)

        name = self.generate_name(extension)
        dest = folder / name
        # Exclusive create; regenerate on the (unlikely) collision.
        while True:
            try:
                with open(dest, "xb") as f:
                    f.write(data)
                break
            except FileExistsError:
                name = self.generate_name(extension)
                dest = folder / name

        public = f"{self.public_prefix}/{category}/{name}"
        log_event(logger, level="INFO", event="asset_stored", msg="stored upload",
                  path=public, size=len(data))
        return public

    def delete(self, path: Optional[str]) -> bool:
        """
        Removes a store-owned file. Returns False (no-op) when the path is not
        store-owned or the file is already gone. OSError propagates.
        """
        full = self.resolve(path) if path else None
        if full is None:
            return False
        try:
            os.remove(full)
        except FileNotFoundError:
            return False
        log_event(logger, level="INFO", event="asset_deleted", msg="deleted upload", path=path)
        return True
