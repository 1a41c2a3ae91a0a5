"""
Local environment — the real machine behind the Environment contract.

Reads OS identity from ``platform``, resolves executables with
``shutil.which`` against the process PATH, and performs file reads
and writes under the user's home directory.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
from pathlib import Path

from devsetup.adapters.base import Environment

logger = logging.getLogger(__name__)

_OS_FAMILIES = {
    "linux": "linux",
    "darwin": "macos",
    "windows": "windows",
}


class LocalEnvironment(Environment):
    """The current process and filesystem."""

    @property
    def os_family(self) -> str:
        return _OS_FAMILIES.get(platform.system().lower(), "unknown")

    @property
    def is_root(self) -> bool:
        geteuid = getattr(os, "geteuid", None)
        return geteuid is not None and geteuid() == 0

    @property
    def home(self) -> Path:
        return Path.home()

    def getenv(self, name: str, default: str | None = None) -> str | None:
        return os.environ.get(name, default)

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def search_path(self) -> list[str]:
        return [p for p in os.environ.get("PATH", "").split(os.pathsep) if p]

    def prepend_path(self, directory: str) -> None:
        if self.on_path(directory):
            return
        current = os.environ.get("PATH", "")
        os.environ["PATH"] = f"{directory}{os.pathsep}{current}" if current else directory
        logger.debug("Prepended %s to process PATH", directory)

    def is_executable(self, path: Path) -> bool:
        return path.is_file() and os.access(path, os.X_OK)

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_text(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def append_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(content)

    def copy_file(self, source: Path, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
