"""
Adapter base — the contracts between the resolver and the machine.

The resolver never shells out or touches files directly. It talks to
two injected collaborators:

    CommandRunner  — run an external command, capture exit code and output
    Environment    — OS identity, PATH lookups, and startup-file access

Real implementations live in ``devsetup.adapters.shell``; in-memory
fakes for tests live in ``devsetup.adapters.mock``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path

from devsetup.core.models.result import CommandResult


class CommandRunner(ABC):
    """Run external commands and return results.

    Runners NEVER raise for a failing command: a missing executable,
    a non-zero exit, and a timeout are all captured in the
    CommandResult.
    """

    @abstractmethod
    def run(
        self,
        command: list[str] | str,
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """Run a command.

        Args:
            command: argv list, or a string run through ``bash -c``.
            cwd: Working directory.
            timeout: Seconds before the command is killed. None = no limit.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class Environment(ABC):
    """The machine as the resolver sees it.

    Everything that reads or mutates global state (PATH, files in the
    home directory) goes through here so resolution logic can be
    tested without touching a real machine.
    """

    @property
    @abstractmethod
    def os_family(self) -> str:
        """``"linux"``, ``"macos"``, ``"windows"`` or ``"unknown"``."""

    @property
    @abstractmethod
    def is_root(self) -> bool:
        """Whether the current process runs as root."""

    @property
    @abstractmethod
    def home(self) -> Path:
        """The user's home directory."""

    @abstractmethod
    def getenv(self, name: str, default: str | None = None) -> str | None:
        """Read an environment variable."""

    @abstractmethod
    def which(self, name: str) -> str | None:
        """Resolve an executable on the current search PATH."""

    @abstractmethod
    def search_path(self) -> list[str]:
        """Directories on the current process search PATH."""

    @abstractmethod
    def prepend_path(self, directory: str) -> None:
        """Put a directory at the front of the process search PATH."""

    @abstractmethod
    def is_executable(self, path: Path) -> bool:
        """Whether a file exists and is executable."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Whether a file or directory exists."""

    @abstractmethod
    def read_text(self, path: Path) -> str | None:
        """Read a text file, or None if it does not exist."""

    @abstractmethod
    def write_text(self, path: Path, content: str) -> None:
        """Create or overwrite a text file (parents created)."""

    @abstractmethod
    def append_text(self, path: Path, content: str) -> None:
        """Append to a text file, creating it if needed."""

    @abstractmethod
    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a file (parents of the destination created)."""

    # ── Derived helpers ─────────────────────────────────────────

    @property
    def can_escalate(self) -> bool:
        """Whether privileged commands can run (root, or sudo available)."""
        return self.is_root or self.which("sudo") is not None

    def expand(self, raw: str) -> Path:
        """Expand ``~`` and ``$VARS`` against this environment."""
        text = raw
        if text == "~" or text.startswith("~/"):
            text = str(self.home) + text[1:]
        for name in _env_names(text):
            value = self.getenv(name)
            if value is not None:
                text = text.replace(f"${{{name}}}", value).replace(f"${name}", value)
        return Path(text)

    def on_path(self, directory: str | Path) -> bool:
        """Whether a directory is already on the process search PATH."""
        target = str(Path(directory))
        return any(str(Path(entry)) == target for entry in self.search_path() if entry)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} os={self.os_family!r}>"


def _env_names(text: str) -> list[str]:
    """Names referenced as ``$NAME`` or ``${NAME}`` in a string."""
    return re.findall(r"\$\{?([A-Za-z_][A-Za-z0-9_]*)\}?", text)
