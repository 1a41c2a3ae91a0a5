"""
Mock adapters — in-memory test doubles for the runner and environment.

MockRunner answers commands from a table of scripted responses and
records every call. FakeEnvironment keeps PATH, executables and files
in dictionaries. A scripted response can carry an ``effect`` that
mutates the fake environment, which is how a test simulates "the
package manager put a binary on disk".
"""

from __future__ import annotations

import shlex
from collections.abc import Callable
from pathlib import Path

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.models.result import CommandResult


class MockRunner(CommandRunner):
    """Scripted command runner for testing.

    Responses are keyed by command prefix; the longest matching prefix
    wins. Unmatched commands get the default response (exit 0, empty
    output unless configured otherwise).
    """

    def __init__(
        self,
        default_returncode: int = 0,
        default_stdout: str = "",
    ):
        self._default_returncode = default_returncode
        self._default_stdout = default_stdout
        self._responses: dict[str, tuple[CommandResult, Callable[[], None] | None]] = {}
        self._call_log: list[str] = []

    @property
    def call_log(self) -> list[str]:
        """Every command this mock has received, as display strings."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_matching(self, prefix: str) -> list[str]:
        """Recorded commands starting with ``prefix``."""
        return [c for c in self._call_log if c.startswith(prefix)]

    def set_response(
        self,
        prefix: str,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
        effect: Callable[[], None] | None = None,
    ) -> None:
        """Script the response for commands starting with ``prefix``."""
        result = CommandResult(
            command=prefix,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            timed_out=timed_out,
            error="timed out" if timed_out else None,
        )
        self._responses[prefix] = (result, effect)

    def set_failure(
        self,
        prefix: str,
        returncode: int = 1,
        stderr: str = "Mock failure",
    ) -> None:
        """Configure commands starting with ``prefix`` to fail."""
        self.set_response(prefix, returncode=returncode, stderr=stderr)

    def run(
        self,
        command: list[str] | str,
        *,
        cwd: str | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        display = command if isinstance(command, str) else shlex.join(command)
        self._call_log.append(display)

        matches = [p for p in self._responses if display.startswith(p)]
        if not matches:
            return CommandResult(
                command=display,
                returncode=self._default_returncode,
                stdout=self._default_stdout,
            )

        scripted, effect = self._responses[max(matches, key=len)]
        if effect is not None:
            effect()
        return scripted.model_copy(update={"command": display})

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()


class FakeEnvironment(Environment):
    """In-memory machine: PATH, executables and text files in dicts."""

    def __init__(
        self,
        os_family: str = "linux",
        is_root: bool = False,
        home: str = "/home/dev",
        path: list[str] | None = None,
        env: dict[str, str] | None = None,
        files: dict[str, str] | None = None,
    ):
        self._os_family = os_family
        self._is_root = is_root
        self._home = Path(home)
        self._path = list(path) if path is not None else ["/usr/local/bin", "/usr/bin", "/bin"]
        self._env = dict(env or {})
        self._env.setdefault("HOME", home)
        self.files: dict[str, str] = dict(files or {})
        self.executables: set[str] = set()
        self.directories: set[str] = set()

    # ── Test setup helpers ──────────────────────────────────────

    def add_binary(self, name: str, directory: str = "/usr/bin") -> str:
        """Place an executable ``name`` in ``directory``; returns its path."""
        full = str(Path(directory) / name)
        self.executables.add(full)
        return full

    def remove_binary(self, name: str) -> None:
        self.executables = {p for p in self.executables if Path(p).name != name}

    def add_directory(self, directory: str) -> None:
        self.directories.add(str(Path(directory)))

    def set_env(self, name: str, value: str) -> None:
        self._env[name] = value

    # ── Environment contract ────────────────────────────────────

    @property
    def os_family(self) -> str:
        return self._os_family

    @property
    def is_root(self) -> bool:
        return self._is_root

    @property
    def home(self) -> Path:
        return self._home

    def getenv(self, name: str, default: str | None = None) -> str | None:
        if name == "PATH":
            return ":".join(self._path)
        return self._env.get(name, default)

    def which(self, name: str) -> str | None:
        for directory in self._path:
            candidate = str(Path(directory) / name)
            if candidate in self.executables:
                return candidate
        return None

    def search_path(self) -> list[str]:
        return list(self._path)

    def prepend_path(self, directory: str) -> None:
        if not self.on_path(directory):
            self._path.insert(0, directory)

    def is_executable(self, path: Path) -> bool:
        return str(path) in self.executables

    def exists(self, path: Path) -> bool:
        key = str(path)
        return key in self.files or key in self.executables or key in self.directories

    def read_text(self, path: Path) -> str | None:
        return self.files.get(str(path))

    def write_text(self, path: Path, content: str) -> None:
        self.files[str(path)] = content

    def append_text(self, path: Path, content: str) -> None:
        self.files[str(path)] = self.files.get(str(path), "") + content

    def copy_file(self, source: Path, destination: Path) -> None:
        if str(source) not in self.files:
            raise FileNotFoundError(str(source))
        self.files[str(destination)] = self.files[str(source)]
