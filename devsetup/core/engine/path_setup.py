"""
PATH reconciliation — make a freshly installed binary reachable.

When a tool lands in a directory that is not on the search PATH
(``npm -g`` prefixes, ``~/.local/bin`` builds), an export line is
appended to the user's shell startup files and the directory is put
on the current process PATH so later probes in the same run find it.
"""

from __future__ import annotations

import logging

from devsetup.adapters.base import Environment
from devsetup.core.models.settings import ShellFile

logger = logging.getLogger(__name__)


def export_line(directory: str) -> str:
    """The line appended to startup files for ``directory``."""
    return f'export PATH="{directory}:$PATH"'


def append_once(env: Environment, shell_file: ShellFile, line: str) -> str | None:
    """Append ``line`` to a startup file unless it is already there.

    Files that do not exist are skipped unless ``shell_file.create``.

    Returns:
        The path written to, or None if nothing changed.
    """
    path = env.expand(shell_file.path)
    content = env.read_text(path)
    if content is None and not shell_file.create:
        return None
    if content is not None and line in (ln.strip() for ln in content.splitlines()):
        return None

    separator = "" if not content or content.endswith("\n") else "\n"
    env.append_text(path, f"{separator}{line}\n")
    logger.info("Appended to %s: %s", path, line)
    return str(path)


def ensure_on_path(
    directory: str,
    env: Environment,
    shell_files: list[ShellFile],
) -> list[str]:
    """Put ``directory`` on PATH now and in future shells.

    Idempotent: repeated calls never add a second identical export
    line to any startup file.

    Returns:
        Startup files that were modified.
    """
    if env.on_path(directory):
        return []

    line = export_line(directory)
    changed = []
    for shell_file in shell_files:
        written = append_once(env, shell_file, line)
        if written:
            changed.append(written)

    env.prepend_path(directory)
    return changed
