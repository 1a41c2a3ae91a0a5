"""
Configurators — post-install configuration steps.

A target lists configurator names in ``configure``; after the target
resolves, each named step runs in order. Configurators edit files
under the home directory (through the Environment) and may run a few
commands (through the CommandRunner). A failing configurator is a
warning for its target, never a resolution failure.

Every step is safe to re-run: copies overwrite, appends are guarded
by marker lines.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from devsetup.adapters.base import CommandRunner, Environment
from devsetup.core.data.templates import (
    BASH_COMPLETION_BLOCK,
    DEFAULT_TMUX_CONF,
    EXTENSION_LIST_HEADER,
    GIT_COMPLETION_MARKER,
    TPM_BLOCK,
    TPM_MARKER,
    TPM_REPO,
    ZSH_COMPLETION_BLOCK,
)
from devsetup.core.models.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class ConfigureResult:
    """Outcome of one configurator."""

    name: str
    ok: bool = True
    message: str = ""
    changed_files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "message": self.message,
            "changed_files": self.changed_files,
            "warnings": self.warnings,
        }


@dataclass
class ConfigureContext:
    """Everything a configurator needs."""

    runner: CommandRunner
    env: Environment
    settings: Settings
    dotfiles_dir: Path
    work_dir: Path


def resolve_dotfiles_dir(
    configured: str | None,
    env: Environment,
    work_dir: Path,
) -> Path:
    """Where bundled configuration files are read from.

    An explicit setting wins; otherwise the working directory when it
    is a git checkout (running from inside the dotfiles repo), else
    ``~/.dotfiles``.
    """
    if configured:
        return env.expand(configured)
    if env.exists(work_dir / ".git"):
        return work_dir
    return env.home / ".dotfiles"


# ── tmux ────────────────────────────────────────────────────────


def tmux_config(ctx: ConfigureContext) -> ConfigureResult:
    """Install ~/.tmux.conf from the dotfiles, or the built-in default."""
    result = ConfigureResult(name="tmux_config")
    source = ctx.dotfiles_dir / "config" / "tmux" / ".tmux.conf"
    destination = ctx.env.home / ".tmux.conf"

    if ctx.env.exists(source):
        ctx.env.copy_file(source, destination)
        result.message = f"Custom tmux configuration applied from {source}"
    else:
        ctx.env.write_text(destination, DEFAULT_TMUX_CONF)
        result.message = "Default tmux configuration created"

    result.changed_files.append(str(destination))
    return result


def tmux_plugins(ctx: ConfigureContext) -> ConfigureResult:
    """Clone (or update) TPM and register the plugin block in ~/.tmux.conf."""
    result = ConfigureResult(name="tmux_plugins")
    tpm_dir = ctx.env.home / ".tmux" / "plugins" / "tpm"

    if ctx.env.exists(tpm_dir):
        fetched = ctx.runner.run(["git", "-C", str(tpm_dir), "pull"], timeout=120)
        action = "updated"
    else:
        fetched = ctx.runner.run(["git", "clone", TPM_REPO, str(tpm_dir)], timeout=300)
        action = "installed"

    if fetched.ok:
        result.message = f"Tmux Plugin Manager {action}"
    else:
        result.ok = False
        result.message = f"Tmux Plugin Manager could not be {action}: {fetched.describe_failure()}"

    conf = ctx.env.home / ".tmux.conf"
    content = ctx.env.read_text(conf) or ""
    if TPM_MARKER not in content:
        ctx.env.append_text(conf, TPM_BLOCK)
        result.changed_files.append(str(conf))

    return result


# ── VS Code ─────────────────────────────────────────────────────


def vscode_user_dir(env: Environment) -> Path:
    """VS Code's per-user settings directory for this OS."""
    if env.os_family == "macos":
        return env.home / "Library" / "Application Support" / "Code" / "User"
    return env.home / ".config" / "Code" / "User"


def vscode_settings(ctx: ConfigureContext) -> ConfigureResult:
    """Copy settings.json and keybindings.json from the dotfiles."""
    result = ConfigureResult(name="vscode_settings")
    source_dir = ctx.dotfiles_dir / "config" / "vscode"
    user_dir = vscode_user_dir(ctx.env)

    for filename in ("settings.json", "keybindings.json"):
        source = source_dir / filename
        if ctx.env.exists(source):
            destination = user_dir / filename
            ctx.env.copy_file(source, destination)
            result.changed_files.append(str(destination))

    if result.changed_files:
        result.message = f"VS Code settings applied to {user_dir}"
    else:
        result.message = "No custom VS Code settings found, using defaults"
    return result


def vscode_extensions(ctx: ConfigureContext) -> ConfigureResult:
    """Install extensions with the ``code`` CLI, or write a list for later."""
    result = ConfigureResult(name="vscode_extensions")
    extensions = ctx.settings.vscode_extensions

    if ctx.env.which("code") is None:
        listing = ctx.dotfiles_dir / "vscode-extensions.txt"
        ctx.env.write_text(listing, EXTENSION_LIST_HEADER + "\n".join(extensions) + "\n")
        result.changed_files.append(str(listing))
        result.message = f"VS Code CLI not available; extension list written to {listing}"
        return result

    installed = 0
    for extension in extensions:
        outcome = ctx.runner.run(
            ["code", "--install-extension", extension, "--force"],
            timeout=ctx.settings.action_timeout,
        )
        if outcome.ok:
            installed += 1
        else:
            result.warnings.append(f"{extension}: {outcome.describe_failure()}")

    result.message = f"Installed {installed}/{len(extensions)} VS Code extensions"
    return result


# ── Git completion ──────────────────────────────────────────────


def git_completion_shell(ctx: ConfigureContext) -> ConfigureResult:
    """Source git completion from existing bash/zsh startup files."""
    result = ConfigureResult(name="git_completion_shell")

    for shell_file in ctx.settings.shell_files:
        path = ctx.env.expand(shell_file.path)
        content = ctx.env.read_text(path)
        if content is None:
            continue
        if GIT_COMPLETION_MARKER in content:
            logger.info("Git completion already configured in %s", path)
            continue
        block = ZSH_COMPLETION_BLOCK if "zsh" in path.name else BASH_COMPLETION_BLOCK
        ctx.env.append_text(path, block)
        result.changed_files.append(str(path))

    if result.changed_files:
        result.message = f"Git completion added to {', '.join(result.changed_files)}"
    else:
        result.message = "Git completion already configured"
    return result


# ── OpenCode ────────────────────────────────────────────────────


def opencode_config(ctx: ConfigureContext) -> ConfigureResult:
    """Copy opencode.json into the working directory unless one exists."""
    result = ConfigureResult(name="opencode_config")
    destination = ctx.work_dir / "opencode.json"
    source = ctx.dotfiles_dir / "config" / "opencode.json"

    if ctx.env.exists(destination):
        result.message = "OpenCode configuration already exists in the working directory"
    elif ctx.env.exists(source):
        ctx.env.copy_file(source, destination)
        result.changed_files.append(str(destination))
        result.message = f"OpenCode configuration copied to {destination}"
    else:
        result.ok = False
        result.message = f"OpenCode configuration template not found at {source}"

    if not ctx.env.getenv("NRP_API_KEY"):
        result.warnings.append(
            "NRP_API_KEY is not set; export it, then run 'opencode auth login'"
        )
    return result


# ── Claude instructions ─────────────────────────────────────────


def claude_instructions(ctx: ConfigureContext) -> ConfigureResult:
    """Mirror .github/copilot-instructions.md to CLAUDE.md.

    The mirror is kept out of version control through
    ``.git/info/exclude`` (added once).
    """
    result = ConfigureResult(name="claude_instructions")
    source = ctx.work_dir / ".github" / "copilot-instructions.md"
    if not ctx.env.exists(source):
        result.message = "No .github/copilot-instructions.md found, skipping"
        return result

    destination = ctx.work_dir / "CLAUDE.md"
    ctx.env.copy_file(source, destination)
    result.changed_files.append(str(destination))
    result.message = "Created CLAUDE.md mirroring the copilot instructions"

    if ctx.env.exists(ctx.work_dir / ".git"):
        exclude = ctx.work_dir / ".git" / "info" / "exclude"
        content = ctx.env.read_text(exclude) or ""
        if "CLAUDE.md" not in (line.strip() for line in content.splitlines()):
            separator = "" if not content or content.endswith("\n") else "\n"
            ctx.env.append_text(exclude, f"{separator}CLAUDE.md\n")
            result.changed_files.append(str(exclude))
    return result


# ── Registry ────────────────────────────────────────────────────

Configurator = Callable[[ConfigureContext], ConfigureResult]

CONFIGURATORS: dict[str, Configurator] = {
    "tmux_config": tmux_config,
    "tmux_plugins": tmux_plugins,
    "vscode_settings": vscode_settings,
    "vscode_extensions": vscode_extensions,
    "git_completion_shell": git_completion_shell,
    "opencode_config": opencode_config,
    "claude_instructions": claude_instructions,
}


def run_configurator(name: str, ctx: ConfigureContext) -> ConfigureResult:
    """Run a configurator by name. File errors become a failed result."""
    configurator = CONFIGURATORS.get(name)
    if configurator is None:
        return ConfigureResult(name=name, ok=False, message=f"Unknown configurator: {name}")

    try:
        return configurator(ctx)
    except OSError as e:
        logger.warning("Configurator %s failed: %s", name, e)
        return ConfigureResult(name=name, ok=False, message=f"{name} failed: {e}")
