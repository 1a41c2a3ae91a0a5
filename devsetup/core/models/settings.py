"""
Settings — run-wide options read from devsetup.yml and the environment.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# Extensions installed into VS Code by the ``vscode_extensions`` step.
DEFAULT_VSCODE_EXTENSIONS = [
    "GitHub.copilot",
    "GitHub.copilot-chat",
    "GitHub.vscode-pull-request-github",
    "eamodio.gitlens",
    "ms-vscode.vscode-typescript-next",
    "ms-python.python",
    "ms-vscode.cpptools",
    "rust-lang.rust-analyzer",
    "bradlc.vscode-tailwindcss",
    "esbenp.prettier-vscode",
    "ms-vscode.vscode-json",
    "redhat.vscode-yaml",
    "ms-vscode-remote.remote-ssh",
    "ms-vscode-remote.remote-containers",
    "ms-vscode.remote-explorer",
    "ms-vscode.hexeditor",
    "ms-vscode.live-server",
    "ms-toolsai.jupyter",
]


class ShellFile(BaseModel):
    """A shell startup file that receives PATH exports and snippets."""

    path: str
    create: bool = False   # create when missing (otherwise only edit if present)


def _default_shell_files() -> list[ShellFile]:
    return [
        ShellFile(path="~/.bashrc", create=True),
        ShellFile(path="~/.zshrc", create=False),
    ]


class Settings(BaseModel):
    """Run-wide settings."""

    dotfiles_dir: str | None = None   # None = working copy if it is a git checkout, else ~/.dotfiles
    shell_files: list[ShellFile] = Field(default_factory=_default_shell_files)
    action_timeout: int = 900
    vscode_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VSCODE_EXTENSIONS)
    )
