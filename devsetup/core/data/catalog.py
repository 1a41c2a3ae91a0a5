"""
Data — built-in install catalog.

Each entry is a plain dict validated into an ``InstallTarget`` by
``devsetup.core.config.loader``. Order matters twice: targets run in
the order listed, and each target's strategies are tried in the order
listed (first applicable and successful one wins).

Strategy steps are argv lists (run directly) or shell strings (run
through ``bash -c``). ``privileged`` steps are prefixed with sudo
unless already running as root.
"""

from __future__ import annotations

TMUX_SOURCE_VERSION = "3.3a"
_TMUX_TARBALL = (
    "https://github.com/tmux/tmux/releases/download/"
    f"{TMUX_SOURCE_VERSION}/tmux-{TMUX_SOURCE_VERSION}.tar.gz"
)

GIT_COMPLETION_URL = (
    "https://raw.githubusercontent.com/git/git/master/contrib/completion/git-completion.bash"
)

# Detection commands must print something matching the default
# version pattern (first X.Y[.Z]) or set ``version_pattern``.
TARGETS: list[dict] = [
    # ── Claude Code ─────────────────────────────────────────────
    {
        "name": "claude",
        "description": "Claude Code (AI coding assistant)",
        "detection": {
            "command": ["claude", "--version"],
            "search_paths": ["{npm_prefix}/bin", "~/.local/bin", "~/.claude/local"],
        },
        "strategies": [
            {
                "name": "npm",
                "kind": "language-pm",
                "description": "npm install -g @anthropic-ai/claude-code",
                "requires": {"commands": ["npm"], "reason": "npm not found"},
                "steps": [
                    ["npm", "install", "-g", "@anthropic-ai/claude-code", "--no-optional"],
                ],
            },
            {
                "name": "universal-script",
                "kind": "script",
                "description": "curl -fsSL claude.ai/install.sh | bash",
                "requires": {"commands": ["curl", "bash"]},
                "steps": ["set -o pipefail; curl -fsSL https://claude.ai/install.sh | bash"],
                "bin_dir": "~/.local/bin",
            },
        ],
        "critical": True,
        "update_command": ["claude", "update"],
        "hint": (
            "Fix npm permissions (npm config set prefix ~/.npm-global), "
            "make sure Node.js 18+ is installed, then retry."
        ),
    },
    # ── VS Code ─────────────────────────────────────────────────
    {
        "name": "vscode",
        "description": "VS Code, GitHub Copilot and editor extensions",
        "detection": {"command": ["code", "--version"]},
        "strategies": [
            {
                "name": "brew-cask",
                "kind": "package-manager",
                "requires": {"os": ["macos"], "commands": ["brew"]},
                "steps": [["brew", "install", "--cask", "visual-studio-code"]],
            },
            {
                "name": "snap",
                "kind": "package-manager",
                "requires": {"os": ["linux"], "commands": ["snap"], "privileged": True},
                "steps": [["snap", "install", "code", "--classic"]],
                "privileged": True,
            },
        ],
        "critical": False,
        "configure": ["vscode_settings", "vscode_extensions"],
        "configure_always": True,
        "hint": "Install VS Code from https://code.visualstudio.com/ and sign in to GitHub Copilot.",
    },
    # ── Git completion ──────────────────────────────────────────
    {
        "name": "git-completion",
        "description": "Git branch and command completion for bash/zsh",
        "detection": {
            "files": [
                "/usr/share/bash-completion/completions/git",
                "/etc/bash_completion.d/git",
                "/opt/homebrew/etc/bash_completion.d/git-completion.bash",
                "/usr/local/etc/bash_completion.d/git-completion.bash",
                "~/.git-completion.bash",
            ],
        },
        "strategies": [
            {
                "name": "apt",
                "kind": "package-manager",
                "requires": {"os": ["linux"], "commands": ["apt-get"], "privileged": True},
                "steps": [
                    ["apt-get", "update"],
                    ["apt-get", "install", "-y", "bash-completion", "git"],
                ],
                "privileged": True,
            },
            {
                "name": "yum",
                "kind": "package-manager",
                "requires": {"os": ["linux"], "commands": ["yum"], "privileged": True},
                "steps": [["yum", "install", "-y", "bash-completion", "git"]],
                "privileged": True,
            },
            {
                "name": "dnf",
                "kind": "package-manager",
                "requires": {"os": ["linux"], "commands": ["dnf"], "privileged": True},
                "steps": [["dnf", "install", "-y", "bash-completion", "git"]],
                "privileged": True,
            },
            {
                "name": "brew",
                "kind": "package-manager",
                "requires": {"os": ["macos"], "commands": ["brew"]},
                "steps": [["brew", "install", "bash-completion", "git"]],
            },
            {
                "name": "download-curl",
                "kind": "download",
                "requires": {"commands": ["curl"]},
                "steps": [
                    f"curl -fsSL -o ~/.git-completion.bash {GIT_COMPLETION_URL}",
                ],
            },
            {
                "name": "download-wget",
                "kind": "download",
                "requires": {"commands": ["wget"]},
                "steps": [
                    f"wget -q -O ~/.git-completion.bash {GIT_COMPLETION_URL}",
                ],
            },
        ],
        "critical": False,
        "configure": ["git_completion_shell"],
        "hint": f"Download {GIT_COMPLETION_URL} to ~/.git-completion.bash and source it.",
    },
    # ── tmux ────────────────────────────────────────────────────
    {
        "name": "tmux",
        "description": "tmux terminal multiplexer",
        "detection": {
            "command": ["tmux", "-V"],
            "version_pattern": r"tmux\s+(?:next-)?(\d+\.\d+[a-z]?)",
        },
        "strategies": [
            {
                "name": "brew",
                "kind": "package-manager",
                "requires": {"os": ["macos"], "commands": ["brew"]},
                "steps": [["brew", "install", "tmux"]],
            },
            {
                "name": "apt",
                "kind": "package-manager",
                "requires": {"os": ["linux"], "commands": ["apt-get"], "privileged": True},
                "steps": [["apt-get", "install", "-y", "tmux"]],
                "privileged": True,
            },
            {
                "name": "source-build",
                "kind": "source-build",
                "description": f"Build tmux {TMUX_SOURCE_VERSION} into ~/.local",
                "requires": {
                    "os": ["linux"],
                    "commands": ["gcc", "make", "tar"],
                    "any_commands": ["curl", "wget"],
                    "reason": "build tools not found",
                },
                "steps": [
                    "set -o pipefail; mkdir -p ~/.local/src && "
                    f"if command -v curl >/dev/null; then curl -fsSL {_TMUX_TARBALL}; "
                    f"else wget -qO- {_TMUX_TARBALL}; fi | tar -xz -C ~/.local/src",
                    f"cd ~/.local/src/tmux-{TMUX_SOURCE_VERSION} "
                    "&& ./configure --prefix=\"$HOME/.local\" "
                    "&& make -j\"$(nproc)\" && make install",
                    f"rm -rf ~/.local/src/tmux-{TMUX_SOURCE_VERSION}",
                ],
                "bin_dir": "~/.local/bin",
                "timeout": 1800,
            },
        ],
        "critical": True,
        "configure": ["tmux_config", "tmux_plugins"],
        "hint": "Ask your system administrator to install tmux, or install gcc and make.",
    },
    # ── OpenCode ────────────────────────────────────────────────
    {
        "name": "opencode",
        "description": "OpenCode AI coding CLI",
        "detection": {
            "command": ["opencode", "--version"],
            "search_paths": ["~/.opencode/bin", "{npm_prefix}/bin"],
        },
        "strategies": [
            {
                "name": "brew",
                "kind": "package-manager",
                "requires": {"os": ["macos"], "commands": ["brew"]},
                "steps": [["brew", "install", "opencode"]],
            },
            {
                "name": "universal-script",
                "kind": "script",
                "requires": {"commands": ["curl", "bash"]},
                "steps": ["set -o pipefail; curl -fsSL https://opencode.ai/install | bash"],
                "bin_dir": "~/.opencode/bin",
            },
            {
                "name": "npm",
                "kind": "language-pm",
                "requires": {"commands": ["npm"], "reason": "npm not found"},
                "steps": [["npm", "install", "-g", "opencode-ai"]],
            },
        ],
        "critical": False,
        "default": False,
        "configure": ["opencode_config"],
        "hint": "See https://opencode.ai/docs/#install for more options.",
    },
]

# Checked before any install in a full run; all are required.
PREREQUISITES: list[dict] = [
    {
        "name": "node",
        "detection": {"command": ["node", "--version"], "version_pattern": r"v?(\d+\.\d+\.\d+)"},
        "min_version": "18.0.0",
        "hint": "Install Node.js 18+ from https://nodejs.org/",
    },
    {
        "name": "git",
        "detection": {"command": ["git", "--version"], "version_pattern": r"git version\s+(\d+\.\d+\.\d+)"},
        "hint": "Install git with your system package manager.",
    },
    {
        "name": "curl",
        "detection": {"command": ["curl", "--version"], "version_pattern": r"curl\s+(\d+\.\d+\.\d+)"},
        "hint": "Install curl with your system package manager.",
    },
]
