"""
Tests for configurators — tmux, VS Code, git completion, OpenCode, CLAUDE.md.
"""

from pathlib import Path

import pytest

from devsetup.adapters.mock import FakeEnvironment, MockRunner
from devsetup.core.data.templates import (
    DEFAULT_TMUX_CONF,
    GIT_COMPLETION_MARKER,
    TPM_BLOCK,
)
from devsetup.core.models.settings import Settings
from devsetup.core.services.configure import (
    ConfigureContext,
    claude_instructions,
    git_completion_shell,
    opencode_config,
    resolve_dotfiles_dir,
    run_configurator,
    tmux_config,
    tmux_plugins,
    vscode_extensions,
    vscode_settings,
    vscode_user_dir,
)

DOTFILES = "/home/dev/.dotfiles"


@pytest.fixture
def ctx():
    return ConfigureContext(
        runner=MockRunner(),
        env=FakeEnvironment(),
        settings=Settings(vscode_extensions=["ms-python.python", "eamodio.gitlens"]),
        dotfiles_dir=Path(DOTFILES),
        work_dir=Path("/work"),
    )


class TestResolveDotfilesDir:
    def test_explicit(self, fake_env):
        assert resolve_dotfiles_dir("~/dots", fake_env, Path("/work")) == Path("/home/dev/dots")

    def test_git_checkout(self, fake_env):
        fake_env.add_directory("/work/.git")
        assert resolve_dotfiles_dir(None, fake_env, Path("/work")) == Path("/work")

    def test_default(self, fake_env):
        assert resolve_dotfiles_dir(None, fake_env, Path("/work")) == Path("/home/dev/.dotfiles")


# ── tmux ─────────────────────────────────────────────────────────────


class TestTmux:
    def test_default_config(self, ctx):
        result = tmux_config(ctx)
        assert result.ok
        assert result.message == "Default tmux configuration created"
        assert ctx.env.files["/home/dev/.tmux.conf"] == DEFAULT_TMUX_CONF

    def test_custom_config(self, ctx):
        ctx.env.files[f"{DOTFILES}/config/tmux/.tmux.conf"] = "set -g mouse off\n"
        result = tmux_config(ctx)
        assert result.message.startswith("Custom tmux configuration applied")
        assert ctx.env.files["/home/dev/.tmux.conf"] == "set -g mouse off\n"

    def test_plugins_clone(self, ctx):
        ctx.env.files["/home/dev/.tmux.conf"] = DEFAULT_TMUX_CONF
        result = tmux_plugins(ctx)
        assert result.ok
        assert result.message == "Tmux Plugin Manager installed"
        assert ctx.runner.call_log == [
            "git clone https://github.com/tmux-plugins/tpm /home/dev/.tmux/plugins/tpm",
        ]
        assert ctx.env.files["/home/dev/.tmux.conf"].endswith(TPM_BLOCK)

    def test_plugins_update(self, ctx):
        ctx.env.add_directory("/home/dev/.tmux/plugins/tpm")
        result = tmux_plugins(ctx)
        assert result.message == "Tmux Plugin Manager updated"
        assert ctx.runner.call_log == ["git -C /home/dev/.tmux/plugins/tpm pull"]

    def test_plugin_block_added_once(self, ctx):
        tmux_plugins(ctx)
        tmux_plugins(ctx)
        assert ctx.env.files["/home/dev/.tmux.conf"].count("run '~/.tmux/plugins/tpm/tpm'") == 1

    def test_clone_failure(self, ctx):
        ctx.runner.set_failure("git clone", stderr="fatal: unable to access")
        result = tmux_plugins(ctx)
        assert not result.ok
        assert "fatal: unable to access" in result.message


# ── VS Code ──────────────────────────────────────────────────────────


class TestVSCode:
    def test_user_dir_linux(self):
        assert vscode_user_dir(FakeEnvironment()) == Path("/home/dev/.config/Code/User")

    def test_user_dir_macos(self):
        env = FakeEnvironment(os_family="macos", home="/Users/dev")
        assert vscode_user_dir(env) == Path("/Users/dev/Library/Application Support/Code/User")

    def test_settings_copied(self, ctx):
        ctx.env.files[f"{DOTFILES}/config/vscode/settings.json"] = "{}"
        result = vscode_settings(ctx)
        assert result.changed_files == ["/home/dev/.config/Code/User/settings.json"]
        assert ctx.env.files["/home/dev/.config/Code/User/settings.json"] == "{}"

    def test_no_settings(self, ctx):
        result = vscode_settings(ctx)
        assert result.ok
        assert result.changed_files == []

    def test_extensions_installed(self, ctx):
        ctx.env.add_binary("code")
        result = vscode_extensions(ctx)
        assert result.message == "Installed 2/2 VS Code extensions"
        assert ctx.runner.call_log == [
            "code --install-extension ms-python.python --force",
            "code --install-extension eamodio.gitlens --force",
        ]

    def test_extension_failure_is_warning(self, ctx):
        ctx.env.add_binary("code")
        ctx.runner.set_failure("code --install-extension eamodio.gitlens")
        result = vscode_extensions(ctx)
        assert result.ok
        assert result.message == "Installed 1/2 VS Code extensions"
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("eamodio.gitlens:")

    def test_extension_list_without_cli(self, ctx):
        result = vscode_extensions(ctx)
        listing = ctx.env.files[f"{DOTFILES}/vscode-extensions.txt"]
        assert "ms-python.python\neamodio.gitlens\n" in listing
        assert ctx.runner.call_count == 0
        assert result.ok


# ── Git completion ───────────────────────────────────────────────────


class TestGitCompletion:
    def test_bash_and_zsh(self, ctx):
        ctx.env.files["/home/dev/.bashrc"] = "# bash\n"
        ctx.env.files["/home/dev/.zshrc"] = "# zsh\n"
        result = git_completion_shell(ctx)
        assert result.changed_files == ["/home/dev/.bashrc", "/home/dev/.zshrc"]
        assert "bash_completion" in ctx.env.files["/home/dev/.bashrc"]
        assert "compinit" in ctx.env.files["/home/dev/.zshrc"]

    def test_missing_files_untouched(self, ctx):
        result = git_completion_shell(ctx)
        assert result.changed_files == []
        assert ctx.env.files == {}

    def test_marker_prevents_duplicates(self, ctx):
        ctx.env.files["/home/dev/.bashrc"] = ""
        git_completion_shell(ctx)
        git_completion_shell(ctx)
        assert ctx.env.files["/home/dev/.bashrc"].count(GIT_COMPLETION_MARKER) == 1

    def test_block_from_shell_installer_is_recognised(self, ctx):
        existing = "# Git completion setup\nsource ~/.git-completion.bash\n"
        ctx.env.files["/home/dev/.bashrc"] = existing
        result = git_completion_shell(ctx)
        assert result.changed_files == []
        assert ctx.env.files["/home/dev/.bashrc"] == existing

    def test_block_sources_homebrew_completion(self, ctx):
        ctx.env.files["/home/dev/.bashrc"] = ""
        git_completion_shell(ctx)
        bashrc = ctx.env.files["/home/dev/.bashrc"]
        assert "/opt/homebrew/etc/bash_completion.d/git-completion.bash" in bashrc
        assert "/usr/local/etc/bash_completion.d/git-completion.bash" in bashrc


# ── OpenCode ─────────────────────────────────────────────────────────


class TestOpenCode:
    def test_copies_template(self, ctx):
        ctx.env.set_env("NRP_API_KEY", "secret")
        ctx.env.files[f"{DOTFILES}/config/opencode.json"] = '{"model": "x"}'
        result = opencode_config(ctx)
        assert result.ok
        assert ctx.env.files["/work/opencode.json"] == '{"model": "x"}'
        assert result.warnings == []

    def test_existing_config_kept(self, ctx):
        ctx.env.files["/work/opencode.json"] = "mine"
        ctx.env.files[f"{DOTFILES}/config/opencode.json"] = "template"
        opencode_config(ctx)
        assert ctx.env.files["/work/opencode.json"] == "mine"

    def test_missing_template(self, ctx):
        result = opencode_config(ctx)
        assert not result.ok

    def test_api_key_warning(self, ctx):
        ctx.env.files[f"{DOTFILES}/config/opencode.json"] = "{}"
        result = opencode_config(ctx)
        assert any("NRP_API_KEY" in w for w in result.warnings)


# ── CLAUDE.md ────────────────────────────────────────────────────────


class TestClaudeInstructions:
    def test_mirror_and_exclude(self, ctx):
        ctx.env.files["/work/.github/copilot-instructions.md"] = "# Rules\n"
        ctx.env.add_directory("/work/.git")
        ctx.env.files["/work/.git/info/exclude"] = "# git ls-files --others"

        result = claude_instructions(ctx)

        assert ctx.env.files["/work/CLAUDE.md"] == "# Rules\n"
        assert ctx.env.files["/work/.git/info/exclude"] == "# git ls-files --others\nCLAUDE.md\n"
        assert result.changed_files == ["/work/CLAUDE.md", "/work/.git/info/exclude"]

    def test_exclude_added_once(self, ctx):
        ctx.env.files["/work/.github/copilot-instructions.md"] = "# Rules\n"
        ctx.env.add_directory("/work/.git")
        claude_instructions(ctx)
        claude_instructions(ctx)
        assert ctx.env.files["/work/.git/info/exclude"] == "CLAUDE.md\n"

    def test_no_instructions(self, ctx):
        result = claude_instructions(ctx)
        assert result.ok
        assert result.changed_files == []
        assert "/work/CLAUDE.md" not in ctx.env.files


# ── Registry ─────────────────────────────────────────────────────────


class TestRunConfigurator:
    def test_unknown(self, ctx):
        result = run_configurator("nope", ctx)
        assert not result.ok
        assert result.message == "Unknown configurator: nope"

    def test_os_error_becomes_failure(self, ctx):
        class BrokenEnv(FakeEnvironment):
            def write_text(self, path, content):
                raise PermissionError(13, "Permission denied", str(path))

        ctx.env = BrokenEnv()
        result = run_configurator("tmux_config", ctx)
        assert not result.ok
        assert result.message.startswith("tmux_config failed:")
