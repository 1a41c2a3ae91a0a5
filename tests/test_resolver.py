"""
Tests for the installer resolver — strategy order, outcomes, PATH reconciliation.
"""

from pathlib import Path

from devsetup.adapters.mock import FakeEnvironment, MockRunner
from devsetup.core.config.loader import builtin_catalog
from devsetup.core.engine.resolver import plan_resolution, resolve, run_strategy
from devsetup.core.models.result import FailureKind, Outcome
from devsetup.core.models.settings import ShellFile
from devsetup.core.models.target import (
    DetectionSpec,
    InstallTarget,
    Precondition,
    Strategy,
)


def _strategy(name, steps=None, **requires):
    return Strategy(
        name=name,
        steps=steps or [[name, "install", "tool"]],
        requires=Precondition(**requires),
    )


def _target(strategies, **kwargs):
    return InstallTarget(
        name="tool",
        detection=DetectionSpec(command=["tool", "--version"]),
        strategies=strategies,
        **kwargs,
    )


def _installs(env, name="tool", directory="/usr/bin"):
    """Effect callback: the command put ``name`` on disk."""
    return lambda: env.add_binary(name, directory)


# ── Idempotence ──────────────────────────────────────────────────────


class TestAlreadyPresent:
    def test_present_tool_runs_no_strategy(self):
        env = FakeEnvironment()
        env.add_binary("tool")
        runner = MockRunner()
        runner.set_response("tool --version", stdout="tool 1.2.3")

        result = resolve(_target([_strategy("pm")]), runner=runner, env=env)

        assert result.outcome == Outcome.ALREADY_PRESENT
        assert result.version == "1.2.3"
        assert result.message == "tool is already installed (1.2.3)"
        assert runner.call_log == ["tool --version"]

    def test_second_run_performs_zero_actions(self):
        env = FakeEnvironment()
        env.add_binary("pm")
        runner = MockRunner()
        runner.set_response("pm install tool", effect=_installs(env))
        target = _target([_strategy("pm", commands=["pm"])])

        first = resolve(target, runner=runner, env=env)
        assert first.outcome == Outcome.SUCCESS

        runner.reset()
        second = resolve(target, runner=runner, env=env)
        assert second.outcome == Outcome.ALREADY_PRESENT
        assert runner.calls_matching("pm") == []

    def test_too_old_version_is_not_present(self):
        env = FakeEnvironment()
        env.add_binary("tool")
        env.add_binary("pm")
        runner = MockRunner()
        runner.set_response("tool --version", stdout="tool 1.0.0")
        runner.set_response(
            "pm install tool",
            effect=lambda: runner.set_response("tool --version", stdout="tool 2.1.0"),
        )
        target = _target([_strategy("pm", commands=["pm"])], min_version="2.0.0")

        result = resolve(target, runner=runner, env=env)

        assert result.outcome == Outcome.SUCCESS
        assert result.version == "2.1.0"
        assert runner.calls_matching("pm install") == ["pm install tool"]


# ── Strategy order ───────────────────────────────────────────────────


class TestStrategyOrder:
    def test_skip_fail_then_succeed(self):
        env = FakeEnvironment(os_family="linux")
        env.add_binary("b")
        env.add_binary("c")
        runner = MockRunner()
        runner.set_failure("b install", stderr="boom")
        runner.set_response("c install", effect=_installs(env))
        runner.set_response("tool --version", stdout="tool 1.2.3")
        target = _target([
            _strategy("a", os=["macos"]),
            _strategy("b", commands=["b"]),
            _strategy("c", commands=["c"]),
        ])

        result = resolve(target, runner=runner, env=env)

        assert result.outcome == Outcome.SUCCESS
        assert result.strategy == "c"
        assert "a: skipped" in result.message
        assert "b: failed (exit 1: boom)" in result.message
        assert [a.failure for a in result.attempts] == [
            FailureKind.PRECONDITION_UNMET,
            FailureKind.ACTION_FAILED,
            None,
        ]
        assert runner.calls_matching("a install") == []
        installs = [c for c in runner.call_log if "install" in c]
        assert installs == ["b install tool", "c install tool"]

    def test_first_success_stops_iteration(self):
        env = FakeEnvironment()
        runner = MockRunner()
        runner.set_response("a install", effect=_installs(env))
        target = _target([_strategy("a"), _strategy("b")])

        result = resolve(target, runner=runner, env=env)

        assert result.strategy == "a"
        assert runner.calls_matching("b install") == []
        assert "earlier" not in result.message

    def test_explicit_strategy_list_overrides_target(self):
        env = FakeEnvironment()
        runner = MockRunner()
        runner.set_response("z install", effect=_installs(env))
        target = _target([_strategy("a")])

        result = resolve(target, [_strategy("z")], runner=runner, env=env)

        assert result.strategy == "z"
        assert runner.calls_matching("a install") == []


# ── Failure outcomes ─────────────────────────────────────────────────


class TestFailures:
    def test_no_applicable_strategy_is_unsupported_platform(self):
        env = FakeEnvironment(os_family="linux")
        runner = MockRunner()
        target = _target([
            _strategy("brew", os=["macos"]),
            _strategy("apt", commands=["apt-get"]),
        ])

        result = resolve(target, runner=runner, env=env)

        assert result.outcome == Outcome.FAILED
        assert result.failure == FailureKind.UNSUPPORTED_PLATFORM
        assert result.message == (
            "no applicable strategy: requires macos (this is linux); apt-get not found"
        )
        assert runner.call_count == 0

    def test_empty_strategy_list_is_unsupported(self):
        result = resolve(_target([]), runner=MockRunner(), env=FakeEnvironment())
        assert result.failure == FailureKind.UNSUPPORTED_PLATFORM
        assert result.message == "no applicable strategy: no strategies defined"

    def test_all_attempts_failed_is_exhausted(self):
        env = FakeEnvironment()
        runner = MockRunner()
        runner.set_failure("a install", stderr="network down")
        target = _target([_strategy("a"), _strategy("b", os=["macos"])])

        result = resolve(target, runner=runner, env=env)

        assert result.failure == FailureKind.STRATEGIES_EXHAUSTED
        assert result.message.startswith("all strategies failed:")
        assert "a: failed (exit 1: network down)" in result.message
        assert "b: skipped" in result.message
        assert len(result.attempted) == 1

    def test_post_check_failure(self):
        env = FakeEnvironment()
        runner = MockRunner()  # install "succeeds" but nothing appears
        target = _target([_strategy("a")])

        result = resolve(target, runner=runner, env=env)

        assert result.failure == FailureKind.STRATEGIES_EXHAUSTED
        attempt = result.attempts[0]
        assert attempt.failure == FailureKind.POST_CHECK_FAILED
        assert attempt.message == "command succeeded but tool not found on PATH"

    def test_post_check_failure_then_next_strategy(self):
        env = FakeEnvironment()
        runner = MockRunner()
        runner.set_response("b install", effect=_installs(env))
        target = _target([_strategy("a"), _strategy("b")])

        result = resolve(target, runner=runner, env=env)

        assert result.outcome == Outcome.SUCCESS
        assert result.strategy == "b"
        assert "a: post-check failed" in result.message

    def test_timeout_is_action_failure(self):
        env = FakeEnvironment()
        runner = MockRunner()
        runner.set_response("slow install", timed_out=True)
        runner.set_response("fast install", effect=_installs(env))
        target = _target([_strategy("slow"), _strategy("fast")])

        result = resolve(target, runner=runner, env=env)

        assert result.strategy == "fast"
        assert result.attempts[0].failure == FailureKind.ACTION_FAILED
        assert result.attempts[0].message == "timed out"

    def test_exactly_one_outcome(self):
        env = FakeEnvironment()
        runner = MockRunner()
        runner.set_failure("a install")
        result = resolve(_target([_strategy("a")]), runner=runner, env=env)
        assert result.failed
        assert not result.ok
        assert result.strategy is None


# ── tmux source build ────────────────────────────────────────────────


class TestTmuxSourceBuild:
    def _source_build(self):
        tmux = builtin_catalog().get("tmux")
        return tmux, [tmux.get_strategy("source-build")]

    def test_missing_build_tools(self):
        tmux, strategies = self._source_build()
        env = FakeEnvironment(os_family="linux")
        runner = MockRunner()

        result = resolve(tmux, strategies, runner=runner, env=env)

        assert result.outcome == Outcome.FAILED
        assert result.failure == FailureKind.UNSUPPORTED_PLATFORM
        assert result.message == "no applicable strategy: build tools not found"

    def test_build_succeeds_into_local_bin(self):
        tmux, strategies = self._source_build()
        env = FakeEnvironment(os_family="linux")
        for tool in ("gcc", "make", "curl", "tar"):
            env.add_binary(tool)
        runner = MockRunner()
        runner.set_response(
            "rm -rf ~/.local/src/tmux",
            effect=_installs(env, "tmux", "/home/dev/.local/bin"),
        )
        runner.set_response("/home/dev/.local/bin/tmux -V", stdout="tmux 3.3a")

        result = resolve(tmux, strategies, runner=runner, env=env)

        assert result.outcome == Outcome.SUCCESS
        assert result.strategy == "source-build"
        assert result.version == "3.3a"
        assert result.binary_path == "/home/dev/.local/bin/tmux"
        assert len(runner.calls_matching("set -o pipefail; mkdir -p ~/.local/src")) == 1

    def test_build_reconciles_path(self):
        tmux, strategies = self._source_build()
        env = FakeEnvironment(os_family="linux")
        for tool in ("gcc", "make", "curl", "tar"):
            env.add_binary(tool)
        runner = MockRunner()
        runner.set_response(
            "rm -rf ~/.local/src/tmux",
            effect=_installs(env, "tmux", "/home/dev/.local/bin"),
        )

        result = resolve(tmux, strategies, runner=runner, env=env)

        assert result.path_updates == ["/home/dev/.bashrc"]
        assert env.on_path("/home/dev/.local/bin")
        assert 'export PATH="/home/dev/.local/bin:$PATH"' in env.files["/home/dev/.bashrc"]
        assert "/home/dev/.zshrc" not in env.files

    def test_missing_download_tool_is_named(self):
        tmux, strategies = self._source_build()
        env = FakeEnvironment(os_family="linux")
        for tool in ("gcc", "make", "tar"):
            env.add_binary(tool)

        result = resolve(tmux, strategies, runner=MockRunner(), env=env)

        assert result.failure == FailureKind.UNSUPPORTED_PLATFORM
        assert result.message == "no applicable strategy: none of curl, wget found"

    def test_wget_is_enough_to_download(self):
        tmux, strategies = self._source_build()
        env = FakeEnvironment(os_family="linux")
        for tool in ("gcc", "make", "tar", "wget"):
            env.add_binary(tool)
        runner = MockRunner()
        runner.set_response(
            "rm -rf ~/.local/src/tmux",
            effect=_installs(env, "tmux", "/home/dev/.local/bin"),
        )

        result = resolve(tmux, strategies, runner=runner, env=env)

        assert result.outcome == Outcome.SUCCESS
        download = runner.calls_matching("set -o pipefail")[0]
        assert "wget -qO-" in download


# ── Git completion ───────────────────────────────────────────────────


class TestGitCompletion:
    def test_brew_install_on_apple_silicon(self):
        target = builtin_catalog().get("git-completion")
        env = FakeEnvironment(os_family="macos")
        env.add_binary("brew", "/opt/homebrew/bin")
        runner = MockRunner()
        runner.set_response(
            "brew install bash-completion git",
            effect=lambda: env.write_text(
                Path("/opt/homebrew/etc/bash_completion.d/git-completion.bash"), "# git"
            ),
        )

        result = resolve(target, runner=runner, env=env)

        assert result.outcome == Outcome.SUCCESS
        assert result.strategy == "brew"
        assert runner.calls_matching("curl") == []

    def test_intel_homebrew_prefix_counts_as_present(self):
        target = builtin_catalog().get("git-completion")
        env = FakeEnvironment(os_family="macos")
        env.write_text(Path("/usr/local/etc/bash_completion.d/git-completion.bash"), "# git")
        runner = MockRunner()

        result = resolve(target, runner=runner, env=env)

        assert result.outcome == Outcome.ALREADY_PRESENT
        assert runner.call_log == []

    def test_linux_package_managers_in_order(self):
        target = builtin_catalog().get("git-completion")
        names = [s.name for s in target.strategies]
        assert names.index("apt") < names.index("yum") < names.index("dnf")


# ── PATH reconciliation ──────────────────────────────────────────────


class TestPathReconciliation:
    def _script_target(self):
        return _target([
            Strategy(
                name="script",
                kind="script",
                steps=["curl -fsSL https://example.com/install.sh | bash"],
                bin_dir="~/.local/bin",
            ),
        ])

    def test_repeated_runs_never_duplicate_export(self):
        shell_files = [ShellFile(path="~/.bashrc", create=True)]
        target = self._script_target()

        files = {"/home/dev/.bashrc": "# rc\n"}

        # Each run starts a fresh shell: same startup files, original PATH.
        for _ in range(3):
            env = FakeEnvironment()
            env.files = files
            runner = MockRunner()
            runner.set_response("curl", effect=_installs(env, "tool", "/home/dev/.local/bin"))
            resolve(target, runner=runner, env=env, shell_files=shell_files)

        lines = files["/home/dev/.bashrc"].splitlines()
        assert lines.count('export PATH="/home/dev/.local/bin:$PATH"') == 1

    def test_already_present_outside_path_is_reconciled(self):
        env = FakeEnvironment()
        env.add_binary("tool", "/home/dev/.local/bin")
        runner = MockRunner()
        shell_files = [ShellFile(path="~/.bashrc", create=True)]

        result = resolve(self._script_target(), runner=runner, env=env, shell_files=shell_files)

        assert result.outcome == Outcome.ALREADY_PRESENT
        assert result.path_updates == ["/home/dev/.bashrc"]
        assert runner.calls_matching("curl") == []

    def test_binary_on_path_needs_no_reconciliation(self):
        env = FakeEnvironment(files={"/home/dev/.bashrc": ""})
        runner = MockRunner()
        runner.set_response("a install", effect=_installs(env))

        result = resolve(_target([_strategy("a")]), runner=runner, env=env)

        assert result.path_updates == []
        assert env.files["/home/dev/.bashrc"] == ""


# ── Strategy execution ───────────────────────────────────────────────


class _RecordingRunner(MockRunner):
    def __init__(self):
        super().__init__()
        self.timeouts = []
        self.cwds = []

    def run(self, command, *, cwd=None, timeout=None):
        self.timeouts.append(timeout)
        self.cwds.append(cwd)
        return super().run(command, cwd=cwd, timeout=timeout)


class TestRunStrategy:
    def test_privileged_steps_use_sudo(self):
        env = FakeEnvironment()
        env.add_binary("sudo")
        runner = MockRunner()
        strategy = Strategy(
            name="apt",
            steps=[["apt-get", "install", "-y", "tmux"], "echo done > /etc/x"],
            privileged=True,
        )

        run_strategy(strategy, runner, env)

        assert runner.call_log == [
            "sudo apt-get install -y tmux",
            "sudo bash -c 'echo done > /etc/x'",
        ]

    def test_root_runs_without_sudo(self):
        env = FakeEnvironment(is_root=True)
        runner = MockRunner()
        strategy = Strategy(name="apt", steps=[["apt-get", "install", "-y", "tmux"]], privileged=True)

        run_strategy(strategy, runner, env)

        assert runner.call_log == ["apt-get install -y tmux"]

    def test_stops_at_first_failing_step(self):
        runner = MockRunner()
        runner.set_failure("two", stderr="bad")
        strategy = Strategy(name="s", steps=[["one"], ["two"], ["three"]])

        result = run_strategy(strategy, runner, FakeEnvironment())

        assert not result.ok
        assert result.error == "step 2/3 exit 1: bad"
        assert runner.call_log == ["one", "two"]

    def test_default_timeout_applies(self):
        runner = _RecordingRunner()
        strategy = Strategy(name="s", steps=[["one"]])

        run_strategy(strategy, runner, FakeEnvironment(), default_timeout=900)

        assert runner.timeouts == [900]

    def test_strategy_timeout_wins(self):
        runner = _RecordingRunner()
        strategy = Strategy(name="s", steps=[["one"]], timeout=30)

        run_strategy(strategy, runner, FakeEnvironment(), default_timeout=900)

        assert runner.timeouts == [30]

    def test_cwd_is_expanded(self):
        runner = _RecordingRunner()
        strategy = Strategy(name="s", steps=[["make"]], cwd="~/src")

        run_strategy(strategy, runner, FakeEnvironment())

        assert runner.cwds == ["/home/dev/src"]

    def test_no_steps_is_failure(self):
        result = run_strategy(Strategy(name="empty"), MockRunner(), FakeEnvironment())
        assert not result.ok
        assert result.error == "strategy has no steps"


# ── Events ───────────────────────────────────────────────────────────


class TestEvents:
    def test_event_sequence(self):
        env = FakeEnvironment()
        env.add_binary("b")
        runner = MockRunner()
        runner.set_failure("b install")
        runner.set_response("c install", effect=_installs(env))
        events = []
        target = _target([
            _strategy("a", os=["macos"]),
            _strategy("b", commands=["b"]),
            _strategy("c"),
        ])

        resolve(target, runner=runner, env=env, on_event=lambda e, d: events.append(e))

        assert events == [
            "target:start",
            "detect:missing",
            "strategy:skip",
            "strategy:start",
            "strategy:failed",
            "strategy:start",
            "strategy:success",
            "target:done",
        ]

    def test_already_present_events(self):
        env = FakeEnvironment()
        env.add_binary("tool")
        events = []

        resolve(_target([]), runner=MockRunner(), env=env, on_event=lambda e, d: events.append(e))

        assert events == ["target:start", "detect:present", "target:done"]


# ── Dry run ──────────────────────────────────────────────────────────


class TestPlanResolution:
    def test_plan_runs_no_actions(self):
        env = FakeEnvironment()
        env.add_binary("b")
        runner = MockRunner()
        target = _target([_strategy("a", os=["macos"]), _strategy("b", commands=["b"])])

        plan = plan_resolution(target, runner=runner, env=env)

        assert not plan.already_present
        assert plan.chosen == "b"
        assert plan.strategies[0].reason == "requires macos (this is linux)"
        assert runner.call_count == 0

    def test_plan_to_dict(self):
        env = FakeEnvironment()
        env.add_binary("tool")
        plan = plan_resolution(_target([_strategy("a")]), runner=MockRunner(), env=env)
        d = plan.to_dict()
        assert d["already_present"] is True
        assert d["chosen"] == "a"
        assert d["strategies"] == [{"name": "a", "applicable": True, "reason": ""}]
