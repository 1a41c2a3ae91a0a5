"""
devsetup — CLI entrypoint.

Usage:
    devsetup                 # full setup (asks for confirmation)
    devsetup all --yes
    devsetup install tmux claude
    devsetup tmux
    devsetup list
    devsetup plan tmux
    devsetup setup-claude
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from devsetup import __version__
from devsetup.core.config.loader import ConfigError, discover_catalog
from devsetup.core.data.catalog import TARGETS
from devsetup.core.observability.logging_config import resolve_level, setup_logging

if TYPE_CHECKING:
    from devsetup.core.use_cases.install import InstallRunResult

_STATUS_STYLE = {
    "ok": ("✓", "green"),
    "warning": ("⚠️ ", "yellow"),
    "failed": ("✗", "red"),
    "not_run": ("⊘", "white"),
}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to devsetup.yml (default: auto-detect).",
)
@click.option(
    "--dotfiles-dir",
    type=click.Path(file_okay=False),
    envvar="DEVSETUP_DOTFILES_DIR",
    default=None,
    help="Directory holding config/ templates (default: auto-detect).",
)
@click.option(
    "--yes",
    "-y",
    "assume_yes",
    is_flag=True,
    envvar="DEVSETUP_ASSUME_YES",
    help="Do not ask for confirmation.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    dotfiles_dir: str | None,
    assume_yes: bool,
) -> None:
    """devsetup — install and configure a development environment.

    Without a command, runs the full setup (same as ``devsetup all``).
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["dotfiles_dir"] = dotfiles_dir
    ctx.obj["assume_yes"] = assume_yes
    # Tests inject "runner", "env" and "work_dir" through obj=...
    ctx.obj.setdefault("work_dir", Path.cwd())

    # ── Logging setup (once, at process start) ──────────────────
    level = resolve_level(
        debug=debug,
        verbose=verbose,
        quiet=quiet,
        env_level=os.environ.get("DEVSETUP_LOG_LEVEL"),
    )
    setup_logging(
        level=level,
        log_file=os.environ.get("DEVSETUP_LOG_FILE"),
        log_file_level=os.environ.get("DEVSETUP_LOG_FILE_LEVEL"),
        show_commands=debug,
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(run_all, assume_yes=assume_yes)


# ── Output helpers ──────────────────────────────────────────────


def _print_event(event: str, data: dict[str, Any]) -> None:
    """Print resolver and configurator progress as it happens."""
    target = data.get("target", "")

    if event == "target:start":
        click.secho(f"\n▶ {target}", fg="cyan", bold=True)
    elif event == "detect:present":
        click.secho(f"   ✓ already installed ({data['detection'].describe()})", fg="green")
    elif event == "detect:missing":
        click.echo(f"   • {data['detection'].describe()}")
    elif event == "strategy:skip":
        click.secho(f"   ⊘ {data['strategy']}: {data['reason']}", fg="yellow")
    elif event == "strategy:start":
        click.echo(f"   → trying {data['strategy']}...")
    elif event in ("strategy:failed", "strategy:postcheck_failed"):
        click.secho(f"   ✗ {data['strategy']}: {data['reason']}", fg="red")
    elif event == "strategy:success":
        click.secho(f"   ✓ installed via {data['strategy']}", fg="green")
    elif event == "path:updated":
        files = ", ".join(data["files"]) or "current session only"
        click.secho(f"   ➕ {data['directory']} added to PATH ({files})", fg="cyan")
    elif event == "target:updated":
        click.echo(f"   ↻ {data['message']}")
    elif event == "target:done":
        result = data["result"]
        if result.failed:
            click.secho(f"   ❌ {result.message}", fg="red")
    elif event == "configure:done":
        step = data["step"]
        click.echo(f"   ⚙  {step.message}")
        for warning in step.warnings:
            click.secho(f"   ⚠️  {warning}", fg="yellow")
    elif event == "configure:failed":
        step = data["step"]
        click.secho(f"   ⚠️  {step.message}", fg="yellow")
        for warning in step.warnings:
            click.secho(f"   ⚠️  {warning}", fg="yellow")


def _print_report(result: InstallRunResult) -> None:
    """Summary after an install run."""
    report = result.report
    assert report is not None
    catalog = result.catalog

    if report.missing_prerequisites:
        click.echo()
        click.secho("❌ Missing prerequisites:", fg="red", bold=True)
        for check in report.missing_prerequisites:
            click.echo(f"   • {check.name}: {check.detail}")
            if check.hint:
                click.echo(f"     {check.hint}")
        click.echo()
        click.echo("   Install the missing prerequisites and run again.")
        click.echo()
        return

    click.echo()
    click.secho("📋 Summary", fg="cyan", bold=True)
    for target in report.targets:
        icon, color = _STATUS_STYLE.get(target.status, ("?", "white"))
        detail = target.result.message if target.result else "not run"
        click.secho(f"   {icon} {target.name}", fg=color, nl=False)
        click.echo(f"  {detail}")
        if target.failed and catalog:
            entry = catalog.get(target.name)
            if entry and entry.hint:
                click.echo(f"     💡 {entry.hint}")

    if report.aborted_at:
        click.echo()
        click.secho(
            f"   Stopped: {report.aborted_at} is required and could not be installed.",
            fg="red",
        )

    if any(t.result and t.result.path_updates for t in report.targets):
        click.echo()
        click.echo("   Restart your shell (or source your shell rc file) to pick up PATH changes.")

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(
        report.status, "white"
    )
    click.secho(
        f"   Result: {report.succeeded}/{len(report.targets)} ready",
        fg=status_color,
        bold=True,
    )
    click.echo()


def _check_target_names(ctx: click.Context, names: list[str]) -> None:
    """Reject unknown target names as a usage error (exit 2)."""
    try:
        catalog = discover_catalog(ctx.obj.get("config_path"), start_dir=ctx.obj["work_dir"])
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    unknown = [n for n in names if catalog.get(n) is None]
    if unknown:
        raise click.BadParameter(
            f"unknown target(s): {', '.join(unknown)} "
            f"(choose from {', '.join(catalog.names)})",
            ctx=ctx,
            param_hint="TARGET",
        )


def _run_install(
    ctx: click.Context,
    names: list[str] | None,
    as_json: bool,
    update: bool,
    skip_configure: bool = False,
) -> None:
    from devsetup.core.use_cases.install import install

    quiet = ctx.obj.get("quiet", False)
    result = install(
        names,
        config_path=ctx.obj.get("config_path"),
        dotfiles_dir=ctx.obj.get("dotfiles_dir"),
        work_dir=ctx.obj["work_dir"],
        update_existing=update,
        configure=not skip_configure,
        runner=ctx.obj.get("runner"),
        env=ctx.obj.get("env"),
        on_event=None if (as_json or quiet) else _print_event,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    _print_report(result)
    sys.exit(result.exit_code)


_json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."
)
_update_option = click.option(
    "--update", is_flag=True, help="Update tools that are already installed."
)
_skip_configure_option = click.option(
    "--skip-configure", is_flag=True, help="Install only; do not apply configuration."
)


# ── Commands ────────────────────────────────────────────────────


@cli.command("all")
@_json_option
@_update_option
@_skip_configure_option
@click.option("--yes", "-y", "assume_yes", is_flag=True, envvar="DEVSETUP_ASSUME_YES",
              help="Do not ask for confirmation.")
@click.pass_context
def run_all(
    ctx: click.Context,
    as_json: bool = False,
    update: bool = False,
    skip_configure: bool = False,
    assume_yes: bool = False,
) -> None:
    """Run the full setup: prerequisites, then every default target."""
    assume_yes = assume_yes or ctx.obj.get("assume_yes", False)

    if not assume_yes:
        try:
            catalog = discover_catalog(ctx.obj.get("config_path"), start_dir=ctx.obj["work_dir"])
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)
        names = ", ".join(t.name for t in catalog.default_targets)
        click.confirm(f"This will install and configure: {names}. Continue?",
                      default=True, abort=True, err=True)

    _run_install(ctx, None, as_json, update, skip_configure)


@cli.command("install")
@click.argument("targets", nargs=-1, required=True)
@_json_option
@_update_option
@_skip_configure_option
@click.pass_context
def install_cmd(
    ctx: click.Context,
    targets: tuple[str, ...],
    as_json: bool,
    update: bool,
    skip_configure: bool,
) -> None:
    """Install specific targets, in the order given.

    Examples:

        devsetup install tmux

        devsetup install claude opencode --update
    """
    names = list(targets)
    _check_target_names(ctx, names)
    _run_install(ctx, names, as_json, update, skip_configure)


def _shortcut(name: str, description: str) -> click.Command:
    """``devsetup <target>`` as a shorthand for ``devsetup install <target>``."""

    @_json_option
    @_update_option
    @_skip_configure_option
    @click.pass_context
    def command(ctx: click.Context, as_json: bool, update: bool, skip_configure: bool) -> None:
        _run_install(ctx, [name], as_json, update, skip_configure)

    return click.command(name, help=f"Install {description}.")(command)


for _target in TARGETS:
    cli.add_command(_shortcut(_target["name"], _target["description"]))


@cli.command("list")
@_json_option
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show every target and whether it is installed."""
    from devsetup.core.use_cases.status import get_status

    result = get_status(
        config_path=ctx.obj.get("config_path"),
        work_dir=ctx.obj["work_dir"],
        runner=ctx.obj.get("runner"),
        env=ctx.obj.get("env"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"\n🧰 Targets ({result.os_family})", fg="cyan", bold=True)
    if result.config_path:
        click.echo(f"   Config: {result.config_path}")
    click.echo()

    for status in result.targets:
        flags = []
        if not status.critical:
            flags.append("optional")
        if not status.default:
            flags.append("not in full run")
        label = f" [{', '.join(flags)}]" if flags else ""
        if status.detection.usable:
            click.secho(f"   ✓ {status.name}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {status.name}", fg="red", nl=False)
        click.echo(f"{label}  {status.detection.describe()}")
        if ctx.obj.get("verbose") and status.description:
            click.echo(f"     {status.description}")

    click.echo()
    click.echo(f"   {result.installed_count}/{len(result.targets)} installed")
    click.echo()


@cli.command("plan")
@click.argument("targets", nargs=-1)
@_json_option
@click.pass_context
def plan_cmd(ctx: click.Context, targets: tuple[str, ...], as_json: bool) -> None:
    """Show which strategy each target would use (dry run).

    Runs detection and checks preconditions; installs nothing.
    """
    from devsetup.core.use_cases.status import plan_targets

    names = list(targets) or None
    if names:
        _check_target_names(ctx, names)

    result = plan_targets(
        names,
        config_path=ctx.obj.get("config_path"),
        work_dir=ctx.obj["work_dir"],
        runner=ctx.obj.get("runner"),
        env=ctx.obj.get("env"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"\n🔍 Plan ({result.os_family})", fg="cyan", bold=True)
    for plan in result.plans:
        click.echo()
        if plan.already_present:
            click.secho(f"   ✓ {plan.target}", fg="green", nl=False)
            click.echo(f"  {plan.detection.describe()}, nothing to do")
            continue

        chosen = plan.chosen
        if chosen:
            click.secho(f"   → {plan.target}", fg="cyan", nl=False)
            click.echo(f"  would try {chosen} first")
        else:
            click.secho(f"   ✗ {plan.target}", fg="red", nl=False)
            click.echo("  no applicable strategy on this machine")

        for strategy in plan.strategies:
            if strategy.applicable:
                click.echo(f"     • {strategy.name}")
            else:
                click.secho(f"     ⊘ {strategy.name}: {strategy.reason}", fg="yellow")
    click.echo()


@cli.command("setup-claude")
@_json_option
@click.pass_context
def setup_claude_cmd(ctx: click.Context, as_json: bool) -> None:
    """Mirror .github/copilot-instructions.md to CLAUDE.md (git-ignored)."""
    from devsetup.core.use_cases.install import setup_claude

    result = setup_claude(
        config_path=ctx.obj.get("config_path"),
        work_dir=ctx.obj["work_dir"],
        runner=ctx.obj.get("runner"),
        env=ctx.obj.get("env"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.step is not None
    click.secho(f"✅ {result.step.message}", fg="green")
    for path in result.step.changed_files:
        click.echo(f"   • {path}")


if __name__ == "__main__":
    cli()
