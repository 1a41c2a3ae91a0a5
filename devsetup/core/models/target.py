"""
InstallTarget and Strategy models — the static install catalog.

A target names a tool, how to detect it, and the ordered strategies
that can install it. Strategies are plain data: a precondition, a
list of command steps, and optional hints about where the binary
lands. New platforms are added by appending strategies, not by
editing control flow.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

# A step is either an argv list (run directly) or a shell string
# (run through ``bash -c`` so pipes and redirects work).
Step = list[str] | str

StrategyKind = Literal[
    "package-manager",
    "script",
    "language-pm",
    "source-build",
    "download",
]


class DetectionSpec(BaseModel):
    """How to tell whether a target is present and which version it is."""

    command: list[str] = Field(default_factory=list)
    version_pattern: str = r"(\d+\.\d+(?:\.\d+)?)"
    files: list[str] = Field(default_factory=list)
    search_paths: list[str] = Field(default_factory=list)

    @property
    def binary(self) -> str | None:
        """Executable name probed by this detection, if command-based."""
        return self.command[0] if self.command else None


class Precondition(BaseModel):
    """Requirements that make a strategy applicable on this machine.

    An empty precondition always holds.
    """

    os: list[str] = Field(default_factory=list)            # allowed OS families
    commands: list[str] = Field(default_factory=list)      # all must be on PATH
    any_commands: list[str] = Field(default_factory=list)  # one must be on PATH
    privileged: bool = False                               # root or sudo needed
    reason: str = ""                                       # text when `commands` are missing


class Strategy(BaseModel):
    """One concrete way of installing a target."""

    name: str
    kind: StrategyKind = "package-manager"
    description: str = ""
    requires: Precondition = Field(default_factory=Precondition)
    steps: list[Step] = Field(default_factory=list)
    privileged: bool = False
    cwd: str | None = None
    timeout: int | None = None
    bin_dir: str | None = None

    @field_validator("steps")
    @classmethod
    def _steps_not_empty(cls, steps: list[Step]) -> list[Step]:
        for step in steps:
            if not step:
                raise ValueError("strategy steps must not be empty")
        return steps


class InstallTarget(BaseModel):
    """A tool to install, with its detection and fallback strategies."""

    name: str
    description: str = ""
    detection: DetectionSpec = Field(default_factory=DetectionSpec)
    min_version: str | None = None
    strategies: list[Strategy] = Field(default_factory=list)
    critical: bool = True
    default: bool = True
    configure: list[str] = Field(default_factory=list)
    configure_always: bool = False
    update_command: list[str] | None = None
    hint: str = ""

    def get_strategy(self, name: str) -> Strategy | None:
        """Look up a strategy by name."""
        for strategy in self.strategies:
            if strategy.name == name:
                return strategy
        return None

    @property
    def search_dirs(self) -> list[str]:
        """Detection search paths plus every strategy's install directory."""
        dirs = list(self.detection.search_paths)
        for strategy in self.strategies:
            if strategy.bin_dir and strategy.bin_dir not in dirs:
                dirs.append(strategy.bin_dir)
        return dirs
