"""
Result models — what commands and resolutions hand back.

CommandResult is the runner's receipt: the runner never raises for a
failing command, it returns one of these. InstallResult is the
resolver's answer for a single target: exactly one outcome, plus the
trail of strategy attempts that led to it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Outcome(str, Enum):
    SUCCESS = "success"
    ALREADY_PRESENT = "already_present"
    FAILED = "failed"


class FailureKind(str, Enum):
    PRECONDITION_UNMET = "precondition_unmet"
    ACTION_FAILED = "action_failed"
    POST_CHECK_FAILED = "post_check_failed"
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    STRATEGIES_EXHAUSTED = "strategies_exhausted"


class CommandResult(BaseModel):
    """Outcome of running one external command."""

    command: str
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    timed_out: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the command exited zero."""
        return self.returncode == 0 and not self.timed_out and self.error is None

    @property
    def output(self) -> str:
        """stdout and stderr combined (some tools print versions to stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def describe_failure(self) -> str:
        """Short human-readable reason for a failed command."""
        if self.timed_out:
            return self.error or "timed out"
        if self.error:
            return self.error
        tail = self.stderr.strip().splitlines()[-1:] if self.stderr.strip() else []
        detail = f": {tail[0]}" if tail else ""
        return f"exit {self.returncode}{detail}"

    @classmethod
    def success(cls, command: str, stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a zero-exit result."""
        return cls(command=command, returncode=0, stdout=stdout, **kwargs)

    @classmethod
    def failure(
        cls,
        command: str,
        returncode: int = 1,
        stderr: str = "",
        **kwargs: Any,
    ) -> CommandResult:
        """Create a non-zero-exit result."""
        return cls(command=command, returncode=returncode, stderr=stderr, **kwargs)


class StrategyAttempt(BaseModel):
    """What happened when the resolver considered one strategy."""

    strategy: str
    failure: FailureKind | None = None   # None = this strategy won
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    def describe(self) -> str:
        label = "succeeded" if self.failure is None else {
            FailureKind.PRECONDITION_UNMET: "skipped",
            FailureKind.ACTION_FAILED: "failed",
            FailureKind.POST_CHECK_FAILED: "post-check failed",
        }.get(self.failure, self.failure.value)
        return f"{self.strategy}: {label}" + (f" ({self.message})" if self.message else "")


class InstallResult(BaseModel):
    """Terminal result of resolving one target.

    Exactly one of SUCCESS, ALREADY_PRESENT or FAILED. ``failure``
    distinguishes a platform with no applicable strategy from a run
    where real attempts were made and all failed.
    """

    target: str
    outcome: Outcome
    strategy: str | None = None
    failure: FailureKind | None = None
    message: str = ""
    version: str | None = None
    binary_path: str | None = None
    attempts: list[StrategyAttempt] = Field(default_factory=list)
    path_updates: list[str] = Field(default_factory=list)

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Whether the target is usable after resolution."""
        return self.outcome != Outcome.FAILED

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAILED

    @property
    def attempted(self) -> list[StrategyAttempt]:
        """Attempts whose precondition held (actions actually ran)."""
        return [
            a for a in self.attempts
            if a.failure != FailureKind.PRECONDITION_UNMET
        ]

    @classmethod
    def already_present(
        cls,
        target: str,
        version: str | None = None,
        **kwargs: Any,
    ) -> InstallResult:
        label = f" ({version})" if version else ""
        return cls(
            target=target,
            outcome=Outcome.ALREADY_PRESENT,
            version=version,
            message=f"{target} is already installed{label}",
            **kwargs,
        )

    @classmethod
    def success(
        cls,
        target: str,
        strategy: str,
        version: str | None = None,
        **kwargs: Any,
    ) -> InstallResult:
        label = f" {version}" if version else ""
        return cls(
            target=target,
            outcome=Outcome.SUCCESS,
            strategy=strategy,
            version=version,
            message=f"{target}{label} installed via {strategy}",
            **kwargs,
        )

    @classmethod
    def failure_result(
        cls,
        target: str,
        failure: FailureKind,
        message: str,
        **kwargs: Any,
    ) -> InstallResult:
        return cls(
            target=target,
            outcome=Outcome.FAILED,
            failure=failure,
            message=message,
            **kwargs,
        )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
