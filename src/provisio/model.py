# model.py
from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple


@dataclass(frozen=True)
class Step:
    """A single shell command inside a provisioning job."""
    name: str
    run: str
    cwd: str | None = None

    def render(self) -> str:
        if self.cwd is None:
            return self.run
        return f"cd {shlex.quote(self.cwd)} && {self.run}"


@dataclass(frozen=True)
class Job:
    """
    One independent unit of work: an ordered chain of steps run as a single
    OS process.

    The chain is joined with `&&`, so the shell itself stops at the first
    failing step. The pool never looks inside the command.
    """
    name: str
    steps: Tuple[Step, ...]

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Job name must be a non-empty string")
        if not self.steps:
            raise ValueError(f"Job '{self.name}' has no steps")
        # accept any sequence but store a tuple
        object.__setattr__(self, "steps", tuple(self.steps))

    @property
    def command(self) -> str:
        return " && ".join(step.render() for step in self.steps)


class JobState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class Outcome:
    """Terminal result for one job: an exit code or a spawn failure."""
    job: str
    exit_code: Optional[int] = None
    spawn_error: Optional[str] = None
    tail: str = ""  # last bytes of stdout+stderr, shown in debug mode

    @property
    def spawn_failed(self) -> bool:
        return self.spawn_error is not None

    @property
    def ok(self) -> bool:
        return not self.spawn_failed and self.exit_code == 0

    @property
    def status(self) -> str:
        if self.spawn_failed:
            return "spawn-failed"
        return "ok" if self.exit_code == 0 else "failed"


@dataclass
class PoolResult:
    """Append-only outcome log of one pool run."""
    outcomes: List[Outcome] = field(default_factory=list)
    max_running: int = 0

    def record(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failed(self) -> List[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    def by_job(self) -> dict[str, Outcome]:
        return {o.job: o for o in self.outcomes}

    def statuses(self) -> dict[str, str]:
        return {o.job: o.status for o in self.outcomes}
