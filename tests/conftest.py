from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest


# Ensure `import provisio` works when running `pytest` from repo root without installing.
SRC = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC))

from provisio.model import Job  # noqa: E402
from provisio.process import SpawnError  # noqa: E402
from provisio.ui.console import Console, set_console  # noqa: E402


class FakeHandle:
    """Stands in for ProcessHandle: exits with `code` after `ticks` polls."""

    def __init__(self, spawner: "FakeSpawner", job: Job, ticks: int, code: int):
        self.spawner = spawner
        self.job = job
        self.ticks = ticks
        self.code = code
        self.released = False
        self.polls_after_release = 0

    @property
    def name(self) -> str:
        return self.job.name

    @property
    def tail(self) -> str:
        return f"output of {self.job.name}\n"

    def poll(self) -> Optional[int]:
        if self.released:
            self.polls_after_release += 1
            return self.code
        self.ticks -= 1
        if self.ticks <= 0:
            self.spawner.finished.append(self.job.name)
            return self.code
        return None

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.spawner.live -= 1


class FakeSpawner:
    """
    Callable with ProcessHandle.spawn's signature that tracks how many
    handles are live at once.
    """

    def __init__(
        self,
        ticks: Optional[Dict[str, int]] = None,
        codes: Optional[Dict[str, int]] = None,
        fail: Optional[set] = None,
        default_ticks: int = 1,
    ):
        self.ticks = ticks or {}
        self.codes = codes or {}
        self.fail = fail or set()
        self.default_ticks = default_ticks
        self.live = 0
        self.peak = 0
        self.started: List[str] = []
        self.finished: List[str] = []
        self.handles: List[FakeHandle] = []

    def __call__(self, job: Job, *, cwd=None, env=None) -> FakeHandle:
        if job.name in self.fail:
            raise SpawnError(job=job.name, message="forced failure")
        self.live += 1
        self.peak = max(self.peak, self.live)
        self.started.append(job.name)
        handle = FakeHandle(
            self,
            job,
            ticks=self.ticks.get(job.name, self.default_ticks),
            code=self.codes.get(job.name, 0),
        )
        self.handles.append(handle)
        return handle


@pytest.fixture
def console() -> Console:
    c = Console(debug=False)
    set_console(c)
    return c


@pytest.fixture
def no_sleep():
    calls: List[float] = []

    def _sleep(seconds: float) -> None:
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep
