# pool.py
from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .model import Job, JobState, Outcome, PoolResult, Step
from .process import ProcessHandle, SpawnError
from .ui.console import Console, get_console

DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_POLL_INTERVAL = 0.1  # seconds

JobSource = Union[Iterable[Job], Mapping[str, Union[str, Sequence[str]]]]
SpawnFn = Callable[..., ProcessHandle]


# ----------------------------------------------------------------------
# Input normalization
# ----------------------------------------------------------------------

def jobs_from_mapping(mapping: Mapping[str, Union[str, Sequence[str]]]) -> List[Job]:
    """
    Turn {name: command} or {name: [step, step, ...]} into Jobs, keeping
    the mapping's insertion order.
    """
    jobs: List[Job] = []
    for name, value in mapping.items():
        if isinstance(value, str):
            runs = [value]
        else:
            runs = list(value)
        steps = [Step(name=f"step {i + 1}", run=run) for i, run in enumerate(runs)]
        jobs.append(Job(name=name, steps=tuple(steps)))
    return jobs


def _normalize(jobs: JobSource) -> List[Job]:
    if isinstance(jobs, Mapping):
        job_list = jobs_from_mapping(jobs)
    else:
        job_list = list(jobs)

    seen: set[str] = set()
    for j in job_list:
        if not isinstance(j, Job):
            raise TypeError(f"Expected Job, got {type(j).__name__}")
        if j.name in seen:
            raise ValueError(f"Duplicate job name: {j.name}")
        seen.add(j.name)
    return job_list


# ----------------------------------------------------------------------
# Scheduler
# ----------------------------------------------------------------------

class ProcessPool:
    """
    Runs independent jobs as OS processes, at most `max_concurrency` at a time.

    Single control thread. Each pass of the loop:
      1. admits queued jobs (FIFO) until the running set is full
      2. polls every running handle without blocking and reaps the exited ones
      3. sleeps `poll_interval` if nothing was reaped

    Every job name lives in exactly one of: queue, running, result.outcomes.
    """

    def __init__(
        self,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        *,
        console: Optional[Console] = None,
        spawn: SpawnFn = ProcessHandle.spawn,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        cwd: str | None = None,
        env: Optional[Dict[str, str]] = None,
    ):
        if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int):
            raise TypeError("max_concurrency must be an int")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")

        self.max_concurrency = max_concurrency
        self.console = console or get_console()
        self.poll_interval = poll_interval
        self._spawn = spawn
        self._sleep = sleep
        self._cwd = cwd
        self._env = env

        self.queue: Deque[Job] = deque()
        self.running: Dict[str, ProcessHandle] = {}
        self.result = PoolResult()

    # ---- introspection ----

    def state_of(self, name: str) -> Optional[JobState]:
        if name in self.running:
            return JobState.RUNNING
        if any(j.name == name for j in self.queue):
            return JobState.QUEUED
        if any(o.job == name for o in self.result.outcomes):
            return JobState.FINISHED
        return None

    # ---- loop phases ----

    def _admit(self) -> None:
        while len(self.running) < self.max_concurrency and self.queue:
            job = self.queue.popleft()
            try:
                handle = self._spawn(job, cwd=self._cwd, env=self._env)
            except SpawnError as e:
                self.console.print_spawn_failed(job.name, e.message)
                self.result.record(Outcome(job=job.name, spawn_error=e.message))
                continue

            self.running[job.name] = handle
            self.console.print_job_start(job.name)

        if len(self.running) > self.result.max_running:
            self.result.max_running = len(self.running)

    def _reap(self) -> int:
        finished: List[str] = []
        for name in list(self.running):
            handle = self.running[name]
            code = handle.poll()
            if code is None:
                continue

            handle.release()
            outcome = Outcome(job=name, exit_code=code, tail=handle.tail)
            self.result.record(outcome)
            if code != 0:
                self.console.print_job_failed(name, code, outcome.tail)
            else:
                self.console.print_job_done(name)
            finished.append(name)

        for name in finished:
            del self.running[name]
        return len(finished)

    def _release_all(self) -> None:
        for handle in self.running.values():
            handle.release()

    # ---- public API ----

    def run(self, jobs: JobSource) -> PoolResult:
        """
        Run every job to completion and return the outcome log.

        Never raises for job failures; PoolResult.ok is the aggregate.
        """
        if self.queue or self.running:
            raise RuntimeError("ProcessPool.run() is already in progress")

        self.queue.extend(_normalize(jobs))
        self.result = PoolResult()

        try:
            while self.queue or self.running:
                self._admit()
                reaped = self._reap()
                if self.running and not reaped:
                    self._sleep(self.poll_interval)
        finally:
            # interrupted (e.g. KeyboardInterrupt): don't leak pipes
            self._release_all()
            self.running.clear()
            self.queue.clear()

        return self.result


def run_parallel_jobs(
    jobs: JobSource,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    **kwargs,
) -> PoolResult:
    """Convenience wrapper: ProcessPool(max_concurrency, **kwargs).run(jobs)."""
    return ProcessPool(max_concurrency, **kwargs).run(jobs)
