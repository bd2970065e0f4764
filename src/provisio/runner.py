# runner.py
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from . import settings as env_settings
from .compiler import Plan, Settings, compile_plan
from .composer import install_packages
from .config import load_contents
from .model import PoolResult
from .pool import ProcessPool
from .process import ProcessHandle
from .ui.console import Console, get_console

# config file ---> plan ---> composer batch (blocking) ---> process pool


@dataclass
class RunSummary:
    """Aggregate result of one install: composer batch + every git job."""
    plan: Plan
    composer_exit_code: Optional[int] = None  # None: not run
    pool: PoolResult = field(default_factory=PoolResult)

    @property
    def composer_ok(self) -> bool:
        return self.composer_exit_code in (None, 0)

    @property
    def ok(self) -> bool:
        return self.composer_ok and self.pool.ok

    def results(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        if self.plan.composer_packages:
            if self.composer_exit_code is None:
                out["composer"] = "skipped"
            else:
                out["composer"] = "ok" if self.composer_ok else "failed"
        out.update(self.pool.statuses())
        return out

    def failed(self) -> List[str]:
        return [name for name, status in self.results().items() if status in ("failed", "spawn-failed")]


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def default_settings() -> Settings:
    return Settings(
        home=env_settings.MW_HOME,
        version=env_settings.MW_VERSION,
        volume=env_settings.MW_VOLUME,
        origin_files=env_settings.MW_ORIGIN_FILES,
        patch_dir=env_settings.PATCH_DIR,
    )


def build_plan(source: str, settings: Settings) -> Plan:
    """Resolve the inheritance chain of `source` and compile it."""
    return compile_plan(load_contents(source), settings)


def install(
    source: str,
    *,
    settings: Optional[Settings] = None,
    max_jobs: int = env_settings.MAX_JOBS,
    poll_interval: float = env_settings.POLL_INTERVAL,
    skip_composer: bool = False,
    console: Optional[Console] = None,
    spawn: Callable[..., ProcessHandle] = ProcessHandle.spawn,
) -> RunSummary:
    """
    Install everything described by `source`.

    Job failures never raise; check RunSummary.ok. Config errors
    (ConfigError, ValueError) do raise, before anything runs.
    """
    console = console or get_console()
    settings = settings or default_settings()

    # validate before doing any work
    pool = ProcessPool(max_jobs, console=console, spawn=spawn, poll_interval=poll_interval)

    console.print_info("Preparing installation list...")
    plan = build_plan(source, settings)
    for line in plan.skipped:
        console.print_debug(f"ignoring unknown additional step: {line}")

    console.print_run_started(
        source=source,
        job_count=len(plan.jobs),
        composer_count=len(plan.composer_packages),
        max_jobs=max_jobs,
    )

    summary = RunSummary(plan=plan)

    # ---- composer (blocking, before the pool) ----
    if plan.composer_packages and not skip_composer:
        summary.composer_exit_code = install_packages(
            plan.composer_packages, settings.home, console=console
        )

    # ---- git jobs (parallel) ----
    if plan.jobs:
        console.print_parallel_start(len(plan.jobs), max_jobs)
        summary.pool = pool.run(plan.jobs)

    return summary


if __name__ == "__main__":
    summary = install(sys.argv[1])
    # simple exit code behavior
    raise SystemExit(0 if summary.ok else 1)
