# src/provisio/dsl.py
from __future__ import annotations

from typing import List, Optional

from .model import Step, Job


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def sh(name: str, cmd: str, *, cwd: str | None = None) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd)


# ---------------------------------------------------------------------
# Functional Job helper
# ---------------------------------------------------------------------

def job(
    name: str,
    *steps: Step,  # allow: job("x", sh(...), sh(...))
    steps_list: Optional[List[Step]] = None,  # allow: job("x", steps_list=[...])
) -> Job:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(list(steps_list))
    steps_final.extend(list(steps))

    if not steps_final:
        raise ValueError(f"job({name!r}) must have at least one step")

    return Job(name=name, steps=tuple(steps_final))


def wf(*jobs: Job) -> List[Job]:
    """
    Job list helper, so ad-hoc batches read the same as compiled ones:

        from provisio import wf, job, sh, run_parallel_jobs

        run_parallel_jobs(wf(
            job("a", sh("fetch", "git clone ...")),
            job("b", sh("fetch", "git clone ...")),
        ), 4)
    """
    return list(jobs)
