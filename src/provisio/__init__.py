from .dsl import job, sh, wf
from .pool import ProcessPool, run_parallel_jobs
from .process import ProcessHandle, SpawnError
from .model import Job, Step, Outcome, PoolResult

__all__ = [
    "job", "sh", "wf",
    "ProcessPool", "run_parallel_jobs",
    "ProcessHandle", "SpawnError",
    "Job", "Step", "Outcome", "PoolResult",
]
