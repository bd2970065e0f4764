# process.py
# Owns one live child process and its pipes while the pool tracks it.
# Nothing outside this module touches subprocess.Popen for job processes.

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Dict, Optional, IO

from .model import Job

TAIL_BYTES = 4000
_READ_CHUNK = 65536


@dataclass
class SpawnError(Exception):
    """The OS refused to create the child process for a job."""
    job: str
    message: str

    def __str__(self) -> str:
        return f"spawn failed for {self.job}: {self.message}"


class ProcessHandle:
    """
    Exclusive-ownership wrapper around one child process.

    Lifecycle:
      spawn()   -> handle with stdin closed, stdout/stderr non-blocking
      poll()    -> None while running, exit code once exited
      release() -> closes every stream and reaps the process (idempotent)

    Output is never streamed. poll() drains whatever is readable so a chatty
    child can't fill the pipe buffer and block forever; only a short tail is
    kept for failure reports.
    """

    def __init__(self, job: Job, proc: subprocess.Popen):
        self.job = job
        self._proc = proc
        self._streams: list[IO[bytes]] = [s for s in (proc.stdout, proc.stderr) if s is not None]
        self._tail = bytearray()
        self._exit_code: Optional[int] = None
        self._released = False

        for stream in self._streams:
            os.set_blocking(stream.fileno(), False)

    @classmethod
    def spawn(
        cls,
        job: Job,
        *,
        cwd: str | None = None,
        env: Optional[Dict[str, str]] = None,
        shell: str = "/bin/sh",
    ) -> "ProcessHandle":
        """
        Start job.command through the shell.

        Raises:
            SpawnError: if the process could not be created
        """
        try:
            proc = subprocess.Popen(
                [shell, "-c", job.command],
                cwd=cwd,
                env=env,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            raise SpawnError(job=job.name, message=str(e)) from e

        # Children that read stdin get EOF instead of hanging.
        if proc.stdin is not None:
            proc.stdin.close()

        return cls(job, proc)

    @property
    def name(self) -> str:
        return self.job.name

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def released(self) -> bool:
        return self._released

    @property
    def exit_code(self) -> Optional[int]:
        return self._exit_code

    @property
    def tail(self) -> str:
        return self._tail.decode("utf-8", errors="replace")

    def _drain(self) -> None:
        for stream in self._streams:
            if stream.closed:
                continue
            fd = stream.fileno()
            while True:
                try:
                    chunk = os.read(fd, _READ_CHUNK)
                except OSError:  # BlockingIOError: nothing readable right now
                    break
                if not chunk:
                    break
                self._tail.extend(chunk)
                if len(self._tail) > TAIL_BYTES:
                    del self._tail[:-TAIL_BYTES]

    def poll(self) -> Optional[int]:
        """Non-blocking status check. Returns the exit code once the child has exited."""
        if self._released or self._exit_code is not None:
            return self._exit_code

        self._drain()
        code = self._proc.poll()
        if code is not None:
            # pick up whatever the child wrote right before exiting
            self._drain()
            self._exit_code = code
        return code

    def release(self) -> None:
        """Close all owned streams and reap the process. Safe to call more than once."""
        if self._released:
            return
        self._released = True

        for stream in self._streams:
            try:
                stream.close()
            except OSError:
                pass

        # Reap only if it already exited; the pool never waits on or kills a
        # running child. A still-running child is left to subprocess's own
        # zombie cleanup.
        code = self._proc.poll()
        if code is not None and self._exit_code is None:
            self._exit_code = code

    def __enter__(self) -> "ProcessHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"<ProcessHandle {self.name!r} pid={self._proc.pid} {state}>"
