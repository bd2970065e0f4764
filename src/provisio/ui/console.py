"""Console output formatting utilities for provisio."""

from __future__ import annotations

import sys
from typing import Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
                   and the output tail of failed jobs
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        source: str,
        job_count: int,
        composer_count: int,
        max_jobs: int,
    ) -> None:
        """Print run start information."""
        print("\nINSTALL STARTED")
        print(f"Source: {source}")
        print(f"Composer packages: {composer_count}")
        print(f"Git jobs: {job_count}")
        print(f"Max parallel: {max_jobs}")
        print()

    def print_composer_batch(self, count: int) -> None:
        """Print composer batch start message."""
        print(f"Batch installing {count} composer packages...")

    def print_parallel_start(self, count: int, max_jobs: int) -> None:
        """Print parallel phase start message."""
        print(f"Installing {count} extensions/skins in parallel (max {max_jobs})...")

    def print_job_start(self, name: str) -> None:
        """Print job start message (debug only, interleaving is noisy)."""
        self.print_debug(f"[Started] {name}")

    def print_job_done(self, name: str) -> None:
        """Print job success message (debug only)."""
        self.print_debug(f"[Done] {name}")

    def print_spawn_failed(self, name: str, reason: Optional[str] = None) -> None:
        """Print a spawn failure for one job."""
        print(f" [Error] spawn failed for {name}")
        if reason and self.debug:
            print(f"Error details: {reason}")

    def print_job_failed(
        self,
        name: str,
        exit_code: int,
        tail: Optional[str] = None,
    ) -> None:
        """
        Print failure message for one job.

        Args:
            name: Job name
            exit_code: Exit code of the composite command
            tail: Optional last output of the job, shown in debug mode
        """
        print(f" [Failed] {name} (exit code: {exit_code})")
        if self.debug and tail:
            print(f"--- output tail: {name} ---")
            print(tail.rstrip())
            print("---")

    def print_plan(
        self,
        composer_packages: Sequence[str],
        jobs: Sequence,
        skipped: Sequence[str] = (),
    ) -> None:
        """Print what an install would do, without running it."""
        self.print_header("COMPOSER")
        if composer_packages:
            for pkg in composer_packages:
                print(f"  {pkg}")
        else:
            print("  (none)")

        self.print_header("JOBS")
        if not jobs:
            print("  (none)")
        for job in jobs:
            print(f"  {job.name}")
            for step in job.steps:
                print(f"    {step.name}: {step.render()}")

        if skipped:
            self.print_header("IGNORED STEPS")
            for line in skipped:
                print(f"  {line}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for job, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {job}: {status_display}")

    def print_summary(self, ok: bool, total: int, failed: int) -> None:
        """Print the aggregate line."""
        if ok:
            print(f"\nAll {total} extensions and skins processed.")
        else:
            print(f"\nInstall failed ({failed} of {total} failed).")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
