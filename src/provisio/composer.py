# composer.py
from __future__ import annotations

import subprocess
from typing import Callable, List, Optional, Sequence

from .ui.console import Console, get_console


def require_command(packages: Sequence[str], home: str) -> List[str]:
    return [
        "composer",
        "require",
        *packages,
        f"--working-dir={home}",
        "--no-interaction",
        "--update-no-dev",
    ]


def install_packages(
    packages: Sequence[str],
    home: str,
    *,
    console: Optional[Console] = None,
    run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> int:
    """
    Install all Composer packages in one blocking `composer require`.

    This runs before the parallel phase: composer locks composer.json, so
    it can't share the tree with the git jobs. Output goes straight to the
    terminal.

    Returns:
      composer's exit code (0 when there is nothing to install,
      127 when composer isn't on PATH)
    """
    console = console or get_console()
    if not packages:
        return 0

    console.print_composer_batch(len(packages))
    cmd = require_command(packages, home)
    console.print_debug(" ".join(cmd))

    try:
        proc = run(cmd, check=False)
    except FileNotFoundError:
        console.print_error(
            "Composer not found",
            "Could not find the composer command.",
            suggestion="Install Composer or run with --skip-composer.",
        )
        return 127

    if proc.returncode != 0:
        console.print_error(
            "Composer batch failed",
            f"composer require exited with code {proc.returncode}",
            details=list(packages),
        )
    return proc.returncode
