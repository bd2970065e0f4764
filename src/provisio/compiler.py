# compiler.py
from __future__ import annotations

from dataclasses import dataclass, field
from shlex import quote
from typing import Any, Dict, List, Mapping, Optional

from .config import KINDS
from .dsl import job, sh
from .model import Job, Step

DEFAULT_REPOSITORY = "https://github.com/wikimedia/mediawiki-{kind}-{name}"


@dataclass(frozen=True)
class Settings:
    """Where things get installed. Mirrors the MW_* environment of the image."""
    home: str
    version: Optional[str] = None
    volume: Optional[str] = None
    origin_files: Optional[str] = None
    patch_dir: str = "/tmp"


@dataclass
class Plan:
    composer_packages: List[str] = field(default_factory=list)
    jobs: List[Job] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # "<job>: <step>" not understood


def composer_spec(entry: Mapping[str, Any]) -> str:
    name = entry["composer-name"]
    version = entry.get("composer-version")
    return f"{name}:{version}" if version else str(name)


def _as_list(value: Any, what: str, job_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"{job_name}: '{what}' must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _clone_step(kind: str, name: str, entry: Mapping[str, Any], settings: Settings, target: str) -> Step:
    repository = entry.get("repository")
    branch = entry.get("branch")

    if repository is None:
        repository = DEFAULT_REPOSITORY.format(kind=kind, name=name)
        if branch is None:
            branch = settings.version

    cmd = "git clone "
    if branch is not None:
        cmd += f"--single-branch -b {quote(str(branch))} "
    cmd += f"{quote(str(repository))} {quote(target)}"
    return sh("clone", cmd)


def _additional_steps(job_name: str, steps: List[str], target: str, skipped: List[str]) -> List[Step]:
    out: List[Step] = []
    for step in steps:
        if step == "composer update":
            out.append(sh(
                "composer install",
                f"composer install --working-dir={quote(target)} --no-interaction --no-dev",
            ))
        elif step == "git submodule update":
            out.append(sh("submodules", "git submodule update --init", cwd=target))
        else:
            skipped.append(f"{job_name}: {step}")
    return out


def compile_entry(
    kind: str,
    name: str,
    entry: Mapping[str, Any],
    settings: Settings,
    skipped: Optional[List[str]] = None,
) -> Job:
    """Build the step chain for one git-installed extension or skin."""
    if skipped is None:
        skipped = []
    job_name = f"{kind}/{name}"
    target = f"{settings.home}/canasta-{kind}/{name}"

    steps: List[Step] = [_clone_step(kind, name, entry, settings, target)]

    commit = entry.get("commit")
    if commit is not None:
        steps.append(sh("checkout", f"git checkout -q {quote(str(commit))}", cwd=target))

    for patch in _as_list(entry.get("patches"), "patches", job_name):
        steps.append(sh(f"patch {patch}", f"git apply {quote(f'{settings.patch_dir}/{patch}')}", cwd=target))

    extra = _as_list(entry.get("additional steps"), "additional steps", job_name)
    steps.extend(_additional_steps(job_name, extra, target, skipped))

    steps.append(sh("drop .git", f"rm -rf {quote(target + '/.git')}"))

    persistent = _as_list(entry.get("persistent directories"), "persistent directories", job_name)
    if persistent:
        if not settings.origin_files or not settings.volume:
            raise ValueError(
                f"{job_name}: persistent directories need both origin_files and volume to be set"
            )
        origin = f"{settings.origin_files}/{kind}/{name}"
        steps.append(sh("mkdir origin", f"mkdir -p {quote(origin)}"))
        for directory in persistent:
            steps.append(sh(
                f"move {directory}",
                f"mv {quote(f'{target}/{directory}')} {quote(origin + '/')}",
            ))
            steps.append(sh(
                f"link {directory}",
                f"ln -s {quote(f'{settings.volume}/{kind}/{name}/{directory}')} {quote(f'{target}/{directory}')}",
            ))

    return job(job_name, steps_list=steps)


def compile_plan(contents: Mapping[str, Mapping[str, Dict[str, Any]]], settings: Settings) -> Plan:
    """
    Split merged package tables into a Composer batch and a list of git jobs.

    Order: all extensions, then all skins, each in table order.
    """
    plan = Plan()
    for kind in KINDS:
        for name, entry in (contents.get(kind) or {}).items():
            entry = entry or {}
            if entry.get("remove", False):
                continue

            if entry.get("composer-name"):
                plan.composer_packages.append(composer_spec(entry))
                continue

            if entry.get("bundled", False):
                continue

            plan.jobs.append(compile_entry(kind, name, entry, settings, plan.skipped))
    return plan
