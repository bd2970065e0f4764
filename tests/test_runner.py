from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeSpawner
from provisio import runner
from provisio.compiler import Settings
from provisio.config import ConfigError
from provisio.runner import RunSummary, install

SETTINGS = Settings(home="/w", version="REL1_43", volume="/v", origin_files="/o")

CONFIG = """
extensions:
  - Cite:
      commit: a
  - Echo:
      commit: b
  - Maps:
      composer-name: mediawiki/maps
skins:
  - Timeless:
      commit: c
"""


@pytest.fixture
def config_file(tmp_path) -> str:
    path: Path = tmp_path / "exts.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return str(path)


@pytest.fixture
def composer_calls(monkeypatch):
    calls = []

    def fake_install(packages, home, *, console=None):
        calls.append((list(packages), home))
        return fake_install.code

    fake_install.code = 0
    fake_install.calls = calls
    monkeypatch.setattr(runner, "install_packages", fake_install)
    return fake_install


def test_install_runs_composer_then_pool(config_file, console, composer_calls) -> None:
    spawner = FakeSpawner()

    summary = install(config_file, settings=SETTINGS, max_jobs=2, poll_interval=0, console=console, spawn=spawner)

    assert composer_calls.calls == [(["mediawiki/maps"], "/w")]
    assert spawner.started == ["extensions/Cite", "extensions/Echo", "skins/Timeless"]
    assert summary.ok
    assert summary.results() == {
        "composer": "ok",
        "extensions/Cite": "ok",
        "extensions/Echo": "ok",
        "skins/Timeless": "ok",
    }


def test_composer_failure_fails_run_but_jobs_still_run(config_file, console, composer_calls) -> None:
    composer_calls.code = 1
    spawner = FakeSpawner()

    summary = install(config_file, settings=SETTINGS, max_jobs=2, poll_interval=0, console=console, spawn=spawner)

    assert len(spawner.started) == 3
    assert summary.pool.ok
    assert not summary.ok
    assert summary.failed() == ["composer"]


def test_skip_composer(config_file, console, composer_calls) -> None:
    summary = install(
        config_file, settings=SETTINGS, max_jobs=2, poll_interval=0,
        skip_composer=True, console=console, spawn=FakeSpawner(),
    )
    assert composer_calls.calls == []
    assert summary.results()["composer"] == "skipped"
    assert summary.ok


def test_job_failures_are_aggregated(config_file, console, composer_calls) -> None:
    spawner = FakeSpawner(codes={"extensions/Echo": 128}, fail={"skins/Timeless"})

    summary = install(config_file, settings=SETTINGS, max_jobs=3, poll_interval=0, console=console, spawn=spawner)

    assert not summary.ok
    assert sorted(summary.failed()) == ["extensions/Echo", "skins/Timeless"]


def test_bad_max_jobs_fails_before_any_work(config_file, console, composer_calls) -> None:
    with pytest.raises(ValueError):
        install(config_file, settings=SETTINGS, max_jobs=0, console=console, spawn=FakeSpawner())
    assert composer_calls.calls == []


def test_config_errors_propagate(tmp_path, console, composer_calls) -> None:
    with pytest.raises(ConfigError):
        install(str(tmp_path / "missing.yaml"), settings=SETTINGS, console=console, spawn=FakeSpawner())


def test_empty_summary_is_ok() -> None:
    from provisio.compiler import Plan
    assert RunSummary(plan=Plan()).ok
