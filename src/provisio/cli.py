# cli.py
from __future__ import annotations

import sys

import click

from provisio import settings as env_settings
from provisio.compiler import Settings
from provisio.config import ConfigError
from provisio.runner import build_plan, install
from provisio.ui.console import Console, set_console, get_console


def settings_options(f):
    """Install-location options shared by `install` and `plan`."""
    options = [
        click.option("--home", envvar="MW_HOME", default=env_settings.MW_HOME, show_default=True,
                     help="MediaWiki install directory"),
        click.option("--mw-version", envvar="MW_VERSION", default=env_settings.MW_VERSION,
                     help="Branch cloned when an entry names neither repository nor branch"),
        click.option("--volume", envvar="MW_VOLUME", default=env_settings.MW_VOLUME, show_default=True,
                     help="Persistent volume that persistent directories are linked from"),
        click.option("--origin-files", envvar="MW_ORIGIN_FILES", default=env_settings.MW_ORIGIN_FILES,
                     show_default=True, help="Where persistent directories are moved to"),
        click.option("--patch-dir", envvar="PROVISIO_PATCH_DIR", default=env_settings.PATCH_DIR, show_default=True,
                     help="Directory holding the patch files named in entries"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _settings(home, mw_version, volume, origin_files, patch_dir) -> Settings:
    return Settings(
        home=home,
        version=mw_version,
        volume=volume,
        origin_files=origin_files,
        patch_dir=patch_dir,
    )


def _config_failed(ctx, source: str, e: Exception) -> None:
    console = get_console()
    console.print_error(
        "Failed to load package list",
        f"Could not build the install plan from {source}",
        details=[str(e)],
    )
    if ctx.obj.get("debug", False):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and output of failed jobs)",
)
@click.pass_context
def cli(ctx, debug):
    """provisio: parallel installer for MediaWiki extensions and skins."""
    # Initialize console with debug flag
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command(name="install")
@click.argument("source")
@click.option("--max-jobs", envvar="PROVISIO_MAX_JOBS", default=env_settings.MAX_JOBS, show_default=True,
              type=click.IntRange(min=1), help="Maximum number of jobs running at once")
@click.option("--poll-interval", envvar="PROVISIO_POLL_INTERVAL", default=env_settings.POLL_INTERVAL, show_default=True,
              type=click.FloatRange(min=0), help="Seconds to sleep between idle polling passes")
@click.option("--skip-composer", is_flag=True, default=False, help="Don't run the composer batch")
@settings_options
@click.pass_context
def install_cmd(ctx, source, max_jobs, poll_interval, skip_composer, home, mw_version, volume, origin_files, patch_dir):
    """Install every extension and skin listed in SOURCE (path or URL)."""
    console = get_console()
    settings = _settings(home, mw_version, volume, origin_files, patch_dir)

    try:
        summary = install(
            source,
            settings=settings,
            max_jobs=max_jobs,
            poll_interval=poll_interval,
            skip_composer=skip_composer,
            console=console,
        )
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except (ConfigError, ValueError) as e:
        _config_failed(ctx, source, e)
        return
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    results = summary.results()
    if results:
        console.print_results(results)
    console.print_summary(summary.ok, total=len(results), failed=len(summary.failed()))

    if not summary.ok:
        sys.exit(1)


@cli.command()
@click.argument("source")
@settings_options
@click.pass_context
def plan(ctx, source, home, mw_version, volume, origin_files, patch_dir):
    """Print the composer batch and job commands for SOURCE without running them."""
    console = get_console()
    settings = _settings(home, mw_version, volume, origin_files, patch_dir)

    try:
        p = build_plan(source, settings)
    except (ConfigError, ValueError) as e:
        _config_failed(ctx, source, e)
        return

    console.print_plan(p.composer_packages, p.jobs, p.skipped)


if __name__ == "__main__":
    cli()
