"""CLI application for depbump."""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console

from apps.cli.presenter import ReportPresenter
from core.compare import compare_versions
from core.config import UpdaterSettings
from core.errors import DepbumpError
from core.extract import extract_version
from core.logging_utils import configure_logging
from core.models import RemoteVersionInfo, UpdateOutcome, UpdatePlan
from core.package_manager import PackageManager
from core.planner import UpdatePlanner
from core.resolve import build_resolver
from core.updater import ManifestUpdater, recover_stale_backup

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


class StaleBackupPolicy(str, Enum):
    ask = "ask"
    restore = "restore"
    discard = "discard"


def format_json_output(
    package_id: str,
    manifest: Path | None,
    latest: RemoteVersionInfo,
    plan: UpdatePlan,
    outcome: UpdateOutcome | None = None,
) -> str:
    """Format the run as a JSON document."""
    report = {
        "package": package_id,
        "manifest": str(manifest) if manifest else None,
        "current_version": plan.current_version,
        "latest_version": latest.version,
        "source": latest.source_name,
        "published_at": latest.published_at,
        "info_url": latest.info_url,
        "comparison": plan.comparison.value,
        "mode": plan.mode.value,
        "target_version": plan.target_version,
        "proceed": plan.proceed,
        "reason": plan.reason,
        "warnings": plan.warnings,
    }
    if outcome is not None:
        report["updated"] = {
            "new_version": outcome.new_version,
            "method": outcome.method,
            "warnings": outcome.warnings,
        }
    return json.dumps(report, indent=2)


app = typer.Typer(
    name="depbump",
    help="depbump - Keep a pinned project dependency on its latest release",
    add_completion=False,
)


@app.command()
def update(
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Project manifest (.csproj); discovered when omitted"),
    project_dir: Path | None = typer.Option(None, "--project-dir", help="Directory searched for the manifest"),
    package: str | None = typer.Option(None, "--package", help="Dependency to track (default CounterStrikeSharp.API)"),
    check_only: bool = typer.Option(False, "--check-only", help="Report current and latest version, never modify"),
    update_to_latest: bool = typer.Option(False, "--update-to-latest", help="Apply the latest version without asking"),
    target_version: str | None = typer.Option(None, "--target-version", help="Apply this version instead of the latest"),
    force: bool = typer.Option(False, "--force", help="Re-apply even when already up to date"),
    include_prereleases: bool = typer.Option(False, "--include-prereleases", help="Consider prerelease versions"),
    stale_backup: StaleBackupPolicy = typer.Option(StaleBackupPolicy.ask, "--stale-backup", help="What to do with a backup left by an interrupted run"),
    no_build: bool = typer.Option(False, "--no-build", help="Skip the release build after updating"),
    format_type: str = typer.Option("text", "--format", help="Output format: text or json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Also write logs to this file"),
    log_json: bool = typer.Option(False, "--log-json", help="Also emit JSON log lines on stdout"),
) -> None:
    """depbump - Update the pinned dependency version in a project manifest."""

    json_output = format_type == "json"
    # JSON goes to stdout alone; everything meant for a person goes to stderr
    out = err_console if json_output else console

    try:
        configure_logging(verbose, log_file=log_file, log_json=log_json)

        settings = UpdaterSettings.from_env(
            manifest_path=manifest,
            project_dir=project_dir,
            package_id=package,
            include_prereleases=True if include_prereleases else None,
            run_build=False if no_build else None,
        )
        presenter = ReportPresenter(out, notes_lines=settings.notes_lines)

        handle = settings.manifest_handle()
        if handle is None and not check_only:
            out.print(
                f"Error: No single manifest found in {settings.project_dir}; use --manifest",
                style="red",
            )
            raise typer.Exit(1)

        current = None
        if handle is None:
            logger.warning("No single manifest found in %s", settings.project_dir)
        else:
            # Leftover from an interrupted run
            if handle.backup_path.exists():
                presenter.show_stale_backup(handle.backup_path)
                if not check_only:
                    action = stale_backup.value
                    if stale_backup is StaleBackupPolicy.ask:
                        action = "abort"
                        if not json_output:
                            action = presenter.choose_stale_backup_action(handle.backup_path)
                    recover_stale_backup(handle, action)

            current = extract_version(handle)
            if current is None:
                logger.warning("No version of %s found in %s", handle.package_id, handle.path)

        manifest_path = handle.path if handle else None
        latest = asyncio.run(build_resolver(settings).resolve())

        if not json_output:
            presenter.show_summary(
                settings.package_id, manifest_path, current, latest,
                compare_versions(latest.version, current),
            )

        planner = UpdatePlanner(prompt=None if json_output else presenter)
        plan = planner.plan(
            current,
            latest,
            check_only=check_only,
            force=force,
            update_to_latest=update_to_latest,
            target_version=target_version,
        )

        if json_output:
            if not plan.proceed:
                console.print(
                    format_json_output(settings.package_id, manifest_path, latest, plan),
                    markup=False, highlight=False, soft_wrap=True,
                )
        else:
            presenter.show_plan(plan)

        if not plan.proceed:
            if check_only and not json_output:
                presenter.show_check_guidance(plan)
            raise typer.Exit(0)

        package_manager = PackageManager(
            executable=settings.dotnet,
            timeout=settings.command_timeout,
            build_configuration=settings.build_configuration,
        )
        updater = ManifestUpdater(package_manager, run_build=settings.run_build)
        outcome = updater.apply(handle, plan.target_version)

        if json_output:
            console.print(
                format_json_output(settings.package_id, manifest_path, latest, plan, outcome),
                markup=False, highlight=False, soft_wrap=True,
            )
        else:
            presenter.show_outcome(outcome)

    except typer.Exit:
        raise
    except DepbumpError as e:
        ReportPresenter(out).show_error(e)
        raise typer.Exit(1)
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        out.print(f"Error: {e}", style="red")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
