"""CLI commands for applying and inspecting feature patch plans."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import FeatpatchConfig, discover_config
from .errors import PatchError, StorageError
from .features import build_product_notes_plan
from .runner import PatchReport, PatchRunner
from .schema import PatchPlan

APP_HELP = "Apply idempotent feature patches to an application tree."

EXIT_INCOMPLETE = 1
EXIT_STORAGE = 2

app = typer.Typer(help=APP_HELP)


def _load_config(config: Optional[str]) -> FeatpatchConfig:
    try:
        return discover_config(config)
    except PatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=EXIT_INCOMPLETE) from error


def _resolve_repo_root(root: Optional[Path], settings: FeatpatchConfig) -> Path:
    """Resolve the working root: CLI flag, then ``project.repo_root``, then cwd."""
    if root is not None:
        return root.resolve()
    return settings.repo_root or Path.cwd()


def _resolve_plan(plan: Optional[Path], settings: FeatpatchConfig) -> PatchPlan:
    plan_path = plan or settings.plan_path
    if plan_path is None:
        return build_product_notes_plan()
    try:
        return PatchPlan.from_yaml(plan_path)
    except PatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=EXIT_INCOMPLETE) from error
    except ValidationError as error:
        typer.echo(f"Invalid plan {plan_path}:\n{error}")
        raise typer.Exit(code=EXIT_INCOMPLETE) from error


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _render_report(report: PatchReport) -> None:
    typer.echo(f"Plan {report.plan} -> {report.root.as_posix()}")
    for outcome in report.outcomes:
        line = f"- {outcome.step_id}: {outcome.status.value} ({outcome.path})"
        if outcome.error:
            line += f" :: {outcome.error}"
        typer.echo(line)
    if report.skipped:
        typer.echo("Skipped steps: " + ", ".join(outcome.step_id for outcome in report.skipped))
    typer.echo(f"Changed files: {len(report.changed_paths)}")
    typer.echo(f"Outcome: {'ok' if report.ok else 'incomplete'}")


@app.command()
def run(
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Application tree to patch."),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to a featpatch YAML config."),
    plan: Optional[Path] = typer.Option(None, "--plan", "-p", help="YAML plan to apply instead of product notes."),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--no-strict",
        help="Fail when any step is skipped because its anchor text was not found.",
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the run report as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every step."),
) -> None:
    """Apply the plan once, end to end."""
    _configure_logging(verbose)
    settings = _load_config(config)
    repo_root = _resolve_repo_root(root, settings)
    patch_plan = _resolve_plan(plan, settings)
    strict_mode = strict if strict is not None else settings.patch.strict

    runner = PatchRunner(repo_root, patch_plan, strict=strict_mode)
    try:
        result = runner.run()
    except StorageError as error:
        typer.echo(f"Storage failure, run aborted: {error}")
        raise typer.Exit(code=EXIT_STORAGE) from error
    except PatchError as error:
        typer.echo(f"Run aborted: {error}")
        raise typer.Exit(code=EXIT_INCOMPLETE) from error

    _render_report(result)

    report_path = report or settings.report_path
    if report_path is not None:
        written = result.write_json(report_path)
        typer.echo(f"Report: {written.as_posix()}")

    if not result.ok:
        raise typer.Exit(code=EXIT_INCOMPLETE)


@app.command("plan")
def show_plan(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to a featpatch YAML config."),
    plan: Optional[Path] = typer.Option(None, "--plan", "-p", help="YAML plan to describe."),
    dump: bool = typer.Option(False, "--dump", help="Print the full plan as YAML."),
) -> None:
    """List the plan's steps in execution order."""
    patch_plan = _resolve_plan(plan, _load_config(config))
    if dump:
        typer.echo(patch_plan.to_yaml(), nl=False)
        return
    typer.echo(f"Plan {patch_plan.name} ({len(patch_plan.steps)} steps)")
    for index, step in enumerate(patch_plan.steps, start=1):
        typer.echo(f"{index:>2}. {step.id} [{step.kind}] {step.path}")


@app.command()
def check(
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Application tree to inspect."),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to a featpatch YAML config."),
    plan: Optional[Path] = typer.Option(None, "--plan", "-p", help="YAML plan to verify."),
) -> None:
    """Verify which steps have landed without modifying any file."""
    settings = _load_config(config)
    repo_root = _resolve_repo_root(root, settings)
    patch_plan = _resolve_plan(plan, settings)

    try:
        checks = PatchRunner(repo_root, patch_plan).check()
    except StorageError as error:
        typer.echo(f"Storage failure, check aborted: {error}")
        raise typer.Exit(code=EXIT_STORAGE) from error
    except PatchError as error:
        typer.echo(f"Check aborted: {error}")
        raise typer.Exit(code=EXIT_INCOMPLETE) from error

    for item in checks:
        if not item.exists:
            state = "missing file"
        else:
            state = "present" if item.present else "absent"
        typer.echo(f"- {item.step_id}: {state} ({item.path})")

    pending = [item.step_id for item in checks if not item.present]
    if pending:
        typer.echo("Pending steps: " + ", ".join(pending))
        raise typer.Exit(code=EXIT_INCOMPLETE)
    typer.echo("All steps present.")


if __name__ == "__main__":
    app()
