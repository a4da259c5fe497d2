"""CLI entry point for design-vs-implementation comparisons."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from design_compare.ai.client import set_debug_dir
from design_compare.models.config import ProjectConfig
from design_compare.orchestrator import DESIGN_FILE, STORYBOOK_FILE, ComparisonOrchestrator
from design_compare.validation.config_validator import group_by_section, validate_config

console = Console()
logger = logging.getLogger("design_compare")

DEFAULT_CONFIG = "design-compare.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> ProjectConfig:
    try:
        return ProjectConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'design-compare init' to create a default config.")
        sys.exit(1)


def _orchestrator(cfg: ProjectConfig, config: str, repo_root: str | None, **ports) -> ComparisonOrchestrator:
    root = Path(repo_root) if repo_root else Path(config).resolve().parent
    set_debug_dir(root / ".design-compare" / "debug")
    return ComparisonOrchestrator(cfg, screenshot_root=root / cfg.screenshot_dir, **ports)


config_option = click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
root_option = click.option(
    "--repo-root", default=None, help="Repo root for relative paths (default: config file's directory)"
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Design vs. implementation visual comparison"""
    setup_logging(verbose)


@cli.command()
@click.option("--design", "-d", required=True, help="Design slug")
@click.option("--variation", "-V", required=True, help="Variation slug")
@click.option("--story", "-s", required=True, help="Storybook story id")
@click.option("--preset", "-p", "presets", multiple=True, help="Preset name (repeatable; default: all)")
@click.option("--workbench-port", default="5200", show_default=True)
@click.option("--storybook-port", default="6006", show_default=True)
@click.option("--vision/--no-vision", default=False, help="Also run the vision model comparison")
@click.option("--track/--no-track", default=False, help="Record this run in convergence.json")
@config_option
@root_option
def compare(
    design: str, variation: str, story: str, presets: tuple[str, ...],
    workbench_port: str, storybook_port: str, vision: bool, track: bool,
    config: str, repo_root: str | None,
) -> None:
    """Capture both renderings for every preset, diff them and write the manifest."""
    cfg = _load_config(config)
    orchestrator = _orchestrator(
        cfg, config, repo_root, workbench_port=workbench_port, storybook_port=storybook_port,
    )
    try:
        outcome = asyncio.run(orchestrator.run(
            design, variation, story, presets=list(presets) or None, vision=vision, track=track,
        ))
    except Exception as e:
        logger.error("Compare failed: %s", e)
        sys.exit(1)

    table = Table(title=f"{design}/{variation} vs {story}")
    table.add_column("Preset", style="bold")
    table.add_column("Size")
    table.add_column("Diff")
    table.add_column("Channels (r/g/b)")
    table.add_column("Vision")
    for o in outcome.presets:
        m = o.metrics
        vision_cell = "-" if o.vision is None else (
            "[green]PASS[/green]" if o.vision.passed else "[red]FAIL[/red]"
        )
        table.add_row(
            o.preset.name,
            f"{o.preset.width}x{o.preset.height}",
            f"{m.diff_percentage:.2f}% ({m.diff_pixels}/{m.total_pixels})",
            f"{m.channels.r:.1f}/{m.channels.g:.1f}/{m.channels.b:.1f}",
            vision_cell,
        )
    console.print(table)
    if outcome.converged is not None:
        status = "[green]converged[/green]" if outcome.converged else "[yellow]not converged[/yellow]"
        console.print(f"Convergence: {status}")


@cli.command("capture-storybook")
@click.option("--design", "-d", required=True, help="Design slug")
@click.option("--variation", "-V", required=True, help="Variation slug")
@click.option("--story", "-s", required=True, help="Storybook story id")
@click.option("--preset", "-p", "presets", multiple=True, help="Preset name (repeatable; default: all)")
@click.option("--port", default="6006", show_default=True, help="Storybook port")
@config_option
@root_option
def capture_storybook(
    design: str, variation: str, story: str, presets: tuple[str, ...],
    port: str, config: str, repo_root: str | None,
) -> None:
    """Capture only the Storybook rendering for every preset."""
    cfg = _load_config(config)
    orchestrator = _orchestrator(cfg, config, repo_root, storybook_port=port)
    try:
        paths = asyncio.run(orchestrator.capture_storybook(
            design, variation, story, presets=list(presets) or None,
        ))
    except Exception as e:
        logger.error("Capture failed: %s", e)
        sys.exit(1)
    console.print(f"[green]Captured {len(paths)} screenshot(s)[/green]")


@cli.command("vision-compare")
@click.option("--design", "-d", default=None, help="Design slug")
@click.option("--variation", "-V", default=None, help="Variation slug")
@click.option("--preset", "-p", default="desktop", show_default=True)
@click.option("--design-path", default=None, help="Explicit design screenshot path")
@click.option("--storybook-path", default=None, help="Explicit storybook screenshot path")
@click.option("--model", default=None, help="Vision model (default: config ai_model)")
@config_option
@root_option
def vision_compare(
    design: str | None, variation: str | None, preset: str,
    design_path: str | None, storybook_path: str | None, model: str | None,
    config: str, repo_root: str | None,
) -> None:
    """Ask the vision model whether an existing screenshot pair matches."""
    cfg = _load_config(config)
    orchestrator = _orchestrator(cfg, config, repo_root)

    if not (design_path and storybook_path):
        if not (design and variation):
            raise click.UsageError(
                "Pass --design and --variation, or --design-path and --storybook-path"
            )
        preset_dir = orchestrator.preset_dir(design, variation, preset)
        design_path = str(preset_dir / DESIGN_FILE)
        storybook_path = str(preset_dir / STORYBOOK_FILE)

    console.print("Running vision comparison...")
    console.print(f"  Design:    {design_path}")
    console.print(f"  Storybook: {storybook_path}")
    console.print(f"  Model:     {model or cfg.ai_model}")
    try:
        result, report_path = asyncio.run(
            orchestrator.vision_compare(design_path, storybook_path, model)
        )
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    verdict = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
    console.print(f"\nResult: {verdict}")
    console.print(f"Confidence: {result.confidence:.0%}")
    console.print(f"Summary: {escape(result.summary)}")
    if result.issues:
        console.print(f"\nIssues ({len(result.issues)}):")
        for issue in result.issues:
            region = f" ({issue.region})" if issue.region else ""
            console.print(f"  [{issue.severity}] {issue.category}: {issue.description}{region}",
                          markup=False)
    console.print(f"\nReport written to [blue]{report_path}[/blue]")


@cli.command("record-iteration")
@click.option("--design", "-d", required=True, help="Design slug")
@click.option("--variation", "-V", required=True, help="Variation slug")
@click.option("--story", "-s", required=True, help="Storybook story id")
@click.option("--preset", "-p", default="desktop", show_default=True)
@config_option
@root_option
def record_iteration(
    design: str, variation: str, story: str, preset: str, config: str, repo_root: str | None,
) -> None:
    """Append the latest report for a preset to convergence.json."""
    cfg = _load_config(config)
    orchestrator = _orchestrator(cfg, config, repo_root)
    try:
        tracker = orchestrator.record_iteration(design, variation, story, preset)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    report = tracker.get_report()
    table = Table(title="Convergence")
    table.add_column("#", justify="right")
    table.add_column("Diff")
    table.add_column("Vision")
    for it in report.iterations:
        v = it.vision_result
        table.add_row(
            str(it.iteration),
            f"{it.pixel_diff.diff_percentage:.2f}%",
            "-" if v is None else ("pass" if v.passed else f"fail ({v.issue_count} issues)"),
        )
    console.print(table)
    status = "[green]converged[/green]" if report.converged else "[yellow]not converged[/yellow]"
    console.print(f"{report.total_iterations} iteration(s), {status}")


@cli.command("validate-config")
@config_option
@root_option
def validate_config_cmd(config: str, repo_root: str | None) -> None:
    """Preflight-check configured paths, globs and presets."""
    cfg = _load_config(config)
    root = Path(repo_root) if repo_root else Path(config).resolve().parent
    console.print(f"\nValidating project config: [bold]{cfg.project_name}[/bold]\n")

    report = validate_config(cfg, root)
    for section, results in group_by_section(report.results).items():
        console.print(f"[bold]\\[{section}][/bold]")
        for r in results:
            if r.ok:
                console.print(f"  [green]✓[/green] {escape(r.label)}")
            elif r.level == "warning":
                console.print(f"  [yellow]⚠[/yellow] {escape(r.label)}: {escape(r.detail)}")
            else:
                console.print(f"  [red]✗[/red] {escape(r.label)}: {escape(r.detail)}")
        console.print()

    console.print("─" * 40)
    if report.errors > 0:
        console.print(f"\n[red]✗ {report.errors} error(s), {report.warnings} warning(s)[/red]")
        sys.exit(1)
    elif report.warnings > 0:
        console.print(f"\n[green]✓ Config valid[/green] ({report.warnings} warning(s))")
    else:
        console.print("\n[green]✓ Config valid[/green]")


@cli.command()
@click.option("--project-name", "-n", prompt="Project name", help="Project name")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(project_name: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = ProjectConfig(project_name=project_name)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nCheck the paths, then run:")
    console.print("  [blue]design-compare validate-config[/blue]")


if __name__ == "__main__":
    cli()
