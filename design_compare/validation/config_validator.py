"""Project config preflight — checks that configured paths and presets are usable."""

from __future__ import annotations

import glob
import logging
from pathlib import Path

from design_compare.models.config import ProjectConfig
from design_compare.models.validation import ValidationReport, ValidationResult

logger = logging.getLogger(__name__)


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError:
        return False


def _glob_matches(repo_root: Path, pattern: str) -> int:
    try:
        return len(glob.glob(str(repo_root / pattern), recursive=True))
    except (OSError, ValueError) as e:
        logger.debug("Glob %s failed: %s", pattern, e)
        return 0


def validate_config(config: ProjectConfig, repo_root: str | Path) -> ValidationReport:
    """Run every check and return all results. Never raises."""
    root = Path(repo_root)
    results: list[ValidationResult] = []

    def check(label: str, ok: bool, detail: str, level: str = "error") -> None:
        results.append(ValidationResult(label=label, ok=ok, level=level, detail=detail))

    check(
        "setsRoot exists",
        _exists(root / config.sets_root),
        f"{config.sets_root} not found",
    )

    # The screenshot dir itself is created on first capture.
    check(
        "screenshotDir parent exists",
        _exists((root / config.screenshot_dir).parent),
        f"Parent of {config.screenshot_dir} not found",
    )

    for pattern in config.ui_component_globs:
        check(f"uiComponentGlobs: {pattern}", _glob_matches(root, pattern) > 0, "No files matched")

    for token_file in config.token_files:
        check(f"tokenFile: {token_file}", _exists(root / token_file), "File not found")

    for alias, target in config.vite_aliases.items():
        check(f'alias "{alias}" -> {target}', _exists(root / target), "Directory not found")

    for entry in config.style_entrypoints or []:
        check(f"styleEntrypoint: {entry}", _exists(root / entry), "File not found")

    if config.storybook.enabled:
        check(
            f"storybook.cwd: {config.storybook.cwd}",
            _exists(root / config.storybook.cwd),
            "Directory not found",
        )
        for story_glob in config.storybook.story_globs:
            check(
                f"storyGlobs: {story_glob}",
                _glob_matches(root, story_glob) > 0,
                "No stories found (ok if stories not yet created)",
                level="warning",
            )

    for preset in config.screenshot_presets:
        check(
            f'preset "{preset.name}"',
            preset.width > 0 and preset.height > 0,
            f"Invalid dimensions: {preset.width}x{preset.height}",
        )

    errors = sum(1 for r in results if not r.ok and r.level == "error")
    warnings = sum(1 for r in results if not r.ok and r.level == "warning")
    logger.debug("Config validation: %d check(s), %d error(s), %d warning(s)",
                 len(results), errors, warnings)
    return ValidationReport(errors=errors, warnings=warnings, results=results)


SECTION_KEYWORDS = [
    ("Paths", ("setsRoot", "screenshotDir")),
    ("Components", ("uiComponentGlobs",)),
    ("Tokens", ("tokenFile",)),
    ("Aliases", ("alias",)),
    ("Styles", ("styleEntrypoint",)),
    ("Storybook", ("storybook", "storyGlobs")),
    ("Presets", ("preset",)),
]


def group_by_section(results: list[ValidationResult]) -> dict[str, list[ValidationResult]]:
    """Group results under display headings, preserving check order."""
    sections: dict[str, list[ValidationResult]] = {}
    for r in results:
        section = next(
            (name for name, keys in SECTION_KEYWORDS if any(k in r.label for k in keys)),
            "Other",
        )
        sections.setdefault(section, []).append(r)
    return sections
