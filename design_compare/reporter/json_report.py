"""JSON artifact output — per-preset reports, vision reports and the run manifest."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from design_compare.models.comparison import (
    ComparisonManifest,
    ComparisonReport,
    DiffMetrics,
    PresetResult,
)
from design_compare.models.vision import VisionResult
from design_compare.utils.timestamps import utc_timestamp

logger = logging.getLogger(__name__)


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def write_report(
    report_path: str | Path,
    design_slug: str,
    variation_slug: str,
    preset: str,
    metrics: DiffMetrics,
) -> ComparisonReport:
    """Write report.json for one preset. Overwrites any previous report."""
    report = ComparisonReport(
        design_slug=design_slug,
        variation_slug=variation_slug,
        preset=preset,
        timestamp=utc_timestamp(),
        metrics=metrics,
    )
    _write_json(Path(report_path), report.to_json_dict())
    logger.debug("Wrote comparison report to %s", report_path)
    return report


def load_report(report_path: str | Path) -> ComparisonReport:
    with open(report_path) as f:
        return ComparisonReport.model_validate(json.load(f))


def write_vision_report(report_path: str | Path, result: VisionResult) -> None:
    _write_json(Path(report_path), result.to_json_dict())
    logger.debug("Wrote vision report to %s", report_path)


def load_vision_report(report_path: str | Path) -> VisionResult:
    with open(report_path) as f:
        return VisionResult.model_validate(json.load(f))


def write_manifest(
    manifest_path: str | Path,
    design_slug: str,
    variation_slug: str,
    story_id: str,
    presets: list[PresetResult],
) -> ComparisonManifest:
    """Write manifest.json for a (design, variation). Replaces the previous one wholesale."""
    manifest = ComparisonManifest(
        design_slug=design_slug,
        variation_slug=variation_slug,
        story_id=story_id,
        presets=presets,
        captured_at=utc_timestamp(),
    )
    _write_json(Path(manifest_path), manifest.to_json_dict())
    logger.info("Manifest written to %s", manifest_path)
    return manifest
