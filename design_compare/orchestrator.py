"""Comparison orchestrator — coordinates capture, diff, vision and convergence tracking."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from design_compare.capture.screenshot import CaptureOptions, ScreenshotCapture
from design_compare.diff.pixel_diff import compare_images
from design_compare.models.comparison import ComparisonManifest, DiffMetrics, PresetResult
from design_compare.models.config import ProjectConfig, ViewportPreset
from design_compare.models.convergence import PixelDiffSummary, VisionSummary
from design_compare.models.vision import VisionResult
from design_compare.reporter.json_report import (
    load_report,
    load_vision_report,
    write_manifest,
    write_report,
    write_vision_report,
)
from design_compare.tracker.iteration_tracker import IterationTracker
from design_compare.url_utils import design_render_url, storybook_story_url
from design_compare.vision.assessor import compare_with_vision

logger = logging.getLogger(__name__)

STORYBOOK_ROOT_SELECTOR = "#storybook-root > *"
SETTLE_DELAY_MS = 500

DESIGN_FILE = "design.png"
STORYBOOK_FILE = "storybook.png"
DIFF_FILE = "diff.png"
REPORT_FILE = "report.json"
VISION_REPORT_FILE = "vision-report.json"
MANIFEST_FILE = "manifest.json"
CONVERGENCE_FILE = "convergence.json"


@dataclass
class PresetOutcome:
    preset: ViewportPreset
    metrics: DiffMetrics
    vision: Optional[VisionResult] = None


@dataclass
class RunOutcome:
    manifest: ComparisonManifest
    presets: list[PresetOutcome] = field(default_factory=list)
    converged: Optional[bool] = None  # None when tracking is off


def combine_outcomes(
    outcomes: list[PresetOutcome],
) -> tuple[PixelDiffSummary, Optional[VisionSummary]]:
    """Reduce per-preset results to the single iteration the tracker records.

    The worst preset supplies the pixel summary; vision passes only if every
    preset passed.
    """
    worst = max(outcomes, key=lambda o: o.metrics.diff_percentage)
    pixel = PixelDiffSummary.from_metrics(worst.metrics)

    visions = [o.vision for o in outcomes if o.vision is not None]
    if not visions:
        return pixel, None
    vision = VisionSummary(
        passed=all(v.passed for v in visions),
        confidence=min(v.confidence for v in visions),
        issue_count=sum(len(v.issues) for v in visions),
    )
    return pixel, vision


class ComparisonOrchestrator:
    """Runs design-vs-Storybook comparisons for one project config."""

    def __init__(
        self,
        config: ProjectConfig,
        screenshot_root: str | Path,
        workbench_port: int | str = 5200,
        storybook_port: int | str = 6006,
        capture: Optional[ScreenshotCapture] = None,
    ):
        self.config = config
        self.screenshot_root = Path(screenshot_root)
        self.workbench_port = workbench_port
        self.storybook_port = storybook_port
        self._capture = capture

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def variation_dir(self, design: str, variation: str) -> Path:
        return self.screenshot_root / design / variation

    def preset_dir(self, design: str, variation: str, preset: str) -> Path:
        return self.variation_dir(design, variation) / preset

    def convergence_path(self, design: str, variation: str) -> Path:
        return self.variation_dir(design, variation) / CONVERGENCE_FILE

    def _design_url(self, design: str, variation: str) -> str:
        return design_render_url(self.config.workbench_url, self.workbench_port, design, variation)

    def _story_url(self, story: str) -> str:
        return storybook_story_url(self.config.storybook.url, self.storybook_port, story)

    def _new_capture(self) -> ScreenshotCapture:
        return self._capture if self._capture is not None else ScreenshotCapture()

    # ------------------------------------------------------------------
    # Full comparison
    # ------------------------------------------------------------------

    async def run(
        self,
        design: str,
        variation: str,
        story: str,
        presets: Optional[list[str]] = None,
        vision: bool = False,
        track: bool = False,
    ) -> RunOutcome:
        """Capture, diff and optionally assess every selected preset, then write the manifest.

        Presets run strictly in order; the first failure aborts the run.
        """
        selected = self.config.select_presets(presets)
        if vision and not os.environ.get("ANTHROPIC_API_KEY"):
            logger.warning("ANTHROPIC_API_KEY not set; skipping vision comparison")
            vision = False

        start = time.time()
        logger.info("=== Comparing %s/%s against story %s (%d preset(s)) ===",
                    design, variation, story, len(selected))

        outcomes: list[PresetOutcome] = []
        async with self._new_capture() as capture:
            for preset in selected:
                outcomes.append(
                    await self._run_preset(capture, preset, design, variation, story, vision)
                )

        manifest = self.write_manifest(design, variation, story, selected)

        converged = None
        if track and outcomes:
            pixel, vision_summary = combine_outcomes(outcomes)
            tracker = IterationTracker(self.convergence_path(design, variation), design, variation, story)
            tracker.record(pixel, vision_summary)
            converged = tracker.converged

        logger.info("=== Compare complete in %.1fs ===", time.time() - start)
        return RunOutcome(manifest=manifest, presets=outcomes, converged=converged)

    async def _run_preset(
        self,
        capture: ScreenshotCapture,
        preset: ViewportPreset,
        design: str,
        variation: str,
        story: str,
        vision: bool,
    ) -> PresetOutcome:
        preset_dir = self.preset_dir(design, variation, preset.name)
        preset_dir.mkdir(parents=True, exist_ok=True)
        design_path = preset_dir / DESIGN_FILE
        storybook_path = preset_dir / STORYBOOK_FILE

        logger.info("[%s] Capturing design...", preset.name)
        await capture.capture(CaptureOptions(
            url=self._design_url(design, variation),
            output_path=design_path,
            width=preset.width,
            height=preset.height,
            delay=SETTLE_DELAY_MS,
        ))

        logger.info("[%s] Capturing storybook...", preset.name)
        await capture.capture(CaptureOptions(
            url=self._story_url(story),
            output_path=storybook_path,
            width=preset.width,
            height=preset.height,
            wait_for_selector=STORYBOOK_ROOT_SELECTOR,
            delay=SETTLE_DELAY_MS,
        ))

        logger.info("[%s] Computing diff...", preset.name)
        metrics = compare_images(design_path, storybook_path, preset_dir / DIFF_FILE)
        write_report(preset_dir / REPORT_FILE, design, variation, preset.name, metrics)
        logger.info("[%s] Diff: %.2f%% (%d/%d pixels)", preset.name,
                    metrics.diff_percentage, metrics.diff_pixels, metrics.total_pixels)

        vision_result = None
        if vision:
            logger.info("[%s] Running vision comparison...", preset.name)
            vision_result = await compare_with_vision(design_path, storybook_path, self.config.ai_model)
            write_vision_report(preset_dir / VISION_REPORT_FILE, vision_result)

        return PresetOutcome(preset=preset, metrics=metrics, vision=vision_result)

    def write_manifest(
        self,
        design: str,
        variation: str,
        story: str,
        presets: list[ViewportPreset],
    ) -> ComparisonManifest:
        """Write manifest.json from the artifacts present on disk for each preset."""
        results = []
        for preset in presets:
            preset_dir = self.preset_dir(design, variation, preset.name)
            results.append(PresetResult(
                name=preset.name,
                width=preset.width,
                height=preset.height,
                has_design=(preset_dir / DESIGN_FILE).exists(),
                has_storybook=(preset_dir / STORYBOOK_FILE).exists(),
                has_diff=(preset_dir / DIFF_FILE).exists(),
                has_report=(preset_dir / REPORT_FILE).exists(),
            ))
        return write_manifest(
            self.variation_dir(design, variation) / MANIFEST_FILE,
            design, variation, story, results,
        )

    # ------------------------------------------------------------------
    # Single-stage operations
    # ------------------------------------------------------------------

    async def capture_storybook(
        self,
        design: str,
        variation: str,
        story: str,
        presets: Optional[list[str]] = None,
    ) -> list[Path]:
        """Capture only the Storybook side for every selected preset."""
        paths = []
        async with self._new_capture() as capture:
            for preset in self.config.select_presets(presets):
                out = self.preset_dir(design, variation, preset.name) / STORYBOOK_FILE
                logger.info("Capturing %s (%dx%d) -> %s", preset.name, preset.width, preset.height, out)
                paths.append(await capture.capture(CaptureOptions(
                    url=self._story_url(story),
                    output_path=out,
                    width=preset.width,
                    height=preset.height,
                    wait_for_selector=STORYBOOK_ROOT_SELECTOR,
                    delay=SETTLE_DELAY_MS,
                )))
        logger.info("Storybook capture complete.")
        return paths

    async def vision_compare(
        self,
        design_path: str | Path,
        storybook_path: str | Path,
        model: Optional[str] = None,
    ) -> tuple[VisionResult, Path]:
        """Run one vision assessment and write vision-report.json beside the design image."""
        design_path = Path(design_path)
        for label, path in (("Design", design_path), ("Storybook", Path(storybook_path))):
            if not path.exists():
                raise FileNotFoundError(f"{label} screenshot not found: {path}")

        result = await compare_with_vision(design_path, storybook_path, model or self.config.ai_model)
        report_path = design_path.parent / VISION_REPORT_FILE
        write_vision_report(report_path, result)
        return result, report_path

    def record_iteration(self, design: str, variation: str, story: str, preset: str) -> IterationTracker:
        """Feed an existing preset report (and vision report, if any) into the tracker."""
        preset_dir = self.preset_dir(design, variation, preset)
        report_path = preset_dir / REPORT_FILE
        if not report_path.exists():
            raise FileNotFoundError(f"No comparison report at {report_path}. Run 'compare' first.")
        report = load_report(report_path)

        vision_result = None
        vision_path = preset_dir / VISION_REPORT_FILE
        if vision_path.exists():
            vision_result = load_vision_report(vision_path)

        tracker = IterationTracker(self.convergence_path(design, variation), design, variation, story)
        tracker.record(report.metrics, vision_result)
        return tracker
