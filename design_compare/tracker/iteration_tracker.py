"""Iteration tracker — records design/implementation iterations and convergence state."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Union

from design_compare.models.comparison import DiffMetrics
from design_compare.models.convergence import (
    ConvergenceReport,
    IterationRecord,
    PixelDiffSummary,
    VisionSummary,
)
from design_compare.models.vision import VisionResult
from design_compare.utils.timestamps import utc_timestamp

logger = logging.getLogger(__name__)

CONVERGENCE_THRESHOLD = 1.0  # diff_percentage below this counts as a pixel match

PixelDiffInput = Union[PixelDiffSummary, DiffMetrics, dict]
VisionInput = Union[VisionSummary, VisionResult, dict, None]


class IterationTracker:
    """Append-only convergence history for one (design, variation, story).

    An existing report at ``report_path`` is resumed as-is; its identity is
    not checked against the arguments. An unreadable report is moved aside to
    ``<name>.corrupt`` rather than overwritten. The full report is rewritten
    atomically (temp file, then rename) on every ``record()``.
    """

    def __init__(
        self,
        report_path: str | Path,
        design_slug: str,
        variation_slug: str,
        story_id: str,
    ):
        self.report_path = Path(report_path)
        loaded = self._load()
        if loaded is not None:
            self.report = loaded
            logger.info(
                "Resuming convergence report %s at iteration %d",
                self.report_path, self.report.total_iterations,
            )
            if (loaded.design_slug, loaded.variation_slug, loaded.story_id) != (
                design_slug, variation_slug, story_id,
            ):
                logger.debug(
                    "Resumed report identity %s/%s/%s differs from %s/%s/%s",
                    loaded.design_slug, loaded.variation_slug, loaded.story_id,
                    design_slug, variation_slug, story_id,
                )
        else:
            self.report = ConvergenceReport(
                design_slug=design_slug,
                variation_slug=variation_slug,
                story_id=story_id,
                started_at=utc_timestamp(),
            )

    def _load(self) -> ConvergenceReport | None:
        if not self.report_path.exists():
            return None
        try:
            with open(self.report_path) as f:
                data = json.load(f)
            return ConvergenceReport.model_validate(data)
        except Exception as e:
            aside = self.report_path.with_name(self.report_path.name + ".corrupt")
            os.replace(self.report_path, aside)
            logger.warning("Failed to load convergence report %s: %s. Moved it to %s, starting fresh.",
                           self.report_path, e, aside)
            return None

    def record(self, pixel_diff: PixelDiffInput, vision_result: VisionInput = None) -> IterationRecord:
        """Append one iteration, re-evaluate convergence and persist."""
        if isinstance(pixel_diff, DiffMetrics):
            pixel_diff = PixelDiffSummary.from_metrics(pixel_diff)
        elif isinstance(pixel_diff, dict):
            pixel_diff = PixelDiffSummary.model_validate(pixel_diff)
        if isinstance(vision_result, VisionResult):
            vision_result = VisionSummary.from_result(vision_result)
        elif isinstance(vision_result, dict):
            vision_result = VisionSummary.model_validate(vision_result)

        entry = IterationRecord(
            iteration=len(self.report.iterations) + 1,
            timestamp=utc_timestamp(),
            pixel_diff=pixel_diff,
            vision_result=vision_result,
        )
        report = self.report
        report.iterations.append(entry)
        report.total_iterations = len(report.iterations)
        report.final_diff_percentage = pixel_diff.diff_percentage

        pixel_pass = pixel_diff.diff_percentage < CONVERGENCE_THRESHOLD
        vision_pass = vision_result is None or vision_result.passed
        report.converged = pixel_pass and vision_pass

        # completed_at marks the first convergence and is kept even if a
        # later iteration regresses.
        if report.converged and not report.completed_at:
            report.completed_at = entry.timestamp

        logger.info(
            "Iteration %d: diff %.2f%% (pixel %s, vision %s) -> %s",
            entry.iteration, pixel_diff.diff_percentage,
            "pass" if pixel_pass else "fail",
            "skipped" if vision_result is None else ("pass" if vision_pass else "fail"),
            "CONVERGED" if report.converged else "not converged",
        )
        self._persist()
        return entry

    def get_report(self) -> ConvergenceReport:
        return self.report.model_copy(deep=True)

    @property
    def converged(self) -> bool:
        return self.report.converged

    def _persist(self) -> None:
        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.report_path.with_name(self.report_path.name + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(self.report.to_json_dict(), f, indent=2)
        os.replace(tmp_path, self.report_path)
        logger.debug("Saved convergence report to %s", self.report_path)
