"""Convergence tracking data structures written to convergence.json."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from design_compare.models.comparison import CamelModel, DiffMetrics
from design_compare.models.vision import VisionResult


class PixelDiffSummary(CamelModel):
    diff_percentage: float
    diff_pixels: int = 0
    total_pixels: int = 0

    @classmethod
    def from_metrics(cls, metrics: DiffMetrics) -> "PixelDiffSummary":
        return cls(
            diff_percentage=metrics.diff_percentage,
            diff_pixels=metrics.diff_pixels,
            total_pixels=metrics.total_pixels,
        )


class VisionSummary(CamelModel):
    passed: bool = Field(alias="pass")
    confidence: float = 0.0
    issue_count: int = 0

    @classmethod
    def from_result(cls, result: VisionResult) -> "VisionSummary":
        return cls(
            passed=result.passed,
            confidence=result.confidence,
            issue_count=len(result.issues),
        )


class IterationRecord(CamelModel):
    iteration: int
    timestamp: str
    pixel_diff: PixelDiffSummary
    vision_result: Optional[VisionSummary] = None


class ConvergenceReport(CamelModel):
    design_slug: str
    variation_slug: str
    story_id: str
    iterations: list[IterationRecord] = Field(default_factory=list)
    converged: bool = False
    total_iterations: int = 0
    final_diff_percentage: float = 100.0
    started_at: str = ""
    completed_at: str = ""  # empty until the first converging iteration
