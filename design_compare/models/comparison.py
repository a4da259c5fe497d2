"""Pixel comparison data structures written to report.json and manifest.json."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class GridCell(CamelModel):
    row: int
    col: int
    total_pixels: int
    diff_pixels: int
    diff_percentage: float


class ChannelDiff(CamelModel):
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0


class DiffMetrics(CamelModel):
    total_pixels: int
    diff_pixels: int
    diff_percentage: float
    grid: list[GridCell] = Field(default_factory=list)  # row-major
    channels: ChannelDiff = Field(default_factory=ChannelDiff)


class ComparisonReport(CamelModel):
    design_slug: str
    variation_slug: str
    preset: str
    timestamp: str
    metrics: DiffMetrics


class PresetResult(CamelModel):
    name: str
    width: int
    height: int
    has_design: bool = False
    has_storybook: bool = False
    has_diff: bool = False
    has_report: bool = False


class ComparisonManifest(CamelModel):
    design_slug: str
    variation_slug: str
    story_id: str
    presets: list[PresetResult] = Field(default_factory=list)
    captured_at: str
