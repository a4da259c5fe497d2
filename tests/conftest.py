"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from design_compare.models.comparison import ChannelDiff, DiffMetrics, GridCell
from design_compare.models.config import ProjectConfig, StorybookConfig, ViewportPreset
from design_compare.models.vision import VisionIssue, VisionResult


# ============================================================================
# Image Fixtures
# ============================================================================


def write_solid_png(path: Path, width: int, height: int, rgba: tuple[int, int, int, int]) -> Path:
    """Write a single-colour RGBA PNG."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", (width, height), rgba).save(path, format="PNG")
    return path


@pytest.fixture
def solid_png(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: solid_png("a.png", 10, 10, (255, 0, 0, 255))."""

    def _make(name: str, width: int, height: int, rgba: tuple[int, int, int, int]) -> Path:
        return write_solid_png(tmp_path / name, width, height, rgba)

    return _make


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Create a repo layout that satisfies every config check."""
    root = tmp_path / "repo"
    (root / "sets").mkdir(parents=True)
    (root / "screenshots").mkdir()
    (root / "src" / "components").mkdir(parents=True)
    (root / "src" / "components" / "Button.tsx").write_text("")
    (root / "src" / "components" / "Button.stories.tsx").write_text("")
    (root / "tokens.css").write_text("")
    (root / "styles.css").write_text("")
    (root / "storybook-cwd").mkdir()
    return root


@pytest.fixture
def project_config() -> ProjectConfig:
    """Config whose paths match the project_root fixture."""
    return ProjectConfig(
        project_name="test-project",
        sets_root="sets",
        screenshot_dir="screenshots",
        ui_component_globs=["src/components/**/*.tsx"],
        token_files=["tokens.css"],
        vite_aliases={"@": "src"},
        style_entrypoints=["styles.css"],
        storybook=StorybookConfig(
            enabled=True,
            cwd="storybook-cwd",
            url="http://localhost:6006",
            story_globs=["src/**/*.stories.tsx"],
        ),
        screenshot_presets=[
            ViewportPreset(name="desktop", width=1440, height=960),
            ViewportPreset(name="mobile", width=375, height=812),
        ],
    )


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def diff_metrics() -> DiffMetrics:
    return DiffMetrics(
        total_pixels=100,
        diff_pixels=4,
        diff_percentage=4.0,
        grid=[GridCell(row=0, col=0, total_pixels=100, diff_pixels=4, diff_percentage=4.0)],
        channels=ChannelDiff(r=1.5, g=0.5, b=0.0),
    )


@pytest.fixture
def passing_vision() -> VisionResult:
    return VisionResult(
        passed=True,
        confidence=0.95,
        issues=[VisionIssue(category="spacing", severity="minor", description="1px gap")],
        summary="Close match",
    )


@pytest.fixture
def failing_vision() -> VisionResult:
    return VisionResult(
        passed=False,
        confidence=0.8,
        issues=[
            VisionIssue(category="layout", severity="major", description="Sidebar missing", region="left"),
            VisionIssue(category="color", severity="minor", description="Slightly darker header"),
        ],
        summary="Layout differs",
    )
