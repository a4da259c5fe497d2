"""Project configuration models."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_VISION_MODEL = "claude-sonnet-4-5-20250929"


class ViewportPreset(BaseModel):
    name: str = "desktop"
    width: int = 1440
    height: int = 960


class StorybookConfig(BaseModel):
    enabled: bool = True
    cwd: str = "."
    dev_command: str = "npm run storybook"
    url: str = "http://localhost:6006"
    story_globs: list[str] = Field(default_factory=lambda: ["src/**/*.stories.tsx"])


class ProjectConfig(BaseModel):
    project_name: str = "designs"

    # Paths (relative to the repo root)
    sets_root: str = "ui/designs/sets"
    screenshot_dir: str = "ui/designs/screenshots"
    ui_component_globs: list[str] = Field(default_factory=list)
    token_files: list[str] = Field(default_factory=list)
    vite_aliases: dict[str, str] = Field(default_factory=dict)
    style_entrypoints: Optional[list[str]] = None

    # Rendering
    workbench_url: str = "http://localhost:5200"
    storybook: StorybookConfig = Field(default_factory=StorybookConfig)
    screenshot_presets: list[ViewportPreset] = Field(
        default_factory=lambda: [
            ViewportPreset(name="desktop", width=1440, height=960),
            ViewportPreset(name="tablet", width=768, height=1024),
            ViewportPreset(name="mobile", width=375, height=812),
        ]
    )

    # AI settings
    ai_model: str = DEFAULT_VISION_MODEL

    def select_presets(self, names: list[str] | tuple[str, ...] | None) -> list[ViewportPreset]:
        """Return the configured presets, filtered to ``names`` when given."""
        if not names:
            return list(self.screenshot_presets)
        known = {p.name: p for p in self.screenshot_presets}
        missing = [n for n in names if n not in known]
        if missing:
            raise ValueError(
                f"Unknown preset(s): {', '.join(missing)}. "
                f"Configured: {', '.join(known) or 'none'}"
            )
        return [known[n] for n in names]

    @classmethod
    def load(cls, path: str | Path) -> "ProjectConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
