"""Config validation result structures."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    label: str
    ok: bool
    level: Literal["error", "warning"] = "error"
    detail: str = ""


class ValidationReport(BaseModel):
    errors: int = 0
    warnings: int = 0
    results: list[ValidationResult] = Field(default_factory=list)
