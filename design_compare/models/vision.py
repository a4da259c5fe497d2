"""Vision assessment data structures."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from design_compare.models.comparison import CamelModel

VisionIssueCategory = Literal["layout", "spacing", "typography", "color", "states", "other"]
VisionIssueSeverity = Literal["minor", "major", "critical"]


class VisionIssue(CamelModel):
    category: VisionIssueCategory
    severity: VisionIssueSeverity
    description: str
    region: Optional[str] = None


class VisionResult(CamelModel):
    passed: bool = Field(alias="pass")
    confidence: float = Field(ge=0.0, le=1.0)
    issues: list[VisionIssue] = Field(default_factory=list)
    summary: str = ""

    @classmethod
    def failure(cls, message: str) -> "VisionResult":
        """Sentinel result used whenever an assessment could not be obtained."""
        return cls(passed=False, confidence=0.0, issues=[], summary=message)

    @property
    def blocking_issues(self) -> list[VisionIssue]:
        return [i for i in self.issues if i.severity in ("major", "critical")]

    def to_json_dict(self) -> dict:
        # region is optional on disk, not null
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
