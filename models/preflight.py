"""
Preflight report models.

A PreflightIssue is a finding, not an exception. The checker always returns
a PreflightResult so the host can render the report unconditionally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class IssueType(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(Enum):
    RESOLUTION = "resolution"
    BLEED = "bleed"
    FONTS = "fonts"
    COLORS = "colors"
    ACCESSIBILITY = "accessibility"
    CONTENT = "content"


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class PreflightIssue:
    """One finding of a preflight rule."""

    type: IssueType
    category: IssueCategory
    message: str
    severity: Severity
    fixable: bool = True
    element_id: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type.value,
            "category": self.category.value,
            "message": self.message,
            "severity": self.severity.value,
            "fixable": self.fixable,
        }
        if self.element_id is not None:
            payload["elementId"] = self.element_id
        if self.suggestion is not None:
            payload["suggestion"] = self.suggestion
        return payload


@dataclass(frozen=True)
class PreflightSummary:
    errors: int = 0
    warnings: int = 0
    info: int = 0
    critical_issues: int = 0

    @classmethod
    def from_issues(cls, issues: List[PreflightIssue]) -> "PreflightSummary":
        return cls(
            errors=sum(1 for i in issues if i.type is IssueType.ERROR),
            warnings=sum(1 for i in issues if i.type is IssueType.WARNING),
            info=sum(1 for i in issues if i.type is IssueType.INFO),
            critical_issues=sum(1 for i in issues if i.severity is Severity.CRITICAL),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "info": self.info,
            "criticalIssues": self.critical_issues,
        }


@dataclass
class PreflightResult:
    """
    Output of ``PreflightChecker.run_checks()``.

    Issues keep rule-group order (resolution, bleed, fonts, colors,
    accessibility, content); they are not re-sorted by severity.
    """

    issues: List[PreflightIssue] = field(default_factory=list)
    summary: PreflightSummary = field(default_factory=PreflightSummary)
    recommendations: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.summary.errors == 0 and self.summary.critical_issues == 0

    def issues_by_category(self, category: IssueCategory) -> List[PreflightIssue]:
        return [issue for issue in self.issues if issue.category is category]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "issues": [issue.to_dict() for issue in self.issues],
            "summary": self.summary.to_dict(),
            "recommendations": list(self.recommendations),
        }
