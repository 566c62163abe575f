"""
Validation Result Models

A form is either accepted (and the normalized record is attached) or
rejected with one issue per offending field. Nothing is sent to the
backend until a result comes back valid.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'negative')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one submitted form."""

    form: str = Field(
        ...,
        description="Name of the form that was validated"
    )
    record: Optional[Any] = Field(
        default=None,
        description="Normalized, typed record when validation passed"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return self.record is not None and not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[str]:
        """Messages for one field, in the order they were found."""
        return [issue.message for issue in self.issues if issue.field == field]

    @property
    def field_errors(self) -> dict[str, list[str]]:
        """Messages grouped by field, for inline display next to inputs."""
        grouped: dict[str, list[str]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.field, []).append(issue.message)
        return grouped
