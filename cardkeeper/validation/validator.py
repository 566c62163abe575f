"""
Form Validator

Turns raw form input into either a typed record or a list of
field-level issues. This runs before any network call: a form that
does not validate never reaches the backend.

IMPORTANT: Validation NEVER silently fixes issues beyond the documented
coercions (trimming, blank number → 0, blank optional date → None).
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from cardkeeper.config import AppSettings, get_settings
from cardkeeper.models.statement import StatementFile
from cardkeeper.models.validation import ValidationIssue, ValidationResult
from cardkeeper.validation.forms import (
    CreditCardForm,
    ReminderForm,
    StatementUploadForm,
)


def issues_from_error(error: ValidationError) -> list[ValidationIssue]:
    """Map a pydantic ValidationError to one issue per failing field."""
    issues = []
    for err in error.errors():
        loc = err.get("loc") or ()
        field = ".".join(str(part) for part in loc) or "__root__"
        issues.append(ValidationIssue(
            field=field,
            issue_type=err.get("type", "invalid"),
            message=err.get("msg", "Invalid value"),
            severity="error",
        ))
    return issues


class FormValidator:
    """
    Validates the three forms the application submits.

    Card and reminder forms are pure schema checks. The statement form
    also checks the attached file against the configured size and type
    limits.
    """

    def __init__(self, app_settings: Optional[AppSettings] = None):
        self._settings = app_settings or get_settings().app

    def _run(
        self,
        form_name: str,
        schema: type[BaseModel],
        raw: Mapping[str, Any],
    ) -> ValidationResult:
        try:
            record = schema.model_validate(dict(raw))
        except ValidationError as e:
            return ValidationResult(form=form_name, issues=issues_from_error(e))
        return ValidationResult(form=form_name, record=record)

    def validate_card(self, raw: Mapping[str, Any]) -> ValidationResult:
        """Validate the add/edit card form."""
        return self._run("credit_card", CreditCardForm, raw)

    def validate_reminder(self, raw: Mapping[str, Any]) -> ValidationResult:
        """Validate the add/edit reminder form."""
        return self._run("payment_reminder", ReminderForm, raw)

    def _check_file(self, file: Optional[StatementFile]) -> list[ValidationIssue]:
        if file is None:
            return [ValidationIssue(
                field="file",
                issue_type="missing",
                message="Please choose a statement file",
            )]

        issues = []
        if file.mime_type.lower() not in self._settings.supported_types_list:
            issues.append(ValidationIssue(
                field="file",
                issue_type="unsupported_type",
                message="Only PDF files are supported",
            ))
        if file.size == 0:
            issues.append(ValidationIssue(
                field="file",
                issue_type="empty",
                message="The selected file is empty",
            ))
        elif file.size > self._settings.max_statement_size_bytes:
            issues.append(ValidationIssue(
                field="file",
                issue_type="too_large",
                message=(
                    f"File is larger than the "
                    f"{self._settings.max_statement_size_mb} MB limit"
                ),
            ))
        return issues

    def validate_statement(
        self,
        raw: Mapping[str, Any],
        file: Optional[StatementFile],
    ) -> ValidationResult:
        """
        Validate the upload dialog: metadata fields plus the file itself.

        All issues are reported together so the dialog can mark every
        offending input at once.
        """
        result = self._run("bill_statement", StatementUploadForm, raw)
        file_issues = self._check_file(file)
        if not file_issues:
            return result
        return ValidationResult(
            form=result.form,
            issues=result.issues + file_issues,
        )
