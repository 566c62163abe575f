"""
Tests for form validation.

The messages asserted here are the ones shown next to each input.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from cardkeeper.config import AppSettings
from cardkeeper.models.statement import StatementFile
from cardkeeper.validation import (
    CreditCardForm,
    FormValidator,
    ReminderForm,
    StatementUploadForm,
)
from tests.factories import pdf_file, valid_card_form


@pytest.fixture
def validator(app_settings) -> FormValidator:
    return FormValidator(app_settings)


class TestCardForm:
    """Tests for the add/edit card form."""

    def test_valid_form(self, validator):
        result = validator.validate_card(valid_card_form())
        assert result.is_valid
        form = result.record
        assert isinstance(form, CreditCardForm)
        assert form.credit_limit == Decimal("50000")
        assert form.last_bill_date == date(2024, 1, 5)

    def test_whitespace_is_stripped(self, validator):
        result = validator.validate_card(valid_card_form(card_name="  Regalia  "))
        assert result.record.card_name == "Regalia"

    @pytest.mark.parametrize("field,message", [
        ("card_name", "Card name is required"),
        ("card_network", "Card network is required"),
        ("bank_name", "Bank name is required"),
        ("color", "Card color is required"),
    ])
    def test_required_text_fields(self, validator, field, message):
        result = validator.validate_card(valid_card_form(**{field: "   "}))
        assert not result.is_valid
        assert result.errors_for(field) == [message]

    def test_missing_keys_get_friendly_messages(self, validator):
        """An empty submission reports every required field by name."""
        result = validator.validate_card({})
        errors = result.field_errors
        assert errors["card_name"] == ["Card name is required"]
        assert errors["bank_name"] == ["Bank name is required"]
        assert errors["last_four_digits"] == ["Last four digits must be exactly 4 digits"]

    @pytest.mark.parametrize("value", ["123", "12345", ""])
    def test_last_four_wrong_length(self, validator, value):
        result = validator.validate_card(valid_card_form(last_four_digits=value))
        assert result.errors_for("last_four_digits") == [
            "Last four digits must be exactly 4 digits"
        ]

    def test_last_four_non_digits(self, validator):
        result = validator.validate_card(valid_card_form(last_four_digits="12a4"))
        assert result.errors_for("last_four_digits") == [
            "Last four digits must contain only digits"
        ]

    @pytest.mark.parametrize("value", ["١٢٣٤", "１２３４", "१२३४"])
    def test_last_four_non_ascii_digits_rejected(self, validator, value):
        """Only 0-9 count as card digits."""
        result = validator.validate_card(valid_card_form(last_four_digits=value))
        assert not result.is_valid
        assert result.errors_for("last_four_digits") == [
            "Last four digits must contain only digits"
        ]

    def test_non_ascii_date_digits_rejected(self, validator):
        result = validator.validate_card(valid_card_form(last_bill_date="２０２４-01-05"))
        assert result.errors_for("last_bill_date") == [
            "Last bill date must be in YYYY-MM-DD format"
        ]

    def test_empty_dates_are_none(self, validator):
        result = validator.validate_card(
            valid_card_form(last_bill_date="", last_due_date="")
        )
        assert result.is_valid
        assert result.record.last_bill_date is None
        assert result.record.last_due_date is None

    @pytest.mark.parametrize("value", ["05-01-2024", "2024/01/05", "2024-02-30"])
    def test_bad_dates_rejected(self, validator, value):
        result = validator.validate_card(valid_card_form(last_bill_date=value))
        assert result.errors_for("last_bill_date") == [
            "Last bill date must be in YYYY-MM-DD format"
        ]

    def test_date_objects_accepted(self, validator):
        result = validator.validate_card(valid_card_form(expiry_date=date(2028, 3, 31)))
        assert result.record.expiry_date == date(2028, 3, 31)

    def test_blank_money_is_zero(self, validator):
        result = validator.validate_card(valid_card_form(joining_fees="", annual_fees=None))
        assert result.record.joining_fees == Decimal("0")
        assert result.record.annual_fees == Decimal("0")

    def test_money_with_grouping_commas(self, validator):
        result = validator.validate_card(valid_card_form(credit_limit="1,50,000"))
        assert result.record.credit_limit == Decimal("150000")

    def test_non_numeric_money_rejected(self, validator):
        result = validator.validate_card(valid_card_form(credit_limit="lots"))
        assert result.errors_for("credit_limit") == ["Credit limit must be a number"]

    def test_negative_money_rejected(self, validator):
        result = validator.validate_card(valid_card_form(current_balance="-5"))
        assert result.errors_for("current_balance") == [
            "Current balance must be a positive number"
        ]

    def test_due_before_bill_is_accepted(self, validator):
        """No cross-field rule between the two dates."""
        result = validator.validate_card(
            valid_card_form(last_bill_date="2024-01-25", last_due_date="2024-01-05")
        )
        assert result.is_valid

    def test_all_errors_reported_together(self, validator):
        result = validator.validate_card(
            valid_card_form(card_name="", last_four_digits="12", credit_limit="x")
        )
        assert set(result.field_errors) == {"card_name", "last_four_digits", "credit_limit"}


class TestReminderForm:
    """Tests for the reminder form."""

    def _raw(self, **overrides):
        raw = {
            "credit_card_id": str(uuid4()),
            "due_date": "2024-02-10",
            "amount": "12000",
            "notes": "",
        }
        raw.update(overrides)
        return raw

    def test_valid_reminder(self, validator):
        result = validator.validate_reminder(self._raw())
        assert result.is_valid
        assert isinstance(result.record, ReminderForm)
        assert result.record.is_paid is False
        assert result.record.notes is None

    def test_zero_amount_rejected(self, validator):
        result = validator.validate_reminder(self._raw(amount="0"))
        assert result.errors_for("amount") == ["Amount must be greater than 0"]

    def test_smallest_amount_accepted(self, validator):
        result = validator.validate_reminder(self._raw(amount="0.01"))
        assert result.is_valid
        assert result.record.amount == Decimal("0.01")

    def test_blank_amount_rejected(self, validator):
        """Blank counts as zero, which is below the minimum."""
        result = validator.validate_reminder(self._raw(amount=""))
        assert result.errors_for("amount") == ["Amount must be greater than 0"]

    def test_card_is_required(self, validator):
        result = validator.validate_reminder(self._raw(credit_card_id=None))
        assert result.errors_for("credit_card_id") == ["Please select a credit card"]

    def test_bad_card_id(self, validator):
        result = validator.validate_reminder(self._raw(credit_card_id="not-a-uuid"))
        assert result.errors_for("credit_card_id") == ["Please select a credit card"]

    def test_due_date_required(self, validator):
        result = validator.validate_reminder(self._raw(due_date=""))
        assert result.errors_for("due_date") == ["Due date is required"]

    def test_notes_kept(self, validator):
        result = validator.validate_reminder(self._raw(notes="  autopay off  "))
        assert result.record.notes == "autopay off"

    def test_null_paid_is_false(self, validator):
        result = validator.validate_reminder(self._raw(is_paid=None))
        assert result.record.is_paid is False


class TestStatementForm:
    """Tests for the statement upload dialog."""

    def _raw(self, **overrides):
        raw = {"bill_date": "2024-01-05", "due_date": "2024-01-25", "amount": "12000"}
        raw.update(overrides)
        return raw

    def test_valid_upload(self, validator):
        result = validator.validate_statement(self._raw(), pdf_file())
        assert result.is_valid
        assert isinstance(result.record, StatementUploadForm)
        assert result.record.amount == Decimal("12000")

    def test_zero_amount_allowed(self, validator):
        result = validator.validate_statement(self._raw(amount="0"), pdf_file())
        assert result.is_valid

    def test_amount_required(self, validator):
        result = validator.validate_statement(self._raw(amount=""), pdf_file())
        assert result.errors_for("amount") == ["Amount is required"]

    def test_dates_required(self, validator):
        result = validator.validate_statement(self._raw(bill_date=None), pdf_file())
        assert result.errors_for("bill_date") == ["Bill date is required"]

    def test_missing_file(self, validator):
        result = validator.validate_statement(self._raw(), None)
        assert not result.is_valid
        assert result.errors_for("file") == ["Please choose a statement file"]

    def test_non_pdf_rejected(self, validator):
        file = StatementFile(file_name="a.png", content=b"png", mime_type="image/png")
        result = validator.validate_statement(self._raw(), file)
        assert result.errors_for("file") == ["Only PDF files are supported"]

    def test_empty_file_rejected(self, validator):
        result = validator.validate_statement(self._raw(), pdf_file(content=b""))
        assert result.errors_for("file") == ["The selected file is empty"]

    def test_oversized_file_rejected(self):
        validator = FormValidator(AppSettings(max_statement_size_mb=1))
        big = pdf_file(content=b"x" * (1024 * 1024 + 1))
        result = validator.validate_statement(self._raw(), big)
        assert result.errors_for("file") == ["File is larger than the 1 MB limit"]

    def test_file_and_field_errors_combined(self, validator):
        """A valid form with a bad file still returns no record."""
        result = validator.validate_statement(self._raw(amount=""), None)
        assert result.record is None
        assert set(result.field_errors) == {"amount", "file"}

    def test_file_error_drops_record(self, validator):
        result = validator.validate_statement(self._raw(), None)
        assert result.record is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
