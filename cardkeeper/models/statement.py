"""
Bill Statement Models

A BillStatement is a pointer to a file in object storage plus the
metadata the user entered when uploading it. The binary itself never
lives in the database.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BillStatement(BaseModel):
    """Metadata record for an uploaded bill statement."""

    id: UUID
    user_id: UUID
    credit_card_id: UUID

    # Stored file
    file_name: str
    file_path: str = Field(
        ...,
        description="Object key inside the statements bucket"
    )
    file_size: int = Field(ge=0)
    file_type: str

    # Bill details
    bill_date: date
    due_date: date
    amount: Decimal

    created_at: Optional[datetime] = None

    @property
    def size_kb(self) -> float:
        return self.file_size / 1024


class StatementFile(BaseModel):
    """An uploaded file before it is sent to storage."""

    file_name: str = Field(..., min_length=1)
    content: bytes = Field(repr=False)
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)
