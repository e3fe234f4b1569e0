"""
Backup Document Models

The portable representation of the whole store. The shape matches the
files the shop already has on disk:

    {"users": [...], "customers": [...], "expenses": [...],
     "version": "2.5", "exportedAt": "2025-01-31T12:00:00+00:00"}

Unknown top-level keys are ignored on import.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fiado.models.accounts import Expense, User
from fiado.models.ledger import Customer


class BackupDocument(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    users: list[User] = Field(default_factory=list)
    customers: list[Customer] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    version: Optional[str] = None
    exported_at: Optional[str] = None

    def to_export(self, include_user_secrets: bool = False) -> dict[str, Any]:
        """
        JSON-safe dict in the on-disk shape.

        Records keep their ids. Customer versions are store-local and
        left out; passwords are left out unless asked for.
        """
        user_exclude = None if include_user_secrets else {"password"}
        return {
            "users": [
                user.model_dump(mode="json", by_alias=True, exclude=user_exclude)
                for user in self.users
            ],
            "customers": [
                customer.model_dump(mode="json", by_alias=True, exclude={"version"})
                for customer in self.customers
            ],
            "expenses": [
                expense.model_dump(mode="json", by_alias=True)
                for expense in self.expenses
            ],
            "version": self.version,
            "exportedAt": self.exported_at,
        }


class ImportResult(BaseModel):
    """
    Outcome of importing a backup document.

    Import is sequential and not atomic; on failure the counts say how
    far it got before stopping.
    """

    success: bool
    customers_written: int = 0
    customers_merged: int = 0
    expenses_written: int = 0
    error_message: Optional[str] = None
