"""
Account Models: users of the app and the shop's own expenses.

Neither entity touches customer balances. They live in the same store
and travel in the same backup document, which is why they are modelled
with the same document conventions as customers.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from fiado.models.ledger import DocumentModel, StoredMoney, utc_now


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(DocumentModel):
    """
    An operator of the app.

    Self-registered users start unapproved; an admin flips `approved`.
    The password is an opaque secret compared as-is; hashing belongs to
    the credential layer, which is outside this package.
    """

    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    username: str = Field(..., min_length=1, max_length=100)
    password: Optional[str] = Field(default=None, repr=False)
    role: UserRole = UserRole.USER
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    approved: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class ExpenseStatus(str, Enum):
    """Derived at read time, never stored."""
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class Expense(DocumentModel):
    """A bill the shop itself has to pay."""

    id: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    value: StoredMoney
    due_date: dt.date
    paid_date: Optional[dt.date] = None
    paid_value: Optional[StoredMoney] = None
    status: ExpenseStatus = ExpenseStatus.PENDING
    created_at: dt.datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict:
        document = super().to_document()
        document.pop("status", None)
        return document

    def derive_status(self, today: Optional[dt.date] = None) -> ExpenseStatus:
        """PAID once a paid date exists, OVERDUE after the due date, else PENDING."""
        today = today or dt.date.today()
        if self.paid_date:
            return ExpenseStatus.PAID
        if self.due_date < today:
            return ExpenseStatus.OVERDUE
        return ExpenseStatus.PENDING

    def with_status(self, today: Optional[dt.date] = None) -> "Expense":
        return self.model_copy(update={"status": self.derive_status(today)})


class AuthFailure(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


class AuthResult(BaseModel):
    """Outcome of a credential check. Exactly one of user/error is set."""

    user: Optional[User] = None
    error: Optional[AuthFailure] = None

    @property
    def ok(self) -> bool:
        return self.user is not None
