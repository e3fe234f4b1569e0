"""Users of the app and the shop's own expenses."""

from fiado.accounts.expenses import ExpenseBook
from fiado.accounts.users import SelfDeleteError, UserDirectory

__all__ = ["ExpenseBook", "SelfDeleteError", "UserDirectory"]
