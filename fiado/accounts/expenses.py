"""
Expense Book

The shop's own bills. Status (PENDING / PAID / OVERDUE) is derived
every time expenses are read, from paidDate and dueDate against today.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from fiado.logger import get_logger
from fiado.models.accounts import Expense
from fiado.services.storage import (
    EXPENSES,
    DocumentStoreInterface,
    MalformedRecordError,
)


logger = get_logger(__name__)


class ExpenseBook:
    """Operations on the expenses collection."""

    def __init__(self, store: DocumentStoreInterface):
        self._store = store

    def _from_document(self, document: dict, today: Optional[dt.date]) -> Expense:
        try:
            expense = Expense.model_validate(document)
        except ValidationError as e:
            raise MalformedRecordError(
                f"Expense record {document.get('id')!r} does not match the schema: {e}"
            ) from e
        return expense.with_status(today)

    async def list_expenses(
        self,
        today: Optional[dt.date] = None,
        skip_malformed: bool = True,
    ) -> list[Expense]:
        """
        All expenses by due date, earliest first, with derived status.

        Malformed records are logged and left out unless skip_malformed
        is False, in which case they raise MalformedRecordError.
        """
        expenses = []
        for document in await self._store.list_documents(EXPENSES):
            try:
                expenses.append(self._from_document(document, today))
            except MalformedRecordError as e:
                if not skip_malformed:
                    raise
                logger.error(
                    "expense_record_malformed",
                    expense_id=document.get("id"),
                    error=str(e),
                )
        expenses.sort(key=lambda e: e.due_date)
        return expenses

    async def get_expense(
        self,
        expense_id: str,
        today: Optional[dt.date] = None,
    ) -> Optional[Expense]:
        document = await self._store.get_document(EXPENSES, expense_id)
        return self._from_document(document, today) if document else None

    async def save_expense(self, expense: Expense) -> Expense:
        """
        Replace the expense at its id, or create it when it has none.

        Returns:
            The saved expense with its id
        """
        if expense.id:
            await self._store.set_document(EXPENSES, expense.id, expense.to_document())
            saved = expense
        else:
            new_id = await self._store.create_document(EXPENSES, expense.to_document())
            saved = expense.model_copy(update={"id": new_id})

        logger.info("expense_saved", expense_id=saved.id, value=str(saved.value))
        return saved.with_status()

    async def mark_paid(
        self,
        expense_id: str,
        paid_date: Optional[dt.date] = None,
        paid_value: Optional[Decimal] = None,
    ) -> bool:
        """
        Record payment of an expense.

        paid_value defaults to the expense value.

        Returns:
            False if the expense does not exist
        """
        expense = await self.get_expense(expense_id)
        if expense is None:
            return False

        paid = expense.model_copy(update={
            "paid_date": paid_date or dt.date.today(),
            "paid_value": paid_value if paid_value is not None else expense.value,
        })
        await self._store.set_document(EXPENSES, expense_id, paid.to_document())
        logger.info("expense_paid", expense_id=expense_id, paid_value=str(paid.paid_value))
        return True

    async def delete_expense(self, expense_id: str) -> bool:
        deleted = await self._store.delete_document(EXPENSES, expense_id)
        logger.info("expense_deleted", expense_id=expense_id, deleted=deleted)
        return deleted
