"""
Tests for the transaction editor.

Each test starts from a saved customer in the in-memory store and checks
both the return value and what ended up stored.
"""

from datetime import date
from decimal import Decimal

import pytest

from fiado.config import LedgerSettings
from fiado.ledger import InvalidTransactionError, TransactionEditor
from fiado.ledger.ids import content_transaction_id, new_transaction_id
from fiado.models import ScannedEntry, TransactionType
from fiado.services.storage import VersionConflictError

from helpers import make_transaction


def scanned(day: int, description: str, value: str, type: str = "sale") -> ScannedEntry:
    return ScannedEntry(
        date=date(2025, 3, day),
        description=description,
        value=Decimal(value),
        type=type,
    )


class TestAddTransaction:
    """Tests for manual entry."""

    async def test_add_appends_and_updates_balance(self, editor, ledger, customer):
        """A new SALE is stored and the balance follows it."""
        transaction = await editor.add_transaction(
            customer.id, "Brinco", Decimal("45.50"), TransactionType.SALE, date(2025, 3, 1)
        )

        assert transaction is not None
        stored = await ledger.get_customer(customer.id)
        assert [t.id for t in stored.transactions] == [transaction.id]
        assert stored.balance == Decimal("45.50")

    async def test_add_keeps_insertion_order(self, editor, ledger, customer):
        """Entries are appended, not sorted by date."""
        await editor.add_transaction(customer.id, "Later", 10, "SALE", date(2025, 3, 10))
        await editor.add_transaction(customer.id, "Earlier", 5, "PAYMENT", date(2025, 3, 1))

        stored = await ledger.get_customer(customer.id)
        assert [t.description for t in stored.transactions] == ["Later", "Earlier"]
        assert stored.balance == Decimal("5.00")

    async def test_add_accepts_lowercase_type_and_iso_date(self, editor, customer):
        transaction = await editor.add_transaction(customer.id, "Anel", "30", "sale", "2025-03-01")
        assert transaction.type == TransactionType.SALE
        assert transaction.date == date(2025, 3, 1)

    async def test_add_to_missing_customer_returns_none(self, editor):
        result = await editor.add_transaction("nope", "Anel", 10, "SALE", date(2025, 3, 1))
        assert result is None

    async def test_add_rejects_unparseable_value(self, editor, customer):
        with pytest.raises(InvalidTransactionError):
            await editor.add_transaction(customer.id, "Anel", "dez reais", "SALE", date(2025, 3, 1))

    @pytest.mark.parametrize("value", ["1e30", "Infinity", "NaN", None, True])
    async def test_add_rejects_out_of_range_or_missing_value(self, editor, store, customer, value):
        """Typed amounts are never coerced; the stored record is left alone."""
        before = await store.get_document("customers", customer.id)

        with pytest.raises(InvalidTransactionError):
            await editor.add_transaction(customer.id, "Anel", value, "SALE", date(2025, 3, 1))

        assert await store.get_document("customers", customer.id) == before

    async def test_negative_value_allowed_by_default(self, editor, customer):
        transaction = await editor.add_transaction(customer.id, "Ajuste", -5, "SALE", date(2025, 3, 1))
        assert transaction.value == Decimal("-5")

    async def test_negative_value_rejected_when_disabled(self, store, customer):
        strict = TransactionEditor(store, LedgerSettings(allow_negative_values=False))
        with pytest.raises(InvalidTransactionError):
            await strict.add_transaction(customer.id, "Ajuste", -5, "SALE", date(2025, 3, 1))


class TestEditTransaction:
    """Tests for in-place edits."""

    async def test_edit_replaces_in_place(self, editor, ledger, customer):
        first = await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))
        await editor.add_transaction(customer.id, "Brinco", 50, "SALE", date(2025, 3, 2))

        changed = first.model_copy(update={"value": Decimal("80"), "description": "Anel de prata"})
        assert await editor.edit_transaction(customer.id, changed) is True

        stored = await ledger.get_customer(customer.id)
        assert stored.transactions[0].description == "Anel de prata"
        assert stored.transactions[0].id == first.id
        assert stored.balance == Decimal("130.00")

    async def test_edit_unknown_id_changes_nothing(self, editor, store, customer):
        """Editing a transaction id that does not exist fails and writes nothing."""
        await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))
        before = await store.get_document("customers", customer.id)

        ghost = make_transaction(999, id="does-not-exist")
        assert await editor.edit_transaction(customer.id, ghost) is False

        after = await store.get_document("customers", customer.id)
        assert after == before

    async def test_edit_missing_customer_returns_false(self, editor):
        assert await editor.edit_transaction("nope", make_transaction(1, id="x")) is False

    async def test_edit_rejects_out_of_range_value(self, editor, ledger, customer):
        first = await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))
        changed = first.model_copy(update={"value": Decimal("1e30")})

        with pytest.raises(InvalidTransactionError):
            await editor.edit_transaction(customer.id, changed)

        assert (await ledger.get_customer(customer.id)).balance == Decimal("100.00")


class TestDeleteTransaction:
    """Tests for removing entries."""

    async def test_delete_removes_entry(self, editor, ledger, customer):
        sale = await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))
        await editor.add_transaction(customer.id, "Pagamento", 40, "PAYMENT", date(2025, 3, 5))

        assert await editor.delete_transaction(customer.id, sale.id) is True

        stored = await ledger.get_customer(customer.id)
        assert [t.description for t in stored.transactions] == ["Pagamento"]
        assert stored.balance == Decimal("-40.00")

    async def test_delete_unknown_id_still_succeeds(self, editor, ledger, customer):
        await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))
        assert await editor.delete_transaction(customer.id, "does-not-exist") is True
        assert len((await ledger.get_customer(customer.id)).transactions) == 1

    async def test_delete_missing_customer_returns_false(self, editor):
        assert await editor.delete_transaction("nope", "x") is False


class TestVersionCheck:
    """Concurrent writers are detected instead of silently overwritten."""

    async def test_stale_write_raises(self, editor, ledger, customer):
        stale = await ledger.get_customer(customer.id)
        await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))

        stale.transactions.append(make_transaction(5, id="from-stale-copy"))
        with pytest.raises(VersionConflictError):
            await ledger.upsert_customer(stale)

        stored = await ledger.get_customer(customer.id)
        assert [t.description for t in stored.transactions] == ["Anel"]

    async def test_each_write_bumps_version(self, editor, ledger, customer):
        await editor.add_transaction(customer.id, "Anel", 100, "SALE", date(2025, 3, 1))
        await editor.add_transaction(customer.id, "Brinco", 10, "SALE", date(2025, 3, 2))
        stored = await ledger.get_customer(customer.id)
        assert stored.version == customer.version + 2


class TestScannedEntries:
    """Tests for batch ingest of scanned entries."""

    async def test_batch_commits_in_order(self, editor, ledger, customer):
        entries = [
            scanned(1, "Anel", "100"),
            scanned(2, "Pagamento", "30", "payment"),
        ]
        result = await editor.add_scanned_entries(customer.id, entries)

        assert result.success
        assert len(result.committed) == 2
        stored = await ledger.get_customer(customer.id)
        assert [t.type for t in stored.transactions] == [TransactionType.SALE, TransactionType.PAYMENT]
        assert stored.balance == Decimal("70.00")

    async def test_retry_skips_committed_entries(self, editor, ledger, customer):
        """Running the same batch again does not duplicate it."""
        entries = [scanned(1, "Anel", "100"), scanned(2, "Brinco", "50")]
        await editor.add_scanned_entries(customer.id, entries)

        retry = await editor.add_scanned_entries(customer.id, entries)

        assert retry.success
        assert retry.committed == []
        assert retry.skipped == 2
        stored = await ledger.get_customer(customer.id)
        assert len(stored.transactions) == 2

    async def test_identical_lines_on_one_page_are_both_kept(self, editor, ledger, customer):
        entries = [scanned(1, "Anel", "100"), scanned(1, "Anel", "100")]
        result = await editor.add_scanned_entries(customer.id, entries)

        assert len(result.committed) == 2
        assert result.committed[0].id != result.committed[1].id
        assert (await ledger.get_customer(customer.id)).balance == Decimal("200.00")

    async def test_batch_token_scopes_ids(self, editor, ledger, customer):
        """The same page uploaded twice on purpose counts twice."""
        entries = [scanned(1, "Anel", "100")]
        await editor.add_scanned_entries(customer.id, entries, batch_token="upload-1")
        await editor.add_scanned_entries(customer.id, entries, batch_token="upload-2")

        assert len((await ledger.get_customer(customer.id)).transactions) == 2

    async def test_partial_failure_keeps_earlier_entries(self, store, ledger, customer):
        strict = TransactionEditor(store, LedgerSettings(allow_negative_values=False))
        entries = [
            scanned(1, "Anel", "100"),
            scanned(2, "Estorno", "-10"),
            scanned(3, "Brinco", "50"),
        ]
        result = await strict.add_scanned_entries(customer.id, entries)

        assert not result.success
        assert result.failed_index == 1
        assert len(result.committed) == 1
        assert len((await ledger.get_customer(customer.id)).transactions) == 1

    async def test_out_of_range_entry_stops_the_batch(self, editor, ledger, customer):
        entries = [scanned(1, "Anel", "100"), scanned(2, "Borrao", "1e30"), scanned(3, "Brinco", "50")]

        result = await editor.add_scanned_entries(customer.id, entries)

        assert result.failed_index == 1
        assert [t.description for t in result.committed] == ["Anel"]
        assert (await ledger.get_customer(customer.id)).balance == Decimal("100.00")

    async def test_retry_after_partial_failure_completes(self, store, editor, ledger, customer):
        strict = TransactionEditor(store, LedgerSettings(allow_negative_values=False))
        entries = [scanned(1, "Anel", "100"), scanned(2, "Estorno", "-10")]
        await strict.add_scanned_entries(customer.id, entries)

        result = await editor.add_scanned_entries(customer.id, entries)

        assert result.success
        assert result.skipped == 1
        assert len(result.committed) == 1
        assert (await ledger.get_customer(customer.id)).balance == Decimal("90.00")

    async def test_missing_customer(self, editor):
        result = await editor.add_scanned_entries("nope", [scanned(1, "Anel", "10")])
        assert result.customer_found is False
        assert not result.success


class TestTransactionIds:
    """Tests for id generation."""

    def test_manual_ids_are_unique(self):
        ids = {new_transaction_id() for _ in range(200)}
        assert len(ids) == 200

    def test_content_id_ignores_spacing_and_case(self):
        a = content_transaction_id("c1", date(2025, 3, 1), "Anel  de Prata", Decimal("10"))
        b = content_transaction_id("c1", date(2025, 3, 1), " anel de prata", Decimal("10.00"))
        assert a == b
        assert a.startswith("scan-")

    def test_content_id_depends_on_customer(self):
        a = content_transaction_id("c1", date(2025, 3, 1), "Anel", Decimal("10"))
        b = content_transaction_id("c2", date(2025, 3, 1), "Anel", Decimal("10"))
        assert a != b


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
