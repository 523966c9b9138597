"""Tests for the balance reconciler."""

from datetime import date

from homebudget.ledger import reconciler
from homebudget.models.ledger import Account, Transaction, TransactionType


def accounts(a: float = 0.0, b: float = 0.0) -> tuple[Account, ...]:
    return (
        Account(id="acc-a", name="Card", balance=a),
        Account(id="acc-b", name="Savings", balance=b),
    )


def balances(accts) -> dict[str, float]:
    return {a.id: a.balance for a in accts}


def txn(txn_type: TransactionType, amount: float, **fields) -> Transaction:
    return Transaction(id=fields.pop("id", "t1"), date=date(2024, 3, 1), type=txn_type,
                       amount=amount, account_id=fields.pop("account_id", "acc-a"), **fields)


class TestApplyAdded:

    def test_income_credits_account(self):
        result = reconciler.apply_added(accounts(), txn(TransactionType.INCOME, 100))
        assert balances(result) == {"acc-a": 100, "acc-b": 0}

    def test_expense_debits_account(self):
        result = reconciler.apply_added(accounts(100), txn(TransactionType.EXPENSE, 30))
        assert balances(result)["acc-a"] == 70

    def test_transfer_moves_money_and_conserves_total(self):
        transfer = txn(TransactionType.TRANSFER, 200, transfer_to_account_id="acc-b")
        result = reconciler.apply_added(accounts(500), transfer)
        assert balances(result) == {"acc-a": 300, "acc-b": 200}
        assert sum(balances(result).values()) == 500

    def test_unknown_account_is_skipped(self):
        result = reconciler.apply_added(accounts(10), txn(TransactionType.INCOME, 5, account_id="gone"))
        assert balances(result) == {"acc-a": 10, "acc-b": 0}

    def test_input_is_not_mutated(self):
        original = accounts(10)
        reconciler.apply_added(original, txn(TransactionType.INCOME, 5))
        assert original[0].balance == 10

    def test_unchanged_accounts_are_reused(self):
        original = accounts(10)
        result = reconciler.apply_added(original, txn(TransactionType.INCOME, 5))
        assert result[1] is original[1]


class TestApplyReplaced:

    def test_amount_change(self):
        before = txn(TransactionType.EXPENSE, 200)
        after = before.model_copy(update={"amount": 150})
        result = reconciler.apply_replaced(accounts(800), before, after)
        assert balances(result)["acc-a"] == 850

    def test_type_change_from_expense_to_income(self):
        before = txn(TransactionType.EXPENSE, 50)
        after = txn(TransactionType.INCOME, 50)
        result = reconciler.apply_replaced(accounts(50), before, after)
        assert balances(result)["acc-a"] == 150

    def test_account_change(self):
        before = txn(TransactionType.INCOME, 40)
        after = txn(TransactionType.INCOME, 40, account_id="acc-b")
        result = reconciler.apply_replaced(accounts(40), before, after)
        assert balances(result) == {"acc-a": 0, "acc-b": 40}

    def test_identical_edit_is_idempotent(self):
        record = txn(TransactionType.TRANSFER, 70, transfer_to_account_id="acc-b")
        start = accounts(100, 70)
        result = reconciler.apply_replaced(start, record, record)
        assert balances(result) == balances(start)


class TestApplyRemoved:

    def test_each_removed_transaction_reversed_once(self):
        removed = [
            txn(TransactionType.EXPENSE, 10, id="t1"),
            txn(TransactionType.EXPENSE, 20, id="t2"),
            txn(TransactionType.INCOME, 5, id="t3", account_id="acc-b"),
        ]
        result = reconciler.apply_removed(accounts(70, 5), removed)
        assert balances(result) == {"acc-a": 100, "acc-b": 0}

    def test_removed_transfer_returns_money(self):
        transfer = txn(TransactionType.TRANSFER, 200, transfer_to_account_id="acc-b")
        result = reconciler.apply_removed(accounts(300, 200), [transfer])
        assert balances(result) == {"acc-a": 500, "acc-b": 0}


class TestApplyReassigned:

    def test_moves_income_and_expense(self):
        moved = [
            txn(TransactionType.INCOME, 100, id="t1"),
            txn(TransactionType.EXPENSE, 30, id="t2"),
        ]
        result = reconciler.apply_reassigned(accounts(70), moved, "acc-b")
        assert balances(result) == {"acc-a": 0, "acc-b": 70}

    def test_transfers_and_same_account_are_ignored(self):
        moved = [
            txn(TransactionType.TRANSFER, 100, id="t1", transfer_to_account_id="acc-b"),
            txn(TransactionType.INCOME, 30, id="t2", account_id="acc-b"),
        ]
        start = accounts(-100, 130)
        result = reconciler.apply_reassigned(start, moved, "acc-b")
        assert balances(result) == balances(start)
