"""
Balance Reconciler

Turns a transaction mutation into the account balances it implies.

DESIGN DECISION: Every function here is pure. It takes the current
account tuple and returns a new one; the input is never touched. All
deltas for one operation are accumulated on a single working copy of
the balances, so several reversals against the same account add up
instead of overwriting each other.

Balance effect per transaction type (amount is always >= 0):
- income:   account += amount
- expense:  account -= amount
- transfer: account -= amount, transfer target += amount

Account ids that are not in the account set are skipped, never raised.
"""

from typing import Iterable, Optional

from homebudget.models.ledger import Account, Transaction, TransactionType


Balances = dict[str, float]


def _working_copy(accounts: tuple[Account, ...]) -> Balances:
    return {account.id: account.balance for account in accounts}


def _credit(balances: Balances, account_id: Optional[str], amount: float) -> None:
    if account_id and account_id in balances:
        balances[account_id] += amount


def _apply(balances: Balances, txn: Transaction, sign: int) -> None:
    """Apply a transaction's effect (sign=1) or its inverse (sign=-1)."""
    if txn.type == TransactionType.INCOME:
        _credit(balances, txn.account_id, sign * txn.amount)
    elif txn.type == TransactionType.EXPENSE:
        _credit(balances, txn.account_id, -sign * txn.amount)
    elif txn.type == TransactionType.TRANSFER:
        _credit(balances, txn.account_id, -sign * txn.amount)
        _credit(balances, txn.transfer_to_account_id, sign * txn.amount)


def _rebuild(accounts: tuple[Account, ...], balances: Balances) -> tuple[Account, ...]:
    return tuple(
        account if account.balance == balances[account.id]
        else account.model_copy(update={"balance": balances[account.id]})
        for account in accounts
    )


def apply_added(accounts: tuple[Account, ...], txn: Transaction) -> tuple[Account, ...]:
    """Apply a newly added transaction once."""
    balances = _working_copy(accounts)
    _apply(balances, txn, 1)
    return _rebuild(accounts, balances)


def apply_replaced(
    accounts: tuple[Account, ...],
    original: Transaction,
    updated: Transaction,
) -> tuple[Account, ...]:
    """
    Reverse the original version, then apply the updated one.

    Both steps always run, whatever fields changed, so type, account and
    amount changes are all handled the same way.
    """
    balances = _working_copy(accounts)
    _apply(balances, original, -1)
    _apply(balances, updated, 1)
    return _rebuild(accounts, balances)


def apply_removed(
    accounts: tuple[Account, ...],
    txns: Iterable[Transaction],
) -> tuple[Account, ...]:
    """Reverse each removed transaction exactly once."""
    balances = _working_copy(accounts)
    for txn in txns:
        _apply(balances, txn, -1)
    return _rebuild(accounts, balances)


def apply_reassigned(
    accounts: tuple[Account, ...],
    txns: Iterable[Transaction],
    new_account_id: str,
) -> tuple[Account, ...]:
    """
    Move income/expense transactions to another account.

    Transfers are expected to be filtered out by the caller and are
    ignored here.
    """
    balances = _working_copy(accounts)
    for txn in txns:
        if txn.type == TransactionType.TRANSFER or txn.account_id == new_account_id:
            continue
        _apply(balances, txn, -1)
        _apply(balances, txn.model_copy(update={"account_id": new_account_id}), 1)
    return _rebuild(accounts, balances)
