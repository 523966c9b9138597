"""
Ledger Store

Owns the canonical AppData snapshot and exposes every mutation the
application performs on it.

DESIGN DECISION: Mutations are written as pure reducers,
`(snapshot, ...) -> snapshot`, and LedgerStore is a thin holder that
swaps in each new snapshot and raises the dirty flag. This gives:
1. Reducers that are testable without any state
2. One place (LedgerStore._commit) that decides what counts as a change
3. No persistence knowledge in the ledger: the session saves, not the store

After every transaction mutation the snapshot holds transactions sorted
by date descending (ties keep insertion order) and the accounts returned
by the balance reconciler.

Unknown ids are never an error. A reducer that finds nothing to act on
returns the snapshot it was given.
"""

from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from homebudget.activity import ActivityLogger
from homebudget.ledger import reconciler
from homebudget.models.achievements import UnlockedAchievement
from homebudget.models.ledger import (
    BASE_CURRENCY,
    INVESTMENT_GROUP_NAME,
    MONTH_KEY_PATTERN,
    OPENING_BALANCE_PAYEE,
    Account,
    AccountType,
    AppData,
    Category,
    CategoryGroup,
    CurrencySettings,
    IncomeCategory,
    IncomeSource,
    InvestmentPlatform,
    MonthlyGoal,
    PlatformCategory,
    RateSource,
    Transaction,
    TransactionType,
    frozen_mapping,
    new_id,
)


IdFactory = Callable[[], str]
TransactionDraft = Union[Transaction, Mapping[str, Any]]
Unlocks = Union[Mapping[str, str], Iterable[UnlockedAchievement]]


# =============================================================================
# HELPERS
# =============================================================================

def sort_transactions(transactions: Iterable[Transaction]) -> tuple[Transaction, ...]:
    """Newest first. sorted() is stable, so same-day entries keep their order."""
    return tuple(sorted(transactions, key=lambda t: t.date, reverse=True))


def _with_ledger(
    snapshot: AppData,
    transactions: Iterable[Transaction],
    accounts: tuple[Account, ...],
) -> AppData:
    return snapshot.model_copy(update={
        "transactions": sort_transactions(transactions),
        "accounts": accounts,
    })


def _detach(
    snapshot: AppData,
    field: str,
    ids: Union[str, frozenset[str]],
) -> tuple[Transaction, ...]:
    """Null a foreign key on every transaction that references `ids`."""
    targets = frozenset([ids]) if isinstance(ids, str) else ids
    return tuple(
        t.model_copy(update={field: None}) if getattr(t, field) in targets else t
        for t in snapshot.transactions
    )


def _map_categories(
    groups: tuple[CategoryGroup, ...],
    category_id: str,
    **changes: Any,
) -> tuple[CategoryGroup, ...]:
    return tuple(
        group.model_copy(update={"categories": tuple(
            c.model_copy(update=changes) if c.id == category_id else c
            for c in group.categories
        )})
        for group in groups
    )


def _to_draft(draft: TransactionDraft, transaction_id: str) -> Transaction:
    if isinstance(draft, Transaction):
        return draft.model_copy(update={"id": transaction_id})
    return Transaction.model_validate({**draft, "id": transaction_id})


# =============================================================================
# TRANSACTIONS
# =============================================================================

def add_transaction(
    snapshot: AppData,
    draft: TransactionDraft,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    """Insert a transaction under a fresh id and apply its balance effect."""
    txn = _to_draft(draft, id_factory())
    accounts = reconciler.apply_added(snapshot.accounts, txn)
    return _with_ledger(snapshot, (*snapshot.transactions, txn), accounts)


def update_transaction(snapshot: AppData, record: Transaction) -> AppData:
    """Replace a transaction wholesale. Unknown ids are ignored."""
    original = snapshot.find_transaction(record.id)
    if original is None:
        return snapshot

    accounts = reconciler.apply_replaced(snapshot.accounts, original, record)
    transactions = (record if t.id == record.id else t for t in snapshot.transactions)
    return _with_ledger(snapshot, transactions, accounts)


def remove_transaction(snapshot: AppData, transaction_id: str) -> AppData:
    return remove_transactions(snapshot, [transaction_id])


def remove_transactions(snapshot: AppData, transaction_ids: Iterable[str]) -> AppData:
    """Delete a batch of transactions, reversing each one exactly once."""
    ids = set(transaction_ids)
    removed = [t for t in snapshot.transactions if t.id in ids]
    if not removed:
        return snapshot

    accounts = reconciler.apply_removed(snapshot.accounts, removed)
    kept = (t for t in snapshot.transactions if t.id not in ids)
    return _with_ledger(snapshot, kept, accounts)


def bulk_update_transactions(
    snapshot: AppData,
    transaction_ids: Iterable[str],
    new_account_id: Optional[str] = None,
    new_category_id: Optional[str] = None,
) -> AppData:
    """
    Move a selection to another account and/or category.

    Transfers in the selection are left untouched. The category only
    changes on expenses.
    """
    ids = set(transaction_ids)
    selected = [
        t for t in snapshot.transactions
        if t.id in ids and t.type != TransactionType.TRANSFER
    ]
    if not selected or (not new_account_id and not new_category_id):
        return snapshot

    accounts = snapshot.accounts
    if new_account_id:
        accounts = reconciler.apply_reassigned(accounts, selected, new_account_id)

    patched: dict[str, Transaction] = {}
    for txn in selected:
        changes: dict[str, Any] = {}
        if new_account_id:
            changes["account_id"] = new_account_id
        if new_category_id and txn.type == TransactionType.EXPENSE:
            changes["category_id"] = new_category_id
        patched[txn.id] = txn.model_copy(update=changes)

    transactions = (patched.get(t.id, t) for t in snapshot.transactions)
    return _with_ledger(snapshot, transactions, accounts)


# =============================================================================
# ACCOUNTS
# =============================================================================

def add_or_update_account(
    snapshot: AppData,
    name: str,
    account_type: AccountType = AccountType.CHECKING,
    account_id: Optional[str] = None,
    initial_balance: float = 0.0,
    *,
    today: Optional[date] = None,
    id_factory: IdFactory = new_id,
) -> AppData:
    """
    Patch an existing account's name and type, or open a new one.

    Balances are never edited directly. A new account starts at zero and
    a non-zero initial balance is booked as an opening-balance
    transaction, so the balance is always explained by history.
    """
    if account_id is not None:
        if snapshot.find_account(account_id) is None:
            return snapshot
        accounts = tuple(
            a.model_copy(update={"name": name, "type": AccountType(account_type)})
            if a.id == account_id else a
            for a in snapshot.accounts
        )
        return snapshot.model_copy(update={"accounts": accounts})

    account = Account(id=id_factory(), name=name, type=account_type, balance=0.0)
    snapshot = snapshot.model_copy(update={"accounts": (*snapshot.accounts, account)})
    if not initial_balance:
        return snapshot

    opening = Transaction(
        date=today or date.today(),
        payee=OPENING_BALANCE_PAYEE,
        type=TransactionType.INCOME if initial_balance > 0 else TransactionType.EXPENSE,
        amount=abs(initial_balance),
        account_id=account.id,
        original_currency=BASE_CURRENCY,
        original_amount=abs(initial_balance),
        exchange_rate=1.0,
        rate_source=RateSource.MANUAL,
    )
    return add_transaction(snapshot, opening, id_factory=id_factory)


def set_account_archived(snapshot: AppData, account_id: str, archived: bool = True) -> AppData:
    if snapshot.find_account(account_id) is None:
        return snapshot
    accounts = tuple(
        a.model_copy(update={"is_archived": archived}) if a.id == account_id else a
        for a in snapshot.accounts
    )
    return snapshot.model_copy(update={"accounts": accounts})


# =============================================================================
# CATEGORIES
# =============================================================================

def add_category_group(
    snapshot: AppData,
    name: str,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    group = CategoryGroup(id=id_factory(), name=name)
    return snapshot.model_copy(update={"category_groups": (*snapshot.category_groups, group)})


def rename_category_group(snapshot: AppData, group_id: str, name: str) -> AppData:
    if not any(g.id == group_id for g in snapshot.category_groups):
        return snapshot
    groups = tuple(
        g.model_copy(update={"name": name}) if g.id == group_id else g
        for g in snapshot.category_groups
    )
    return snapshot.model_copy(update={"category_groups": groups})


def remove_category_group(snapshot: AppData, group_id: str) -> AppData:
    """Drop a group; its categories' transactions lose their category."""
    group = next((g for g in snapshot.category_groups if g.id == group_id), None)
    if group is None:
        return snapshot

    category_ids = frozenset(c.id for c in group.categories)
    return snapshot.model_copy(update={
        "category_groups": tuple(g for g in snapshot.category_groups if g.id != group_id),
        "transactions": _detach(snapshot, "category_id", category_ids),
    })


def add_category(
    snapshot: AppData,
    group_id: str,
    name: str,
    goal_target: Optional[float] = None,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    if not any(g.id == group_id for g in snapshot.category_groups):
        return snapshot

    category = Category(id=id_factory(), name=name, goal_target=goal_target)
    groups = tuple(
        g.model_copy(update={"categories": (*g.categories, category)}) if g.id == group_id else g
        for g in snapshot.category_groups
    )
    return snapshot.model_copy(update={"category_groups": groups})


def update_category(
    snapshot: AppData,
    category_id: str,
    name: Optional[str] = None,
    goal_target: Optional[float] = None,
) -> AppData:
    """Rename a category and/or set its goal target. None leaves a field as is."""
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if goal_target is not None:
        if goal_target < 0:
            raise ValueError("goal_target must be non-negative")
        changes["goal_target"] = goal_target
    if not changes or not any(c.id == category_id for c in snapshot.iter_categories()):
        return snapshot

    return snapshot.model_copy(update={
        "category_groups": _map_categories(snapshot.category_groups, category_id, **changes),
    })


def remove_category(snapshot: AppData, category_id: str) -> AppData:
    if not any(c.id == category_id for c in snapshot.iter_categories()):
        return snapshot

    groups = tuple(
        g.model_copy(update={"categories": tuple(c for c in g.categories if c.id != category_id)})
        for g in snapshot.category_groups
    )
    return snapshot.model_copy(update={
        "category_groups": groups,
        "transactions": _detach(snapshot, "category_id", category_id),
    })


# =============================================================================
# INVESTMENT GOALS
# =============================================================================

def ensure_investment_group(
    snapshot: AppData,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    """Make sure the group whose categories are investment goals exists."""
    if snapshot.investment_group is not None:
        return snapshot
    return add_category_group(snapshot, INVESTMENT_GROUP_NAME, id_factory=id_factory)


def add_or_update_investment_goal(
    snapshot: AppData,
    name: str,
    target: float,
    goal_id: Optional[str] = None,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    """Create or edit a category of the investment group, with its target."""
    if target < 0:
        raise ValueError("target must be non-negative")

    snapshot = ensure_investment_group(snapshot, id_factory=id_factory)
    group = snapshot.investment_group

    if goal_id is None:
        return add_category(snapshot, group.id, name, target, id_factory=id_factory)

    if not any(c.id == goal_id for c in group.categories):
        return snapshot
    categories = tuple(
        c.model_copy(update={"name": name, "goal_target": target}) if c.id == goal_id else c
        for c in group.categories
    )
    groups = tuple(
        g.model_copy(update={"categories": categories}) if g.id == group.id else g
        for g in snapshot.category_groups
    )
    return snapshot.model_copy(update={"category_groups": groups})


def remove_investment_goal(snapshot: AppData, goal_id: str) -> AppData:
    if goal_id not in snapshot.investment_category_ids:
        return snapshot
    return remove_category(snapshot, goal_id)


# =============================================================================
# INCOME SOURCES
# =============================================================================

def add_or_update_income_source(
    snapshot: AppData,
    name: str,
    category: IncomeCategory = IncomeCategory.OTHER,
    expected_amount: float = 0.0,
    description: str = "",
    is_recurring: bool = False,
    payment_day: Optional[int] = None,
    source_id: Optional[str] = None,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    fields = {
        "name": name,
        "category": category,
        "expected_amount": expected_amount,
        "description": description,
        "is_recurring": is_recurring,
        "payment_day": payment_day,
    }

    if source_id is None:
        source = IncomeSource(id=id_factory(), **fields)
        return snapshot.model_copy(update={"income_sources": (*snapshot.income_sources, source)})

    if not any(s.id == source_id for s in snapshot.income_sources):
        return snapshot
    # Validate through the model rather than model_copy, which would skip it
    sources = tuple(
        IncomeSource(id=s.id, **fields) if s.id == source_id else s
        for s in snapshot.income_sources
    )
    return snapshot.model_copy(update={"income_sources": sources})


def remove_income_source(snapshot: AppData, source_id: str) -> AppData:
    if not any(s.id == source_id for s in snapshot.income_sources):
        return snapshot
    return snapshot.model_copy(update={
        "income_sources": tuple(s for s in snapshot.income_sources if s.id != source_id),
        "transactions": _detach(snapshot, "income_source_id", source_id),
    })


# =============================================================================
# INVESTMENT PLATFORMS
# =============================================================================

def add_or_update_platform(
    snapshot: AppData,
    name: str,
    category: PlatformCategory = PlatformCategory.BROKERAGE,
    current_value: Optional[float] = None,
    platform_id: Optional[str] = None,
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    if platform_id is None:
        platform = InvestmentPlatform(
            id=id_factory(), name=name, category=category, current_value=current_value
        )
        return snapshot.model_copy(update={
            "investment_platforms": (*snapshot.investment_platforms, platform),
        })

    if not any(p.id == platform_id for p in snapshot.investment_platforms):
        return snapshot
    platforms = tuple(
        InvestmentPlatform(id=p.id, name=name, category=category, current_value=current_value)
        if p.id == platform_id else p
        for p in snapshot.investment_platforms
    )
    return snapshot.model_copy(update={"investment_platforms": platforms})


def update_platform_value(snapshot: AppData, platform_id: str, value: float) -> AppData:
    """Record a new manual mark-to-market value for a platform."""
    if value < 0:
        raise ValueError("Platform value must be non-negative")
    if not any(p.id == platform_id for p in snapshot.investment_platforms):
        return snapshot
    platforms = tuple(
        p.model_copy(update={"current_value": value}) if p.id == platform_id else p
        for p in snapshot.investment_platforms
    )
    return snapshot.model_copy(update={"investment_platforms": platforms})


def remove_platform(snapshot: AppData, platform_id: str) -> AppData:
    if not any(p.id == platform_id for p in snapshot.investment_platforms):
        return snapshot
    return snapshot.model_copy(update={
        "investment_platforms": tuple(
            p for p in snapshot.investment_platforms if p.id != platform_id
        ),
        "transactions": _detach(snapshot, "platform_id", platform_id),
    })


# =============================================================================
# GOALS, SETTINGS, ACHIEVEMENTS
# =============================================================================

def set_monthly_goal(snapshot: AppData, month_key: str, goal: MonthlyGoal) -> AppData:
    """Create or replace the income goal of one month."""
    if not MONTH_KEY_PATTERN.match(month_key):
        raise ValueError(f"Invalid month key: {month_key!r} (expected YYYY-MM)")
    return snapshot.model_copy(update={
        "monthly_goals": frozen_mapping({**snapshot.monthly_goals, month_key: goal}),
    })


def set_monthly_investment_target(snapshot: AppData, amount: float) -> AppData:
    if amount < 0:
        raise ValueError("Monthly investment target must be non-negative")
    return snapshot.model_copy(update={"monthly_investment_target": float(amount)})


def update_currency_settings(snapshot: AppData, settings: CurrencySettings) -> AppData:
    return snapshot.model_copy(update={"currency_settings": settings})


def set_app_name(snapshot: AppData, name: str) -> AppData:
    name = name.strip()
    if not name:
        return snapshot
    return snapshot.model_copy(update={"app_name": name})


def merge_unlocked_achievements(snapshot: AppData, unlocks: Unlocks) -> AppData:
    """
    Record newly unlocked achievements.

    Append-only: an id that is already present keeps its timestamp.
    """
    if isinstance(unlocks, Mapping):
        pairs = list(unlocks.items())
    else:
        pairs = [(u.achievement_id, u.unlocked_at) for u in unlocks]

    merged = dict(snapshot.unlocked_achievements)
    for achievement_id, unlocked_at in pairs:
        merged.setdefault(achievement_id, unlocked_at)

    if merged == snapshot.unlocked_achievements:
        return snapshot
    return snapshot.model_copy(update={"unlocked_achievements": frozen_mapping(merged)})


def replace_snapshot(snapshot: AppData, replacement: AppData) -> AppData:
    """Swap in an imported document wholesale. Nothing is merged."""
    return replacement.model_copy(update={
        "transactions": sort_transactions(replacement.transactions),
    })


# =============================================================================
# STATEFUL HOLDER
# =============================================================================

class LedgerStore:
    """
    Holds the current snapshot and the unsaved-changes flag.

    Usage:
        store = LedgerStore(snapshot)
        txn_id = store.add_transaction({...})
        if store.dirty:
            await session.save()
    """

    def __init__(
        self,
        snapshot: Optional[AppData] = None,
        *,
        id_factory: IdFactory = new_id,
        today: Callable[[], date] = date.today,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._snapshot = snapshot if snapshot is not None else AppData()
        self._id_factory = id_factory
        self._today = today
        self._activity = activity_logger
        self._dirty = False

    @property
    def snapshot(self) -> AppData:
        return self._snapshot

    @property
    def dirty(self) -> bool:
        """True when the snapshot has changed since the last successful save."""
        return self._dirty

    def mark_saved(self) -> None:
        self._dirty = False

    def mark_dirty(self) -> None:
        self._dirty = True

    def _commit(self, operation: str, updated: AppData, **details: Any) -> bool:
        """Swap in `updated` if it differs. Returns whether anything changed."""
        if updated is self._snapshot or updated == self._snapshot:
            return False

        self._snapshot = updated
        self._dirty = True
        if self._activity:
            self._activity.log_mutation(operation, **details)
        return True

    def _fixed_id(self) -> tuple[str, IdFactory]:
        new = self._id_factory()
        return new, lambda: new

    # -- transactions ---------------------------------------------------------

    def add_transaction(self, draft: TransactionDraft) -> str:
        """Add a transaction and return its generated id."""
        txn_id, factory = self._fixed_id()
        self._commit(
            "add_transaction",
            add_transaction(self._snapshot, draft, id_factory=factory),
            transaction_id=txn_id,
        )
        return txn_id

    def update_transaction(self, record: Transaction) -> bool:
        return self._commit(
            "update_transaction",
            update_transaction(self._snapshot, record),
            transaction_id=record.id,
        )

    def remove_transaction(self, transaction_id: str) -> bool:
        return self._commit(
            "remove_transaction",
            remove_transaction(self._snapshot, transaction_id),
            transaction_id=transaction_id,
        )

    def remove_transactions(self, transaction_ids: Iterable[str]) -> bool:
        ids = list(transaction_ids)
        return self._commit(
            "remove_transactions",
            remove_transactions(self._snapshot, ids),
            count=len(ids),
        )

    def bulk_update_transactions(
        self,
        transaction_ids: Iterable[str],
        new_account_id: Optional[str] = None,
        new_category_id: Optional[str] = None,
    ) -> bool:
        ids = list(transaction_ids)
        return self._commit(
            "bulk_update_transactions",
            bulk_update_transactions(self._snapshot, ids, new_account_id, new_category_id),
            count=len(ids),
        )

    # -- accounts -------------------------------------------------------------

    def add_or_update_account(
        self,
        name: str,
        account_type: AccountType = AccountType.CHECKING,
        account_id: Optional[str] = None,
        initial_balance: float = 0.0,
    ) -> Optional[str]:
        """Returns the account id, or None if an unknown id was given."""
        updated = add_or_update_account(
            self._snapshot,
            name,
            account_type,
            account_id,
            initial_balance,
            today=self._today(),
            id_factory=self._id_factory,
        )
        if account_id is None:
            new_ids = {a.id for a in updated.accounts} - {a.id for a in self._snapshot.accounts}
            account_id = new_ids.pop() if new_ids else None
        elif self._snapshot.find_account(account_id) is None:
            return None
        self._commit("add_or_update_account", updated, account_id=account_id)
        return account_id

    def set_account_archived(self, account_id: str, archived: bool = True) -> bool:
        return self._commit(
            "set_account_archived",
            set_account_archived(self._snapshot, account_id, archived),
            account_id=account_id,
        )

    # -- categories -----------------------------------------------------------

    def add_category_group(self, name: str) -> str:
        group_id, factory = self._fixed_id()
        self._commit(
            "add_category_group",
            add_category_group(self._snapshot, name, id_factory=factory),
            group_id=group_id,
        )
        return group_id

    def rename_category_group(self, group_id: str, name: str) -> bool:
        return self._commit(
            "rename_category_group",
            rename_category_group(self._snapshot, group_id, name),
            group_id=group_id,
        )

    def remove_category_group(self, group_id: str) -> bool:
        return self._commit(
            "remove_category_group",
            remove_category_group(self._snapshot, group_id),
            group_id=group_id,
        )

    def add_category(
        self,
        group_id: str,
        name: str,
        goal_target: Optional[float] = None,
    ) -> Optional[str]:
        category_id, factory = self._fixed_id()
        changed = self._commit(
            "add_category",
            add_category(self._snapshot, group_id, name, goal_target, id_factory=factory),
            category_id=category_id,
        )
        return category_id if changed else None

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        goal_target: Optional[float] = None,
    ) -> bool:
        return self._commit(
            "update_category",
            update_category(self._snapshot, category_id, name, goal_target),
            category_id=category_id,
        )

    def remove_category(self, category_id: str) -> bool:
        return self._commit(
            "remove_category",
            remove_category(self._snapshot, category_id),
            category_id=category_id,
        )

    # -- investment goals -----------------------------------------------------

    def add_or_update_investment_goal(
        self,
        name: str,
        target: float,
        goal_id: Optional[str] = None,
    ) -> Optional[str]:
        updated = add_or_update_investment_goal(
            self._snapshot, name, target, goal_id, id_factory=self._id_factory
        )
        if goal_id is None:
            new_ids = set(updated.investment_category_ids) - set(self._snapshot.investment_category_ids)
            goal_id = new_ids.pop() if new_ids else None
        elif goal_id not in self._snapshot.investment_category_ids:
            return None
        self._commit("add_or_update_investment_goal", updated, goal_id=goal_id)
        return goal_id

    def remove_investment_goal(self, goal_id: str) -> bool:
        return self._commit(
            "remove_investment_goal",
            remove_investment_goal(self._snapshot, goal_id),
            goal_id=goal_id,
        )

    # -- income sources -------------------------------------------------------

    def add_or_update_income_source(
        self,
        name: str,
        category: IncomeCategory = IncomeCategory.OTHER,
        expected_amount: float = 0.0,
        description: str = "",
        is_recurring: bool = False,
        payment_day: Optional[int] = None,
        source_id: Optional[str] = None,
    ) -> Optional[str]:
        new_source_id, factory = self._fixed_id()
        changed = self._commit(
            "add_or_update_income_source",
            add_or_update_income_source(
                self._snapshot, name, category, expected_amount, description,
                is_recurring, payment_day, source_id, id_factory=factory,
            ),
            source_id=source_id or new_source_id,
        )
        if source_id is None:
            return new_source_id
        known = any(s.id == source_id for s in self._snapshot.income_sources)
        return source_id if changed or known else None

    def remove_income_source(self, source_id: str) -> bool:
        return self._commit(
            "remove_income_source",
            remove_income_source(self._snapshot, source_id),
            source_id=source_id,
        )

    # -- platforms ------------------------------------------------------------

    def add_or_update_platform(
        self,
        name: str,
        category: PlatformCategory = PlatformCategory.BROKERAGE,
        current_value: Optional[float] = None,
        platform_id: Optional[str] = None,
    ) -> Optional[str]:
        new_platform_id, factory = self._fixed_id()
        changed = self._commit(
            "add_or_update_platform",
            add_or_update_platform(
                self._snapshot, name, category, current_value, platform_id, id_factory=factory
            ),
            platform_id=platform_id or new_platform_id,
        )
        if platform_id is None:
            return new_platform_id
        known = any(p.id == platform_id for p in self._snapshot.investment_platforms)
        return platform_id if changed or known else None

    def update_platform_value(self, platform_id: str, value: float) -> bool:
        return self._commit(
            "update_platform_value",
            update_platform_value(self._snapshot, platform_id, value),
            platform_id=platform_id,
        )

    def remove_platform(self, platform_id: str) -> bool:
        return self._commit(
            "remove_platform",
            remove_platform(self._snapshot, platform_id),
            platform_id=platform_id,
        )

    # -- goals, settings, achievements ----------------------------------------

    def set_monthly_goal(self, month_key: str, goal: MonthlyGoal) -> bool:
        return self._commit(
            "set_monthly_goal",
            set_monthly_goal(self._snapshot, month_key, goal),
            month=month_key,
        )

    def set_monthly_investment_target(self, amount: float) -> bool:
        return self._commit(
            "set_monthly_investment_target",
            set_monthly_investment_target(self._snapshot, amount),
        )

    def update_currency_settings(self, settings: CurrencySettings) -> bool:
        return self._commit(
            "update_currency_settings",
            update_currency_settings(self._snapshot, settings),
        )

    def set_app_name(self, name: str) -> bool:
        return self._commit("set_app_name", set_app_name(self._snapshot, name))

    def merge_unlocked_achievements(self, unlocks: Unlocks) -> bool:
        return self._commit(
            "merge_unlocked_achievements",
            merge_unlocked_achievements(self._snapshot, unlocks),
        )

    def replace_snapshot(self, replacement: AppData) -> bool:
        """Replace everything with an imported document. Always marks dirty."""
        self._commit(
            "replace_snapshot",
            replace_snapshot(self._snapshot, replacement),
            transactions=len(replacement.transactions),
        )
        self._dirty = True
        return True
