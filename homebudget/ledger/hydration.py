"""
Hydration and Export

Every document that becomes the live snapshot, whether loaded from
storage or imported by the user, passes through hydrate_document first.
Older documents lack fields that were added later; hydration fills them
in so the rest of the code can rely on a complete AppData.

DESIGN DECISION: A transaction's explicit `type` is kept when it is one
of the known values. Only when it is missing or unknown is it inferred
from the foreign keys: a receiving account means transfer, an income
source means income, anything else is an expense. Foreign keys that do
not fit the resulting type are dropped.
"""

import json
from datetime import date
from typing import Any, Callable, Mapping, Optional

from homebudget.ledger.store import sort_transactions
from homebudget.models.ledger import (
    BASE_CURRENCY,
    DEFAULT_APP_NAME,
    MONTH_KEY_PATTERN,
    AccountType,
    AppData,
    Currency,
    CurrencySettings,
    IncomeCategory,
    PlatformCategory,
    RateSource,
    TransactionType,
    new_id,
)


IdFactory = Callable[[], str]

# Keys whose explicit null is meaningful and survives stripping
KEEP_NULL_KEYS = frozenset({"categoryId"})

_DEFAULT_CURRENCY_SETTINGS = CurrencySettings().model_dump(by_alias=True, mode="json")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _enum_value(value: Any, enum_type, default):
    values = {member.value for member in enum_type}
    return value if value in values else default


def _list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _records(value: Any) -> list:
    """Entries of a stored collection that are objects; anything else is dropped."""
    return [entry for entry in _list(value) if isinstance(entry, Mapping)]


# =============================================================================
# ENTITY HYDRATION
# =============================================================================

def _hydrate_transaction(raw: Mapping[str, Any], id_factory: IdFactory) -> dict:
    txn = dict(raw)

    txn_type = txn.get("type")
    if txn_type not in {t.value for t in TransactionType}:
        if txn.get("transferToAccountId"):
            txn_type = TransactionType.TRANSFER.value
        elif txn.get("incomeSourceId"):
            txn_type = TransactionType.INCOME.value
        else:
            txn_type = TransactionType.EXPENSE.value

    amount = txn.get("amount", 0)
    amount = abs(amount) if _is_number(amount) else amount
    account_id = txn.get("accountId") or ""
    transfer_to = txn.get("transferToAccountId") or None
    if transfer_to == account_id:
        transfer_to = None

    txn.update({
        "id": txn.get("id") or id_factory(),
        "type": txn_type,
        "amount": amount,
        "payee": txn.get("payee") or "",
        "memo": txn.get("memo") or "",
        "accountId": account_id,
        "categoryId": txn.get("categoryId") if txn_type == "expense" else None,
        "incomeSourceId": txn.get("incomeSourceId") if txn_type == "income" else None,
        "transferToAccountId": transfer_to if txn_type == "transfer" else None,
        "platformId": txn.get("platformId") or None,
        "originalCurrency": txn.get("originalCurrency") or BASE_CURRENCY,
        "originalAmount": txn["originalAmount"] if _is_number(txn.get("originalAmount")) else amount,
        "exchangeRate": txn["exchangeRate"] if _is_number(txn.get("exchangeRate")) and txn["exchangeRate"] > 0 else 1.0,
        "rateSource": _enum_value(txn.get("rateSource"), RateSource, RateSource.MANUAL.value),
    })
    return txn


def _hydrate_group(raw: Mapping[str, Any], id_factory: IdFactory) -> dict:
    group = dict(raw)
    group["id"] = group.get("id") or id_factory()
    group["categories"] = [
        {**c, "id": c.get("id") or id_factory()}
        for c in _list(group.get("categories"))
        if isinstance(c, Mapping)
    ]
    return group


def _hydrate_account(raw: Mapping[str, Any], id_factory: IdFactory) -> dict:
    account = dict(raw)
    account.update({
        "id": account.get("id") or id_factory(),
        "type": _enum_value(account.get("type"), AccountType, AccountType.CHECKING.value),
        "balance": account["balance"] if _is_number(account.get("balance")) else 0.0,
        "isArchived": bool(account.get("isArchived", False)),
    })
    return account


def _hydrate_income_source(raw: Mapping[str, Any], id_factory: IdFactory) -> dict:
    source = dict(raw)
    source.update({
        "id": source.get("id") or id_factory(),
        "category": _enum_value(source.get("category"), IncomeCategory, IncomeCategory.OTHER.value),
        "expectedAmount": source["expectedAmount"] if _is_number(source.get("expectedAmount")) else 0.0,
        "description": source.get("description") or "",
        "isRecurring": bool(source.get("isRecurring", False)),
        "paymentDay": source.get("paymentDay") or None,
    })
    return source


def _hydrate_platform(raw: Mapping[str, Any], id_factory: IdFactory) -> dict:
    platform = dict(raw)
    platform.update({
        "id": platform.get("id") or id_factory(),
        "category": _enum_value(platform.get("category"), PlatformCategory, PlatformCategory.BROKERAGE.value),
        "currentValue": platform["currentValue"] if _is_number(platform.get("currentValue")) else None,
    })
    return platform


def _hydrate_goals(raw: Any) -> dict:
    if not isinstance(raw, Mapping):
        return {}
    goals = {}
    for key, goal in raw.items():
        if not MONTH_KEY_PATTERN.match(str(key)) or not isinstance(goal, Mapping):
            continue
        goals[key] = {
            **goal,
            "totalGoal": goal["totalGoal"] if _is_number(goal.get("totalGoal")) else 0.0,
            "sourceGoals": goal.get("sourceGoals") if isinstance(goal.get("sourceGoals"), Mapping) else {},
        }
    return goals


def _hydrate_unlocks(raw: Any) -> dict:
    if not isinstance(raw, Mapping):
        return {}
    return {str(key): value for key, value in raw.items() if isinstance(value, str)}


def hydrate_currency_settings(raw: Any) -> dict:
    """Each setting falls back to its default independently when invalid."""
    raw = raw if isinstance(raw, Mapping) else {}
    settings = dict(_DEFAULT_CURRENCY_SETTINGS)
    for key in ("default", "reports", "investments"):
        if raw.get(key) in {c.value for c in Currency}:
            settings[key] = raw[key]
    for key in ("roundToWholeNumbers", "showOriginalCurrency"):
        if isinstance(raw.get(key), bool):
            settings[key] = raw[key]
    return settings


# =============================================================================
# DOCUMENT
# =============================================================================

def hydrate_document(
    raw: Mapping[str, Any],
    *,
    id_factory: IdFactory = new_id,
) -> AppData:
    """
    Turn a raw (possibly old or partial) document into a complete snapshot.

    Raises pydantic.ValidationError if an entry is still invalid after
    defaults are applied, e.g. a transaction without a date, and
    ValueError if the document is not an object at all.
    """
    if not isinstance(raw, Mapping):
        raise ValueError(f"Budget document must be an object, got {type(raw).__name__}")

    target = raw.get("monthlyInvestmentTarget")
    app_name = raw.get("appName")

    document = {
        "appName": app_name if isinstance(app_name, str) and app_name.strip() else DEFAULT_APP_NAME,
        "categoryGroups": [
            _hydrate_group(g, id_factory) for g in _records(raw.get("categoryGroups"))
        ],
        "transactions": [
            _hydrate_transaction(t, id_factory) for t in _records(raw.get("transactions"))
        ],
        "accounts": [
            _hydrate_account(a, id_factory) for a in _records(raw.get("accounts"))
        ],
        "incomeSources": [
            _hydrate_income_source(s, id_factory) for s in _records(raw.get("incomeSources"))
        ],
        "monthlyGoals": _hydrate_goals(raw.get("monthlyGoals")),
        "unlockedAchievements": _hydrate_unlocks(raw.get("unlockedAchievements")),
        "investmentPlatforms": [
            _hydrate_platform(p, id_factory) for p in _records(raw.get("investmentPlatforms"))
        ],
        "monthlyInvestmentTarget": target if _is_number(target) and target >= 0 else 0.0,
        "currencySettings": hydrate_currency_settings(raw.get("currencySettings")),
    }

    snapshot = AppData.model_validate(document)
    return snapshot.model_copy(update={
        "transactions": sort_transactions(snapshot.transactions),
    })


def strip_absent(value: Any) -> Any:
    """
    Recursively drop None-valued keys before handing a document to storage.

    `categoryId: null` is kept: an expense without a category is a
    meaningful state, not a missing field.
    """
    if isinstance(value, Mapping):
        return {
            key: strip_absent(item)
            for key, item in value.items()
            if item is not None or key in KEEP_NULL_KEYS
        }
    if isinstance(value, (list, tuple)):
        return [strip_absent(item) for item in value]
    return value


def export_document(snapshot: AppData) -> dict:
    """The live snapshot as the JSON document, verbatim."""
    return snapshot.to_document()


def export_json(snapshot: AppData, indent: Optional[int] = 2) -> str:
    return json.dumps(export_document(snapshot), indent=indent, ensure_ascii=False)


def export_filename(today: Optional[date] = None) -> str:
    return f"budget-backup-{(today or date.today()).isoformat()}.json"
