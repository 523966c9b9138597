"""
Core Ledger Models for Home Budget

These models define the one JSON document a user's budget lives in.
They are designed to:
1. Be immutable - every mutation builds a new snapshot
2. Serialize to exactly the persisted camelCase document shape
3. Reject internally inconsistent transactions at construction time

DESIGN DECISION: A transaction's `type` is the single source of truth.
The optional foreign keys (categoryId, incomeSourceId, transferToAccountId)
are consequences of the type and are validated against it, never used to
infer it.
"""

import datetime as dt
import re
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


BASE_CURRENCY = "UAH"
DEFAULT_APP_NAME = "My Current Budget"

# Categories of this group double as investment goals
INVESTMENT_GROUP_NAME = "Investment"
# Earlier releases named the group in Ukrainian
INVESTMENT_GROUP_NAMES = frozenset({INVESTMENT_GROUP_NAME, "Інвестиції"})

OPENING_BALANCE_PAYEE = "Opening balance"
# Documents written by earlier releases used a localized sentinel
OPENING_BALANCE_PAYEES = frozenset({OPENING_BALANCE_PAYEE, "Початковий баланс"})

MONTH_KEY_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def new_id() -> str:
    """Generate a new entity id."""
    return str(uuid4())


def frozen_mapping(value: Mapping) -> Mapping:
    """Read-only copy of a mapping held by a snapshot."""
    return MappingProxyType(dict(value))


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Kinds of accounts a household keeps."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CASH = "cash"
    CREDIT = "credit"
    INVESTMENT = "investment"


class TransactionType(str, Enum):
    """
    Transaction direction.

    The balance effect of each type:
    - income:   account += amount
    - expense:  account -= amount
    - transfer: account -= amount, transfer target += amount
    """
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class RateSource(str, Enum):
    """Where a transaction's exchange rate came from."""
    API = "api"
    MANUAL = "manual"


class IncomeCategory(str, Enum):
    """Income source kinds."""
    SALARY = "salary"
    FREELANCE = "freelance"
    SIDE_HUSTLE = "side-hustle"
    INVESTMENTS = "investments"
    OTHER = "other"


class PlatformCategory(str, Enum):
    """Investment platform kinds."""
    BROKERAGE = "brokerage"
    CRYPTO = "crypto"
    ROBO_ADVISOR = "robo-advisor"
    RETIREMENT_401K = "401k"


class Currency(str, Enum):
    """Currencies amounts can be entered in or displayed as."""
    UAH = "UAH"
    USD = "USD"
    EUR = "EUR"
    PLN = "PLN"


# =============================================================================
# BASE MODEL
# =============================================================================

class LedgerModel(BaseModel):
    """
    Base for every document entity.

    Frozen so a snapshot can be shared freely between readers;
    camelCase aliases so dumps match the persisted document.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# ENTITIES
# =============================================================================

class Account(LedgerModel):
    """
    A money account.

    Balance is a running signed total in the base currency. It is only
    ever changed by reconciling transactions, never edited directly.
    Accounts are archived, not deleted.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique account id"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: AccountType = Field(
        default=AccountType.CHECKING,
        description="Account kind"
    )
    balance: float = Field(
        default=0.0,
        description="Running balance in the base currency"
    )
    is_archived: bool = False


class Transaction(LedgerModel):
    """
    A single income, expense or transfer.

    `amount` is always non-negative and expressed in the base currency;
    the direction comes from `type` (and, for transfers, from which side
    of the pair an account is on). Multi-currency entries keep what the
    user typed in original_currency / original_amount / exchange_rate.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique transaction id"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    payee: str = Field(
        default="",
        max_length=200,
        description="Who was paid / who paid"
    )
    type: TransactionType = Field(
        ...,
        description="Transaction direction"
    )
    amount: float = Field(
        ...,
        ge=0,
        description="Amount in the base currency"
    )
    account_id: str = Field(
        default="",
        description="Account the money leaves (expense, transfer) or enters (income)"
    )

    # Foreign keys, each only meaningful for one type
    category_id: Optional[str] = Field(
        default=None,
        description="Budget category (expense only)"
    )
    income_source_id: Optional[str] = Field(
        default=None,
        description="Income source (income only)"
    )
    transfer_to_account_id: Optional[str] = Field(
        default=None,
        description="Receiving account (transfer only)"
    )
    platform_id: Optional[str] = Field(
        default=None,
        description="Investment platform the money was routed to"
    )
    memo: str = Field(
        default="",
        max_length=1000
    )

    # Multi-currency entry
    original_currency: str = Field(
        default=BASE_CURRENCY,
        min_length=3,
        max_length=3,
        description="Currency the user entered the amount in"
    )
    original_amount: Optional[float] = Field(
        default=None,
        ge=0,
        description="Amount as entered, in original_currency"
    )
    exchange_rate: float = Field(
        default=1.0,
        gt=0,
        description="Base-currency units per one original_currency unit"
    )
    rate_source: RateSource = RateSource.MANUAL

    @model_validator(mode='before')
    @classmethod
    def default_original_amount(cls, data: Any) -> Any:
        """An entry made in the base currency was typed as `amount` itself."""
        if isinstance(data, dict):
            entered = data.get("originalAmount", data.get("original_amount"))
            if entered is None and "amount" in data:
                data = {k: v for k, v in data.items() if k != "original_amount"}
                data["originalAmount"] = data["amount"]
        return data

    @field_validator('date', mode='before')
    @classmethod
    def truncate_timestamp(cls, v: Any) -> Any:
        """Accept full ISO timestamps by keeping their calendar date."""
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10 and v[4:5] == "-":
            return v[:10]
        return v

    @model_validator(mode='after')
    def validate_type_consistency(self) -> 'Transaction':
        """Foreign keys must agree with the transaction type."""
        if self.category_id is not None and self.type != TransactionType.EXPENSE:
            raise ValueError("Only expense transactions can have a category")
        if self.income_source_id is not None and self.type != TransactionType.INCOME:
            raise ValueError("Only income transactions can have an income source")
        if self.transfer_to_account_id is not None:
            if self.type != TransactionType.TRANSFER:
                raise ValueError("Only transfers can have a receiving account")
            if self.transfer_to_account_id == self.account_id:
                raise ValueError("A transfer cannot target its own account")
        return self

    @property
    def is_opening_balance(self) -> bool:
        """Synthesized when an account is created with a starting balance."""
        return self.payee in OPENING_BALANCE_PAYEES

    @property
    def month_key(self) -> str:
        """Calendar month of the transaction as YYYY-MM."""
        return self.date.strftime("%Y-%m")


class Category(LedgerModel):
    """A budget category; under the investment group, an investment goal."""

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    goal_target: Optional[float] = Field(
        default=None,
        ge=0,
        description="Savings target when the category is an investment goal"
    )


class CategoryGroup(LedgerModel):
    """A named group of categories."""

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    categories: tuple[Category, ...] = ()


class IncomeSource(LedgerModel):
    """Where income comes from, with the amount usually expected per month."""

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    category: IncomeCategory = IncomeCategory.OTHER
    expected_amount: float = Field(
        default=0.0,
        ge=0,
        description="Expected monthly amount in the base currency"
    )
    description: str = ""
    is_recurring: bool = False
    payment_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month the payment usually arrives"
    )


class InvestmentPlatform(LedgerModel):
    """
    A brokerage, exchange or pension plan.

    current_value is a manually entered mark-to-market snapshot and is
    independent of what was contributed through transactions.
    """

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    category: PlatformCategory = PlatformCategory.BROKERAGE
    current_value: Optional[float] = Field(default=None, ge=0)


class MonthlyGoal(LedgerModel):
    """Income target for one calendar month."""

    total_goal: float = Field(default=0.0, ge=0)
    source_goals: dict[str, float] = Field(
        default_factory=dict,
        description="Per income source targets, keyed by source id"
    )
    motivation: Optional[str] = Field(default=None, max_length=500)


class CurrencySettings(LedgerModel):
    """Which currency each part of the UI displays amounts in."""

    default_currency: Currency = Field(
        default=Currency.UAH,
        alias="default",
        description="Currency for transaction and account views"
    )
    reports: Currency = Currency.UAH
    investments: Currency = Currency.USD
    round_to_whole_numbers: bool = True
    show_original_currency: bool = True


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

class AppData(LedgerModel):
    """
    The whole budget document.

    One instance is one snapshot: the unit of persistence and the unit
    of in-memory truth. There are no side caches that could drift.
    """

    app_name: str = Field(default=DEFAULT_APP_NAME, max_length=100)
    category_groups: tuple[CategoryGroup, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    accounts: tuple[Account, ...] = ()
    income_sources: tuple[IncomeSource, ...] = ()
    monthly_goals: Mapping[str, MonthlyGoal] = Field(default_factory=lambda: frozen_mapping({}))
    unlocked_achievements: Mapping[str, str] = Field(
        default_factory=lambda: frozen_mapping({}),
        description="Achievement id -> ISO timestamp of first unlock"
    )
    investment_platforms: tuple[InvestmentPlatform, ...] = ()
    monthly_investment_target: float = Field(default=0.0, ge=0)
    currency_settings: CurrencySettings = Field(default_factory=CurrencySettings)

    @field_validator('monthly_goals')
    @classmethod
    def validate_month_keys(cls, v: Mapping[str, MonthlyGoal]) -> Mapping[str, MonthlyGoal]:
        """Goals are keyed by YYYY-MM."""
        for key in v:
            if not MONTH_KEY_PATTERN.match(key):
                raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)")
        return frozen_mapping(v)

    @field_validator('unlocked_achievements')
    @classmethod
    def freeze_unlocks(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return frozen_mapping(v)

    @field_serializer('monthly_goals')
    def serialize_goals(self, v: Mapping[str, MonthlyGoal]) -> dict[str, MonthlyGoal]:
        return dict(v)

    @field_serializer('unlocked_achievements')
    def serialize_unlocks(self, v: Mapping[str, str]) -> dict[str, str]:
        return dict(v)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def find_account(self, account_id: str) -> Optional[Account]:
        return next((a for a in self.accounts if a.id == account_id), None)

    def iter_categories(self) -> Iterator[Category]:
        """All categories across all groups."""
        for group in self.category_groups:
            yield from group.categories

    def iter_spending_categories(self) -> Iterator[Category]:
        """Categories outside the investment group."""
        goal_ids = self.investment_category_ids
        return (c for c in self.iter_categories() if c.id not in goal_ids)

    @property
    def investment_group(self) -> Optional[CategoryGroup]:
        return next(
            (g for g in self.category_groups if g.name in INVESTMENT_GROUP_NAMES),
            None,
        )

    @property
    def investment_category_ids(self) -> frozenset[str]:
        group = self.investment_group
        return frozenset(c.id for c in group.categories) if group else frozenset()

    def to_document(self) -> dict:
        """Dump as the persisted / exported JSON document."""
        return self.model_dump(mode="json", by_alias=True)
