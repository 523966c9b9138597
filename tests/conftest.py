"""Shared fixtures: deterministic ids and a small two-account ledger."""

import itertools
from datetime import date

import pytest

from homebudget.models.ledger import (
    Account,
    AccountType,
    AppData,
    Category,
    CategoryGroup,
    IncomeSource,
)


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def snapshot() -> AppData:
    """Two empty accounts, one spending group and one income source."""
    return AppData(
        app_name="Test Budget",
        category_groups=(
            CategoryGroup(
                id="grp-everyday",
                name="Everyday Spending",
                categories=(
                    Category(id="cat-groceries", name="Groceries"),
                    Category(id="cat-transport", name="Transport"),
                ),
            ),
        ),
        accounts=(
            Account(id="acc-a", name="Card", type=AccountType.CHECKING),
            Account(id="acc-b", name="Savings", type=AccountType.SAVINGS),
        ),
        income_sources=(
            IncomeSource(id="src-salary", name="Salary", expected_amount=30_000),
        ),
    )


@pytest.fixture
def today() -> date:
    return date(2024, 3, 15)
