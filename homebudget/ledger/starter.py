"""Starter document for users who have no stored budget yet."""

from typing import Callable, Optional

from homebudget.models.ledger import (
    DEFAULT_APP_NAME,
    Account,
    AccountType,
    AppData,
    Category,
    CategoryGroup,
    new_id,
)


STARTER_CATEGORY_GROUPS: dict[str, list[str]] = {
    "Monthly Bills": ["Rent/Mortgage", "Utilities", "Internet & Phone", "Subscriptions"],
    "Everyday Spending": ["Groceries", "Transport", "Clothing"],
    "Leisure": ["Entertainment", "Vacation", "Dining Out"],
    "Savings & Debt": ["Emergency Fund", "Debt Repayment", "Other Savings"],
    "Other": ["Gifts", "Health", "Miscellaneous"],
}

STARTER_ACCOUNT_NAME = "Main Card"


def starter_document(
    app_name: Optional[str] = None,
    id_factory: Callable[[], str] = new_id,
) -> AppData:
    """An empty ledger with the default categories and one checking account."""
    groups = tuple(
        CategoryGroup(
            id=id_factory(),
            name=group_name,
            categories=tuple(Category(id=id_factory(), name=name) for name in names),
        )
        for group_name, names in STARTER_CATEGORY_GROUPS.items()
    )
    account = Account(id=id_factory(), name=STARTER_ACCOUNT_NAME, type=AccountType.CHECKING)

    return AppData(
        app_name=app_name or DEFAULT_APP_NAME,
        category_groups=groups,
        accounts=(account,),
    )
