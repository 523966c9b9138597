"""
Tests for Home Budget models

Test strategy:
1. Unit tests for the document entities and their invariants
2. Serialization must match the persisted camelCase document
3. Activity events are built with the right type and severity
"""

import pytest
from datetime import date

from homebudget.models import (
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
    AppData,
    Category,
    CategoryGroup,
    CurrencySettings,
    MonthlyGoal,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


class TestTransactionModel:
    """Tests for the Transaction entity."""

    def test_transaction_creation(self):
        """Test Transaction model creation from camelCase fields."""
        txn = Transaction.model_validate({
            "id": "t1",
            "date": "2024-03-05",
            "type": "expense",
            "amount": 120.5,
            "accountId": "acc-a",
            "categoryId": "cat-groceries",
        })
        assert txn.date == date(2024, 3, 5)
        assert txn.type == TransactionType.EXPENSE
        assert txn.account_id == "acc-a"
        assert txn.month_key == "2024-03"

    def test_rejects_negative_amount(self):
        """Amounts are magnitudes; direction comes from the type."""
        with pytest.raises(ValueError):
            Transaction(date=date(2024, 3, 5), type=TransactionType.EXPENSE, amount=-10)

    def test_category_only_on_expenses(self):
        with pytest.raises(ValueError):
            Transaction(
                date=date(2024, 3, 5),
                type=TransactionType.INCOME,
                amount=10,
                category_id="cat-groceries",
            )

    def test_transfer_cannot_target_its_own_account(self):
        with pytest.raises(ValueError):
            Transaction(
                date=date(2024, 3, 5),
                type=TransactionType.TRANSFER,
                amount=10,
                account_id="acc-a",
                transfer_to_account_id="acc-a",
            )

    def test_timestamp_dates_keep_calendar_date(self):
        txn = Transaction.model_validate({
            "date": "2024-03-05T22:10:00.000Z",
            "type": "income",
            "amount": 1,
        })
        assert txn.date == date(2024, 3, 5)

    def test_original_amount_defaults_to_amount(self):
        txn = Transaction(date=date(2024, 3, 5), type=TransactionType.INCOME, amount=250)
        assert txn.original_amount == 250
        assert txn.original_currency == "UAH"
        assert txn.exchange_rate == 1.0

    def test_models_are_frozen(self):
        txn = Transaction(date=date(2024, 3, 5), type=TransactionType.INCOME, amount=250)
        with pytest.raises(Exception):
            txn.amount = 1

    def test_opening_balance_payees(self):
        """Both the current and the legacy sentinel are recognized."""
        for payee in ("Opening balance", "Початковий баланс"):
            txn = Transaction(date=date(2024, 3, 5), type=TransactionType.INCOME, amount=1, payee=payee)
            assert txn.is_opening_balance
        txn = Transaction(date=date(2024, 3, 5), type=TransactionType.INCOME, amount=1, payee="Employer")
        assert not txn.is_opening_balance


class TestAppDataModel:
    """Tests for the whole-document aggregate."""

    def test_empty_document_dump_is_camel_case(self):
        document = AppData().to_document()
        assert document["appName"] == "My Current Budget"
        assert document["categoryGroups"] == []
        assert document["monthlyInvestmentTarget"] == 0.0
        assert document["currencySettings"] == {
            "default": "UAH",
            "reports": "UAH",
            "investments": "USD",
            "roundToWholeNumbers": True,
            "showOriginalCurrency": True,
        }

    def test_rejects_malformed_goal_month(self):
        with pytest.raises(ValueError):
            AppData(monthly_goals={"2024-13": MonthlyGoal(total_goal=100)})

    def test_investment_group_lookup(self, snapshot):
        assert snapshot.investment_group is None
        assert snapshot.investment_category_ids == frozenset()

    def test_spending_categories_exclude_investment_goals(self, snapshot):
        invest = CategoryGroup(id="grp-inv", name="Інвестиції", categories=(Category(id="goal-house", name="House"),))
        data = snapshot.model_copy(update={"category_groups": (*snapshot.category_groups, invest)})
        assert data.investment_category_ids == frozenset({"goal-house"})
        assert [c.id for c in data.iter_spending_categories()] == ["cat-groceries", "cat-transport"]

    def test_goal_and_achievement_maps_are_read_only(self):
        goals = {"2024-03": MonthlyGoal(total_goal=100)}
        data = AppData(monthly_goals=goals, unlocked_achievements={"first-goal": "2024-03-01T00:00:00+00:00"})
        with pytest.raises(TypeError):
            data.monthly_goals["2024-04"] = MonthlyGoal(total_goal=5)
        with pytest.raises(TypeError):
            data.unlocked_achievements["other"] = "now"

        goals["2024-05"] = MonthlyGoal(total_goal=1)
        assert list(data.monthly_goals) == ["2024-03"]

    def test_read_only_maps_dump_as_objects(self):
        data = AppData(monthly_goals={"2024-03": MonthlyGoal(total_goal=100)})
        document = data.to_document()
        assert document["monthlyGoals"]["2024-03"]["totalGoal"] == 100
        assert document["unlockedAchievements"] == {}

    def test_currency_settings_accept_field_names(self):
        settings = CurrencySettings(default_currency="EUR", reports="PLN")
        assert settings.default_currency.value == "EUR"
        assert settings.model_dump(by_alias=True, mode="json")["default"] == "EUR"


class TestValidationModels:
    """Tests for validation result models."""

    def test_validation_issue_creation(self):
        issue = ValidationIssue(
            field="transactions.0.amount",
            issue_type="invalid_type",
            message="amount must be a number",
            severity="error",
            suggested_fix="Use a number",
        )
        assert issue.severity == "error"

    def test_validation_issue_invalid_severity(self):
        with pytest.raises(ValueError):
            ValidationIssue(
                field="test",
                issue_type="test",
                message="test",
                severity="critical",
            )

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            shape_valid=True,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(field="a", issue_type="x", message="bad", severity="error"),
                ValidationIssue(field="b", issue_type="y", message="odd", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1


class TestActivityModels:
    """Tests for activity event models."""

    def test_ledger_mutation_event(self):
        event = ActivityEventBuilder.ledger_mutated("add_transaction", {"transaction_id": "t1"})
        assert event.event_type == ActivityEventType.LEDGER_MUTATED
        assert event.severity == ActivitySeverity.DEBUG
        assert event.details == {"operation": "add_transaction", "transaction_id": "t1"}

    def test_save_failed_event_is_error(self):
        event = ActivityEventBuilder.save_failed("u1", "timeout")
        assert event.severity == ActivitySeverity.ERROR
        assert event.error_message == "timeout"

    def test_to_log_dict(self):
        event = ActivityEventBuilder.document_saved("u1")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "document_saved"
        assert log_dict["entity_id"] == "u1"
        assert isinstance(log_dict["event_id"], str)
