"""Tests for document hydration, export and the starter document."""

import json

import pytest
from datetime import date
from pydantic import ValidationError

from homebudget.ledger import aggregator
from homebudget.ledger.hydration import (
    export_document,
    export_filename,
    export_json,
    hydrate_document,
    strip_absent,
)
from homebudget.ledger.starter import STARTER_CATEGORY_GROUPS, starter_document
from homebudget.ledger.store import LedgerStore
from homebudget.models.ledger import TransactionType


LEGACY_DOCUMENT = {
    "appName": "Old Budget",
    "categoryGroups": [
        {"id": "g1", "name": "Bills", "categories": [{"id": "c1", "name": "Rent"}]},
    ],
    "transactions": [
        {"id": "t1", "date": "2024-01-05", "payee": "Landlord", "amount": 500, "accountId": "a1", "categoryId": "c1"},
        {"id": "t2", "date": "2024-01-10", "amount": 2000, "accountId": "a1", "incomeSourceId": "s1"},
        {"id": "t3", "date": "2024-01-12", "amount": 100, "accountId": "a1", "transferToAccountId": "a2"},
    ],
    "accounts": [
        {"id": "a1", "name": "Card", "balance": 1400},
        {"id": "a2", "name": "Savings", "balance": 100},
    ],
}


class TestHydrateDocument:

    def test_legacy_document_gets_defaults(self):
        snapshot = hydrate_document(LEGACY_DOCUMENT)
        assert snapshot.app_name == "Old Budget"
        assert snapshot.income_sources == ()
        assert snapshot.monthly_goals == {}
        assert snapshot.monthly_investment_target == 0
        assert snapshot.currency_settings.investments.value == "USD"

    def test_missing_type_is_inferred(self):
        snapshot = hydrate_document(LEGACY_DOCUMENT)
        types = {t.id: t.type for t in snapshot.transactions}
        assert types == {
            "t1": TransactionType.EXPENSE,
            "t2": TransactionType.INCOME,
            "t3": TransactionType.TRANSFER,
        }

    def test_explicit_type_wins(self):
        raw = {**LEGACY_DOCUMENT, "transactions": [
            {"id": "t1", "date": "2024-01-05", "type": "expense", "amount": 5,
             "accountId": "a1", "incomeSourceId": "s1"},
        ]}
        txn = hydrate_document(raw).transactions[0]
        assert txn.type == TransactionType.EXPENSE
        assert txn.income_source_id is None

    def test_negative_amount_becomes_magnitude(self):
        raw = {**LEGACY_DOCUMENT, "transactions": [
            {"id": "t1", "date": "2024-01-05", "type": "expense", "amount": -42, "accountId": "a1"},
        ]}
        assert hydrate_document(raw).transactions[0].amount == 42

    def test_multi_currency_defaults(self):
        txn = hydrate_document(LEGACY_DOCUMENT).find_transaction("t1")
        assert txn.original_currency == "UAH"
        assert txn.original_amount == 500
        assert txn.exchange_rate == 1.0
        assert txn.rate_source.value == "manual"

    def test_transactions_sorted_newest_first(self):
        snapshot = hydrate_document(LEGACY_DOCUMENT)
        assert [t.id for t in snapshot.transactions] == ["t3", "t2", "t1"]

    def test_balances_are_taken_as_stored(self):
        snapshot = hydrate_document(LEGACY_DOCUMENT)
        assert {a.id: a.balance for a in snapshot.accounts} == {"a1": 1400, "a2": 100}

    def test_invalid_currency_settings_fall_back_per_field(self):
        raw = {**LEGACY_DOCUMENT, "currencySettings": {
            "default": "EUR", "reports": "XYZ", "roundToWholeNumbers": "yes",
        }}
        settings = hydrate_document(raw).currency_settings
        assert settings.default_currency.value == "EUR"
        assert settings.reports.value == "UAH"
        assert settings.round_to_whole_numbers is True

    def test_missing_ids_are_generated(self):
        raw = {"appName": "", "categoryGroups": [{"name": "Bills", "categories": [{"name": "Rent"}]}],
               "transactions": [], "accounts": [{"name": "Card"}]}
        counter = iter(["x1", "x2", "x3"])
        snapshot = hydrate_document(raw, id_factory=lambda: next(counter))
        assert snapshot.app_name == "My Current Budget"
        assert snapshot.category_groups[0].id == "x1"
        assert snapshot.category_groups[0].categories[0].id == "x2"
        assert snapshot.accounts[0].id == "x3"

    def test_bad_goal_months_are_dropped(self):
        raw = {**LEGACY_DOCUMENT, "monthlyGoals": {
            "2024-01": {"totalGoal": 1000},
            "January": {"totalGoal": 5},
        }}
        goals = hydrate_document(raw).monthly_goals
        assert list(goals) == ["2024-01"]
        assert goals["2024-01"].source_goals == {}

    def test_transaction_without_date_is_rejected(self):
        raw = {**LEGACY_DOCUMENT, "transactions": [{"id": "t1", "amount": 5, "accountId": "a1"}]}
        with pytest.raises(ValidationError):
            hydrate_document(raw)

    def test_non_object_entries_are_dropped(self):
        raw = {**LEGACY_DOCUMENT,
               "categoryGroups": [None, *LEGACY_DOCUMENT["categoryGroups"]],
               "incomeSources": ["Salary"],
               "investmentPlatforms": [42],
               "unlockedAchievements": ["first-goal"]}
        snapshot = hydrate_document(raw)
        assert [g.id for g in snapshot.category_groups] == ["g1"]
        assert snapshot.income_sources == ()
        assert snapshot.investment_platforms == ()
        assert snapshot.unlocked_achievements == {}

    def test_document_must_be_an_object(self):
        with pytest.raises(ValueError):
            hydrate_document(["not", "a", "document"])

    def test_legacy_investment_group_is_recognised(self):
        raw = {**LEGACY_DOCUMENT,
               "categoryGroups": [{"id": "g9", "name": "Інвестиції", "categories": [{"id": "c9", "name": "House"}]}],
               "transactions": [{"id": "t1", "date": "2024-01-05", "type": "expense", "amount": 500,
                                 "accountId": "a1", "categoryId": "c9"}]}
        snapshot = hydrate_document(raw)
        assert snapshot.investment_category_ids == frozenset({"c9"})
        assert aggregator.investment_summary(snapshot).total_contributed == 500

        store = LedgerStore(snapshot, id_factory=lambda: "c10")
        store.add_or_update_investment_goal("Car", 2000)
        assert len(store.snapshot.category_groups) == 1
        assert [c.id for c in store.snapshot.investment_group.categories] == ["c9", "c10"]


class TestExport:

    def test_export_then_hydrate_is_lossless(self, snapshot, id_factory, today):
        store = LedgerStore(snapshot, id_factory=id_factory, today=lambda: today)
        store.add_transaction({"date": date(2024, 3, 1), "type": "income", "amount": 1000,
                               "account_id": "acc-a", "income_source_id": "src-salary"})
        store.add_transaction({"date": date(2024, 3, 2), "type": "expense", "amount": 120,
                               "account_id": "acc-a", "category_id": None})
        store.add_or_update_investment_goal("House", 50_000)

        exported = json.loads(export_json(store.snapshot))
        assert hydrate_document(exported) == store.snapshot

    def test_export_keeps_null_category(self, snapshot, id_factory):
        store = LedgerStore(snapshot, id_factory=id_factory)
        store.add_transaction({"date": date(2024, 3, 2), "type": "expense", "amount": 1, "account_id": "acc-a"})
        document = export_document(store.snapshot)
        assert document["transactions"][0]["categoryId"] is None

    def test_export_filename(self):
        assert export_filename(date(2024, 3, 15)) == "budget-backup-2024-03-15.json"


class TestStripAbsent:

    def test_drops_none_recursively_but_keeps_category_id(self):
        document = {
            "a": None,
            "transactions": [{"id": "t1", "categoryId": None, "platformId": None}],
            "nested": {"b": None, "c": 1},
        }
        assert strip_absent(document) == {
            "transactions": [{"id": "t1", "categoryId": None}],
            "nested": {"c": 1},
        }


class TestStarterDocument:

    def test_starter_document(self, id_factory):
        document = starter_document(app_name="Family", id_factory=id_factory)
        assert document.app_name == "Family"
        assert [g.name for g in document.category_groups] == list(STARTER_CATEGORY_GROUPS)
        assert len(document.accounts) == 1
        assert document.accounts[0].balance == 0
        assert document.transactions == ()
