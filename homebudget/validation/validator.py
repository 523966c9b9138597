"""
Two-Stage Import Validation

DESIGN DECISION: An imported document replaces the whole budget, so it
is checked before anything is touched, in two stages:

STAGE 1 - SHAPE VALIDATION:
- The text parses as a JSON object
- appName is a string
- categoryGroups, transactions and accounts are arrays
- Each transaction has a string id, a string date and a numeric amount
- Each account has a string id and name and a numeric balance
- Optional collections, when present, are of the right kind

STAGE 2 - SEMANTIC VALIDATION:
- Duplicate ids and unparseable dates (errors)
- References to accounts, categories, sources or platforms that do not
  exist (warnings; they behave like detached references)
- The document must survive hydration

Stage 2 only runs when stage 1 passes. A failed import never reaches
the store, so the current snapshot is left untouched.
"""

import json
from collections import Counter
from datetime import date
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
)

from homebudget.ledger.hydration import hydrate_document
from homebudget.models.ledger import AppData
from homebudget.models.validation import ValidationIssue, ValidationResult


Number = Union[StrictInt, StrictFloat]


# =============================================================================
# SHAPE MODELS - the minimum an importable document must look like
# =============================================================================

class _Shape(BaseModel):
    model_config = ConfigDict(extra="allow")


class TransactionShape(_Shape):
    id: StrictStr
    date: StrictStr
    amount: Number


class AccountShape(_Shape):
    id: StrictStr
    name: StrictStr
    balance: Number


class ImportDocument(_Shape):
    appName: StrictStr
    categoryGroups: list[dict[str, Any]]
    transactions: list[TransactionShape]
    accounts: list[AccountShape]

    incomeSources: Optional[list[dict[str, Any]]] = None
    monthlyGoals: Optional[dict[str, dict[str, Any]]] = None
    unlockedAchievements: Optional[dict[str, StrictStr]] = None
    investmentPlatforms: Optional[list[dict[str, Any]]] = None
    monthlyInvestmentTarget: Optional[Number] = None
    currencySettings: Optional[dict[str, Union[StrictStr, StrictBool]]] = None


def _location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "document"


def _issues_from_error(error: ValidationError, prefix: str = "") -> list[ValidationIssue]:
    issues = []
    for detail in error.errors():
        field = _location(detail["loc"])
        issues.append(ValidationIssue(
            field=f"{prefix}{field}" if prefix else field,
            issue_type="missing" if detail["type"] == "missing" else "invalid_type",
            message=f"{field}: {detail['msg']}",
            severity="error",
            suggested_fix="Export a fresh backup from the app and import that file",
        ))
    return issues


class ImportValidator:
    """
    Validates a document before it replaces the current budget.

    Usage:
        result, snapshot = ImportValidator().load_json(text)
        if result.is_valid:
            store.replace_snapshot(snapshot)
    """

    # -------------------------------------------------------------------------
    # Stage 1
    # -------------------------------------------------------------------------

    def _validate_shape(self, document: Any) -> tuple[bool, list[ValidationIssue]]:
        if not isinstance(document, dict):
            return False, [ValidationIssue(
                field="document",
                issue_type="invalid_type",
                message="The file does not contain a budget document (expected a JSON object)",
                severity="error",
                suggested_fix="Choose a file exported from this app",
            )]

        try:
            ImportDocument.model_validate(document)
        except ValidationError as e:
            return False, _issues_from_error(e)
        return True, []

    # -------------------------------------------------------------------------
    # Stage 2
    # -------------------------------------------------------------------------

    def _validate_semantic(self, document: dict) -> tuple[bool, list[ValidationIssue]]:
        issues = []
        transactions = document["transactions"]
        accounts = document["accounts"]

        for label, entries in (("transactions", transactions), ("accounts", accounts)):
            duplicates = [i for i, n in Counter(e["id"] for e in entries).items() if n > 1]
            if duplicates:
                issues.append(ValidationIssue(
                    field=label,
                    issue_type="duplicate_id",
                    message=f"{len(duplicates)} duplicate id(s) in {label}: {', '.join(duplicates[:5])}",
                    severity="error",
                    suggested_fix="Each entry needs a unique id",
                ))

        account_ids = {a["id"] for a in accounts}
        category_ids = {
            c.get("id")
            for g in document["categoryGroups"]
            for c in (g.get("categories") or [])
            if isinstance(c, dict)
        }
        source_ids = {s.get("id") for s in document.get("incomeSources") or []}
        platform_ids = {p.get("id") for p in document.get("investmentPlatforms") or []}

        dangling = Counter()
        for index, txn in enumerate(transactions):
            try:
                date.fromisoformat(txn["date"][:10])
            except ValueError:
                issues.append(ValidationIssue(
                    field=f"transactions.{index}.date",
                    issue_type="invalid_value",
                    message=f"Transaction {txn['id']} has an unreadable date ({txn['date']!r})",
                    severity="error",
                    suggested_fix="Dates must look like YYYY-MM-DD",
                ))

            if txn["amount"] < 0:
                issues.append(ValidationIssue(
                    field=f"transactions.{index}.amount",
                    issue_type="suspicious_value",
                    message=f"Transaction {txn['id']} has a negative amount; it will be imported as positive",
                    severity="warning",
                ))

            for key, known, label in (
                ("accountId", account_ids, "account"),
                ("transferToAccountId", account_ids, "account"),
                ("categoryId", category_ids, "category"),
                ("incomeSourceId", source_ids, "income source"),
                ("platformId", platform_ids, "platform"),
            ):
                ref = txn.get(key)
                if ref and ref not in known:
                    dangling[label] += 1

        for label, count in dangling.items():
            issues.append(ValidationIssue(
                field="transactions",
                issue_type="unknown_reference",
                message=f"{count} transaction(s) point to a {label} that is not in the file",
                severity="warning",
                suggested_fix="These references will be ignored in totals",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        if is_valid:
            try:
                hydrate_document(document)
            except ValidationError as e:
                issues.extend(_issues_from_error(e))
                is_valid = False
            except (ValueError, TypeError) as e:
                issues.append(ValidationIssue(
                    field="document",
                    issue_type="invalid_type",
                    message=f"The document could not be read: {e}",
                    severity="error",
                    suggested_fix="Export a fresh backup from the app and import that file",
                ))
                is_valid = False

        return is_valid, issues

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def validate(self, document: Any) -> ValidationResult:
        """Run both stages over an already parsed document."""
        all_issues = []

        shape_valid, shape_issues = self._validate_shape(document)
        all_issues.extend(shape_issues)

        semantic_valid = False
        if shape_valid:
            semantic_valid, semantic_issues = self._validate_semantic(document)
            all_issues.extend(semantic_issues)

        return ValidationResult(
            shape_valid=shape_valid,
            semantic_valid=semantic_valid,
            is_valid=shape_valid and semantic_valid,
            issues=all_issues,
            warnings=[i.message for i in all_issues if i.severity == "warning"],
        )

    def parse_json(self, text: Union[str, bytes]) -> tuple[Optional[Any], Optional[ValidationResult]]:
        """Parse JSON text. Returns (document, None) or (None, failed result)."""
        try:
            return json.loads(text), None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return None, ValidationResult(
                shape_valid=False,
                semantic_valid=False,
                is_valid=False,
                issues=[ValidationIssue(
                    field="document",
                    issue_type="invalid_json",
                    message=f"The file is not valid JSON: {e}",
                    severity="error",
                    suggested_fix="Choose a file exported from this app",
                )],
            )

    def load_json(self, text: Union[str, bytes]) -> tuple[ValidationResult, Optional[AppData]]:
        """Validate JSON text and, if it passes, hydrate it into a snapshot."""
        document, failure = self.parse_json(text)
        if failure is not None:
            return failure, None

        result = self.validate(document)
        if not result.is_valid:
            return result, None
        return result, hydrate_document(document)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary of a validation result for display."""
        if result.is_valid and not result.warnings:
            return "✅ The file looks good and is ready to import."

        lines = []

        if result.has_errors:
            lines.append("❌ This file cannot be imported:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please note:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.is_valid:
            lines.append("Importing will replace all current data.")
        else:
            lines.append("Your current data has not been changed.")

        return "\n".join(lines).strip()
