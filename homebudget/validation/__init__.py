"""Import validation package."""

from homebudget.validation.validator import ImportDocument, ImportValidator

__all__ = ["ImportDocument", "ImportValidator"]
