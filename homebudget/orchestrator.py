"""
Budget Session Orchestrator

Ties the ledger store to persistence, import/export, achievements and
exchange rates for one user.

Flows:
1. Load: storage → hydrate → store (new users get a starter document,
   saved right away; an unreachable store falls back to local data)
2. Mutate: UI → store (the store raises its dirty flag)
3. Save: store snapshot → storage (failure keeps the flag raised)
4. Import: JSON text → validate → hydrate → replace the snapshot
5. Achievements: aggregate → evaluate → merge unlocks into the store

DESIGN DECISION: I/O failures stop here. Storage errors become a
SaveResult or a fallback document, import problems become a
ValidationResult, rate failures become cached (or no) rates. Nothing
below the UI has to handle an exception from this class.
"""

from datetime import date, datetime, timezone
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from homebudget.activity import ActivityLogger, configure_logging
from homebudget.config import AppSettings, get_settings
from homebudget.ledger import aggregator
from homebudget.ledger.achievements import achievements_with_status, evaluate
from homebudget.ledger.hydration import export_json, hydrate_document
from homebudget.ledger.starter import starter_document
from homebudget.ledger.store import LedgerStore
from homebudget.models.achievements import AchievementWithStatus, UnlockedAchievement
from homebudget.models.ledger import AppData
from homebudget.models.validation import ValidationResult
from homebudget.services.rates import ExchangeRateService
from homebudget.services.storage import (
    DocumentStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStorage,
    InMemoryDocumentStorage,
    LocalJSONStorage,
    StorageError,
)
from homebudget.validation import ImportValidator


logger = structlog.get_logger(__name__)


class SaveResult(BaseModel):
    """Outcome of a save, shown to the user."""

    success: bool
    message: str
    saved_at: Optional[datetime] = Field(default=None)


class BudgetSession:
    """
    One user's budget: the live store plus everything that talks to the
    outside world on its behalf.

    Usage:
        session = create_session()
        await session.load()
        session.store.add_transaction({...})
        session.sync_achievements()
        result = await session.save()
    """

    def __init__(
        self,
        storage: DocumentStorageInterface,
        user_id: str,
        *,
        fallback_storage: Optional[DocumentStorageInterface] = None,
        rate_service: Optional[ExchangeRateService] = None,
        activity_logger: Optional[ActivityLogger] = None,
        validator: Optional[ImportValidator] = None,
        app_settings: Optional[AppSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self._storage = storage
        self._user_id = user_id
        self._fallback_storage = fallback_storage
        self._rate_service = rate_service
        self._activity = activity_logger or ActivityLogger()
        self._validator = validator or ImportValidator()
        self._app_settings = app_settings or get_settings().app
        self._today = today
        self.store = self._new_store(AppData(app_name=self._app_settings.default_app_name))
        self.loaded = False

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def snapshot(self) -> AppData:
        return self.store.snapshot

    @property
    def validator(self) -> ImportValidator:
        return self._validator

    def _new_store(self, snapshot: AppData) -> LedgerStore:
        return LedgerStore(snapshot, today=self._today, activity_logger=self._activity)

    def _new_document(self) -> AppData:
        name = self._app_settings.default_app_name
        if self._app_settings.seed_starter_data:
            return starter_document(app_name=name)
        return AppData(app_name=name)

    # -------------------------------------------------------------------------
    # Load / save
    # -------------------------------------------------------------------------

    async def _load_fallback(self) -> AppData:
        """Document from the fallback store, or a fresh one."""
        if self._fallback_storage is not None:
            try:
                raw = await self._fallback_storage.load(self._user_id)
                if raw is not None:
                    return hydrate_document(raw)
            except (StorageError, ValidationError, ValueError, TypeError) as e:
                self._activity.log_load_failed(self._user_id, f"fallback: {e}")
        return self._new_document()

    async def load(self) -> AppData:
        """
        Load the user's document into a fresh store.

        A user with no stored document gets a starter document, which is
        saved immediately. If the store cannot be read, the fallback
        store (or a starter document) is used and nothing is written.
        """
        try:
            raw = await self._storage.load(self._user_id)
            snapshot = hydrate_document(raw) if raw is not None else None
        except (StorageError, ValidationError, ValueError, TypeError) as e:
            # An unreadable document is reported, never overwritten
            self._activity.log_load_failed(self._user_id, str(e))
            self.store = self._new_store(await self._load_fallback())
            self.loaded = True
            return self.store.snapshot

        if snapshot is None:
            self.store = self._new_store(self._new_document())
            self._activity.log_document_created(self._user_id)
            self.loaded = True
            self.store.mark_dirty()
            await self.save()
            return self.store.snapshot

        self.store = self._new_store(snapshot)
        self._activity.log_document_loaded(self._user_id, len(snapshot.transactions))
        self.loaded = True
        return snapshot

    async def save(self) -> SaveResult:
        """
        Persist the current snapshot.

        On failure the snapshot stays in memory and the dirty flag stays
        raised so the user can retry.
        """
        try:
            await self._storage.save(self._user_id, self.store.snapshot.to_document())
        except StorageError as e:
            self._activity.log_save_failed(self._user_id, str(e))
            return SaveResult(
                success=False,
                message=f"Could not save changes: {e}. Your changes are kept; please try again.",
            )

        self.store.mark_saved()
        self._activity.log_document_saved(self._user_id)
        return SaveResult(
            success=True,
            message="All changes saved.",
            saved_at=datetime.now(timezone.utc),
        )

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def import_json(self, text: str) -> ValidationResult:
        """
        Replace the whole budget with an exported document.

        The current snapshot is untouched unless validation passes.
        """
        result, snapshot = self._validator.load_json(text)
        if not result.is_valid or snapshot is None:
            self._activity.log_import_rejected([i.model_dump() for i in result.issues])
            return result

        self.store.replace_snapshot(snapshot)
        self._activity.log_document_imported(len(snapshot.transactions))
        return result

    def export_json(self) -> str:
        snapshot = self.store.snapshot
        self._activity.log_document_exported(len(snapshot.transactions))
        return export_json(snapshot)

    # -------------------------------------------------------------------------
    # Achievements and rates
    # -------------------------------------------------------------------------

    def sync_achievements(self, now: Optional[datetime] = None) -> list[UnlockedAchievement]:
        """Unlock whatever the current data has newly earned."""
        snapshot = self.store.snapshot
        data = aggregator.process_for_achievements(snapshot)
        unlocked = evaluate(data, snapshot.unlocked_achievements, now)
        if unlocked:
            self.store.merge_unlocked_achievements(unlocked)
            for item in unlocked:
                self._activity.log_achievement_unlocked(item.achievement_id, item.unlocked_at)
        return unlocked

    def achievements(self) -> list[AchievementWithStatus]:
        snapshot = self.store.snapshot
        return achievements_with_status(
            aggregator.process_for_achievements(snapshot),
            snapshot.unlocked_achievements,
        )

    def rates(self, force_refresh: bool = False) -> Optional[dict[str, float]]:
        """Exchange rates for display, or None when none are available."""
        if self._rate_service is None:
            return None
        return self._rate_service.get_rates(force_refresh)


def create_storage(
    backend: Optional[str] = None,
) -> tuple[DocumentStorageInterface, Optional[DocumentStorageInterface]]:
    """
    Build the configured document store and its fallback.

    Returns:
        (storage, fallback_storage)

    Google Sheets falls back to local files; if Sheets cannot even be
    configured, local files become the primary store.
    """
    settings = get_settings()
    storage_settings = settings.storage
    backend = backend or storage_settings.backend
    local = LocalJSONStorage(storage_settings.data_dir)

    if backend == "google_sheets":
        try:
            client = GoogleSheetsClient(settings.google_sheets)
            return GoogleSheetsDocumentStorage(client), local
        except Exception as e:
            # Storage not configured - continue with local files
            logger.warning("google_sheets_unavailable", error=str(e))
            return local, None

    if backend == "memory":
        return InMemoryDocumentStorage(), None
    return local, None


def create_session(
    user_id: Optional[str] = None,
    use_rates: bool = True,
) -> BudgetSession:
    """
    Factory function to create a session from settings.

    Args:
        user_id: Overrides the configured user id
        use_rates: Whether to fetch exchange rates.
                   Set to False for offline use and testing.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)
    activity_logger = ActivityLogger()
    storage, fallback = create_storage()

    return BudgetSession(
        storage,
        user_id or settings.storage.user_id,
        fallback_storage=fallback,
        rate_service=ExchangeRateService(activity_logger=activity_logger) if use_rates else None,
        activity_logger=activity_logger,
        app_settings=settings.app,
    )
