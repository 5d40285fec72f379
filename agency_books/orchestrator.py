"""
Main Orchestrator for Agency Books

This module ties together all the components and defines the flows for:
1. Recording and deleting transactions (store → refresh analysis)
2. Keeping the AI analysis in step with the books

DESIGN DECISION: The refresh controller is the ONLY component that reads
the transaction snapshot and writes the analysis cache. The store and the
cache never reference each other.

DESIGN DECISION: Background refreshes never interrupt the user.
- Initial load and post-delete refreshes are silent (log only)
- Post-add refresh announces success, logs failure
- Only a manual refresh reports failure to the user

Overlapping refreshes are not serialized: whichever call finishes last
overwrites the cache (last write wins).
"""

from collections.abc import Sequence
from datetime import tzinfo
from typing import Optional

from agency_books.agents import FinancialSummaryAgent, Summarizer, SummarizerError
from agency_books.analytics import (
    aggregate_totals,
    category_breakdown,
    monthly_series,
    recent_transactions,
    search_transactions,
)
from agency_books.config import get_settings
from agency_books.config.settings import Settings
from agency_books.events import EventLogger, create_correlation_id
from agency_books.models.analysis import (
    NotificationSink,
    RefreshOutcome,
    RefreshState,
    RefreshTrigger,
    Severity,
)
from agency_books.models.dashboard import DashboardView
from agency_books.models.transaction import Transaction
from agency_books.services.storage import (
    AnalysisCache,
    KeyValueStoreInterface,
    LocalFileKeyValueStore,
    TransactionStore,
)


AI_UPDATED_MESSAGE = "Nouvelle analyse comptable disponible."
MANUAL_REFRESH_SUCCESS_MESSAGE = "Analyse mise à jour avec succès."
MANUAL_REFRESH_FAILURE_MESSAGE = "Impossible de générer l'analyse."
TRANSACTION_RECORDED_MESSAGE = "Transaction enregistrée avec succès."
TRANSACTION_DELETED_MESSAGE = "Transaction supprimée."


class AnalysisRefreshController:
    """
    Decides when to ask the summarizer for a new analysis.

    States:
    - IDLE: no call outstanding
    - REFRESHING: at least one summarizer call outstanding

    Every refresh makes exactly one summarizer call. Success writes the
    cache; failure leaves it untouched. Either way the controller goes
    back to IDLE once no call is outstanding.
    """

    def __init__(
        self,
        summarizer: Summarizer,
        cache: AnalysisCache,
        notifier: Optional[NotificationSink] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self._summarizer = summarizer
        self._cache = cache
        self._notifier = notifier
        self._event_logger = event_logger or EventLogger()
        self._in_flight = 0
        self._summary: Optional[str] = None
        self._last_outcome: Optional[RefreshOutcome] = None

    @property
    def state(self) -> RefreshState:
        return RefreshState.REFRESHING if self._in_flight > 0 else RefreshState.IDLE

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def summary(self) -> Optional[str]:
        """The analysis currently shown to the user."""
        return self._summary

    @property
    def last_outcome(self) -> Optional[RefreshOutcome]:
        return self._last_outcome

    @property
    def is_stale(self) -> bool:
        return self._cache.is_stale()

    def forget_summary(self) -> None:
        """Drop the surfaced summary (the cache is cleared separately)."""
        self._summary = None
        self._last_outcome = None

    async def initial_load(self, transactions: Sequence[Transaction]) -> Optional[str]:
        """
        Surface the stored analysis, or silently build one.

        A stored analysis is shown as is: reloading the app must not
        cost an API call.
        """
        stored = self._cache.load_stored_summary()
        if stored is not None:
            self._summary = stored
            self._event_logger.log_analysis_loaded(len(stored))
            return stored

        if not transactions:
            return None

        await self._refresh(
            transactions,
            RefreshTrigger.INITIAL_LOAD,
            success_message=None,
            failure_message=None,
        )
        return self._summary

    async def on_transaction_added(self, transactions: Sequence[Transaction]) -> bool:
        """A new transaction always invalidates the analysis."""
        return await self._refresh(
            transactions,
            RefreshTrigger.TRANSACTION_ADDED,
            success_message=AI_UPDATED_MESSAGE,
            failure_message=None,
        )

    async def on_transaction_deleted(self, transactions: Sequence[Transaction]) -> bool:
        """Silent refresh with the post-deletion list."""
        if not transactions:
            return False
        return await self._refresh(
            transactions,
            RefreshTrigger.TRANSACTION_DELETED,
            success_message=None,
            failure_message=None,
        )

    async def request_refresh(self, transactions: Sequence[Transaction]) -> bool:
        """User asked for a new analysis. Nothing to analyse is a no-op."""
        if not transactions:
            return False
        return await self._refresh(
            transactions,
            RefreshTrigger.MANUAL,
            success_message=MANUAL_REFRESH_SUCCESS_MESSAGE,
            success_severity=Severity.SUCCESS,
            failure_message=MANUAL_REFRESH_FAILURE_MESSAGE,
        )

    async def _refresh(
        self,
        transactions: Sequence[Transaction],
        trigger: RefreshTrigger,
        success_message: Optional[str],
        failure_message: Optional[str],
        success_severity: Severity = Severity.INFO,
    ) -> bool:
        """
        Run one summarizer call and record its outcome.

        Returns:
            True if a new analysis was stored
        """
        snapshot = tuple(transactions)
        correlation_id = create_correlation_id()

        self._in_flight += 1
        self._event_logger.log_analysis_requested(
            trigger=trigger.value,
            transaction_count=len(snapshot),
            correlation_id=correlation_id,
        )

        try:
            self._cache.mark_stale()
            text = await self._summarizer.summarize(snapshot)
            self._cache.save_summary(text)
        except Exception as e:
            self._last_outcome = RefreshOutcome(
                trigger=trigger,
                success=False,
                error_message=str(e),
                transaction_count=len(snapshot),
            )
            if isinstance(e, SummarizerError):
                self._event_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            self._event_logger.log_analysis_failed(
                trigger=trigger.value,
                error_message=f"{type(e).__name__}: {e}",
                correlation_id=correlation_id,
                notified=failure_message is not None,
            )
            if failure_message:
                self._notify(failure_message, Severity.ERROR)
            return False
        finally:
            self._in_flight -= 1

        self._summary = text
        self._last_outcome = RefreshOutcome(
            trigger=trigger,
            success=True,
            transaction_count=len(snapshot),
        )
        self._event_logger.log_analysis_updated(
            trigger=trigger.value,
            length=len(text),
            correlation_id=correlation_id,
        )
        if success_message:
            self._notify(success_message, success_severity)
        return True

    def _notify(self, message: str, severity: Severity) -> None:
        if self._notifier is not None:
            self._notifier(message, severity)


class BookkeepingFlow:
    """
    Caller-facing flow for the host UI.

    Flow:
    1. Mutate the store (synchronous, strictly ordered)
    2. Confirm to the user
    3. Hand the new snapshot to the refresh controller
    """

    def __init__(
        self,
        store: TransactionStore,
        controller: AnalysisRefreshController,
        notifier: Optional[NotificationSink] = None,
        event_logger: Optional[EventLogger] = None,
        recent_limit: int = 5,
        tz: Optional[tzinfo] = None,
    ):
        self._store = store
        self._controller = controller
        self._notifier = notifier
        self._event_logger = event_logger or EventLogger()
        self._recent_limit = recent_limit
        self._tz = tz

    @property
    def controller(self) -> AnalysisRefreshController:
        return self._controller

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """Immutable snapshot, newest first."""
        return self._store.snapshot()

    def load(self) -> tuple[Transaction, ...]:
        """(Re)read the books from storage."""
        return self._store.load()

    async def start(self) -> tuple[Transaction, ...]:
        """Load the books, then surface or build the analysis."""
        snapshot = self.load()
        await self._controller.initial_load(snapshot)
        return snapshot

    def store_transaction(self, transaction: Transaction) -> tuple[Transaction, ...]:
        """
        Persist a transaction and confirm it, without touching the analysis.

        The host schedules controller.on_transaction_added(updated) itself
        when the refresh must not hold up the page.

        Raises:
            DuplicateError: If the id is already recorded
            StorageWriteError: If the list cannot be persisted
        """
        updated = self._store.add(transaction)
        self._event_logger.log_transaction_recorded(
            transaction_id=transaction.id,
            kind=transaction.kind.value,
            amount=str(transaction.amount),
            category=transaction.category,
        )
        self._notify(TRANSACTION_RECORDED_MESSAGE, Severity.SUCCESS)
        return updated

    async def record_transaction(self, transaction: Transaction) -> tuple[Transaction, ...]:
        """Persist a transaction, then refresh the analysis."""
        updated = self.store_transaction(transaction)
        await self._controller.on_transaction_added(updated)
        return updated

    def discard_transaction(self, transaction_id: str) -> bool:
        """
        Remove a transaction if present and confirm it.

        Returns:
            True if something was removed (and a refresh is due)
        """
        found = self._store.get(transaction_id) is not None
        self._store.remove(transaction_id)
        self._event_logger.log_transaction_deleted(transaction_id, found)

        if found:
            self._notify(TRANSACTION_DELETED_MESSAGE, Severity.SUCCESS)
        return found

    async def delete_transaction(self, transaction_id: str) -> tuple[Transaction, ...]:
        """Remove a transaction if present, then silently refresh."""
        found = self.discard_transaction(transaction_id)
        updated = self._store.snapshot()
        if found:
            await self._controller.on_transaction_deleted(updated)
        return updated

    async def refresh_analysis(self) -> bool:
        """Manual refresh from the dashboard button."""
        return await self._controller.request_refresh(self._store.snapshot())

    def clear_all(self) -> int:
        """Wipe every transaction; the store's hooks clear the analysis."""
        removed = self._store.clear_all()
        self._event_logger.log_transactions_cleared(removed)
        return removed

    def dashboard(self) -> DashboardView:
        """All dashboard views, computed from one snapshot."""
        snapshot = self._store.snapshot()
        return DashboardView(
            totals=aggregate_totals(snapshot),
            monthly=monthly_series(snapshot, self._tz),
            categories=category_breakdown(snapshot),
            recent=recent_transactions(snapshot, self._recent_limit),
        )

    def search(self, term: str) -> list[Transaction]:
        return search_transactions(self._store.snapshot(), term)

    def _notify(self, message: str, severity: Severity) -> None:
        if self._notifier is not None:
            self._notifier(message, severity)


def create_app_components(
    settings: Optional[Settings] = None,
    kv_store: Optional[KeyValueStoreInterface] = None,
    summarizer: Optional[Summarizer] = None,
    notifier: Optional[NotificationSink] = None,
    event_logger: Optional[EventLogger] = None,
) -> BookkeepingFlow:
    """
    Factory function to create all application components.

    Args:
        settings: Root settings (defaults to environment)
        kv_store: Storage backend. Defaults to files under STORAGE_DATA_DIR.
        summarizer: Analysis provider. Defaults to the Gemini agent.
        notifier: Where user-facing messages go
        event_logger: Structured event logger

    Returns:
        The wired BookkeepingFlow (not yet started)
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app
    event_logger = event_logger or EventLogger()

    if kv_store is None:
        kv_store = LocalFileKeyValueStore(storage_settings.data_dir)

    if summarizer is None:
        summarizer = FinancialSummaryAgent(
            settings=settings.gemini,
            app_settings=app_settings,
        )

    store = TransactionStore(
        kv_store,
        key=storage_settings.transactions_key,
        event_logger=event_logger,
    )
    cache = AnalysisCache(
        kv_store,
        key=storage_settings.analysis_key,
        event_logger=event_logger,
    )
    controller = AnalysisRefreshController(
        summarizer=summarizer,
        cache=cache,
        notifier=notifier,
        event_logger=event_logger,
    )

    # A wiped history invalidates the analysis
    store.on_cleared(cache.clear_summary)
    store.on_cleared(controller.forget_summary)

    return BookkeepingFlow(
        store=store,
        controller=controller,
        notifier=notifier,
        event_logger=event_logger,
        recent_limit=app_settings.recent_transactions_limit,
        tz=app_settings.zone,
    )
