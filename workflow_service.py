"""
Visionary Workflow Service (The "Gatekeeper")

===============================================================================
PURPOSE:
===============================================================================
This is the **single, central gatekeeper** between the pages and the
document store. Pages never touch `document_store` directly; they call the
methods here.

It does three jobs:

1.  **Keeps the snapshots.** It subscribes to the `strategies` and
    `variants` collections. Every notification replaces the in-memory list;
    `strategies` joins the two on read, so derived queues are always
    recomputed from the latest snapshot.

2.  **Enforces the rules.** Every role action asks `workflow_engine` for the
    partial update first. If the engine refuses, a `WorkflowValidationError`
    is raised and NOTHING is written.

3.  **Reports failures.** Store failures are caught here, recorded on the
    `error` signal, logged, and re-raised to the page. There is no retry.

===============================================================================
QUICK NAVIGATION:
===============================================================================
[S1] Snapshot & signals        (strategies, variants, loading, error, connected)
[S2] Basic document operations (add_strategy, add_variant, update_variant, ...)
[S3] Strategist actions        (create_variant, edit_variant, change_status, removals)
[S4] Editor actions            (accept_variant, reject_variant, save_video_link)
[S5] VA / Review actions       (approve_variant, set_review_status)
[S6] Queue accessors
"""

import logging
import weakref
from typing import List, Optional

import queues
import workflow_engine as wf
from date_codec import NO_RANGE, DateRange, today as today_str
from document_store import DocumentStore, StoreError
from models import StrategyItem, Variant

logger = logging.getLogger(__name__)

STRATEGIES = "strategies"
VARIANTS = "variants"


def _weak_listener(method):
    """Wraps a bound method so the store's listener list does not keep its service alive."""
    ref = weakref.WeakMethod(method)

    def call(*args):
        target = ref()
        if target is not None:
            target(*args)

    return call


def _unsubscribe_all(unsubscribers) -> None:
    for unsubscribe in unsubscribers:
        unsubscribe()


class WorkflowService:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.loading = True
        self.error: Optional[str] = None
        self.connected = False
        self._strategy_docs: List[dict] = []
        self._variant_docs: List[dict] = []
        on_error = _weak_listener(self._on_subscription_error)
        self._unsubscribers = [
            store.subscribe(STRATEGIES, _weak_listener(self._on_strategies), on_error),
            store.subscribe(VARIANTS, _weak_listener(self._on_variants), on_error),
        ]
        # One service per browser session; when a session's service is
        # collected its listeners leave the shared store.
        self._finalizer = weakref.finalize(self, _unsubscribe_all, list(self._unsubscribers))

    # --- [S1] Snapshot & signals ---

    def _on_strategies(self, docs: List[dict]) -> None:
        self._strategy_docs = docs
        self.loading = False
        self.connected = True

    def _on_variants(self, docs: List[dict]) -> None:
        self._variant_docs = docs

    def _on_subscription_error(self, exc: Exception) -> None:
        logger.error("Snapshot listener failed: %s", exc)
        self.error = str(exc)
        self.loading = False
        self.connected = False

    def refresh(self) -> None:
        """
        Re-reads both collections. Called at the top of every page render so
        writes made by other sessions show up. A successful read clears the
        error signal.
        """
        try:
            strategy_docs = self.store.list_documents(STRATEGIES)
            variant_docs = self.store.list_documents(VARIANTS)
        except StoreError as e:
            self._on_subscription_error(e)
            return
        self._on_strategies(strategy_docs)
        self._on_variants(variant_docs)
        self.error = None

    def close(self) -> None:
        self._finalizer()
        self._unsubscribers = []

    @property
    def strategy_docs(self) -> List[dict]:
        return list(self._strategy_docs)

    @property
    def variant_docs(self) -> List[dict]:
        return list(self._variant_docs)

    @property
    def strategies(self) -> List[StrategyItem]:
        """Strategies with their variants attached (joined on every read)."""
        return queues.join_strategies(self._strategy_docs, self._variant_docs)

    def get_variant(self, variant_id: str) -> Variant:
        for doc in self._variant_docs:
            if doc.get("id") == variant_id:
                return Variant.from_doc(doc)
        raise wf.WorkflowValidationError(f"Variant {variant_id} was not found. It may have been deleted.")

    def get_strategy(self, strategy_id: str) -> StrategyItem:
        strategy = queues.find_strategy(self.strategies, strategy_id)
        if strategy is None:
            raise wf.WorkflowValidationError(f"Strategy {strategy_id} was not found. It may have been deleted.")
        return strategy

    def _store_call(self, description: str, fn, *args):
        """[PRIVATE] Runs one store operation; failures land on `error` and are re-raised."""
        try:
            result = fn(*args)
        except StoreError as e:
            logger.error("Error %s: %s", description, e)
            self.error = str(e)
            raise
        self.error = None
        return result

    # --- [S2] Basic document operations ---

    def add_strategy(self, product: str, format: str, description: str,
                     batch_code: Optional[str] = None) -> str:
        doc = wf.validate_strategy_fields(product, format, description, batch_code)
        return self._store_call("adding strategy", self.store.create_document, STRATEGIES, doc)

    def update_strategy(self, strategy_id: str, product: str, format: str, description: str,
                        batch_code: Optional[str] = None) -> None:
        self.get_strategy(strategy_id)
        doc = wf.validate_strategy_fields(product, format, description, batch_code)
        self._store_call("updating strategy", self.store.update_document, STRATEGIES, strategy_id, doc)

    def add_variant(self, variant_doc: dict, strategy_id: str) -> str:
        """Stores a prepared variant document under `strategy_id` (both foreign-key fields set)."""
        doc = dict(variant_doc)
        doc["strategyId"] = strategy_id
        doc["headerId"] = strategy_id
        return self._store_call("adding variant", self.store.create_document, VARIANTS, doc)

    def update_variant(self, variant_id: str, updates: dict) -> None:
        if not updates:
            return
        self._store_call("updating variant", self.store.update_document, VARIANTS, variant_id, updates)

    def delete_strategy(self, strategy_id: str) -> None:
        """Deletes a strategy and every variant that points at it, in one transaction."""
        removed = self._store_call("deleting strategy", self.store.delete_cascade,
                                   STRATEGIES, strategy_id, VARIANTS, "strategyId")
        logger.info("Deleted strategy %s with %d variant(s)", strategy_id, removed)

    def delete_variant(self, variant_id: str) -> None:
        self._store_call("deleting variant", self.store.delete_document, VARIANTS, variant_id)

    # --- [S3] Strategist actions ---

    def create_variant(self, strategy_id: str, fields: dict, today: Optional[str] = None) -> str:
        self.get_strategy(strategy_id)
        doc = wf.build_new_variant(fields, strategy_id, today or today_str())
        return self.add_variant(doc, strategy_id)

    def edit_variant(self, variant_id: str, fields: dict, today: Optional[str] = None) -> None:
        variant = self.get_variant(variant_id)
        self.update_variant(variant_id, wf.plan_variant_edit(variant, fields, today or today_str()))

    def change_status(self, variant_id: str, next_status: str, role: str,
                      today: Optional[str] = None) -> None:
        variant = self.get_variant(variant_id)
        try:
            updates = wf.plan_status_change(variant, next_status, role, today or today_str())
        except wf.WorkflowValidationError as e:
            logger.info("Refused %s -> %s by %s on %s: %s", variant.status, next_status, role, variant_id, e)
            raise
        self.update_variant(variant_id, updates)

    def save_script_link(self, variant_id: str, link: str) -> None:
        variant = self.get_variant(variant_id)
        self.update_variant(variant_id, wf.plan_script_link(variant, link))

    def remove_variant(self, variant_id: str) -> None:
        """Strategist removal mode: only pristine variants."""
        variant = self.get_variant(variant_id)
        if not wf.can_delete_variant(variant):
            raise wf.WorkflowValidationError(
                'Only variants in "In Progress" status without rejection feedback can be removed.'
            )
        self.delete_variant(variant_id)

    def remove_strategy(self, strategy_id: str) -> None:
        """Strategist removal mode: only rows whose variants are all pristine."""
        strategy = self.get_strategy(strategy_id)
        if not wf.can_delete_strategy(strategy.variants):
            raise wf.WorkflowValidationError(
                'This parent row contains variants that are either not "In Progress" or have '
                'rejection feedback. Only rows with strictly new "In Progress" variants can be removed.'
            )
        self.delete_strategy(strategy_id)

    # --- [S4] Editor actions ---

    def accept_variant(self, variant_id: str, today: Optional[str] = None) -> None:
        variant = self.get_variant(variant_id)
        self.update_variant(variant_id, wf.plan_accept(variant, today or today_str()))

    def reject_variant(self, variant_id: str, source: str, message: str,
                       destination: Optional[str] = None, today: Optional[str] = None) -> None:
        variant = self.get_variant(variant_id)
        updates = wf.plan_rejection(variant, source, message, today or today_str(), destination)
        self.update_variant(variant_id, updates)
        logger.info("Variant %s rejected by %s to %s", variant_id, source,
                    updates["rejectionHistory"][-1].get("destination"))

    def save_video_link(self, variant_id: str, link: str) -> None:
        variant = self.get_variant(variant_id)
        self.update_variant(variant_id, wf.plan_video_link(variant, link))

    # --- [S5] VA / Review actions ---

    def approve_variant(self, variant_id: str) -> None:
        variant = self.get_variant(variant_id)
        self.update_variant(variant_id, wf.plan_approve_for_launch(variant))

    def set_review_status(self, variant_id: str, review_status: str) -> None:
        variant = self.get_variant(variant_id)
        self.update_variant(variant_id, wf.plan_review_status(variant, review_status))

    # --- [S6] Queue accessors ---

    def strategist_queue(self, products=None, formats=None, date_range: DateRange = NO_RANGE,
                         sort_order: str = "desc", hide_completed: bool = False,
                         hide_ready_to_edit: bool = False) -> List[StrategyItem]:
        return queues.strategist_queue(self.strategies, products, formats, date_range, sort_order,
                                       hide_completed, hide_ready_to_edit)

    def approval_queue(self) -> List[Variant]:
        return queues.approval_queue(self.strategies)

    def production_queue(self, date_range: DateRange = NO_RANGE, sort_order: str = "desc",
                         hide_completed: bool = False) -> List[Variant]:
        return queues.production_queue(self.strategies, date_range, sort_order, hide_completed)

    def va_review_queue(self, date_range: DateRange = NO_RANGE) -> List[Variant]:
        return queues.va_review_queue(self.strategies, date_range)

    def va_launch_queue(self, date_range: DateRange = NO_RANGE, hide_live: bool = False) -> List[Variant]:
        return queues.va_launch_queue(self.strategies, date_range, hide_live)

    def live_ads_queue(self, date_range: DateRange = NO_RANGE, hide_off: bool = False,
                       hide_needs_spend: bool = False) -> List[Variant]:
        return queues.live_ads_queue(self.strategies, date_range, hide_off, hide_needs_spend)
