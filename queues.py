"""
Visionary Queues (`queues.py`)

Read-side projections for each role's page. Every function here is pure:
(snapshot of strategies + filter settings) -> list. Pages call them on every
rerun, so there is no cached state to go stale.

Ordering rules worth knowing:
- Ids are time-ordered strings, so "id descending" means "newest first".
- The Editor's approval queue is the one FIFO intake: id ascending.
"""

from typing import Iterable, List, Optional

import workflow_engine as wf
from date_codec import NO_RANGE, DateRange, sort_key
from models import StrategyItem, Variant

PRODUCTION_STATUSES = (wf.REJECTED, wf.IN_PROGRESS, wf.COMPLETED) + wf.LAUNCH_STAGE


# --- Snapshot join ---

def join_strategies(strategy_docs: Iterable[dict], variant_docs: Iterable[dict]) -> List[StrategyItem]:
    """
    Attaches each variant document to its owning strategy (by strategyId,
    falling back to headerId). Variants whose strategy is gone are dropped.
    """
    by_owner = {}
    for doc in variant_docs:
        variant = Variant.from_doc(doc)
        by_owner.setdefault(variant.header_id, []).append(variant)
    return [StrategyItem.from_doc(doc, by_owner.get(str(doc.get("id")), [])) for doc in strategy_docs]


def all_variants(strategies: Iterable[StrategyItem]) -> List[Variant]:
    return [v for s in strategies for v in s.variants]


def find_variant(strategies: Iterable[StrategyItem], variant_id: str) -> Optional[Variant]:
    for s in strategies:
        for v in s.variants:
            if v.id == variant_id:
                return v
    return None


def find_strategy(strategies: Iterable[StrategyItem], strategy_id: str) -> Optional[StrategyItem]:
    for s in strategies:
        if s.id == strategy_id:
            return s
    return None


def _newest_first(variants: Iterable[Variant]) -> List[Variant]:
    return sorted(variants, key=lambda v: v.id, reverse=True)


def _by_date_then_id(variants: Iterable[Variant], date_field: str, sort_order: str) -> List[Variant]:
    # Two stable passes: id descending is the tie-break, then the date order on top.
    ordered = _newest_first(variants)
    return sorted(ordered, key=lambda v: sort_key(getattr(v, date_field)),
                  reverse=(sort_order == "desc"))


def _by_created_date(variants: Iterable[Variant], sort_order: str) -> List[Variant]:
    """Strategist order: createdDate, ties broken by id in the same direction."""
    return sorted(variants, key=lambda v: (sort_key(v.created_date), v.id),
                  reverse=(sort_order == "desc"))


# --- Strategist ---

def strategist_queue(strategies: Iterable[StrategyItem],
                     products: Optional[Iterable[str]] = None,
                     formats: Optional[Iterable[str]] = None,
                     date_range: DateRange = NO_RANGE,
                     sort_order: str = "desc",
                     hide_completed: bool = False,
                     hide_ready_to_edit: bool = False) -> List[StrategyItem]:
    """
    Strategies (newest first) with their variants sorted by createdDate.
    An empty/None product or format selection means "no filter". A date range
    keeps a strategy if ANY of its variants was created inside it, and then
    lists only the variants created inside it.
    """
    products = set(products or [])
    formats = set(formats or [])

    result = []
    for s in sorted(strategies, key=lambda s: s.id, reverse=True):
        if products and s.product not in products:
            continue
        if formats and s.format not in formats:
            continue
        if date_range.active and not any(date_range.contains(v.created_date) for v in s.variants):
            continue

        variants = [v for v in s.variants if date_range.contains(v.created_date)]
        if hide_completed:
            variants = [v for v in variants if v.status != wf.COMPLETED and v.status not in wf.LAUNCH_STAGE]
        if hide_ready_to_edit:
            variants = [v for v in variants if wf.effective_status(v) != wf.READY_TO_EDIT]
        result.append(s.with_variants(_by_created_date(variants, sort_order)))
    return result


# --- Editor ---

def mirrored_variants(strategies: Iterable[StrategyItem], sort_order: str = "desc") -> List[Variant]:
    """Everything the Editor's page knows about, sorted by editDate then id."""
    def visible(v: Variant) -> bool:
        if v.status in (wf.READY_TO_EDIT, wf.COMPLETED, wf.REJECTED) or v.status in wf.LAUNCH_STAGE:
            return True
        return v.status == wf.IN_PROGRESS and wf.is_scripting(v)

    return _by_date_then_id([v for v in all_variants(strategies) if visible(v)], "edit_date", sort_order)


def approval_queue(strategies: Iterable[StrategyItem]) -> List[Variant]:
    """Briefs handed over but not yet accepted. Oldest first."""
    return sorted((v for v in mirrored_variants(strategies) if wf.in_approval_queue(v)),
                  key=lambda v: v.id)


def production_queue(strategies: Iterable[StrategyItem],
                     date_range: DateRange = NO_RANGE,
                     sort_order: str = "desc",
                     hide_completed: bool = False) -> List[Variant]:
    """
    Variants in production or beyond. While a date range is active, rows
    without an editDate are dropped.
    """
    result = []
    for v in mirrored_variants(strategies, sort_order):
        in_production = (v.status == wf.READY_TO_EDIT and v.edit_date) or v.status in PRODUCTION_STATUSES
        if not in_production:
            continue
        if not date_range.contains(v.edit_date):
            continue
        if hide_completed and (v.status == wf.COMPLETED or v.status in wf.LAUNCH_STAGE):
            continue
        result.append(v)
    return result


def reveal(items: List, visible_count: int) -> tuple:
    """Progressive reveal: (the first `visible_count` items, how many are still hidden)."""
    visible_count = max(visible_count, 0)
    shown = items[:visible_count]
    return shown, len(items) - len(shown)


# --- Validation (VA) ---

def va_review_queue(strategies: Iterable[StrategyItem], date_range: DateRange = NO_RANGE) -> List[Variant]:
    """Left pane: completed videos awaiting sign-off, filtered on compDate."""
    return _newest_first(v for v in all_variants(strategies)
                         if v.status == wf.COMPLETED and date_range.contains(v.comp_date))


def va_launch_queue(strategies: Iterable[StrategyItem],
                    date_range: DateRange = NO_RANGE,
                    hide_live: bool = False) -> List[Variant]:
    """Right pane: the launch stage. Rows without a launchDate always stay visible."""
    return _newest_first(
        v for v in all_variants(strategies)
        if v.status in wf.LAUNCH_STAGE
        and not (hide_live and v.status == wf.LIVE)
        and date_range.contains(v.launch_date, keep_missing=True)
    )


# --- Review ---

def live_ads_queue(strategies: Iterable[StrategyItem],
                   date_range: DateRange = NO_RANGE,
                   hide_off: bool = False,
                   hide_needs_spend: bool = False) -> List[Variant]:
    def keep(v: Variant) -> bool:
        review_status = v.review_status or wf.RUNNING
        if hide_off and review_status == wf.OFF:
            return False
        if hide_needs_spend and review_status == wf.NEEDS_SPEND:
            return False
        return date_range.contains(v.launch_date, keep_missing=True)

    return _newest_first(v for v in all_variants(strategies) if v.status == wf.LIVE and keep(v))
