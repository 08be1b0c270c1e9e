"""
Filter & Sort Stage.
Secondary predicates and ordering applied after the radius query.
"""
import math
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from app.models.charging import ResultRecord, SearchQuery, SortKey

PRICE_EPSILON = 1e-9


def _present(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def matches_text(record: ResultRecord, text: str) -> bool:
    """Case-insensitive substring match on name or address."""
    needle = (text or "").strip().lower()
    if not needle:
        return True
    return any(
        needle in value.lower()
        for value in (record.name, record.address)
        if value
    )


def matches(record: ResultRecord, query: SearchQuery) -> bool:
    """All active predicates must hold. Unset thresholds are ignored."""
    if not matches_text(record, query.text):
        return False
    if query.min_power is not None:
        if not (_present(record.power_kw) and record.power_kw >= query.min_power):
            return False
    if query.max_price is not None:
        if not (
            _present(record.price_per_kwh)
            and record.price_per_kwh <= query.max_price + PRICE_EPSILON
        ):
            return False
    if query.status:
        if (record.status or "").lower() != query.status.strip().lower():
            return False
    return True


def _descending(value: Optional[float]) -> Tuple[int, float]:
    return (0, -value) if _present(value) else (1, 0.0)


def _ascending(value: Optional[float]) -> Tuple[int, float]:
    return (0, value) if _present(value) else (1, 0.0)


# Missing values sort last for every key
SORT_KEYS: Dict[SortKey, Callable[[ResultRecord], Tuple[int, float]]] = {
    SortKey.POWER: lambda r: _descending(r.power_kw),
    SortKey.PRICE: lambda r: _ascending(r.price_per_kwh),
    SortKey.UPDATED: lambda r: _descending(r.updated_at),
}


def sort_records(records: Iterable[ResultRecord], sort_by: SortKey) -> List[ResultRecord]:
    """
    Order records by sort_by. Distance keeps the incoming (index) order;
    other keys use a stable sort so ties keep that order too.
    """
    key = SORT_KEYS.get(SortKey.parse(sort_by))
    if key is None:
        return list(records)
    return sorted(records, key=key)


def apply(records: Iterable[ResultRecord], query: SearchQuery) -> List[ResultRecord]:
    """Filter then order records for a query."""
    kept = [record for record in records if matches(record, query)]
    return sort_records(kept, query.sort_by)
