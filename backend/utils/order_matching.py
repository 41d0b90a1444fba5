"""
Locate the intercompany transaction that belongs to an order.

Linkage data is not always clean: older rows may store the order id as free
text, and clients may hold a stale cached list. Matching therefore runs an
ordered chain of strategies and stops at the first one that finds a candidate.
Within a strategy, candidates are scanned in ascending id order so identical
inputs always produce the same match.
"""
from typing import Iterable, NamedTuple, Optional, Sequence


def _field(candidate, name):
    if isinstance(candidate, dict):
        return candidate.get(name)
    return getattr(candidate, name, None)


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text) if text.isdigit() else None


def _as_text(value) -> str:
    return "" if value is None else str(value).strip()


class MatchStrategy:
    name = "base"

    def matches(self, candidate, order_id, reference_number=None) -> bool:
        raise NotImplementedError

    def find(self, candidates: Iterable, order_id, reference_number=None):
        for candidate in sorted(candidates, key=lambda c: _as_int(_field(c, "id")) or 0):
            if self.matches(candidate, order_id, reference_number):
                return candidate
        return None


class ReferenceNumberMatch(MatchStrategy):
    """Exact equality on the shared reference number."""
    name = "reference_number"

    def matches(self, candidate, order_id, reference_number=None) -> bool:
        if not reference_number:
            return False
        return _as_text(_field(candidate, "reference_number")) == _as_text(reference_number)


class NumericOrderIdMatch(MatchStrategy):
    """Numeric equality of source_order_id or target_order_id with the order id."""
    name = "numeric_order_id"

    def matches(self, candidate, order_id, reference_number=None) -> bool:
        wanted = _as_int(order_id)
        if wanted is None:
            return False
        return wanted in (_as_int(_field(candidate, "source_order_id")), _as_int(_field(candidate, "target_order_id")))


class FuzzyOrderIdMatch(MatchStrategy):
    """String equality or containment in either direction, for hand-entered legacy ids."""
    name = "fuzzy_order_id"

    def matches(self, candidate, order_id, reference_number=None) -> bool:
        wanted = _as_text(order_id)
        if not wanted:
            return False
        for stored in (_as_text(_field(candidate, "source_order_id")), _as_text(_field(candidate, "target_order_id"))):
            if stored and (stored == wanted or wanted in stored or stored in wanted):
                return True
        return False


DEFAULT_STRATEGIES: Sequence[MatchStrategy] = (
    ReferenceNumberMatch(),
    NumericOrderIdMatch(),
    FuzzyOrderIdMatch(),
)


class MatchResult(NamedTuple):
    transaction: object
    strategy: str


def match_transaction(candidates, order_id, reference_number=None, strategies=DEFAULT_STRATEGIES) -> Optional[MatchResult]:
    candidates = list(candidates or [])
    for strategy in strategies:
        found = strategy.find(candidates, order_id, reference_number)
        if found is not None:
            return MatchResult(found, strategy.name)
    return None
