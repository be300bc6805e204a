"""Ordering and matching helpers shared by list, find and remove."""

from typing import Callable, Iterable, List

from .record import Record


def sort_by_id(records: Iterable[Record]) -> List[Record]:
    """Records ascending by id (stable)."""
    return sorted(records, key=lambda r: r.id)


def select(records: Iterable[Record], cond: Callable[[Record], bool]) -> List[Record]:
    """Records satisfying ``cond``, ascending by id."""
    return sort_by_id(r for r in records if cond(r))


def word_matcher(word: str) -> Callable[[Record], bool]:
    """Predicate for find(): case-insensitive substring of category or account.

    An empty word matches every record.
    """
    return lambda record: record.match(word)


def account_matcher(category: str, account: str) -> Callable[[Record], bool]:
    """Predicate for remove_by_account(): exact category and plaintext account."""
    return lambda record: record.category == category and record.plain_account == account


def resolve_id(records: dict, requested: str) -> List[Record]:
    """Exact id match, or every record whose id starts with ``requested``."""
    exact = records.get(requested)
    if exact is not None:
        return [exact]
    return select(records.values(), lambda r: r.id.startswith(requested))
