from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence

from ..common.datetime_utils import as_aware, coerce_datetime
from .document import Document
from .values import SERVER_TIMESTAMP, ArrayUnion, Increment

Filter = tuple[str, str, Any]
TransactFn = Callable[[Optional[Document]], Optional[dict]]


class WriteBatch(Protocol):
    """Group of writes committed atomically."""

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        raise NotImplementedError

    def update(self, path: str, data: dict) -> None:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError


class DocumentStore(Protocol):
    """Persistence interface for the hosted document database.

    Note (DIP): repositories depend on this interface, never on a concrete
    backend.
    """

    def get(self, path: str) -> Optional[Document]:
        raise NotImplementedError

    def list(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Document]:
        raise NotImplementedError

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        raise NotImplementedError

    def update(self, path: str, data: dict) -> None:
        """Merge ``data`` into an existing document; NotFoundError if missing."""

        raise NotImplementedError

    def add(self, collection: str, data: dict) -> str:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    def batch(self) -> WriteBatch:
        raise NotImplementedError

    def transact(self, path: str, fn: TransactFn) -> Optional[Document]:
        """Atomic read-modify-write of one document.

        ``fn`` receives the current snapshot (or None) and returns the
        changes to merge, or None to leave the document untouched. An
        exception raised by ``fn`` aborts the transaction.
        """

        raise NotImplementedError


# -------- helpers shared by the self-hosted backends --------

def resolve_value(current: Any, value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, Increment):
        if isinstance(current, (int, float)) and not isinstance(current, bool):
            return current + value.amount
        return value.amount
    if isinstance(value, ArrayUnion):
        out = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in out:
                out.append(item)
        return out
    if isinstance(value, dict):
        return {k: resolve_value(None, v, now) for k, v in value.items()}
    return value


def apply_changes(current: Optional[dict], changes: dict, now: datetime) -> dict:
    out = dict(current or {})
    for key, value in changes.items():
        out[key] = resolve_value(out.get(key), value, now)
    return out


def _comparable(value: Any) -> Any:
    # Legacy documents stored timestamps as ISO strings.
    if isinstance(value, datetime):
        return as_aware(value)
    if isinstance(value, str):
        try:
            return coerce_datetime(value)
        except ValueError:
            return value
    return value


def _ordered(left: Any, op: str, right: Any) -> bool:
    if isinstance(left, datetime) or isinstance(right, datetime):
        left, right = _comparable(left), _comparable(right)
    try:
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        return left >= right
    except TypeError:
        return False


def _compare(left: Any, op: str, right: Any) -> bool:
    if op == "==":
        return left == right
    if op == "!=":
        return left != right
    if op == "in":
        return left in right
    if op == "array_contains":
        return isinstance(left, list) and right in left
    if op not in ("<", "<=", ">", ">="):
        raise ValueError(f"Unsupported filter operator: {op!r}")
    if left is None:
        return False
    return _ordered(left, op, right)


def matches(data: dict, filters: Iterable[Filter]) -> bool:
    return all(_compare(data.get(field), op, value) for field, op, value in filters)


def _sort_key(value: Any) -> tuple:
    value = _comparable(value)
    if isinstance(value, datetime):
        return (0, value.timestamp(), "")
    return (1, 0.0, str(value))


def select(
    docs: Iterable[Document],
    *,
    filters: Sequence[Filter] = (),
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> list[Document]:
    out = [d for d in docs if matches(d.data, filters)]
    if order_by:
        present = [d for d in out if d.data.get(order_by) is not None]
        missing = [d for d in out if d.data.get(order_by) is None]
        if any(isinstance(d.data[order_by], datetime) for d in present):
            present.sort(key=lambda d: _sort_key(d.data[order_by]), reverse=descending)
        else:
            present.sort(key=lambda d: d.data[order_by], reverse=descending)
        out = present + missing
    if limit is not None:
        out = out[: int(limit)]
    return out
