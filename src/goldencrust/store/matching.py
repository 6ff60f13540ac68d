"""Evaluate MongoDB-style filters and updates against plain dicts (used by the in-memory store)."""
from __future__ import annotations

from typing import Any, Callable

from goldencrust.store.protocol import Document

_MISSING = object()


def _lt(a: Any, b: Any) -> bool:
    try:
        return a is not None and b is not None and a < b
    except TypeError:
        return False


def _compare(op: str) -> Callable[[Any, Any], bool]:
    if op == "$lt":
        return _lt
    if op == "$lte":
        return lambda a, b: a == b or _lt(a, b)
    if op == "$gt":
        return lambda a, b: _lt(b, a)
    if op == "$gte":
        return lambda a, b: a == b or _lt(b, a)
    raise ValueError(f"unsupported operator {op}")


def _equals(value: Any, expected: Any) -> bool:
    # Array fields match when any element equals the expected scalar.
    if isinstance(value, (list, tuple, set, frozenset)) and not isinstance(expected, (list, tuple)):
        return expected in value
    if value is _MISSING:
        return expected is None
    return value == expected


def _match_condition(value: Any, condition: Any) -> bool:
    if not (isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition)):
        return _equals(value, condition)
    for op, operand in condition.items():
        if op == "$eq":
            ok = _equals(value, operand)
        elif op == "$ne":
            ok = not _equals(value, operand)
        elif op in ("$lt", "$lte", "$gt", "$gte"):
            ok = value is not _MISSING and _compare(op)(value, operand)
        elif op == "$in":
            ok = any(_equals(value, o) for o in operand)
        elif op == "$nin":
            ok = not any(_equals(value, o) for o in operand)
        elif op == "$exists":
            ok = (value is not _MISSING) == bool(operand)
        else:
            raise ValueError(f"unsupported operator {op}")
        if not ok:
            return False
    return True


def matches(document: Document, filter: Document | None) -> bool:
    """True if document satisfies filter (field equality, comparison operators, $and/$or)."""
    if not filter:
        return True
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif not _match_condition(document.get(key, _MISSING), condition):
            return False
    return True


def apply_update(document: Document, update: Document) -> Document:
    """Return a copy of document with $set / $inc / $unset applied."""
    result = dict(document)
    for op, fields in update.items():
        if op == "$set":
            result.update(fields)
        elif op == "$inc":
            for key, delta in fields.items():
                result[key] = result.get(key, 0) + delta
        elif op == "$unset":
            for key in fields:
                result.pop(key, None)
        else:
            raise ValueError(f"unsupported update operator {op}")
    return result
