from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Optional, Union

from core.data import DataSnapshot, Record
from core.indices import format_number, label_contains, parse_number

ROUTE_AGE = "age"
ROUTE_DRUG_TYPE = "drug_type"
ROUTE_DRUG_FREQUENCY = "drug_frequency"

_CATEGORY_LABELS = {
    ROUTE_DRUG_TYPE: ("Drug Type", "drug type"),
    ROUTE_DRUG_FREQUENCY: ("Drug Frequency", "drug frequency"),
}


@dataclass(frozen=True)
class Resolved:
    route: str
    key: str
    record: Optional[Record] = None


@dataclass(frozen=True)
class NotFound:
    route: str
    key: str
    title: str
    message: str
    prev: Optional[str] = None
    next: Optional[str] = None


Resolution = Union[Resolved, NotFound]


def _gap_neighbors(snapshot: DataSnapshot, value: float):
    nums = [int(a) for a in snapshot.ages]
    lo = bisect.bisect_left(nums, value)
    hi = bisect.bisect_right(nums, value)
    prev = snapshot.ages[lo - 1] if lo > 0 else None
    nxt = snapshot.ages[hi] if hi < len(nums) else None
    return prev, nxt


def _numeric_key(snapshot: DataSnapshot, value: float, record: Record) -> str:
    # The key must resolve back to `record`, so an integer string that is
    # another row's exact label is not used.
    if not value.is_integer():
        return record.age
    key = format_number(value)
    owner = next((r for r in snapshot.records if r.age == key), None)
    if owner is not None and owner is not record:
        return record.age
    return key


def resolve_age(snapshot: DataSnapshot, raw: object) -> Resolution:
    """Map a raw path parameter onto a record.

    Exact raw labels win ("22-23" as a whole), then numeric containment in
    source order. First match wins when rows overlap.
    """
    raw = str(raw)
    for record in snapshot.records:
        if record.age == raw:
            return Resolved(route=ROUTE_AGE, key=raw, record=record)

    value = parse_number(raw)
    if value is not None:
        for record in snapshot.records:
            if label_contains(record.age, value):
                return Resolved(route=ROUTE_AGE, key=_numeric_key(snapshot, value, record), record=record)

    title = f"Age {raw}"
    first = snapshot.ages[0] if snapshot.ages else None
    last = snapshot.ages[-1] if snapshot.ages else None

    if value is None:
        return NotFound(ROUTE_AGE, raw, title, f'No data available for age "{raw}".', prev=None, next=first)

    if not snapshot.ages:
        return NotFound(ROUTE_AGE, raw, title, f"Error: no data for age {raw}", prev=None, next=None)

    min_age, max_age = snapshot.min_age, snapshot.max_age
    if value < min_age:
        # The dead prev link lets the user keep paging backward.
        return NotFound(
            ROUTE_AGE, raw, title, f"No data available for ages under {min_age}.",
            prev=format_number(value - 1), next=first,
        )
    if value > max_age:
        return NotFound(
            ROUTE_AGE, raw, title, f"No data available for ages over the maximum recorded age ({max_age}).",
            prev=last, next=format_number(value + 1),
        )

    prev, nxt = _gap_neighbors(snapshot, value)
    return NotFound(ROUTE_AGE, raw, title, f"Error: no data for age {raw}", prev=prev, next=nxt)


def resolve_category(snapshot: DataSnapshot, raw: object, route: str = ROUTE_DRUG_TYPE) -> Resolution:
    raw = str(raw)
    if raw in snapshot.categories:
        return Resolved(route=route, key=raw)
    title_label, text_label = _CATEGORY_LABELS.get(route, _CATEGORY_LABELS[ROUTE_DRUG_TYPE])
    cats = snapshot.categories
    return NotFound(
        route,
        raw,
        f'{title_label} "{raw}"',
        f"No data available for this {text_label}.",
        prev=cats[-1] if cats else None,
        next=cats[0] if cats else None,
    )
