from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from core.indices import parse_age_label


@dataclass(frozen=True)
class Neighbors:
    prev: Optional[str] = None
    next: Optional[str] = None


def neighbors(sequence: Sequence[str], key: str) -> Neighbors:
    """Positional prev/next of `key` in `sequence`; no wraparound."""
    try:
        idx = list(sequence).index(key)
    except ValueError:
        return Neighbors()
    prev = sequence[idx - 1] if idx > 0 else None
    nxt = sequence[idx + 1] if idx < len(sequence) - 1 else None
    return Neighbors(prev=prev, next=nxt)


def age_neighbors(ages: Sequence[str], key: str) -> Neighbors:
    """Neighbours in the dense age index.

    A raw label such as "22-23" or "65+" steps out from both ends of its span.
    """
    if key in ages:
        return neighbors(ages, key)
    bounds = parse_age_label(key)
    if bounds is None or bounds[0] > bounds[1]:
        return Neighbors()
    low, high = str(bounds[0]), str(bounds[1])
    if low not in ages or high not in ages:
        return Neighbors()
    return Neighbors(prev=neighbors(ages, low).prev, next=neighbors(ages, high).next)
