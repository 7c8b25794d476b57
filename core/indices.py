from __future__ import annotations

import logging
import math
import re
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

USE_SUFFIX = "_use"
FREQUENCY_SUFFIX = "_frequency"

RANGE_RE = re.compile(r"^(\d+)-(\d+)$")
OPEN_ENDED_RE = re.compile(r"^(\d+)\+$")


def extract_categories(columns: Iterable[str]) -> List[str]:
    """Category names are the `<name>_use` headers, suffix stripped, in header order."""
    out: List[str] = []
    for col in columns:
        name = str(col).strip()
        if name.endswith(USE_SUFFIX) and len(name) > len(USE_SUFFIX):
            cat = name[: -len(USE_SUFFIX)]
            if cat not in out:
                out.append(cat)
    return out


def parse_number(value: object) -> Optional[float]:
    """Parse untrusted input as a finite float, or None."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        out = float(s)
    except ValueError:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def format_number(value: float) -> str:
    """Render integral floats without a trailing `.0`."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def parse_age_label(label: str) -> Optional[Tuple[int, int]]:
    """Return the inclusive (low, high) bounds a raw age label denotes.

    "22-23" -> (22, 23), "65+" -> (65, 65), "18" -> (18, 18).
    Non-integral or non-numeric labels give None.
    """
    s = str(label).strip()
    m = RANGE_RE.match(s)
    if m:
        return int(m.group(1)), int(m.group(2))
    m = OPEN_ENDED_RE.match(s)
    if m:
        n = int(m.group(1))
        return n, n
    n = parse_number(s)
    if n is None or not n.is_integer():
        return None
    return int(n), int(n)


def age_span(label: str) -> List[int]:
    bounds = parse_age_label(label)
    if bounds is None:
        logger.debug("Age label %r is not numeric; skipped from age index", label)
        return []
    low, high = bounds
    if low > high:
        logger.warning("Age range %r has low > high; it contributes no ages", label)
        return []
    return list(range(low, high + 1))


def build_age_index(labels: Iterable[str]) -> Tuple[str, ...]:
    ages = set()
    for label in labels:
        ages.update(age_span(label))
    return tuple(str(a) for a in sorted(ages))


def label_contains(label: str, value: float) -> bool:
    """Whether a record's age label covers `value` (range containment or scalar equality)."""
    s = str(label).strip()
    m = RANGE_RE.match(s)
    if m:
        return int(m.group(1)) <= value <= int(m.group(2))
    n = parse_number(s)
    if n is None:
        m = OPEN_ENDED_RE.match(s)
        n = float(m.group(1)) if m else None
    return n is not None and n == value
