"""Page payloads for the viewer.

Each function returns a JSON-serializable dict. Renderers (the API, the
Streamlit app) only lay these out.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from core.charts import bar_chart, share_chart, to_vega_spec
from core.data import DataSnapshot
from core.neighbors import age_neighbors, neighbors
from core.resolver import ROUTE_AGE, ROUTE_DRUG_FREQUENCY, ROUTE_DRUG_TYPE, NotFound, Resolved


def nav_links(snapshot: DataSnapshot) -> Dict[str, Any]:
    return {
        "ages": list(snapshot.ages),
        "types": list(snapshot.categories),
        "freqs": list(snapshot.categories),
        "age_images": dict(snapshot.age_images),
        "drug_images": dict(snapshot.category_images),
    }


def summarize(counts: Mapping[str, float]) -> Dict[str, Any]:
    """Min and max of `counts`; ties go to the first key."""
    if not counts:
        return {"min": None, "min_label": None, "max": None, "max_label": None}
    items = list(counts.items())
    min_label, min_val = items[0]
    max_label, max_val = items[0]
    for label, val in items[1:]:
        if val < min_val:
            min_label, min_val = label, val
        if val > max_val:
            max_label, max_val = label, val
    return {"min": min_val, "min_label": min_label, "max": max_val, "max_label": max_label}


def positive_use_by_category(snapshot: DataSnapshot, record) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for cat in snapshot.categories:
        v = record.use(cat)
        if v is not None and v > 0:
            out[cat] = v
    return out


def use_by_age(snapshot: DataSnapshot, category: str) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for r in snapshot.records:
        v = r.use(category)
        if v is not None and v > 0:
            out[r.age] = v
    return out


def frequency_by_age(snapshot: DataSnapshot, category: str) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for r in snapshot.records:
        v = r.frequency(category)
        out[r.age] = v if v is not None else 0.0
    return out


def _age_image(snapshot: DataSnapshot, resolved: Resolved) -> Optional[str]:
    image = snapshot.age_images.get(resolved.key)
    if image is None and resolved.record is not None:
        image = snapshot.age_images.get(resolved.record.age)
    return image


def age_view(snapshot: DataSnapshot, resolved: Resolved) -> Dict[str, Any]:
    record = resolved.record
    counts = positive_use_by_category(snapshot, record)
    nb = age_neighbors(snapshot.ages, resolved.key)
    charts: Dict[str, Any] = {}
    if counts:
        charts["use_share"] = to_vega_spec(share_chart(counts, label="drug", value_title="Drug Usage (%)"))
    return {
        "route": ROUTE_AGE,
        "title": f"Age {resolved.key}",
        "age": resolved.key,
        "label": record.age,
        "row": dict(record.fields),
        "counts_by_drug": counts,
        "summary": summarize(counts),
        "prev": nb.prev,
        "next": nb.next,
        "image": _age_image(snapshot, resolved),
        "charts": charts,
        "nav": nav_links(snapshot),
    }


def drug_type_view(snapshot: DataSnapshot, resolved: Resolved) -> Dict[str, Any]:
    counts = use_by_age(snapshot, resolved.key)
    nb = neighbors(snapshot.categories, resolved.key)
    charts: Dict[str, Any] = {}
    if counts:
        charts["use_by_age"] = to_vega_spec(share_chart(counts, label="age", value_title="Usage by Age (%)"))
    return {
        "route": ROUTE_DRUG_TYPE,
        "title": f"Drug Type {resolved.key}",
        "type": resolved.key,
        "rows": [dict(r.fields) for r in snapshot.records],
        "counts_by_age": counts,
        "summary": summarize(counts),
        "prev": nb.prev,
        "next": nb.next,
        "image": snapshot.category_images.get(resolved.key),
        "charts": charts,
        "nav": nav_links(snapshot),
    }


def drug_frequency_view(snapshot: DataSnapshot, resolved: Resolved) -> Dict[str, Any]:
    counts = frequency_by_age(snapshot, resolved.key)
    nb = neighbors(snapshot.categories, resolved.key)
    charts: Dict[str, Any] = {}
    if counts:
        charts["frequency_by_age"] = to_vega_spec(bar_chart(counts, label="age", value_title="Median uses per year"))
    return {
        "route": ROUTE_DRUG_FREQUENCY,
        "title": f"Drug Frequency {resolved.key}",
        "freq": resolved.key,
        "rows": [dict(r.fields) for r in snapshot.records],
        "counts_by_age": counts,
        "summary": summarize(counts),
        "prev": nb.prev,
        "next": nb.next,
        "image": snapshot.category_images.get(resolved.key),
        "charts": charts,
        "nav": nav_links(snapshot),
    }


def error_view(snapshot: DataSnapshot, not_found: NotFound) -> Dict[str, Any]:
    return {
        "route": not_found.route,
        "title": not_found.title,
        "message": not_found.message,
        "key": not_found.key,
        "prev": not_found.prev,
        "next": not_found.next,
        "nav": nav_links(snapshot),
    }


def home_view(snapshot: DataSnapshot) -> Dict[str, Any]:
    first_age = snapshot.ages[0] if snapshot.ages else ""
    first_type = snapshot.categories[0] if snapshot.categories else ""
    return {
        "title": "Drug Use Dynamic Viewer",
        "message": "Explore national substance use data with dynamic, interactive visualizations.",
        "first_age": first_age,
        "first_type": first_type,
        "links": {
            "age": f"/age/{first_age}",
            "drug_type": f"/drug_type/{first_type}",
            "drug_frequency": f"/drug_frequency/{first_type}",
        },
        "nav": nav_links(snapshot),
    }
