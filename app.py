from contextlib import contextmanager
from typing import Any, Dict, Optional

import pandas as pd
import streamlit as st

from core.config import APP_NAME, Settings
from core.data import DataInitError, DataSnapshot, load_snapshot
from core.resolver import ROUTE_AGE, ROUTE_DRUG_FREQUENCY, ROUTE_DRUG_TYPE, NotFound, resolve_age, resolve_category
from core.views import age_view, drug_frequency_view, drug_type_view, error_view


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #2a2f3a;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #8b93a7;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;}
        .card {border: 1px solid #2a2f3a;border-radius: 12px;padding: 16px;margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;margin-bottom: 8px;}
        .minmax-list { margin-top: .5rem; padding-left: 1.25rem; }
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str, breadcrumb: str):
    inject_base_styles()
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
        unsafe_allow_html=True,
    )


def go_to(route: str, key: Optional[str]):
    if key is None:
        return
    st.session_state["route"] = route
    st.session_state[f"key_{route}"] = key


def render_nav(route: str, prev: Optional[str], nxt: Optional[str]):
    c1, c2, _ = st.columns([1, 1, 6])
    if prev is not None:
        c1.button("← Prev", key=f"prev_{route}", on_click=go_to, args=(route, prev))
    if nxt is not None:
        c2.button("Next →", key=f"next_{route}", on_click=go_to, args=(route, nxt))


def render_summary(summary: Dict[str, Any], unit: str = "%"):
    if summary.get("min") is None:
        st.caption("No positive values recorded.")
        return
    st.markdown(
        f"""<ul class="minmax-list">
        <li><strong>Minimum:</strong> {summary['min']}{unit} ({summary['min_label']})</li>
        <li><strong>Maximum:</strong> {summary['max']}{unit} ({summary['max_label']})</li>
        </ul>""",
        unsafe_allow_html=True,
    )


def render_image(url: Optional[str], settings: Settings):
    if not url:
        return
    rel = url[len(settings.static_prefix):].lstrip("/")
    path = settings.img_dir / rel
    if path.exists():
        st.image(str(path), use_container_width=True)


def render_error(payload: Dict[str, Any]):
    render_page_header(payload["title"], payload["route"])
    with card("Oops"):
        st.warning(payload["message"])
    render_nav(payload["route"], payload.get("prev"), payload.get("next"))


def render_payload(payload: Dict[str, Any], settings: Settings):
    route = payload["route"]
    render_page_header(payload["title"], route.replace("_", " ").title())
    left, right = st.columns([3, 2])
    with left:
        with card(payload["title"]):
            for spec in payload.get("charts", {}).values():
                st.vega_lite_chart(spec, use_container_width=True)
    with right:
        with card("About this view"):
            render_image(payload.get("image"), settings)
            render_summary(payload.get("summary", {}), unit="" if route == ROUTE_DRUG_FREQUENCY else "%")
    if route == ROUTE_AGE:
        st.dataframe(pd.DataFrame([payload["row"]]), use_container_width=True, hide_index=True)
    else:
        counts = payload.get("counts_by_age", {})
        st.dataframe(pd.DataFrame({"age": list(counts.keys()), "value": list(counts.values())}), use_container_width=True, hide_index=True)
    render_nav(route, payload.get("prev"), payload.get("next"))


@st.cache_resource
def get_snapshot(settings: Settings) -> DataSnapshot:
    return load_snapshot(settings)


# ---------- UI setup ----------
st.set_page_config(page_title=APP_NAME, layout="wide")
inject_base_styles()
st.title(APP_NAME)
st.caption("Explore national substance use data with dynamic, interactive visualizations.")

settings = Settings.from_env()
try:
    snapshot = get_snapshot(settings)
except DataInitError as exc:
    st.error(f"Failed to initialize data: {exc}")
    st.stop()

routes = {ROUTE_AGE: "By Age", ROUTE_DRUG_TYPE: "By Drug Type", ROUTE_DRUG_FREQUENCY: "By Frequency"}
st.session_state.setdefault("route", ROUTE_AGE)
st.session_state.setdefault(f"key_{ROUTE_AGE}", snapshot.ages[0] if snapshot.ages else "")
for r in (ROUTE_DRUG_TYPE, ROUTE_DRUG_FREQUENCY):
    st.session_state.setdefault(f"key_{r}", snapshot.categories[0] if snapshot.categories else "")

with st.sidebar:
    st.markdown("### Navigate")
    route = st.radio("View", list(routes.keys()), format_func=routes.get, key="route")
    if route == ROUTE_AGE:
        st.text_input("Age (e.g. 18 or 22-23)", key=f"key_{ROUTE_AGE}")
    else:
        st.selectbox("Drug type", list(snapshot.categories), key=f"key_{route}")

raw_key = st.session_state.get(f"key_{route}", "")
if route == ROUTE_AGE:
    result = resolve_age(snapshot, raw_key)
else:
    result = resolve_category(snapshot, raw_key, route=route)

if isinstance(result, NotFound):
    render_error(error_view(snapshot, result))
elif route == ROUTE_AGE:
    render_payload(age_view(snapshot, result), settings)
elif route == ROUTE_DRUG_TYPE:
    render_payload(drug_type_view(snapshot, result), settings)
else:
    render_payload(drug_frequency_view(snapshot, result), settings)
