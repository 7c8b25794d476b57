"""Core (UI-agnostic) viewer logic.

This package contains:
- data loading (CSV text -> pandas -> immutable snapshot)
- age / category index building and image lookup
- key resolution and prev/next navigation
- page payloads (JSON-serializable) and chart helpers (Altair -> Vega-Lite spec dict)
"""
