"""Core (UI-agnostic) dashboard logic.

This package contains:
- configuration (declared metrics, field aliases, format hints)
- data loading and field normalization (CSV -> pandas)
- selection defaults and the recompute controller
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
