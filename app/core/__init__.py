"""Core Layer — pure explorer logic: catalog, type families, validation, query building.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - All functions are pure and deterministic; store access only through repository_protocols

Design Decisions:
    - Functional core separated from imperative shell
"""
