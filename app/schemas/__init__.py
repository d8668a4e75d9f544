"""Pydantic Schemas — response contracts for API endpoints.

Invariants:
    - Schemas describe the system boundary (API responses) only
    - Row shapes are dynamic: records are dicts of scalar cells, never per-table models

Design Decisions:
    - Separate from core/envelope.py: core builds dicts, schemas document them
"""
