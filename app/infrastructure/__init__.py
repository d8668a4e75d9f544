"""Infrastructure Layer — store access, schema discovery, logging.

Invariants:
    - Every store call is bounded by a timeout and maps driver errors to core errors
    - Discovery is read-only and all-or-nothing

Design Decisions:
    - SQLAlchemy async engine as the single store client
"""
