"""Services Layer — the CRUD dispatcher orchestrating core logic around store IO.

Invariants:
    - Dispatch uses explicit dict mapping (no auto-discovery)
    - Services own the async sequencing; core functions stay pure
"""
