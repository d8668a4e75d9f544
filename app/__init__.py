"""DB Explorer Application Package — schema-driven CRUD over any relational store.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
