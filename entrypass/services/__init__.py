"""Services Layer — the lifecycle engine and its store wiring.

Invariants:
    - Services orchestrate async store calls around pure core functions
    - No service holds per-code state between calls

Design Decisions:
    - Store selection lives in one factory (store_factory.py), not in routes
"""
