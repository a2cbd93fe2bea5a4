"""Infrastructure Layer — storage backends and cross-cutting concerns.

Invariants:
    - Storage failures surface as StorageUnavailableError, never as driver exceptions
    - Code stores implement core/repository_protocols.CodeStore structurally

Design Decisions:
    - Resilient wrappers over raw clients (ADR: ExMA single responsibility)
"""
