"""Services Layer — stateless async services over an injected AsyncSession.

Invariants:
    - Services hold no state besides the session handle they were built with
    - Every mutating operation runs inside exactly one atomic() transaction
    - Decisions are delegated to core/ pure functions; services only load and write

Design Decisions:
    - Session passed explicitly (constructor injection), never a module singleton,
      so tests substitute an in-memory store
"""
