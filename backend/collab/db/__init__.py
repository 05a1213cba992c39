"""Database Metadata — SQLAlchemy declarative Base shared by all ORM models.

Invariants:
    - Single Base per process; Base.metadata is the schema source for Alembic and tests
"""
