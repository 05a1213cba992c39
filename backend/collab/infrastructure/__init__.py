"""Infrastructure — database session management, transactions, structured logging.

Invariants:
    - Only infrastructure/ creates engines or configures the logging root
"""
