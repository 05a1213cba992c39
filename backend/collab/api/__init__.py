"""API Layer — FastAPI routes, request dependencies, and error handlers.

Invariants:
    - Every mutating route consults AccessPolicy before calling a service
    - Errors leave the API only through the handlers in error_handlers.py
"""
