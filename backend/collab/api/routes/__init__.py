"""Route Modules — one file per resource.

Invariants:
    - Each module defines its own APIRouter under /api/v1
    - Routes resolve the requester, authorize, call one service, shape JSON
"""
