"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Project is the aggregate root for memberships, stages and tasks

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from collab.models.user import User  # noqa: F401
from collab.models.project import Project  # noqa: F401
from collab.models.project_member import ProjectMember  # noqa: F401
from collab.models.stage import Stage  # noqa: F401
from collab.models.task import Task  # noqa: F401
