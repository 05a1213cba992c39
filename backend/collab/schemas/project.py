"""Project Schemas — creation, versioned update, and the public project shape.

Invariants:
    - Every project payload carries its version token
    - ProjectUpdate.expected_version accepts the legacy expectedUpdatedAt /
      expected_updated_at spellings
    - to_patch() emits only fields the client actually sent
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from collab.core.domain_types import ProjectRole, ProjectStatus
from collab.core.version_tokens import as_utc, format_version
from collab.models import Project


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    status: ProjectStatus = ProjectStatus.PLANNED
    deadline: datetime | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v


class ProjectUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    status: ProjectStatus | None = None
    deadline: datetime | None = None
    expected_version: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "expected_version", "expectedUpdatedAt", "expected_updated_at",
        ),
    )

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("title cannot be null")
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v: ProjectStatus | None) -> ProjectStatus:
        if v is None:
            raise ValueError("status cannot be null")
        return v

    def to_patch(self) -> dict:
        patch = self.model_dump(exclude_unset=True, exclude={"expected_version"})
        if "status" in patch:
            patch["status"] = patch["status"].value
        return patch


class ProjectResponse(BaseModel):
    id: UUID
    owner_id: UUID
    title: str
    description: str | None = None
    status: str
    deadline: datetime | None = None
    created_at: datetime
    version: str
    current_user_role: ProjectRole | None = None

    @classmethod
    def from_model(
        cls, project: Project, role: ProjectRole | None = None,
    ) -> "ProjectResponse":
        return cls(
            id=project.id,
            owner_id=project.owner_id,
            title=project.title,
            description=project.description,
            status=project.status,
            deadline=as_utc(project.deadline) if project.deadline else None,
            created_at=as_utc(project.created_at),
            version=format_version(project.updated_at),
            current_user_role=role,
        )
