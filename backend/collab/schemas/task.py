"""Stage & Task Schemas — board structure and the versioned task shape."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, field_validator

from collab.core.domain_types import TaskStatus
from collab.core.version_tokens import as_utc, format_version
from collab.models import Stage, Task


class StageCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    order_index: int = Field(0, ge=0)


class StageResponse(BaseModel):
    id: UUID
    project_id: UUID
    title: str
    order_index: int

    @classmethod
    def from_model(cls, stage: Stage) -> "StageResponse":
        return cls(
            id=stage.id, project_id=stage.project_id,
            title=stage.title, order_index=stage.order_index,
        )


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    status: TaskStatus = TaskStatus.TODO
    deadline: datetime | None = None
    order_index: int = Field(0, ge=0)


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    status: TaskStatus | None = None
    deadline: datetime | None = None
    order_index: int | None = Field(None, ge=0)
    stage_id: UUID | None = None
    expected_version: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "expected_version", "expectedUpdatedAt", "expected_updated_at",
        ),
    )

    @field_validator("title", "status", "order_index", "stage_id")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v

    def to_patch(self) -> dict:
        patch = self.model_dump(exclude_unset=True, exclude={"expected_version"})
        if "status" in patch:
            patch["status"] = patch["status"].value
        return patch


class TaskResponse(BaseModel):
    id: UUID
    stage_id: UUID
    project_id: UUID
    title: str
    description: str | None = None
    status: str
    deadline: datetime | None = None
    order_index: int
    version: str

    @classmethod
    def from_model(cls, task: Task, project_id: UUID) -> "TaskResponse":
        return cls(
            id=task.id,
            stage_id=task.stage_id,
            project_id=project_id,
            title=task.title,
            description=task.description,
            status=task.status,
            deadline=as_utc(task.deadline) if task.deadline else None,
            order_index=task.order_index,
            version=format_version(task.updated_at),
        )
