"""User Schemas — user creation, hierarchy edits, and the public user shape."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from collab.models import User


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: str | None = Field(None, max_length=200)
    role: str | None = Field(None, max_length=200)

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()


class ManagerAssign(BaseModel):
    """manager_id null detaches the user from its manager."""
    model_config = ConfigDict(populate_by_name=True)

    manager_id: UUID | None = Field(None, alias="managerId")


class RoleLabelUpdate(BaseModel):
    role: str | None = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str | None = None
    role: str | None = None
    manager_id: UUID | None = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id, email=user.email, full_name=user.full_name,
            role=user.role, manager_id=user.manager_id,
        )
