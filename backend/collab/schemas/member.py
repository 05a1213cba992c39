"""Membership Schemas — role edits and the role-map response.

Invariants:
    - role arrives as free text and is parsed by ProjectRole.parse in the route,
      so unknown values are rejected before reaching MembershipStore
    - RolesUpdate.member_ids is de-duplicated, order preserved
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from collab.core.domain_types import ProjectRole, RoleMap


class MemberUpsert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(alias="userId")
    role: str = Field(max_length=20)


class DelegateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_manager_id: UUID = Field(alias="newManagerId")


class RolesUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    manager_id: UUID = Field(alias="managerId")
    member_ids: list[UUID] = Field(default_factory=list, alias="memberIds")

    @field_validator("member_ids")
    @classmethod
    def dedupe(cls, v: list[UUID]) -> list[UUID]:
        return list(dict.fromkeys(v))


class MemberResponse(BaseModel):
    user_id: UUID
    role: ProjectRole


class RoleMapResponse(BaseModel):
    project_id: UUID
    members: list[MemberResponse]

    @classmethod
    def from_role_map(cls, project_id: UUID, role_map: RoleMap) -> "RoleMapResponse":
        return cls(
            project_id=project_id,
            members=[
                MemberResponse(user_id=uid, role=role)
                for uid, role in role_map.items()
            ],
        )
