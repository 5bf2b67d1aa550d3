"""Pydantic schemas for the join handshake."""
from pydantic import BaseModel, Field

from familysync.models.roles import PermissionRole


class JoinRequestCreate(BaseModel):
    family_id: str = Field(min_length=1)


class InboundJoinRequest(BaseModel):
    device_id: str = Field(min_length=1)
    device_name: str


class JoinApprovalCreate(BaseModel):
    role: PermissionRole = PermissionRole.member
    family_id: str
    family_name: str


class JoinRejectionOut(BaseModel):
    request_id: str
    rejected: bool


class RoleOut(BaseModel):
    role: PermissionRole
    label: str
    description: str
