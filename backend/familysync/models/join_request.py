"""JoinRequest and JoinApproval records exchanged during the join handshake."""
import enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from familysync.models.roles import PermissionRole


class JoinRequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class JoinRequest(BaseModel):
    id: str
    device_id: str
    device_name: str
    requested_at: datetime
    status: JoinRequestStatus = JoinRequestStatus.pending
    assigned_role: Optional[PermissionRole] = None
    family_id: Optional[str] = None  # set on the requester side only

    model_config = {"from_attributes": True, "validate_assignment": True}

    @property
    def is_pending(self) -> bool:
        return self.status == JoinRequestStatus.pending


class JoinApproval(BaseModel):
    request_id: str
    approved: bool
    role: Optional[PermissionRole] = None
    family_id: Optional[str] = None
    family_name: Optional[str] = None
    # Opaque one-time value handed to the key-exchange step, not a key itself
    sync_token: Optional[str] = None

    model_config = {"from_attributes": True}
