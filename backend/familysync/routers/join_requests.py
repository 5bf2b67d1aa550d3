"""Join request API routes: requester and admin sides of the handshake."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status

from familysync.runtime import get_discovery_service
from familysync.models.join_request import JoinApproval, JoinRequest
from familysync.models.roles import PermissionRole
from familysync.schemas.join_request import (
    InboundJoinRequest,
    JoinApprovalCreate,
    JoinRejectionOut,
    JoinRequestCreate,
    RoleOut,
)
from familysync.services.family_discovery import FamilyDiscoveryService

logger = logging.getLogger(__name__)
router = APIRouter()


def _require_pending(service: FamilyDiscoveryService, request_id: str) -> None:
    """Turn a guard failure into 404 (unknown) or 400 (already processed)."""
    request = service.get_join_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="JoinRequest not found")
    if not request.is_pending:
        raise HTTPException(status_code=400, detail=f"JoinRequest is already {request.status.value}")


@router.post("/", response_model=JoinRequest, status_code=status.HTTP_201_CREATED)
def create_join_request(payload: JoinRequestCreate, service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Requester side: ask to join a discovered family."""
    return service.create_join_request(payload.family_id)


@router.post("/inbound", response_model=JoinRequest, status_code=status.HTTP_201_CREATED)
def receive_join_request(payload: InboundJoinRequest, service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Admin side: record a join request delivered by the wire transport."""
    return service.receive_join_request(payload.device_id, payload.device_name)


@router.get("/", response_model=list[JoinRequest])
def list_pending_join_requests(service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """List join requests still awaiting a decision."""
    return service.get_pending_join_requests()


@router.get("/roles", response_model=list[RoleOut])
def list_roles():
    """Roles an admin can assign, highest first."""
    roles = sorted(PermissionRole, key=lambda r: r.rank, reverse=True)
    return [RoleOut(role=r, label=r.label, description=r.description) for r in roles]


@router.get("/{request_id}", response_model=JoinRequest)
def get_join_request(request_id: str, service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Fetch one join request in any status."""
    request = service.get_join_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="JoinRequest not found")
    return request


@router.post("/{request_id}/approve", response_model=JoinApproval)
def approve_join_request(
    request_id: str,
    payload: JoinApprovalCreate,
    service: FamilyDiscoveryService = Depends(get_discovery_service),
):
    """Approve a pending request and issue the one-time sync token."""
    approval = service.approve_join_request(request_id, payload.role, payload.family_id, payload.family_name)
    if approval is None:
        _require_pending(service, request_id)
        # Lost a race with another decision between the two lookups
        raise HTTPException(status_code=409, detail="JoinRequest could not be approved")
    return approval


@router.post("/{request_id}/reject", response_model=JoinRejectionOut)
def reject_join_request(request_id: str, service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Reject a pending request."""
    if not service.reject_join_request(request_id):
        _require_pending(service, request_id)
        raise HTTPException(status_code=409, detail="JoinRequest could not be rejected")
    return JoinRejectionOut(request_id=request_id, rejected=True)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def clear_join_request(request_id: str, service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Remove a join request regardless of its status."""
    service.clear_join_request(request_id)
