"""Approval authority: admits or turns away pending join requests.

Only a request that is still pending can be approved or rejected.  Anything
else (unknown id, a second admin racing on the same request, a stale UI)
gets a None/False sentinel and no event.
"""
import logging
import secrets
from typing import Optional

from familysync.models.join_request import JoinApproval, JoinRequestStatus
from familysync.models.roles import PermissionRole
from familysync.services import events
from familysync.services.context import DeviceContext
from familysync.services.join_requests import JoinRequestCoordinator

logger = logging.getLogger(__name__)

SYNC_TOKEN_BYTES = 32


def generate_sync_token() -> str:
    """One-time opaque token for the initial sync.

    It is random, not signed; establishing real session credentials from it
    is the key-exchange collaborator's job.
    """
    return secrets.token_urlsafe(SYNC_TOKEN_BYTES)


class ApprovalAuthority:
    def __init__(self, context: DeviceContext, coordinator: JoinRequestCoordinator):
        self._ctx = context
        self._coordinator = coordinator

    def approve_join_request(
        self,
        request_id: str,
        role: PermissionRole | str,
        family_id: str,
        family_name: str,
    ) -> Optional[JoinApproval]:
        role = PermissionRole(role)
        with self._ctx.lock:
            request = self._coordinator.find_pending(request_id)
            if request is None:
                logger.info("Not approving join request %s: unknown or already processed", request_id)
                return None

            request.status = JoinRequestStatus.approved
            request.assigned_role = role

            approval = JoinApproval(
                request_id=request_id,
                approved=True,
                role=role,
                family_id=family_id,
                family_name=family_name,
                sync_token=generate_sync_token(),
            )
            logger.info("Approved join request %s with role %s", request_id, role.value)
            self._ctx.emitter.emit(events.JOIN_REQUEST_APPROVED, approval.model_copy())
            return approval

    def reject_join_request(self, request_id: str) -> bool:
        with self._ctx.lock:
            request = self._coordinator.find_pending(request_id)
            if request is None:
                logger.info("Not rejecting join request %s: unknown or already processed", request_id)
                return False

            request.status = JoinRequestStatus.rejected
            logger.info("Rejected join request %s", request_id)
            self._ctx.emitter.emit(events.JOIN_REQUEST_REJECTED, request_id)
            return True
