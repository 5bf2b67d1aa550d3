"""Join request coordinator: owns the join request table.

Each request moves ``pending -> approved`` or ``pending -> rejected`` and
never leaves a terminal status.  Processed requests stay in the table for
audit until cleared; nothing expires on its own, so a pending request from a
device that vanished stays pending until ``clear_join_request`` is called.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from familysync.models.join_request import JoinRequest, JoinRequestStatus
from familysync.services import events
from familysync.services.context import DeviceContext

logger = logging.getLogger(__name__)


class JoinRequestCoordinator:
    def __init__(self, context: DeviceContext):
        self._ctx = context
        self._requests: dict[str, JoinRequest] = {}

    def _new_request(self, device_id: str, device_name: str, family_id: Optional[str] = None) -> JoinRequest:
        return JoinRequest(
            id=str(uuid.uuid4()),
            device_id=device_id,
            device_name=device_name,
            requested_at=datetime.now(timezone.utc),
            status=JoinRequestStatus.pending,
            family_id=family_id,
        )

    def create_join_request(self, family_id: str) -> JoinRequest:
        """Requester side: record a request to join ``family_id`` from this device.

        Delivering it to the family admin is up to the wire transport.
        """
        with self._ctx.lock:
            request = self._new_request(self._ctx.device_id or "", self._ctx.device_name, family_id)
            self._requests[request.id] = request
            logger.info("Created join request for family %s: %s", family_id, request.id)
            return request.model_copy()

    def receive_join_request(self, device_id: str, device_name: str) -> JoinRequest:
        """Admin side: record an inbound request and notify subscribers."""
        with self._ctx.lock:
            request = self._new_request(device_id, device_name)
            self._requests[request.id] = request
            logger.info("Received join request from %s (%s)", device_name, device_id)
            self._ctx.emitter.emit(events.JOIN_REQUEST_RECEIVED, request.model_copy())
            return request.model_copy()

    def get_pending_join_requests(self) -> list[JoinRequest]:
        with self._ctx.lock:
            return [r.model_copy() for r in self._requests.values() if r.is_pending]

    def get_join_request(self, request_id: str) -> Optional[JoinRequest]:
        """Snapshot of one request in any status, or None if unknown."""
        with self._ctx.lock:
            request = self._requests.get(request_id)
            return request.model_copy() if request is not None else None

    def find_pending(self, request_id: str) -> Optional[JoinRequest]:
        """Stored record of a still-pending request, for in-place transition.

        Callers must hold ``context.lock`` for the whole transition.
        """
        request = self._requests.get(request_id)
        if request is None or not request.is_pending:
            return None
        return request

    def clear_join_request(self, request_id: str) -> None:
        """Remove a request regardless of its status."""
        with self._ctx.lock:
            if self._requests.pop(request_id, None) is not None:
                logger.debug("Cleared join request %s", request_id)

    def clear(self) -> None:
        with self._ctx.lock:
            self._requests.clear()
