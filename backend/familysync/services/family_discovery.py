"""Family discovery service: the device-level entry point of the join protocol.

Composes the presence publisher, the discovery browser, the join request
coordinator and the approval authority around one injected service-discovery
capability and one event channel.

Responsibilities:
- Bind the local device identity and the capability (``initialize``)
- Advertise this device's family and browse for other families
- Create, receive, approve and reject join requests
- Tear everything down without ever raising (``destroy``)

Expected failures never cross this boundary as exceptions: they come back as
None/False sentinels or as ``error`` events.
"""
import logging
import socket
from typing import Callable, Optional

from familysync.config import Settings, settings
from familysync.models.family import DiscoveredFamily
from familysync.models.join_request import JoinApproval, JoinRequest
from familysync.models.roles import PermissionRole
from familysync.services.approval import ApprovalAuthority
from familysync.services.browser import DiscoveryBrowser
from familysync.services.context import DeviceContext
from familysync.services.events import EventEmitter, Handler
from familysync.services.join_requests import JoinRequestCoordinator
from familysync.services.mdns import ServiceDiscovery, default_discovery_factory
from familysync.services.presence import PresencePublisher

logger = logging.getLogger(__name__)


class FamilyDiscoveryService:
    def __init__(
        self,
        discovery_factory: Optional[Callable[[], ServiceDiscovery]] = None,
        device_name: Optional[str] = None,
        config: Optional[Settings] = None,
    ):
        config = config or settings
        self._discovery_factory = discovery_factory or default_discovery_factory
        self.events = EventEmitter()
        self._ctx = DeviceContext(
            device_name=device_name or config.DEVICE_NAME or socket.gethostname(),
            config=config,
            emitter=self.events,
        )
        self.presence = PresencePublisher(self._ctx)
        self.browser = DiscoveryBrowser(self._ctx)
        self.join_requests = JoinRequestCoordinator(self._ctx)
        self.approvals = ApprovalAuthority(self._ctx, self.join_requests)

    # ── Identity & lifecycle ───────────────────────────────────────

    @property
    def device_id(self) -> Optional[str]:
        return self._ctx.device_id

    @property
    def device_name(self) -> str:
        return self._ctx.device_name

    @property
    def current_family_id(self) -> Optional[str]:
        return self._ctx.current_family_id

    @property
    def is_initialized(self) -> bool:
        return self._ctx.discovery is not None

    def on(self, event: str, handler: Handler) -> Handler:
        return self.events.on(event, handler)

    def off(self, event: str, handler: Handler) -> None:
        self.events.off(event, handler)

    def initialize(self, device_id: str) -> None:
        """Bind the device identity and a fresh capability instance.

        Calling it again rebinds both.  The previous capability is closed when
        nothing is published or browsed through it any more; otherwise its
        handles still need it and it is left open.  A capability that cannot
        be created is logged and leaves the service uninitialized.
        """
        with self._ctx.lock:
            self._ctx.device_id = device_id
            previous = self._ctx.discovery
            if previous is not None:
                logger.info("Service already initialized, rebinding")
            in_use = self.presence.is_publishing or self.browser.is_discovering
            try:
                self._ctx.discovery = self._discovery_factory()
            except Exception as exc:
                self._ctx.discovery = None
                logger.error("Failed to initialize service discovery: %s", exc)
            else:
                logger.info("Service initialized for device %s (%s)", device_id, self._ctx.device_name)

        if previous is not None and not in_use:
            _close_capability(previous)

    def destroy(self) -> None:
        """Stop publishing and discovering, release the capability, drop all tables.

        Nothing here holds the device lock while a handle is stopped or the
        capability is closed; both may wait for zeroconf's own threads.
        """
        self.stop_publishing()
        self.stop_discovering()

        with self._ctx.lock:
            discovery, self._ctx.discovery = self._ctx.discovery, None
        if discovery is not None:
            _close_capability(discovery)

        self.join_requests.clear()
        logger.info("Service destroyed")

    # ── Presence ───────────────────────────────────────────────────

    def start_publishing(self, family_id: str, family_name: str) -> None:
        self.presence.start_publishing(family_id, family_name)

    def stop_publishing(self) -> None:
        self.presence.stop_publishing()

    def is_currently_publishing(self) -> bool:
        return self.presence.is_publishing

    # ── Discovery ──────────────────────────────────────────────────

    def start_discovering(self) -> None:
        self.browser.start_discovering()

    def stop_discovering(self) -> None:
        self.browser.stop_discovering()

    def is_currently_discovering(self) -> bool:
        return self.browser.is_discovering

    def get_discovered_families(self) -> list[DiscoveredFamily]:
        return self.browser.get_discovered_families()

    # ── Join handshake ─────────────────────────────────────────────

    def create_join_request(self, family_id: str) -> JoinRequest:
        return self.join_requests.create_join_request(family_id)

    def receive_join_request(self, device_id: str, device_name: str) -> JoinRequest:
        return self.join_requests.receive_join_request(device_id, device_name)

    def get_pending_join_requests(self) -> list[JoinRequest]:
        return self.join_requests.get_pending_join_requests()

    def get_join_request(self, request_id: str) -> Optional[JoinRequest]:
        return self.join_requests.get_join_request(request_id)

    def clear_join_request(self, request_id: str) -> None:
        self.join_requests.clear_join_request(request_id)

    def approve_join_request(
        self,
        request_id: str,
        role: PermissionRole | str,
        family_id: str,
        family_name: str,
    ) -> Optional[JoinApproval]:
        return self.approvals.approve_join_request(request_id, role, family_id, family_name)

    def reject_join_request(self, request_id: str) -> bool:
        return self.approvals.reject_join_request(request_id)


def _close_capability(discovery: ServiceDiscovery) -> None:
    try:
        discovery.close()
    except Exception as exc:
        logger.warning("Error closing service discovery: %s", exc)
