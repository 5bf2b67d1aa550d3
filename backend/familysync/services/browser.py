"""Discovery browser: tracks the families currently advertised by other devices."""
import logging
from datetime import datetime, timezone
from typing import Optional

from familysync.models.family import DiscoveredFamily
from familysync.services import events
from familysync.services.context import DeviceContext
from familysync.services.mdns import AdvertisedService, ServiceHandle

logger = logging.getLogger(__name__)

REQUIRED_TXT_KEYS = ("familyId", "familyName")


class DiscoveryBrowser:
    def __init__(self, context: DeviceContext):
        self._ctx = context
        self._browse: Optional[ServiceHandle] = None
        self._families: dict[str, DiscoveredFamily] = {}
        self.is_discovering = False

    def start_discovering(self) -> None:
        with self._ctx.lock:
            if self.is_discovering:
                logger.info("Already discovering")
                return

            discovery = self._ctx.discovery
            if discovery is None:
                logger.error("Cannot discover families: service discovery not initialized")
                return

            # Set before browsing: cached records may be delivered from inside browse()
            self.is_discovering = True
            try:
                self._browse = discovery.browse(
                    self._ctx.config.SERVICE_TYPE,
                    on_up=self.handle_service_up,
                    on_down=self.handle_service_down,
                )
            except Exception as exc:
                self.is_discovering = False
                self._families.clear()
                logger.error("Failed to start discovery: %s", exc)
                self._ctx.emitter.emit(events.ERROR, exc)
                return

            logger.info("Started discovering families on local network")
            self._ctx.emitter.emit(events.DISCOVERING_CHANGED, True)

    def stop_discovering(self) -> None:
        """Stop browsing and forget every discovered family.

        The browse handle is stopped outside the lock: zeroconf's cancel joins
        the thread that delivers ``handle_service_up``/``handle_service_down``,
        and those need the lock to return.
        """
        with self._ctx.lock:
            was_discovering = self.is_discovering
            handle, self._browse = self._browse, None
            self._families.clear()
            self.is_discovering = False
            logger.info("Stopped discovering")
            if was_discovering:
                self._ctx.emitter.emit(events.DISCOVERING_CHANGED, False)

        if handle is not None:
            try:
                handle.stop()
            except Exception as exc:
                logger.warning("Error stopping browser: %s", exc)

    def handle_service_up(self, service: AdvertisedService) -> None:
        txt = service.txt or {}
        if not all(txt.get(key) for key in REQUIRED_TXT_KEYS):
            return

        with self._ctx.lock:
            if not self.is_discovering:
                return
            # Never discover our own family or our own device
            if txt["familyId"] == self._ctx.current_family_id:
                return
            if self._ctx.device_id and txt.get("deviceId") == self._ctx.device_id:
                return

            family = DiscoveredFamily(
                id=txt["familyId"],
                name=txt["familyName"],
                admin_device_name=txt.get("adminDeviceName", "Unknown"),
                host=service.host or (service.addresses[0] if service.addresses else "localhost"),
                port=service.port,
                discovered_at=datetime.now(timezone.utc),
            )
            self._families[family.id] = family
            logger.info("Family discovered: %s at %s", family.name, family.host)
            self._ctx.emitter.emit(events.FAMILY_DISCOVERED, family.model_copy())

    def handle_service_down(self, service: AdvertisedService) -> None:
        family_id = (service.txt or {}).get("familyId")
        if not family_id:
            return

        with self._ctx.lock:
            if self._families.pop(family_id, None) is None:
                return
            logger.info("Family lost: %s", family_id)
            self._ctx.emitter.emit(events.FAMILY_LOST, family_id)

    def get_discovered_families(self) -> list[DiscoveredFamily]:
        with self._ctx.lock:
            return [family.model_copy() for family in self._families.values()]
