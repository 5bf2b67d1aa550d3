"""Presence publisher: advertises this device's family on the local network."""
import logging
from typing import Optional

from familysync.services import events
from familysync.services.context import DeviceContext
from familysync.services.mdns import ServiceHandle

logger = logging.getLogger(__name__)


def instance_name(family_name: str, family_id: str) -> str:
    """Human-readable advertisement name, disambiguated by the family id prefix."""
    return f"{family_name}-{family_id[:8]}"


class PresencePublisher:
    """Owns at most one active advertisement per process."""

    def __init__(self, context: DeviceContext):
        self._ctx = context
        self._published: Optional[ServiceHandle] = None
        self.is_publishing = False

    def advertised_txt(self, family_id: str, family_name: str) -> dict[str, str]:
        return {
            "familyId": family_id,
            "familyName": family_name,
            "adminDeviceName": self._ctx.device_name,
            "deviceId": self._ctx.device_id or "",
            "version": self._ctx.config.PROTOCOL_VERSION,
        }

    def start_publishing(self, family_id: str, family_name: str) -> None:
        """Advertise ``family_id``, replacing any advertisement already active.

        Failures are reported through the ``error`` event, never raised.
        """
        with self._ctx.lock:
            if self.is_publishing:
                logger.info("Already publishing, stopping previous advertisement first")
                self.stop_publishing()

            discovery = self._ctx.discovery
            if discovery is None:
                logger.error("Cannot publish family %s: service discovery not initialized", family_id)
                return

            self._ctx.current_family_id = family_id
            try:
                self._published = discovery.publish(
                    name=instance_name(family_name, family_id),
                    service_type=self._ctx.config.SERVICE_TYPE,
                    port=self._ctx.config.SERVICE_PORT,
                    txt=self.advertised_txt(family_id, family_name),
                )
            except Exception as exc:
                logger.error("Failed to publish family %s: %s", family_id, exc)
                self._ctx.emitter.emit(events.ERROR, exc)
                return

            self.is_publishing = True
            logger.info("Publishing family: %s (%s)", family_name, family_id[:8])
            self._ctx.emitter.emit(events.PUBLISHING_CHANGED, True)

    def stop_publishing(self) -> None:
        """Withdraw the advertisement. Safe to call when not publishing."""
        with self._ctx.lock:
            was_publishing = self.is_publishing
            if self._published is not None:
                try:
                    self._published.stop()
                except Exception as exc:
                    logger.warning("Error stopping published service: %s", exc)
                self._published = None
            self.is_publishing = False
            logger.info("Stopped publishing")
            if was_publishing:
                self._ctx.emitter.emit(events.PUBLISHING_CHANGED, False)
