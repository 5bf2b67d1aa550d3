"""Local-network service discovery capability.

The protocol components only talk to the ``ServiceDiscovery`` interface:
``publish`` an advertisement, ``browse`` for advertisements of a type, and
``close`` the underlying responder.  ``ZeroconfServiceDiscovery`` is the
production implementation on top of python-zeroconf; tests inject an
in-memory network instead.
"""
import logging
import socket
from typing import Callable, Optional, Protocol

from pydantic import BaseModel
from zeroconf import ServiceBrowser, ServiceInfo, ServiceListener, Zeroconf

from familysync.config import settings

logger = logging.getLogger(__name__)

RESOLVE_TIMEOUT_MS = 3000


class AdvertisedService(BaseModel):
    """A resolved advertisement as seen by a browser."""

    name: str
    type: str
    port: int
    host: Optional[str] = None
    addresses: list[str] = []
    txt: dict[str, str] = {}


ServiceCallback = Callable[[AdvertisedService], None]


class ServiceHandle(Protocol):
    def stop(self) -> None: ...


class ServiceDiscovery(Protocol):
    def publish(self, name: str, service_type: str, port: int, txt: dict[str, str]) -> ServiceHandle: ...

    def browse(self, service_type: str, on_up: ServiceCallback, on_down: ServiceCallback) -> ServiceHandle: ...

    def close(self) -> None: ...


# ── Zeroconf implementation ────────────────────────────────────────

def guess_local_address() -> str:
    """Best-effort LAN address of this host (no packet is actually sent)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("10.255.255.255", 1))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()


def _decode_properties(properties: dict) -> dict[str, str]:
    decoded = {}
    for key, value in (properties or {}).items():
        if isinstance(key, bytes):
            key = key.decode("utf-8", errors="replace")
        if value is None:
            value = ""
        elif isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        decoded[key] = value
    return decoded


def service_from_info(info: ServiceInfo) -> AdvertisedService:
    """Convert a resolved zeroconf ``ServiceInfo`` into an ``AdvertisedService``."""
    host = info.server.rstrip(".") if info.server else None
    return AdvertisedService(
        name=info.name,
        type=info.type,
        port=info.port or 0,
        host=host,
        addresses=info.parsed_addresses(),
        txt=_decode_properties(info.properties),
    )


class _Registration:
    """Handle for one registered advertisement."""

    def __init__(self, zeroconf: Zeroconf, info: ServiceInfo):
        self._zeroconf = zeroconf
        self._info = info

    def stop(self) -> None:
        self._zeroconf.unregister_service(self._info)


class _FamilyListener(ServiceListener):
    """Resolves browse notifications and forwards them as up/down callbacks.

    Goodbye packets carry no TXT data, so the last resolved record of each
    instance is kept to report what went down.
    """

    def __init__(self, on_up: ServiceCallback, on_down: ServiceCallback):
        self._on_up = on_up
        self._on_down = on_down
        self._known: dict[str, AdvertisedService] = {}

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self._resolve(zc, type_, name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        self._resolve(zc, type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        record = self._known.pop(name, None)
        if record is None:
            logger.debug("Ignoring removal of unresolved service %s", name)
            return
        self._on_down(record)

    def _resolve(self, zc: Zeroconf, type_: str, name: str) -> None:
        info = zc.get_service_info(type_, name, timeout=RESOLVE_TIMEOUT_MS)
        if info is None:
            logger.debug("Could not resolve service %s", name)
            return
        record = service_from_info(info)
        self._known[name] = record
        self._on_up(record)


class _Browse:
    def __init__(self, browser: ServiceBrowser):
        self._browser = browser

    def stop(self) -> None:
        self._browser.cancel()


class ZeroconfServiceDiscovery:
    """``ServiceDiscovery`` backed by a python-zeroconf responder."""

    def __init__(self, zeroconf: Optional[Zeroconf] = None, address: Optional[str] = None):
        self._zeroconf = zeroconf if zeroconf is not None else Zeroconf()
        self._address = address or guess_local_address()

    def publish(self, name: str, service_type: str, port: int, txt: dict[str, str]) -> _Registration:
        info = ServiceInfo(
            service_type,
            f"{name}.{service_type}",
            port=port,
            properties=txt,
            server=f"{socket.gethostname()}.local.",
            parsed_addresses=[self._address],
        )
        self._zeroconf.register_service(info)
        logger.debug("Registered %s on %s:%d", info.name, self._address, port)
        return _Registration(self._zeroconf, info)

    def browse(self, service_type: str, on_up: ServiceCallback, on_down: ServiceCallback) -> _Browse:
        listener = _FamilyListener(on_up, on_down)
        return _Browse(ServiceBrowser(self._zeroconf, service_type, listener=listener))

    def close(self) -> None:
        self._zeroconf.close()


def default_discovery_factory() -> ZeroconfServiceDiscovery:
    """Build the production capability from settings."""
    return ZeroconfServiceDiscovery(address=settings.ADVERTISE_ADDRESS or None)
