"""State shared by the protocol components of a single device."""
import threading
from typing import Optional

from familysync.config import Settings
from familysync.services.events import EventEmitter
from familysync.services.mdns import ServiceDiscovery


class DeviceContext:
    """Identity, capability and event channel of the local device.

    ``lock`` serializes every table mutation and the stop-then-start publish
    sequence; zeroconf delivers browse callbacks on its own thread.
    """

    def __init__(self, device_name: str, config: Settings, emitter: EventEmitter):
        self.device_name = device_name
        self.config = config
        self.emitter = emitter
        self.device_id: Optional[str] = None
        self.discovery: Optional[ServiceDiscovery] = None
        self.current_family_id: Optional[str] = None
        self.lock = threading.RLock()
