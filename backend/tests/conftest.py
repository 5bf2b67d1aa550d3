"""Pytest fixtures: an in-memory LAN segment shared by simulated devices."""
import functools
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from familysync import runtime
from familysync.config import Settings
from familysync.main import app
from familysync.services.events import EVENT_NAMES
from familysync.services.family_discovery import FamilyDiscoveryService
from familysync.services.mdns import AdvertisedService
from familysync.services.sync_status import SyncStatusAggregator

SERVICE_TYPE = "_doftool-family._tcp.local."
SERVICE_PORT = 45678


class FakeHandle:
    """Publish/browse handle; ``fail_on_stop`` makes teardown raise without releasing."""

    def __init__(self, on_stop):
        self._on_stop = on_stop
        self.stop_calls = 0
        self.fail_on_stop: Optional[Exception] = None

    def stop(self):
        self.stop_calls += 1
        if self.fail_on_stop is not None:
            raise self.fail_on_stop
        self._on_stop()


class FakeNetwork:
    """Every advertisement is delivered to every browser of the same type."""

    def __init__(self):
        self.advertisements: dict[str, AdvertisedService] = {}
        self.browsers: list[tuple] = []
        self.capabilities: dict[str, "FakeServiceDiscovery"] = {}

    def attach(self, host: str, address: str) -> "FakeServiceDiscovery":
        capability = FakeServiceDiscovery(self, host, address)
        self.capabilities[host] = capability
        return capability

    def announce(self, record: AdvertisedService) -> None:
        self.advertisements[record.name] = record
        for service_type, on_up, _ in list(self.browsers):
            if service_type == record.type:
                on_up(record)

    def withdraw(self, name: str) -> None:
        record = self.advertisements.pop(name, None)
        if record is None:
            return
        for service_type, _, on_down in list(self.browsers):
            if service_type == record.type:
                on_down(record)

    def remove_browser(self, entry) -> None:
        if entry in self.browsers:
            self.browsers.remove(entry)


class FakeServiceDiscovery:
    """ServiceDiscovery capability of one simulated device."""

    def __init__(self, network: FakeNetwork, host: str, address: str):
        self.network = network
        self.host = host
        self.address = address
        self.handles: list[FakeHandle] = []
        self.closed = False
        self.publish_error: Optional[Exception] = None
        self.browse_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None

    def publish(self, name, service_type, port, txt):
        if self.publish_error is not None:
            raise self.publish_error
        record = AdvertisedService(
            name=name,
            type=service_type,
            port=port,
            host=self.host,
            addresses=[self.address],
            txt=dict(txt),
        )
        self.network.announce(record)
        handle = FakeHandle(lambda: self.network.withdraw(name))
        self.handles.append(handle)
        return handle

    def browse(self, service_type, on_up, on_down):
        if self.browse_error is not None:
            raise self.browse_error
        entry = (service_type, on_up, on_down)
        self.network.browsers.append(entry)
        for record in list(self.network.advertisements.values()):
            if record.type == service_type:
                on_up(record)
        handle = FakeHandle(lambda: self.network.remove_browser(entry))
        self.handles.append(handle)
        return handle

    def close(self):
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class EventRecorder:
    """Records every event emitted by a service, in order."""

    def __init__(self, service: FamilyDiscoveryService):
        self.received: list[tuple[str, tuple]] = []
        for name in EVENT_NAMES:
            service.on(name, functools.partial(self._record, name))

    def _record(self, name, *args):
        self.received.append((name, args))

    def names(self) -> list[str]:
        return [name for name, _ in self.received]

    def of(self, name: str) -> list:
        """Payloads of ``name`` events (single-argument events unwrapped)."""
        return [args[0] if len(args) == 1 else args for event, args in self.received if event == name]


def foreign_record(name="Foreign-0000", host="other.local", port=SERVICE_PORT, addresses=None, **txt) -> AdvertisedService:
    """An advertisement injected directly onto the network, bypassing any device."""
    return AdvertisedService(
        name=name,
        type=SERVICE_TYPE,
        port=port,
        host=host,
        addresses=addresses if addresses is not None else ["192.168.1.99"],
        txt=txt,
    )


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def make_device(network):
    """Factory: a FamilyDiscoveryService attached to the shared network."""
    created = []

    def _make(device_id="device-a", device_name="Mac-A", address="192.168.1.10", initialize=True):
        def factory():
            return network.attach(f"{device_name}.local", address)

        service = FamilyDiscoveryService(
            discovery_factory=factory,
            device_name=device_name,
            config=Settings(_env_file=None),
        )
        if initialize:
            service.initialize(device_id)
        created.append(service)
        return service

    yield _make
    for service in created:
        service.destroy()


@pytest.fixture
def recorder():
    """Factory: attach an EventRecorder to a service."""
    return EventRecorder


@pytest.fixture
def admin_service(make_device):
    return make_device("device-admin", "Mac-A", address="192.168.1.10")


@pytest.fixture
def aggregator():
    return SyncStatusAggregator()


@pytest.fixture
def client(admin_service, aggregator, monkeypatch):
    """FastAPI TestClient wired to the admin device on the fake network."""
    monkeypatch.setattr(runtime, "discovery_service", admin_service)
    monkeypatch.setattr(runtime, "sync_status", aggregator)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def foreign():
    """Factory: build an advertisement to inject with ``network.announce``."""
    return foreign_record
