"""Sync status aggregator: one status value for the rest of the application.

The status is an unconstrained overwrite: any producer (publisher, browser,
peer-connection layer) may set any value at any time.  The "N devices
connected" text is computed from the peer table on every call, so it can
differ from the table length while disconnected peers are still listed.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from familysync.models.sync import PeerInfo, SyncStatus, SyncSummary
from familysync.services import events

logger = logging.getLogger(__name__)

CONNECTED = "connected"
DISCONNECTED = "disconnected"


class SyncStatusAggregator:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._service = None
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._status = SyncStatus.offline
            self._peers: dict[str, PeerInfo] = {}
            self._last_sync_at: Optional[datetime] = None
            self._error: Optional[str] = None

    # ── Status ─────────────────────────────────────────────────────

    @property
    def status(self) -> SyncStatus:
        return self._status

    def set_status(self, status: SyncStatus | str) -> None:
        status = SyncStatus(status)
        with self._lock:
            if status != self._status:
                logger.debug("Sync status %s -> %s", self._status.value, status.value)
            self._status = status

    def is_connected(self) -> bool:
        return self._status in (SyncStatus.connected, SyncStatus.syncing)

    def is_connecting(self) -> bool:
        return self._status == SyncStatus.connecting

    def is_syncing(self) -> bool:
        return self._status == SyncStatus.syncing

    def is_discovering(self) -> bool:
        return self._status == SyncStatus.discovering

    def is_offline(self) -> bool:
        return self._status == SyncStatus.offline

    def get_status_text(self) -> str:
        status = self._status
        if status == SyncStatus.connected:
            count = self.get_connected_peer_count()
            return f"{count} device{'' if count == 1 else 's'} connected"
        if status == SyncStatus.syncing:
            return "Syncing..."
        if status == SyncStatus.connecting:
            return "Connecting..."
        if status == SyncStatus.discovering:
            return "Discovering devices..."
        return "Offline"

    @property
    def last_sync_at(self) -> Optional[datetime]:
        return self._last_sync_at

    def set_last_sync_at(self, when: Optional[datetime]) -> None:
        with self._lock:
            self._last_sync_at = when

    @property
    def error(self) -> Optional[str]:
        return self._error

    def set_error(self, error: Optional[str]) -> None:
        with self._lock:
            self._error = error

    # ── Peer table ─────────────────────────────────────────────────

    def add_peer(self, peer: PeerInfo) -> None:
        """Insert ``peer``, replacing any row with the same device id."""
        with self._lock:
            self._peers.pop(peer.device_id, None)
            self._peers[peer.device_id] = peer.model_copy()

    def remove_peer(self, device_id: str) -> bool:
        with self._lock:
            return self._peers.pop(device_id, None) is not None

    def update_peer(self, device_id: str, **updates: Any) -> Optional[PeerInfo]:
        """Merge ``updates`` into an existing row; unknown ids are ignored."""
        with self._lock:
            peer = self._peers.get(device_id)
            if peer is None:
                return None
            updated = peer.model_copy(update=updates)
            self._peers[device_id] = updated
            return updated.model_copy()

    def set_peers(self, peers: list[PeerInfo]) -> None:
        with self._lock:
            self._peers = {p.device_id: p.model_copy() for p in peers}

    def get_peer(self, device_id: str) -> Optional[PeerInfo]:
        with self._lock:
            peer = self._peers.get(device_id)
            return peer.model_copy() if peer is not None else None

    def get_peers(self) -> list[PeerInfo]:
        with self._lock:
            return [p.model_copy() for p in self._peers.values()]

    @property
    def peer_count(self) -> int:
        return len(self._peers)

    def get_connected_peer_count(self) -> int:
        with self._lock:
            return sum(1 for p in self._peers.values() if p.status == CONNECTED)

    def summary(self) -> SyncSummary:
        with self._lock:
            return SyncSummary(
                status=self._status,
                status_text=self.get_status_text(),
                is_connected=self.is_connected(),
                peer_count=self.peer_count,
                connected_peer_count=self.get_connected_peer_count(),
                last_sync_at=self._last_sync_at,
                error=self._error,
            )

    # ── Producers ──────────────────────────────────────────────────

    def bind(self, service) -> None:
        """Follow publishing/discovery activity and errors of a FamilyDiscoveryService."""
        if self._service is service:
            return
        self._service = service
        service.on(events.PUBLISHING_CHANGED, self._on_activity_changed)
        service.on(events.DISCOVERING_CHANGED, self._on_activity_changed)
        service.on(events.ERROR, self._on_error)

    def _is_active(self) -> bool:
        service = self._service
        if service is None:
            return False
        return service.is_currently_publishing() or service.is_currently_discovering()

    def _on_activity_changed(self, _active: bool) -> None:
        with self._lock:
            if self._is_active():
                if self._status == SyncStatus.offline:
                    self.set_status(SyncStatus.discovering)
            else:
                self.set_status(SyncStatus.offline)

    def _on_error(self, exc: Exception) -> None:
        self.set_error(str(exc))

    def handle_connection_state(self, device_id: str, state: str) -> None:
        """Apply a peer-connection state change reported by the replication engine."""
        with self._lock:
            now = datetime.now(timezone.utc)
            if self.update_peer(device_id, status=state, last_seen=now) is None:
                logger.debug("Connection state %s for untracked peer %s", state, device_id)

            if state == CONNECTED:
                self.set_status(SyncStatus.connected)
            elif state == DISCONNECTED:
                self._recompute_after_disconnect()

    def _recompute_after_disconnect(self) -> None:
        if self.get_connected_peer_count() > 0:
            self.set_status(SyncStatus.connected)
        elif self._is_active():
            self.set_status(SyncStatus.discovering)
        else:
            self.set_status(SyncStatus.offline)
