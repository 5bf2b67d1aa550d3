"""SyncStatus and the peer rows reported by the replication engine."""
import enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class SyncStatus(str, enum.Enum):
    offline = "offline"
    discovering = "discovering"
    connecting = "connecting"
    connected = "connected"
    syncing = "syncing"


class PeerInfo(BaseModel):
    device_id: str
    device_name: str
    status: str  # raw peer-connection state, e.g. "connected" / "disconnected"
    last_seen: datetime
    last_sync_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SyncSummary(BaseModel):
    status: SyncStatus
    status_text: str
    is_connected: bool
    peer_count: int
    connected_peer_count: int
    last_sync_at: Optional[datetime] = None
    error: Optional[str] = None
