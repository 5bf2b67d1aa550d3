"""Pydantic schemas for sync status and the peer table."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from familysync.models.sync import SyncStatus


class SyncStatusUpdate(BaseModel):
    status: SyncStatus


class PeerCreate(BaseModel):
    device_id: str
    device_name: str
    status: str = "connecting"
    last_seen: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None


class PeerUpdate(BaseModel):
    device_name: Optional[str] = None
    status: Optional[str] = None
    last_seen: Optional[datetime] = None
    last_sync_at: Optional[datetime] = None


class ConnectionStateUpdate(BaseModel):
    state: str  # e.g. "connecting", "connected", "disconnected"
