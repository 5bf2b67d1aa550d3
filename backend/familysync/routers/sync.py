"""Sync status and peer table API routes."""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status

from familysync.runtime import get_sync_status
from familysync.models.sync import PeerInfo, SyncSummary
from familysync.schemas.sync import ConnectionStateUpdate, PeerCreate, PeerUpdate, SyncStatusUpdate
from familysync.services.sync_status import SyncStatusAggregator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/status", response_model=SyncSummary)
def get_sync_status_summary(aggregator: SyncStatusAggregator = Depends(get_sync_status)):
    return aggregator.summary()


@router.put("/status", response_model=SyncSummary)
def set_sync_status(payload: SyncStatusUpdate, aggregator: SyncStatusAggregator = Depends(get_sync_status)):
    """Overwrite the sync status; any value is accepted at any time."""
    aggregator.set_status(payload.status)
    return aggregator.summary()


@router.get("/peers", response_model=list[PeerInfo])
def list_peers(aggregator: SyncStatusAggregator = Depends(get_sync_status)):
    return aggregator.get_peers()


@router.post("/peers", response_model=PeerInfo, status_code=status.HTTP_201_CREATED)
def add_peer(payload: PeerCreate, aggregator: SyncStatusAggregator = Depends(get_sync_status)):
    """Add a peer row, replacing any row with the same device id."""
    peer = PeerInfo(
        device_id=payload.device_id,
        device_name=payload.device_name,
        status=payload.status,
        last_seen=payload.last_seen or datetime.now(timezone.utc),
        last_sync_at=payload.last_sync_at,
    )
    aggregator.add_peer(peer)
    logger.info("Tracking peer %s (%s) as %s", peer.device_id, peer.device_name, peer.status)
    return peer


@router.patch("/peers/{device_id}", response_model=PeerInfo)
def update_peer(device_id: str, payload: PeerUpdate, aggregator: SyncStatusAggregator = Depends(get_sync_status)):
    peer = aggregator.update_peer(device_id, **payload.model_dump(exclude_unset=True, exclude_none=True))
    if peer is None:
        raise HTTPException(status_code=404, detail="Peer not found")
    return peer


@router.delete("/peers/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_peer(device_id: str, aggregator: SyncStatusAggregator = Depends(get_sync_status)):
    if not aggregator.remove_peer(device_id):
        raise HTTPException(status_code=404, detail="Peer not found")


@router.post("/peers/{device_id}/connection", response_model=SyncSummary)
def report_connection_state(
    device_id: str,
    payload: ConnectionStateUpdate,
    aggregator: SyncStatusAggregator = Depends(get_sync_status),
):
    """Feed a peer-connection state change from the replication engine."""
    aggregator.handle_connection_state(device_id, payload.state)
    return aggregator.summary()
