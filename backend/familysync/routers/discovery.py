"""Presence and discovery API routes."""
import logging
from fastapi import APIRouter, Depends, status

from familysync.runtime import get_discovery_service
from familysync.models.family import DiscoveredFamily
from familysync.schemas.discovery import DiscoveryStatusOut, PublishRequest
from familysync.services.family_discovery import FamilyDiscoveryService

logger = logging.getLogger(__name__)
router = APIRouter()


def _status_out(service: FamilyDiscoveryService) -> DiscoveryStatusOut:
    return DiscoveryStatusOut(
        initialized=service.is_initialized,
        publishing=service.is_currently_publishing(),
        discovering=service.is_currently_discovering(),
        device_id=service.device_id,
        device_name=service.device_name,
        family_id=service.current_family_id,
    )


@router.get("/status", response_model=DiscoveryStatusOut)
def get_status(service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Current publishing/discovery flags and local device identity."""
    return _status_out(service)


@router.post("/publish", response_model=DiscoveryStatusOut, status_code=status.HTTP_202_ACCEPTED)
def start_publishing(payload: PublishRequest, service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Advertise a family on the local network (admin devices).

    Publish failures are reported asynchronously; the returned flags show
    whether the advertisement is active.
    """
    service.start_publishing(payload.family_id, payload.family_name)
    return _status_out(service)


@router.delete("/publish", status_code=status.HTTP_204_NO_CONTENT)
def stop_publishing(service: FamilyDiscoveryService = Depends(get_discovery_service)):
    service.stop_publishing()


@router.post("/browse", response_model=DiscoveryStatusOut, status_code=status.HTTP_202_ACCEPTED)
def start_discovering(service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Start browsing for families advertised by other devices."""
    service.start_discovering()
    return _status_out(service)


@router.delete("/browse", status_code=status.HTTP_204_NO_CONTENT)
def stop_discovering(service: FamilyDiscoveryService = Depends(get_discovery_service)):
    service.stop_discovering()


@router.get("/families", response_model=list[DiscoveredFamily])
def list_families(service: FamilyDiscoveryService = Depends(get_discovery_service)):
    """Families currently visible on the local network."""
    return service.get_discovered_families()
