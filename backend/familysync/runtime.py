"""Process-wide service instances and their FastAPI dependency providers."""
from familysync.services.family_discovery import FamilyDiscoveryService
from familysync.services.sync_status import SyncStatusAggregator

discovery_service = FamilyDiscoveryService()
sync_status = SyncStatusAggregator()


def get_discovery_service() -> FamilyDiscoveryService:
    """Dependency: the device's FamilyDiscoveryService."""
    return discovery_service


def get_sync_status() -> SyncStatusAggregator:
    """Dependency: the process-wide SyncStatusAggregator."""
    return sync_status
