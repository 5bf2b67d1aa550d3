"""DiscoveredFamily: a family advertisement seen on the local network."""
from datetime import datetime
from pydantic import BaseModel


class DiscoveredFamily(BaseModel):
    id: str
    name: str
    admin_device_name: str
    host: str
    port: int
    discovered_at: datetime

    model_config = {"from_attributes": True}
