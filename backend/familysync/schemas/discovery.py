"""Pydantic schemas for presence and discovery."""
from typing import Optional
from pydantic import BaseModel, Field


class PublishRequest(BaseModel):
    family_id: str = Field(min_length=1)
    family_name: str = Field(min_length=1)


class DiscoveryStatusOut(BaseModel):
    initialized: bool
    publishing: bool
    discovering: bool
    device_id: Optional[str] = None
    device_name: str
    family_id: Optional[str] = None
