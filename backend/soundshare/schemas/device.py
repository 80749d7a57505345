"""Device token schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from soundshare.models.device_token import DevicePlatform


class DeviceRegisterRequest(BaseModel):
    token: str = Field(max_length=512)
    # Required; unknown values are rejected by the registry as invalid_input.
    platform: str = Field(max_length=32)


class DeviceRegisterResponse(BaseModel):
    id: str
    status: Literal["registered", "updated"]


class DeviceTokenRead(BaseModel):
    id: str
    token: str
    platform: DevicePlatform
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
