"""Notification send and stats schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from soundshare.models.device_token import DevicePlatform


class SendNotificationRequest(BaseModel):
    target_user_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=2000)
    data: dict[str, Any] = Field(default_factory=dict)


class SendMultipleRequest(BaseModel):
    target_user_ids: list[str] = Field(min_length=1, max_length=1000)
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=2000)
    data: dict[str, Any] = Field(default_factory=dict)


class SendNotificationResponse(BaseModel):
    target_user_id: str
    target_user_name: str
    notification: dict[str, Any]
    report: dict[str, Any]


class TokenStat(BaseModel):
    id: str
    platform: DevicePlatform
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationStats(BaseModel):
    total_tokens: int
    platform_stats: dict[str, int]
    tokens: list[TokenStat]
