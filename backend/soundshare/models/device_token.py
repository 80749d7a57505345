"""Push notification device token model."""
from __future__ import annotations

from enum import Enum

from sqlalchemy import Enum as SAEnum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soundshare.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class DevicePlatform(str, Enum):
    """Enumerated device platforms for push notifications."""

    IOS = "ios"
    ANDROID = "android"


class DeviceToken(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Registered push notification device token."""

    __tablename__ = "device_tokens"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(512), nullable=False)
    platform: Mapped[DevicePlatform] = mapped_column(
        SAEnum(
            DevicePlatform,
            name="device_platform",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )

    user = relationship("User", back_populates="device_tokens")

    __table_args__ = (
        UniqueConstraint("user_id", "token", name="uq_device_tokens_user_token"),
    )
