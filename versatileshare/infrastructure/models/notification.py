"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from versatileshare.infrastructure.database import Base
from versatileshare.utils import storage_now


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        UniqueConstraint("user_id", "event_key", name="uq_notification_user_event"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    event_key = Column(String(64), nullable=False)
    event_type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    # Weak reference: deleting a resource leaves its notifications in place.
    resource_id = Column(Integer, nullable=True, index=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(), nullable=False, default=storage_now)

    user = relationship("UserModel", lazy="joined")


__all__ = ["NotificationModel"]
