"""SQLAlchemy model for shared resources."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from versatileshare.infrastructure.database import Base


class ResourceModel(Base):
    """Minimal resource columns read by the notification core."""

    __tablename__ = "resource"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    subject = Column(String(120), nullable=False, default="")
    semester = Column(Integer, nullable=True, index=True)
    type = Column(String(40), nullable=False, default="document")
    uploaded_by = Column(Integer, ForeignKey("user.id"), nullable=True, index=True)
    views = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    uploader = relationship("UserModel", lazy="joined")


__all__ = ["ResourceModel"]
