from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from cohort.database import Base


class Invitation(Base):
    """Record of an invite issued to a user for a private group (advisory only)."""

    __tablename__ = "invitations"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")
    group = relationship("Group")

    def __repr__(self):
        return f"<Invitation(user_id={self.user_id}, group_id={self.group_id})>"
