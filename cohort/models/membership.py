import enum
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from cohort.database import Base


class MembershipStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"


class Membership(Base):
    """Membership model linking a user to the one group they belong to."""

    __tablename__ = "memberships"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True, index=True)
    status = Column(
        Enum(MembershipStatus, name="membership_status"),
        default=MembershipStatus.ACTIVE,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="membership")
    group = relationship("Group", back_populates="memberships")

    __table_args__ = (
        # Every row is ACTIVE (removal deletes), so this is "one active group per user"
        UniqueConstraint("user_id", name="uq_memberships_user"),
    )

    def __repr__(self):
        return f"<Membership(user_id={self.user_id}, group_id={self.group_id}, status={self.status})>"
