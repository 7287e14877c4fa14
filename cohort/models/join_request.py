import enum
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from cohort.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class JoinRequest(Base):
    """A user's request to join a public group, decided by the group owner."""

    __tablename__ = "join_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(RequestStatus, name="request_status"),
        default=RequestStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="join_requests")
    group = relationship("Group")

    __table_args__ = (
        # At most one PENDING request per (user, group); decided rows don't count
        Index(
            "uq_join_requests_pending_pair",
            "user_id",
            "group_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        # Owner's queue is read in creation order
        Index("ix_join_requests_group_status_created", "group_id", "status", "created_at"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def __repr__(self):
        return f"<JoinRequest(id={self.id}, user_id={self.user_id}, group_id={self.group_id}, status={self.status})>"
