from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from cohort.database import Base


class User(Base):
    """User record mirrored from the identity provider."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    # At most one row: memberships.user_id is unique
    membership = relationship("Membership", back_populates="user", uselist=False)

    join_requests = relationship("JoinRequest", back_populates="user")
