import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from cohort.database import Base


class GroupVisibility(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class Group(Base):
    """Group model representing a capacity-bounded group of users."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    max_capacity = Column(Integer, nullable=False)
    visibility = Column(Enum(GroupVisibility, name="group_visibility"), nullable=False)
    # Only PRIVATE groups carry a code; NULLs never collide under UNIQUE
    invite_code = Column(String(20), unique=True, index=True, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Denormalized ACTIVE membership count, guarded by conditional UPDATE
    member_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])

    # One-to-many with memberships
    memberships = relationship("Membership", back_populates="group", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(
            "max_capacity >= 2 AND max_capacity <= 1000",
            name="ck_groups_max_capacity_range",
        ),
        CheckConstraint(
            "member_count >= 0 AND member_count <= max_capacity",
            name="ck_groups_member_count_within_capacity",
        ),
        CheckConstraint(
            "(visibility = 'PRIVATE' AND invite_code IS NOT NULL) "
            "OR (visibility = 'PUBLIC' AND invite_code IS NULL)",
            name="ck_groups_invite_code_iff_private",
        ),
        # Public search orders newest-first
        Index("ix_groups_visibility_created", "visibility", "created_at"),
    )

    @property
    def is_private(self) -> bool:
        return self.visibility == GroupVisibility.PRIVATE

    def __repr__(self):
        return f"<Group(id={self.id}, name={self.name!r}, visibility={self.visibility}, members={self.member_count}/{self.max_capacity})>"
