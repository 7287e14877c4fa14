"""
Capacity-checked admission into groups.

A seat is claimed with a single conditional UPDATE on ``groups.member_count``
and the membership row is inserted in the same transaction. The UPDATE takes
the group's row lock (PostgreSQL) or the database write lock (SQLite), so two
admissions into the same group can never both pass the capacity check.
"""

import logging

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cohort.core.errors import AlreadyMemberError, CapacityExceededError
from cohort.models.group import Group
from cohort.models.membership import Membership, MembershipStatus

logger = logging.getLogger(__name__)


class CapacityGuard:
    """Admits and releases memberships while keeping member_count <= max_capacity."""

    def __init__(self, db: Session):
        self.db = db

    def active_count(self, group_id: int) -> int:
        """Count ACTIVE memberships of a group straight from the memberships table."""
        count = self.db.execute(
            select(func.count()).select_from(Membership).where(
                Membership.group_id == group_id,
                Membership.status == MembershipStatus.ACTIVE,
            )
        ).scalar()
        return count or 0

    def has_room(self, group: Group) -> bool:
        """
        Advisory check used to fail fast before opening a write.

        Not a guarantee: only ``admit`` decides admission.
        """
        return self.active_count(group.id) < group.max_capacity

    def admit(self, user_id: int, group_id: int) -> Membership:
        """
        Claim a seat in the group and insert the user's ACTIVE membership.

        Must run inside the caller's transaction; on failure the caller rolls
        back and the seat is returned with it.

        Raises:
            CapacityExceededError: The group has no free seat
            AlreadyMemberError: The user already holds an ACTIVE membership
        """
        reserved = self.db.execute(
            update(Group)
            .where(
                Group.id == group_id,
                Group.member_count < Group.max_capacity,
            )
            .values(member_count=Group.member_count + 1)
            .execution_options(synchronize_session=False)
        ).rowcount

        if not reserved:
            logger.warning(f"Admission of user {user_id} refused: group {group_id} is full")
            raise CapacityExceededError()

        try:
            self.db.execute(
                insert(Membership).values(
                    user_id=user_id,
                    group_id=group_id,
                    status=MembershipStatus.ACTIVE,
                )
            )
        except IntegrityError as exc:
            logger.warning(f"Admission of user {user_id} refused: already holds a membership")
            raise AlreadyMemberError() from exc

        self._expire_group(group_id)
        return self.db.get(Membership, (user_id, group_id), populate_existing=True)

    def release(self, user_id: int, group_id: int) -> bool:
        """
        Delete the user's membership in the group and free its seat.

        Idempotent: returns False and leaves the counter alone when there was
        nothing to delete.
        """
        deleted = self.db.execute(
            delete(Membership)
            .where(
                Membership.user_id == user_id,
                Membership.group_id == group_id,
            )
            .execution_options(synchronize_session=False)
        ).rowcount

        if not deleted:
            return False

        self.db.execute(
            update(Group)
            .where(Group.id == group_id, Group.member_count > 0)
            .values(member_count=Group.member_count - 1)
            .execution_options(synchronize_session=False)
        )
        self._expire_group(group_id)
        return True

    def _expire_group(self, group_id: int) -> None:
        # Loaded Group objects still hold the pre-UPDATE member_count
        group = self.db.identity_map.get(self.db.identity_key(Group, group_id))
        if group is not None:
            self.db.expire(group)
