"""Persistence operations for groups, memberships, join requests and invitations."""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import case, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from cohort.core.errors import ConflictError, DuplicateRequestError, InviteCodeCollisionError
from cohort.models.group import Group, GroupVisibility
from cohort.models.invitation import Invitation
from cohort.models.join_request import JoinRequest, RequestStatus
from cohort.models.membership import Membership, MembershipStatus
from cohort.models.user import User
from cohort.services.capacity import CapacityGuard
from cohort.services.join_requests import JoinRequestStateMachine

# SQLite names the column, PostgreSQL names the unique index
INVITE_CODE_UNIQUE_MARKERS = ("groups.invite_code", "ix_groups_invite_code")


def _is_invite_code_collision(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in INVITE_CODE_UNIQUE_MARKERS)


class GroupStore:
    """
    Store for the membership core, bound to one database session.

    Every guarded write relies on a database constraint or a conditional
    statement rather than on a prior read.
    """

    def __init__(self, db: Session):
        self.db = db
        self.capacity = CapacityGuard(db)
        self.requests = JoinRequestStateMachine(db)

    @contextmanager
    def transaction(self) -> Iterator["GroupStore"]:
        """Commit everything done inside the block, or roll all of it back."""
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        ).scalars().first()

    # Groups

    def insert_group(
        self,
        owner_id: int,
        name: str,
        max_capacity: int,
        visibility: GroupVisibility,
        description: Optional[str] = None,
        invite_code: Optional[str] = None,
    ) -> Group:
        group = Group(
            name=name,
            description=description,
            max_capacity=max_capacity,
            visibility=visibility,
            invite_code=invite_code,
            owner_id=owner_id,
            member_count=0,
        )
        self.db.add(group)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # Only the invite code index counts as a collision; anything else propagates
            if invite_code is not None and _is_invite_code_collision(exc):
                raise InviteCodeCollisionError() from exc
            raise
        return group

    def get_group(self, group_id: int) -> Optional[Group]:
        return self.db.get(Group, group_id)

    def get_group_by_invite_code(self, invite_code: str) -> Optional[Group]:
        return self.db.execute(
            select(Group).where(Group.invite_code == invite_code)
        ).scalar_one_or_none()

    def invite_code_exists(self, invite_code: str) -> bool:
        return self.get_group_by_invite_code(invite_code) is not None

    def search_public_groups(
        self,
        name: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Group], int]:
        """Return one page of PUBLIC groups, newest first, and the total match count."""
        conditions = [Group.visibility == GroupVisibility.PUBLIC]
        if name:
            conditions.append(func.lower(Group.name).contains(name.lower(), autoescape=True))

        total = self.db.execute(
            select(func.count()).select_from(Group).where(*conditions)
        ).scalar() or 0

        groups = self.db.execute(
            select(Group)
            .where(*conditions)
            .options(selectinload(Group.owner))
            .order_by(Group.created_at.desc(), Group.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars().all()

        return list(groups), total

    # Memberships

    def count_active_memberships(self, group_id: int) -> int:
        return self.capacity.active_count(group_id)

    def get_active_membership(self, user_id: int) -> Optional[Membership]:
        return self.db.execute(
            select(Membership).where(
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE,
            )
        ).scalar_one_or_none()

    def get_membership(self, user_id: int, group_id: int) -> Optional[Membership]:
        return self.db.execute(
            select(Membership).where(
                Membership.user_id == user_id,
                Membership.group_id == group_id,
            )
        ).scalar_one_or_none()

    def insert_membership(self, user_id: int, group_id: int) -> Membership:
        """Capacity- and uniqueness-guarded insert; see CapacityGuard.admit."""
        return self.capacity.admit(user_id, group_id)

    def delete_membership(self, user_id: int, group_id: int) -> bool:
        return self.capacity.release(user_id, group_id)

    def list_members(self, group_id: int) -> List[Tuple[User, Membership]]:
        rows = self.db.execute(
            select(User, Membership)
            .join(Membership, Membership.user_id == User.id)
            .where(Membership.group_id == group_id)
            .order_by(Membership.created_at.asc(), User.id.asc())
        ).all()
        return [(user, membership) for user, membership in rows]

    # Join requests

    def insert_join_request(self, user_id: int, group_id: int) -> JoinRequest:
        request = JoinRequest(user_id=user_id, group_id=group_id, status=RequestStatus.PENDING)
        self.db.add(request)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateRequestError() from exc
        return request

    def get_join_request_by_id(self, request_id: int) -> Optional[JoinRequest]:
        return self.db.get(JoinRequest, request_id)

    def get_join_request_by_user_and_group(self, user_id: int, group_id: int) -> Optional[JoinRequest]:
        """The PENDING request for the pair if there is one, else the most recent."""
        return self.db.execute(
            select(JoinRequest)
            .where(
                JoinRequest.user_id == user_id,
                JoinRequest.group_id == group_id,
            )
            .order_by(
                case((JoinRequest.status == RequestStatus.PENDING, 0), else_=1),
                JoinRequest.created_at.desc(),
                JoinRequest.id.desc(),
            )
            .limit(1)
        ).scalar_one_or_none()

    def set_join_request_status(self, request_id: int, to_status: RequestStatus) -> None:
        """PENDING -> ``to_status``; raises AlreadyProcessedError otherwise."""
        self.requests.transition(request_id, to_status)

    def approve_and_enroll(self, request_id: int, user_id: int, group_id: int) -> Membership:
        """Mark the request APPROVED and admit the user as a single transaction."""
        with self.transaction():
            self.requests.approve(request_id)
            membership = self.capacity.admit(user_id, group_id)
        return membership

    def list_pending_join_requests(self, group_id: int) -> List[JoinRequest]:
        """Pending requests in the order they were filed."""
        requests = self.db.execute(
            select(JoinRequest)
            .where(
                JoinRequest.group_id == group_id,
                JoinRequest.status == RequestStatus.PENDING,
            )
            .options(selectinload(JoinRequest.user))
            .order_by(JoinRequest.created_at.asc(), JoinRequest.id.asc())
        ).scalars().all()
        return list(requests)

    # Invitations

    def insert_invitation(self, user_id: int, group_id: int) -> Invitation:
        try:
            self.db.execute(insert(Invitation).values(user_id=user_id, group_id=group_id))
        except IntegrityError as exc:
            raise ConflictError("User has already been invited to this group") from exc
        return self.db.get(Invitation, (user_id, group_id), populate_existing=True)

    def get_invitation(self, user_id: int, group_id: int) -> Optional[Invitation]:
        return self.db.get(Invitation, (user_id, group_id))
