"""
Group membership coordination.

Every operation loads the state it needs, fails fast on violated rules and
then applies its effect as one transaction through the store. The pre-checks
only produce early, specific errors; the store's constraints and conditional
writes decide the outcome when operations race.
"""

import logging
import math
from typing import Callable, List, Optional

from cohort.config import Settings, settings as default_settings
from cohort.core.errors import (
    AlreadyMemberError,
    CapacityExceededError,
    ConflictError,
    DuplicateRequestError,
    ForbiddenError,
    InviteCodeCollisionError,
    InviteCodeGenerationError,
    NotAMemberError,
    NotFoundError,
    OwnerCannotLeaveError,
    SelfRemovalError,
    ValidationError,
)
from cohort.models.group import Group, GroupVisibility
from cohort.models.join_request import JoinRequest, RequestStatus
from cohort.models.membership import Membership
from cohort.repositories.group_store import GroupStore
from cohort.schemas.group import (
    GroupCreate,
    GroupMemberResponse,
    GroupPage,
    GroupResponse,
    InviteResponse,
)
from cohort.schemas.user import Actor
from cohort.utils.invite_code import generate_unique_invite_code

logger = logging.getLogger(__name__)

InviteNotifier = Callable[[str, Group], None]


def log_invitation(invitee_email: str, group: Group) -> None:
    """Default notifier: delivery belongs to the mail service, so just record it."""
    logger.info(f"Invite code for group {group.id} issued to {invitee_email}")


class MembershipCoordinator:
    """Entry point for all group and membership operations."""

    def __init__(
        self,
        store: GroupStore,
        notifier: Optional[InviteNotifier] = None,
        config: Optional[Settings] = None,
    ):
        self.store = store
        self.notifier = notifier or log_invitation
        self.config = config or default_settings

    # Groups

    def create_group(self, actor: Actor, group_data: GroupCreate) -> Group:
        """
        Create a group and enroll its owner as the first member.

        The group row, its invite code and the owner's membership commit
        together; if the owner was admitted elsewhere in the meantime,
        nothing is kept. A private group whose code is claimed between the
        uniqueness check and the insert is retried with a fresh code, up to
        INVITE_CODE_MAX_ATTEMPTS times.

        Raises:
            AlreadyMemberError: Actor already belongs to a group
            ValidationError: Capacity outside the allowed range
            InviteCodeGenerationError: No unique invite code could be found
        """
        if self.store.get_active_membership(actor.id) is not None:
            raise AlreadyMemberError()

        if not self.config.MIN_GROUP_CAPACITY <= group_data.max_capacity <= self.config.MAX_GROUP_CAPACITY:
            raise ValidationError(
                f"max_capacity must be between {self.config.MIN_GROUP_CAPACITY} "
                f"and {self.config.MAX_GROUP_CAPACITY}"
            )

        if group_data.visibility != GroupVisibility.PRIVATE:
            group = self._insert_group_with_owner(actor, group_data, invite_code=None)
            logger.info(f"User {actor.id} created public group {group.id}")
            return group

        max_attempts = self.config.INVITE_CODE_MAX_ATTEMPTS
        for attempt in range(1, max_attempts + 1):
            invite_code = generate_unique_invite_code(
                self.store.invite_code_exists,
                length=self.config.INVITE_CODE_LENGTH,
                max_attempts=max_attempts,
            )
            try:
                group = self._insert_group_with_owner(actor, group_data, invite_code)
            except InviteCodeCollisionError:
                # The whole unit rolled back; retry it with a fresh code
                logger.warning(f"Invite code taken at insert on attempt {attempt}/{max_attempts}")
                continue

            logger.info(f"User {actor.id} created private group {group.id}")
            return group

        logger.error(f"Gave up creating a private group for user {actor.id} after {max_attempts} attempts")
        raise InviteCodeGenerationError()

    def search_public_groups(
        self,
        name: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> GroupPage:
        """Page through PUBLIC groups, newest first, optionally filtered by name."""
        if limit is None:
            limit = self.config.DEFAULT_PAGE_SIZE
        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= self.config.MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {self.config.MAX_PAGE_SIZE}")

        groups, total = self.store.search_public_groups(name, page, limit)
        return GroupPage(
            items=[GroupResponse.model_validate(group) for group in groups],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def get_my_group(self, actor: Actor) -> Optional[Group]:
        membership = self.store.get_active_membership(actor.id)
        if membership is None:
            return None
        return self.store.get_group(membership.group_id)

    # Join requests

    def request_to_join(self, actor: Actor, group_id: int) -> JoinRequest:
        """
        File a PENDING request to join a public group.

        Raises:
            NotFoundError: Group does not exist
            ForbiddenError: Group is private
            AlreadyMemberError: Actor already belongs to a group
            CapacityExceededError: Group is full
            DuplicateRequestError: A PENDING request already exists
        """
        group = self._get_group_or_404(group_id)

        if group.is_private:
            raise ForbiddenError("Cannot request to join a private group")

        if self.store.get_active_membership(actor.id) is not None:
            raise AlreadyMemberError()

        if not self.store.capacity.has_room(group):
            raise CapacityExceededError()

        existing = self.store.get_join_request_by_user_and_group(actor.id, group_id)
        if existing is not None and existing.is_pending:
            raise DuplicateRequestError()

        with self.store.transaction():
            request = self.store.insert_join_request(actor.id, group_id)

        logger.info(f"User {actor.id} requested to join group {group_id} (request {request.id})")
        return request

    def approve_join_request(self, actor: Actor, request_id: int) -> Membership:
        """
        Approve a PENDING request and enroll the requester.

        Both conditions are re-checked now rather than trusted from request
        time. A requester who has joined another group meanwhile has the
        request rejected and the approval fails with ConflictError. A full
        group fails with CapacityExceededError and the request stays PENDING.

        Raises:
            NotFoundError, ForbiddenError, AlreadyProcessedError,
            ConflictError, CapacityExceededError
        """
        request, group = self._get_owned_pending_request(actor, request_id)
        user_id = request.user_id

        if self.store.get_active_membership(user_id) is not None:
            raise self._reject_stale_request(request_id, user_id)

        if not self.store.capacity.has_room(group):
            raise CapacityExceededError()

        try:
            membership = self.store.approve_and_enroll(request_id, user_id, group.id)
        except AlreadyMemberError:
            # Requester was admitted somewhere between the check and the commit
            raise self._reject_stale_request(request_id, user_id) from None

        logger.info(f"User {actor.id} approved request {request_id}; user {user_id} joined group {group.id}")
        return membership

    def reject_join_request(self, actor: Actor, request_id: int) -> JoinRequest:
        """
        Reject a PENDING request. No membership changes.

        Raises:
            NotFoundError, ForbiddenError, AlreadyProcessedError
        """
        request, _ = self._get_owned_pending_request(actor, request_id)

        with self.store.transaction():
            self.store.set_join_request_status(request_id, RequestStatus.REJECTED)

        logger.info(f"User {actor.id} rejected request {request_id}")
        return request

    def list_pending_join_requests(self, actor: Actor, group_id: int) -> List[JoinRequest]:
        """Owner-only: the group's PENDING requests in the order they were filed."""
        self._get_owned_group(actor, group_id)
        return self.store.list_pending_join_requests(group_id)

    # Private groups

    def invite_user_to_private_group(self, actor: Actor, group_id: int, invitee_email: str) -> InviteResponse:
        """
        Hand out the private group's standing invite code.

        A known invitee gets an Invitation record; inviting the same user
        twice raises ConflictError.

        Raises:
            NotFoundError, ForbiddenError, CapacityExceededError, ConflictError
        """
        group = self._get_owned_group(actor, group_id)

        if not group.is_private:
            raise ForbiddenError("Can only invite users to private groups")

        if not self.store.capacity.has_room(group):
            raise CapacityExceededError()

        invitee = self.store.get_user_by_email(invitee_email)
        if invitee is not None:
            with self.store.transaction():
                self.store.insert_invitation(invitee.id, group.id)

        self.notifier(invitee_email, group)

        return InviteResponse(
            group_id=group.id,
            invitee_email=invitee_email,
            invite_code=group.invite_code,
        )

    def join_private_group(self, actor: Actor, invite_code: str) -> Membership:
        """
        Join the private group holding ``invite_code``.

        Raises:
            NotFoundError: No group has this code
            AlreadyMemberError: Actor already belongs to a group
            CapacityExceededError: Group is full
        """
        group = self.store.get_group_by_invite_code(invite_code)
        if group is None:
            raise NotFoundError("Invalid invite code")

        if self.store.get_active_membership(actor.id) is not None:
            raise AlreadyMemberError()

        if not self.store.capacity.has_room(group):
            raise CapacityExceededError()

        with self.store.transaction():
            membership = self.store.insert_membership(actor.id, group.id)

        logger.info(f"User {actor.id} joined private group {group.id} via invite code")
        return membership

    # Members

    def list_group_members(self, actor: Actor, group_id: int) -> List[GroupMemberResponse]:
        """Owner-only: members of the group with their join dates."""
        self._get_owned_group(actor, group_id)

        return [
            GroupMemberResponse(
                id=user.id,
                email=user.email,
                name=user.name,
                joined_at=membership.created_at,
            )
            for user, membership in self.store.list_members(group_id)
        ]

    def remove_member(self, actor: Actor, group_id: int, target_user_id: int) -> None:
        """
        Owner removes another member from the group.

        Raises:
            NotFoundError: Group missing, or target is not a member of it
            ForbiddenError: Actor does not own the group
            SelfRemovalError: Owner targeted themselves
        """
        self._get_owned_group(actor, group_id)

        if target_user_id == actor.id:
            raise SelfRemovalError()

        if self.store.get_membership(target_user_id, group_id) is None:
            raise NotFoundError("User is not a member of this group")

        with self.store.transaction():
            self.store.delete_membership(target_user_id, group_id)

        logger.info(f"User {actor.id} removed user {target_user_id} from group {group_id}")

    def leave_group(self, actor: Actor) -> None:
        """
        Leave the actor's current group.

        Raises:
            NotAMemberError: Actor belongs to no group
            OwnerCannotLeaveError: Actor owns the group
        """
        membership = self.store.get_active_membership(actor.id)
        if membership is None:
            raise NotAMemberError()

        group_id = membership.group_id
        group = self._get_group_or_404(group_id)
        if group.owner_id == actor.id:
            raise OwnerCannotLeaveError()

        with self.store.transaction():
            self.store.delete_membership(actor.id, group_id)

        logger.info(f"User {actor.id} left group {group_id}")

    # Helpers

    def _insert_group_with_owner(self, actor: Actor, group_data: GroupCreate, invite_code: Optional[str]) -> Group:
        """Insert the group and its owner's membership as one transaction."""
        with self.store.transaction():
            group = self.store.insert_group(
                owner_id=actor.id,
                name=group_data.name,
                description=group_data.description,
                max_capacity=group_data.max_capacity,
                visibility=group_data.visibility,
                invite_code=invite_code,
            )
            self.store.insert_membership(actor.id, group.id)
        return group

    def _get_group_or_404(self, group_id: int) -> Group:
        group = self.store.get_group(group_id)
        if group is None:
            raise NotFoundError("Group not found")
        return group

    def _get_owned_group(self, actor: Actor, group_id: int) -> Group:
        group = self._get_group_or_404(group_id)
        if group.owner_id != actor.id:
            raise ForbiddenError()
        return group

    def _get_owned_pending_request(self, actor: Actor, request_id: int):
        request = self.store.get_join_request_by_id(request_id)
        if request is None:
            raise NotFoundError("Join request not found")

        group = self._get_owned_group(actor, request.group_id)
        self.store.requests.ensure_pending(request)
        return request, group

    def _reject_stale_request(self, request_id: int, user_id: int) -> ConflictError:
        """
        Commit the rejection of a request whose user already joined a group.

        Returns the ConflictError for the caller to raise. If the request was
        decided concurrently, AlreadyProcessedError propagates instead.
        """
        with self.store.transaction():
            self.store.set_join_request_status(request_id, RequestStatus.REJECTED)

        logger.warning(f"Request {request_id} auto-rejected: user {user_id} already belongs to a group")
        return ConflictError("User is already a member of another group")
