"""SQLAlchemy models for Cohort."""

from cohort.models.user import User
from cohort.models.group import Group, GroupVisibility
from cohort.models.membership import Membership, MembershipStatus
from cohort.models.join_request import JoinRequest, RequestStatus
from cohort.models.invitation import Invitation

__all__ = [
    "User",
    "Group",
    "GroupVisibility",
    "Membership",
    "MembershipStatus",
    "JoinRequest",
    "RequestStatus",
    "Invitation",
]
