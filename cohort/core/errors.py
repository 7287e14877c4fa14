"""
Domain-specific errors for group membership.

These represent business rule violations. The membership core raises them
and the HTTP layer converts each ``kind`` into a response status.
"""

import enum


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    OWNER_CANNOT_LEAVE = "OWNER_CANNOT_LEAVE"
    SELF_REMOVAL = "SELF_REMOVAL"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    GENERATION_FAILURE = "GENERATION_FAILURE"
    VALIDATION = "VALIDATION"


class MembershipError(Exception):
    """Base exception for all membership errors."""

    kind: ErrorKind = ErrorKind.CONFLICT
    default_message = "Membership operation failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind.value}, message={self.message!r})>"


class NotFoundError(MembershipError):
    """Raised when a group, join request or membership does not exist."""
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class AlreadyMemberError(MembershipError):
    """Raised when a user who already belongs to a group tries to join another."""
    kind = ErrorKind.ALREADY_MEMBER
    default_message = "User is already a member of a group"


class CapacityExceededError(MembershipError):
    """Raised when a group has reached its maximum capacity."""
    kind = ErrorKind.CAPACITY_EXCEEDED
    default_message = "Group has reached maximum capacity"


class DuplicateRequestError(MembershipError):
    """Raised when a pending join request already exists for the user and group."""
    kind = ErrorKind.DUPLICATE_REQUEST
    default_message = "Join request already submitted"


class AlreadyProcessedError(MembershipError):
    """Raised when a join request is no longer pending."""
    kind = ErrorKind.ALREADY_PROCESSED
    default_message = "Join request has already been processed"


class ConflictError(MembershipError):
    """Raised when state changed between validation and commit."""
    kind = ErrorKind.CONFLICT
    default_message = "Conflicting change"


class InviteCodeCollisionError(ConflictError):
    """Raised when another group claimed the invite code between check and insert."""
    default_message = "Invite code already in use"


class ForbiddenError(MembershipError):
    """Raised when the actor lacks ownership or attempts a disallowed action."""
    kind = ErrorKind.FORBIDDEN
    default_message = "Insufficient permissions to perform this action"


class OwnerCannotLeaveError(MembershipError):
    """Raised when a group owner tries to leave their group."""
    kind = ErrorKind.OWNER_CANNOT_LEAVE
    default_message = (
        "Group owner cannot leave the group. "
        "Transfer ownership or delete the group first."
    )


class SelfRemovalError(MembershipError):
    """Raised when an owner tries to remove themselves through member removal."""
    kind = ErrorKind.SELF_REMOVAL
    default_message = "Cannot remove yourself from the group"


class NotAMemberError(MembershipError):
    """Raised when an action requires a membership the actor does not have."""
    kind = ErrorKind.NOT_A_MEMBER
    default_message = "You are not a member of any group"


class InviteCodeGenerationError(MembershipError):
    """Raised when no unique invite code could be generated."""
    kind = ErrorKind.GENERATION_FAILURE
    default_message = "Failed to generate unique invite code"


class ValidationError(MembershipError):
    """Raised when operation arguments fall outside the allowed range."""
    kind = ErrorKind.VALIDATION
    default_message = "Invalid arguments"
