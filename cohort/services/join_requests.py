"""Lifecycle of join requests: PENDING -> APPROVED | REJECTED."""

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from cohort.core.errors import AlreadyProcessedError
from cohort.models.join_request import JoinRequest, RequestStatus

logger = logging.getLogger(__name__)

# Only PENDING has outgoing transitions
TRANSITIONS = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}


class JoinRequestStateMachine:
    """Applies status transitions to join requests as conditional writes."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def can_transition(from_status: RequestStatus, to_status: RequestStatus) -> bool:
        return to_status in TRANSITIONS[from_status]

    @staticmethod
    def is_terminal(status: RequestStatus) -> bool:
        return not TRANSITIONS[status]

    @staticmethod
    def ensure_pending(request: JoinRequest) -> None:
        """Raise AlreadyProcessedError unless the request is still PENDING."""
        if not request.is_pending:
            raise AlreadyProcessedError()

    def transition(self, request_id: int, to_status: RequestStatus) -> None:
        """
        Move a PENDING request to ``to_status``.

        The status check and the write are one statement, so of two
        concurrent decisions on the same request exactly one wins.

        Raises:
            ValueError: ``to_status`` is not reachable from PENDING
            AlreadyProcessedError: The request is no longer PENDING
        """
        if not self.can_transition(RequestStatus.PENDING, to_status):
            raise ValueError(f"Invalid join request transition: PENDING -> {to_status.value}")

        updated = self.db.execute(
            update(JoinRequest)
            .where(
                JoinRequest.id == request_id,
                JoinRequest.status == RequestStatus.PENDING,
            )
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        ).rowcount

        if not updated:
            raise AlreadyProcessedError()

        request = self.db.identity_map.get(self.db.identity_key(JoinRequest, request_id))
        if request is not None:
            self.db.expire(request)

        logger.info(f"Join request {request_id} moved to {to_status.value}")

    def approve(self, request_id: int) -> None:
        self.transition(request_id, RequestStatus.APPROVED)

    def reject(self, request_id: int) -> None:
        self.transition(request_id, RequestStatus.REJECTED)
