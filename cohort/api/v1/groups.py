"""Group membership endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from cohort.api.deps import get_coordinator, get_current_actor
from cohort.schemas.group import (
    GroupCreate,
    GroupMemberResponse,
    GroupPage,
    GroupResponse,
    InviteResponse,
    InviteUser,
    MembershipResponse,
    PrivateGroupJoin,
)
from cohort.schemas.join_request import JoinRequestResponse, PendingJoinRequestResponse
from cohort.schemas.user import Actor
from cohort.services.coordinator import MembershipCoordinator

router = APIRouter()


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    group_data: GroupCreate,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Create a new group.

    The authenticated user becomes the owner and first member of the group.
    Private groups get an invite code.

    Args:
        group_data: Name, description, capacity and visibility
        actor: Authenticated user
        coordinator: Membership service

    Returns:
        Created group
    """
    return coordinator.create_group(actor, group_data)


@router.get("/search", response_model=GroupPage)
def search_public_groups(
    name: Optional[str] = Query(None, description="Case-insensitive name filter"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Search public groups, newest first.

    Args:
        name: Optional substring of the group name
        page: 1-based page number
        limit: Page size

    Returns:
        One page of groups with the total count
    """
    return coordinator.search_public_groups(name=name, page=page, limit=limit)


@router.get("/me", response_model=Optional[GroupResponse])
def get_my_group(
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """Get the group the current user belongs to, or null."""
    return coordinator.get_my_group(actor)


@router.delete("/me/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_group(
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Leave the current group.

    Owners cannot leave their own group.
    """
    coordinator.leave_group(actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/join/private", response_model=MembershipResponse)
def join_private_group(
    join_data: PrivateGroupJoin,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Join a private group using an invite code.

    Args:
        join_data: Contains the invite code
        actor: Authenticated user
        coordinator: Membership service

    Returns:
        The new membership
    """
    return coordinator.join_private_group(actor, join_data.invite_code)


@router.put("/join-requests/{request_id}/approve", response_model=MembershipResponse)
def approve_join_request(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Approve a pending join request (owner only).

    Returns:
        The requester's new membership
    """
    return coordinator.approve_join_request(actor, request_id)


@router.put("/join-requests/{request_id}/reject", response_model=JoinRequestResponse)
def reject_join_request(
    request_id: int,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """Reject a pending join request (owner only)."""
    return coordinator.reject_join_request(actor, request_id)


@router.post("/{group_id}/join", response_model=JoinRequestResponse, status_code=status.HTTP_201_CREATED)
def request_to_join(
    group_id: int,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Request to join a public group.

    Args:
        group_id: ID of the group
        actor: Authenticated user
        coordinator: Membership service

    Returns:
        The pending join request
    """
    return coordinator.request_to_join(actor, group_id)


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
def list_group_members(
    group_id: int,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """List all members of a group (owner only)."""
    return coordinator.list_group_members(actor, group_id)


@router.get("/{group_id}/join-requests", response_model=List[PendingJoinRequestResponse])
def list_pending_join_requests(
    group_id: int,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """List pending join requests in the order they were filed (owner only)."""
    return coordinator.list_pending_join_requests(actor, group_id)


@router.post("/{group_id}/invite", response_model=InviteResponse)
def invite_user_to_private_group(
    group_id: int,
    invite_data: InviteUser,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Invite a user to a private group (owner only).

    Returns:
        The group's invite code for delivery to the invitee
    """
    return coordinator.invite_user_to_private_group(actor, group_id, invite_data.email)


@router.delete("/{group_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    group_id: int,
    user_id: int,
    actor: Actor = Depends(get_current_actor),
    coordinator: MembershipCoordinator = Depends(get_coordinator)
):
    """
    Remove a member from a group (owner only).

    Owners cannot remove themselves.
    """
    coordinator.remove_member(actor, group_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
