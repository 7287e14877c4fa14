"""Tests for capacity-checked admission."""

import pytest

from cohort.core.errors import AlreadyMemberError, CapacityExceededError
from cohort.models.group import GroupVisibility


@pytest.fixture
def small_group(store, owner):
    """Public group with two seats and no members yet."""
    with store.transaction():
        group = store.insert_group(
            owner_id=owner.id,
            name="Two Seats",
            max_capacity=2,
            visibility=GroupVisibility.PUBLIC,
        )
    return group


def test_admit_claims_a_seat(store, small_group, alice):
    with store.transaction():
        membership = store.insert_membership(alice.id, small_group.id)

    assert membership.user_id == alice.id
    assert membership.group_id == small_group.id
    assert store.count_active_memberships(small_group.id) == 1
    assert store.get_group(small_group.id).member_count == 1


def test_admit_refuses_when_full_and_rolls_back(store, small_group, alice, bob, carol):
    with store.transaction():
        store.insert_membership(alice.id, small_group.id)
        store.insert_membership(bob.id, small_group.id)

    with pytest.raises(CapacityExceededError):
        with store.transaction():
            store.insert_membership(carol.id, small_group.id)

    assert store.count_active_memberships(small_group.id) == 2
    assert store.get_group(small_group.id).member_count == 2
    assert store.get_active_membership(carol.id) is None


def test_admit_refuses_second_membership_and_returns_seat(store, small_group, owner, alice):
    with store.transaction():
        other = store.insert_group(
            owner_id=owner.id,
            name="Other",
            max_capacity=5,
            visibility=GroupVisibility.PUBLIC,
        )
        store.insert_membership(alice.id, other.id)

    with pytest.raises(AlreadyMemberError):
        with store.transaction():
            store.insert_membership(alice.id, small_group.id)

    # The counter increment was rolled back with the failed insert
    assert store.get_group(small_group.id).member_count == 0
    assert store.get_active_membership(alice.id).group_id == other.id


def test_release_is_idempotent(store, small_group, alice):
    with store.transaction():
        store.insert_membership(alice.id, small_group.id)

    with store.transaction():
        assert store.delete_membership(alice.id, small_group.id) is True
    with store.transaction():
        assert store.delete_membership(alice.id, small_group.id) is False

    assert store.get_group(small_group.id).member_count == 0
    assert store.count_active_memberships(small_group.id) == 0


def test_released_seat_can_be_reused(store, small_group, alice, bob, carol):
    with store.transaction():
        store.insert_membership(alice.id, small_group.id)
        store.insert_membership(bob.id, small_group.id)

    with store.transaction():
        store.delete_membership(bob.id, small_group.id)

    with store.transaction():
        store.insert_membership(carol.id, small_group.id)

    assert store.count_active_memberships(small_group.id) == 2
    assert store.capacity.has_room(store.get_group(small_group.id)) is False
