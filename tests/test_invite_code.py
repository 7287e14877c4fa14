"""Tests for invite code generation."""

import pytest
from sqlalchemy.exc import IntegrityError

from cohort.core.errors import ErrorKind, InviteCodeGenerationError
from cohort.models.group import GroupVisibility
from cohort.utils import invite_code as invite_code_module
from cohort.utils.invite_code import (
    INVITE_CODE_ALPHABET,
    generate_invite_code,
    generate_unique_invite_code,
)


def test_default_code_is_eight_uppercase_alphanumerics():
    code = generate_invite_code()
    assert len(code) == 8
    assert all(ch in INVITE_CODE_ALPHABET for ch in code)
    assert code == code.upper()


def test_custom_length():
    assert len(generate_invite_code(12)) == 12


def test_unique_code_skips_taken_codes():
    seen = []

    def code_exists(code):
        seen.append(code)
        # First two candidates collide
        return len(seen) <= 2

    code = generate_unique_invite_code(code_exists, max_attempts=5)

    assert len(seen) == 3
    assert code == seen[-1]


def test_unique_code_gives_up_after_max_attempts():
    calls = []

    def code_exists(code):
        calls.append(code)
        return True

    with pytest.raises(InviteCodeGenerationError) as exc_info:
        generate_unique_invite_code(code_exists, max_attempts=5)

    assert len(calls) == 5
    assert exc_info.value.kind == ErrorKind.GENERATION_FAILURE


def test_create_private_group_fails_when_codes_exhausted(coordinator, owner, group_payload, monkeypatch):
    monkeypatch.setattr(coordinator.store, "invite_code_exists", lambda code: True)

    with pytest.raises(InviteCodeGenerationError):
        coordinator.create_group(owner, group_payload(GroupVisibility.PRIVATE))

    # Nothing was persisted and the owner is still free to create a group
    assert coordinator.get_my_group(owner) is None


def test_code_taken_at_insert_is_retried(coordinator, private_group, alice, group_payload, monkeypatch, caplog):
    taken = private_group.invite_code
    candidates = iter([taken, "FRESH001"])
    # The uniqueness check goes stale: it misses the code already stored
    monkeypatch.setattr(coordinator.store, "invite_code_exists", lambda code: False)
    monkeypatch.setattr(invite_code_module, "generate_invite_code", lambda length=8: next(candidates))

    group = coordinator.create_group(alice, group_payload(GroupVisibility.PRIVATE, name="Second"))

    assert group.invite_code == "FRESH001"
    assert group.member_count == 1
    assert coordinator.get_my_group(alice).id == group.id
    assert "Invite code taken at insert on attempt 1/5" in caplog.text


def test_codes_taken_at_every_insert_give_up(coordinator, private_group, alice, group_payload, monkeypatch):
    taken = private_group.invite_code
    calls = []

    def generate(length=8):
        calls.append(taken)
        return taken

    monkeypatch.setattr(coordinator.store, "invite_code_exists", lambda code: False)
    monkeypatch.setattr(invite_code_module, "generate_invite_code", generate)

    with pytest.raises(InviteCodeGenerationError):
        coordinator.create_group(alice, group_payload(GroupVisibility.PRIVATE, name="Second"))

    assert len(calls) == 5
    assert coordinator.get_my_group(alice) is None
    assert coordinator.store.count_active_memberships(private_group.id) == 1


@pytest.mark.parametrize(
    "max_capacity,visibility",
    [
        # Capacity below the CHECK range
        (1, GroupVisibility.PRIVATE),
        # Invite code on a public group
        (5, GroupVisibility.PUBLIC),
    ],
)
def test_other_integrity_errors_are_not_collisions(store, owner, max_capacity, visibility):
    with pytest.raises(IntegrityError):
        with store.transaction():
            store.insert_group(
                owner_id=owner.id,
                name="Bad Group",
                max_capacity=max_capacity,
                visibility=visibility,
                invite_code="ABCD1234",
            )

    assert not store.invite_code_exists("ABCD1234")
