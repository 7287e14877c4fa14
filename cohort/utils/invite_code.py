"""Utility functions for generating group invite codes."""

import logging
import secrets
import string
from typing import Callable

from cohort.core.errors import InviteCodeGenerationError

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: int = 8) -> str:
    """
    Generate a random invite code using uppercase letters and digits.

    Args:
        length: Length of the invite code (default: 8)

    Returns:
        Random invite code string

    Example:
        >>> code = generate_invite_code()
        >>> len(code)
        8
        >>> code = generate_invite_code(12)
        >>> len(code)
        12
    """
    return ''.join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def generate_unique_invite_code(
    code_exists: Callable[[str], bool],
    length: int = 8,
    max_attempts: int = 5,
) -> str:
    """
    Generate an invite code not yet assigned to any group.

    Args:
        code_exists: Returns True if a group already holds the code
        length: Length of the invite code
        max_attempts: Number of candidates to try before giving up

    Returns:
        An invite code that was free at the time of the check

    Raises:
        InviteCodeGenerationError: If every candidate collided
    """
    for attempt in range(1, max_attempts + 1):
        invite_code = generate_invite_code(length)
        if not code_exists(invite_code):
            return invite_code
        logger.warning(f"Invite code collision on attempt {attempt}/{max_attempts}")

    logger.error(f"Failed to generate unique invite code after {max_attempts} attempts")
    raise InviteCodeGenerationError()
