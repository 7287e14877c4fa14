"""FastAPI dependencies for the caller's identity and the membership service."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from cohort.core.security import decode_token
from cohort.database import get_db
from cohort.models.user import User
from cohort.repositories.group_store import GroupStore
from cohort.schemas.user import Actor
from cohort.services.coordinator import MembershipCoordinator

# OAuth2 scheme for token authentication
# Tokens are issued by the identity service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency that decodes JWT token and returns the current user.

    Args:
        token: JWT token from Authorization header
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        # Decode the JWT token
        payload = decode_token(token)
        user_id_str: str = payload.get("sub")

        if user_id_str is None:
            raise credentials_exception

        # Convert string user_id to integer
        user_id = int(user_id_str)

    except (JWTError, ValueError, TypeError):
        raise credentials_exception

    # Fetch user from database
    user = db.get(User, user_id)

    if user is None:
        raise credentials_exception

    return user


def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """The authenticated caller as seen by the membership service."""
    return Actor(id=current_user.id, email=current_user.email)


def get_coordinator(db: Session = Depends(get_db)) -> MembershipCoordinator:
    """Membership coordinator bound to the request's database session."""
    return MembershipCoordinator(GroupStore(db))
