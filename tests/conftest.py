"""
pytest configuration and shared fixtures for Cohort tests
"""

import itertools
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import cohort.models  # noqa: E402,F401
from cohort.database import Base, make_engine  # noqa: E402
from cohort.models.group import GroupVisibility  # noqa: E402
from cohort.models.user import User  # noqa: E402
from cohort.repositories.group_store import GroupStore  # noqa: E402
from cohort.schemas.group import GroupCreate  # noqa: E402
from cohort.schemas.user import Actor  # noqa: E402
from cohort.services.coordinator import MembershipCoordinator  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    """Fresh file-backed SQLite database so worker threads share one store."""
    engine = make_engine(f"sqlite:///{tmp_path / 'cohort_test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return GroupStore(db)


@pytest.fixture
def coordinator(store):
    return MembershipCoordinator(store)


@pytest.fixture
def make_actor(session_factory):
    """Create a user row and return it as an Actor."""
    counter = itertools.count(1)

    def _make(name: str = None) -> Actor:
        n = next(counter)
        name = name or f"user{n}"
        with session_factory() as session:
            user = User(email=f"{name.lower()}@example.com", name=name)
            session.add(user)
            session.commit()
            return Actor(id=user.id, email=user.email)

    return _make


@pytest.fixture
def owner(make_actor):
    return make_actor("Owner")


@pytest.fixture
def alice(make_actor):
    return make_actor("Alice")


@pytest.fixture
def bob(make_actor):
    return make_actor("Bob")


@pytest.fixture
def carol(make_actor):
    return make_actor("Carol")


def _group_payload(
    visibility: GroupVisibility = GroupVisibility.PUBLIC,
    max_capacity: int = 10,
    name: str = "Book Lovers Club",
    description: str = None,
) -> GroupCreate:
    return GroupCreate(
        name=name,
        description=description,
        max_capacity=max_capacity,
        visibility=visibility,
    )


@pytest.fixture
def group_payload():
    """Factory for GroupCreate payloads."""
    return _group_payload


@pytest.fixture
def public_group(coordinator, owner):
    return coordinator.create_group(owner, _group_payload(GroupVisibility.PUBLIC, max_capacity=3))


@pytest.fixture
def private_group(coordinator, owner):
    return coordinator.create_group(owner, _group_payload(GroupVisibility.PRIVATE, max_capacity=3))
