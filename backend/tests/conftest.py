import os

# Keep the app module from touching a file database or seeding demo data.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_SEED_ON_EMPTY", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gamenight import models
from gamenight.database import Base, get_db, make_engine
from gamenight.main import app
from gamenight.storage import SqlLeagueStore


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    session_factory = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    Base.metadata.create_all(bind=engine)
    return session_factory


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    return SqlLeagueStore(db)


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def seed_league(session_factory) -> dict[str, int]:
    """One group with four members, two games and a 7 Wonders-style template."""
    with session_factory() as db:
        alice = models.User(name="Alice", email="alice@example.com")
        bob = models.User(name="Bob")
        carol = models.User(name="Carol")
        guest = models.User(name="Guest Dan", is_guest=True)
        db.add_all([alice, bob, carol, guest])
        db.flush()

        group = models.Group(name="Board Game Night")
        group.members = [
            models.GroupMember(user_id=alice.id, role="ADMIN"),
            models.GroupMember(user_id=bob.id, role="MEMBER"),
            models.GroupMember(user_id=carol.id, role="MEMBER"),
            models.GroupMember(user_id=guest.id, role="MEMBER"),
        ]
        other_group = models.Group(name="Office League")
        other_group.members = [models.GroupMember(user_id=bob.id, role="ADMIN")]

        wonders = models.Game(name="7 Wonders")
        arnak = models.Game(name="Lost Ruins of Arnak")
        db.add_all([group, other_group, wonders, arnak])
        db.flush()

        template = models.ScoreTemplate(
            game_id=wonders.id,
            name="Base Game",
            fields=[
                {"key": "military", "label": "Military", "type": "number", "multiplier": 1},
                {"key": "wonders", "label": "Wonders", "type": "number", "multiplier": 1},
                {"key": "science", "label": "Science", "type": "number", "multiplier": 2},
            ],
        )
        arnak_template = models.ScoreTemplate(
            game_id=arnak.id,
            name="Base Game",
            fields=[{"key": "research", "label": "Research", "type": "number", "multiplier": 1}],
        )
        db.add_all([template, arnak_template])
        db.commit()

        return {
            "alice": alice.id,
            "bob": bob.id,
            "carol": carol.id,
            "guest": guest.id,
            "group": group.id,
            "other_group": other_group.id,
            "wonders": wonders.id,
            "arnak": arnak.id,
            "template": template.id,
            "arnak_template": arnak_template.id,
        }


@pytest.fixture()
def ids(session_factory) -> dict[str, int]:
    return seed_league(session_factory)
