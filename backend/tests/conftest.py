import os

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", SQLALCHEMY_DATABASE_URL)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from roomsplit.database import Base, get_db
from roomsplit.main import app
from roomsplit.models import User, Room, Membership, MemberRole, Round, RoundStatus

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


def register(client, email, name=None):
    res = client.post("/api/auth/register", json={
        "email": email, "password": "testpass123", "name": name
    })
    data = res.json()
    return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]["id"]


@pytest.fixture
def auth_headers(client):
    headers, _ = register(client, "test@example.com", "Test User")
    return headers


@pytest.fixture
def user_id(client, auth_headers):
    return client.get("/api/auth/me", headers=auth_headers).json()["id"]


@pytest.fixture
def second_user(client):
    headers, uid = register(client, "user2@example.com", "User Two")
    return {"headers": headers, "id": uid}


@pytest.fixture
def third_user(client):
    headers, uid = register(client, "user3@example.com", "User Three")
    return {"headers": headers, "id": uid}


@pytest.fixture
def outsider(client):
    headers, uid = register(client, "outsider@example.com", "Outsider")
    return {"headers": headers, "id": uid}


@pytest.fixture
def room_id(client, auth_headers):
    res = client.post("/api/rooms", json={"name": "Flat 4B"}, headers=auth_headers)
    return res.json()["id"]


# ----- direct database fixtures for engine tests -----
@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def other_db():
    """A second, independent session for simulating a concurrent request."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_room(db):
    """Room with the given number of members and one OPEN round. Returns (room, round, user_ids)."""
    def _make(member_count=3, name="Room"):
        room = Room(name=name)
        db.add(room)
        db.flush()
        user_ids = []
        for i in range(member_count):
            user = User(email=f"{name.lower()}{i}@example.com", hashed_password="x", name=f"Member {i}")
            db.add(user)
            db.flush()
            role = MemberRole.ADMIN if i == 0 else MemberRole.MEMBER
            db.add(Membership(user_id=user.id, room_id=room.id, role=role))
            user_ids.append(user.id)
        rnd = Round(room_id=room.id, status=RoundStatus.OPEN)
        db.add(rnd)
        db.commit()
        return room, rnd, user_ids
    return _make
