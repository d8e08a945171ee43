import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from groupsettle.database import Base, get_db
from groupsettle.main import app
from groupsettle.models import User, Group, Person, Expense, Share

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

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


@pytest.fixture
def auth_headers(client):
    client.post("/api/auth/register", json={
        "email": "test@example.com", "password": "testpass123", "name": "Test User"
    })
    res = client.post("/api/auth/login", json={
        "email": "test@example.com", "password": "testpass123"
    })
    token = res.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def second_user(client):
    res = client.post("/api/auth/register", json={
        "email": "user2@example.com", "password": "testpass123", "name": "User Two"
    })
    return res.json()["user"]


@pytest.fixture
def second_headers(client, second_user):
    res = client.post("/api/auth/login", json={
        "email": "user2@example.com", "password": "testpass123"
    })
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def trip(client, auth_headers):
    """Group "Trip" with people A, B, C; returns (group_id, {name: person_id})."""
    res = client.post("/api/groups", json={"name": "Trip", "people": ["A", "B", "C"]}, headers=auth_headers)
    data = res.json()
    return data["id"], {p["name"]: p["id"] for p in data["people"]}


# ----- direct session helpers for service tests -----

@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db):
    user = User(email="owner@example.com", hashed_password="x", name="Owner")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def ledger_group(db, owner):
    """Group owned by ``owner`` with people A, B, C; returns (group_id, {name: person_id})."""
    group = Group(name="Ledger", owner_id=owner.id)
    group.people = [Person(name=n) for n in ("A", "B", "C")]
    db.add(group)
    db.commit()
    return group.id, {p.name: p.id for p in group.people}


@pytest.fixture
def add_expense(db):
    def _add(group_id, description, amount, paid_by_id, shares):
        expense = Expense(
            group_id=group_id,
            description=description,
            amount=amount,
            paid_by_id=paid_by_id,
            split_mode="exact",
        )
        expense.shares = [Share(person_id=pid, amount=amt) for pid, amt in shares.items()]
        db.add(expense)
        db.commit()
        return expense.id

    return _add
