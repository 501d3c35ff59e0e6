import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.db import create_db_and_tables, enable_sqlite_foreign_keys, get_session
from app.main import app
from app.models.item import Item, ItemType
from app.models.user import User


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    create_db_and_tables(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def get_test_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_test_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    def _make_user(name="Asha", email=None, phone=None):
        user = User(
            public_id=uuid.uuid4().hex,
            name=name,
            email=email or f"{name.lower()}-{uuid.uuid4().hex[:6]}@example.com",
            phone=phone,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_item(session):
    def _make_item(user, item_type="found", **fields):
        defaults = {
            "title": "Phone",
            "category": "Mobile",
            "description": "",
            "city": "Pune",
            "area": "Kothrud",
        }
        defaults.update(fields)
        item = Item(user_id=user.id, type=ItemType(item_type), **defaults)
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    return _make_item


def auth_headers(user):
    token = jwt.encode(
        {
            "sub": user.public_id,
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        os.environ["JWT_SECRET"],
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}
