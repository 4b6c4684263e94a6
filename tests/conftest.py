import os

# Must be set before the app (and its settings) are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ["SECRET_KEY"] = "test-secret"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db, enable_sqlite_foreign_keys
from app.security.passwords import hash_password
from app.uploads.storage import get_storage
from app.users.auth import token_for_user
from app.users.models import User, Role
from app.zones.models import Zone, UserZone
from app.categories.models import Category
from app.expenses.models import Expense


class FakeStorage:
    """Records uploads and deletions instead of talking to Cloudinary."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []

    def upload(self, fileobj, folder):
        content = fileobj.read()
        self.uploads.append((folder, content))
        return f"https://res.cloudinary.com/demo/image/upload/v1/{folder}/img{len(self.uploads)}.jpg"

    def destroy(self, public_id):
        self.destroyed.append(public_id)


@pytest.fixture
def engine():
    """
    Fresh in-memory SQLite database per test, shared across threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, storage):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------- factories ----------

def make_user(db, email="user@example.com", name="User", role="user", password="secret123"):
    user = User(
        email=email,
        name=name,
        role=Role(role),
        hashed_password=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_category(db, name, creator=None):
    category = Category(name=name, created_by=creator.id if creator else None)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def make_zone(db, name, creator=None):
    zone = Zone(name=name, created_by=creator.id if creator else None)
    db.add(zone)
    db.commit()
    db.refresh(zone)
    return zone


def make_expense(db, user, category, zone, amount, when=None, description=None):
    expense = Expense(
        amount=amount,
        description=description,
        expense_date=when or datetime(2025, 1, 15, 12, 0),
        user_id=user.id,
        category_id=category.id,
        zone_id=zone.id,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def assign(db, user, zone):
    db.add(UserZone(user_id=user.id, zone_id=zone.id))
    db.commit()


def auth_headers(user):
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def admin(db):
    return make_user(db, email="admin@example.com", name="Admin", role="admin")


@pytest.fixture
def member(db):
    return make_user(db, email="member@example.com", name="Member")
