import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from db.base import Base

import models  # noqa: F401

from main import app
from api.deps import get_db, get_current_user
from models.enums import UserRole
from models.orm_user import UserEntity
from services import notifier, subscription_service
from services.plan_service import seed_default_plans


@pytest.fixture(scope="session")
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=eng)
    return eng


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=connection)
    db = TestingSessionLocal()

    nested = connection.begin_nested()

    from sqlalchemy import event

    @event.listens_for(db, "after_transaction_end")
    def restart_savepoint(session, trans):
        nonlocal nested
        if nested.is_active:
            return
        if connection.closed:
            return
        nested = connection.begin_nested()

    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def sent_messages(monkeypatch):
    """Captures notifier messages instead of talking to RabbitMQ."""
    sent = []

    def _send(messages, channel=None):
        sent.extend(messages)

    monkeypatch.setattr(notifier, "send_messages", _send)
    return sent


@pytest.fixture()
def plans(db_session):
    seed_default_plans(db_session)
    return db_session


def _make_user(db, username, role):
    user = UserEntity(
        username=username,
        email=f"{username}@example.com",
        password_hash="x",
        role=role.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def owner(db_session):
    return _make_user(db_session, "owner", UserRole.OWNER)


@pytest.fixture()
def other_owner(db_session):
    return _make_user(db_session, "other_owner", UserRole.OWNER)


@pytest.fixture()
def admin(db_session):
    return _make_user(db_session, "admin", UserRole.ADMIN)


@pytest.fixture()
def traveler(db_session):
    return _make_user(db_session, "traveler", UserRole.TRAVELER)


@pytest.fixture()
def subscribe(plans):
    """Puts a user on a plan: ``subscribe(user, "basic-monthly")``."""

    def _subscribe(user, plan_code="basic-monthly", **kwargs):
        return subscription_service.subscribe(plans, user.id, plan_code, **kwargs)

    return _subscribe


@pytest.fixture()
def client(db_session):
    def _get_db_override():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_override

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def login_as():
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user

    return _login


@pytest.fixture()
def owner_client(client, login_as, owner, subscribe):
    subscribe(owner, "basic-monthly")
    login_as(owner)
    return client

