# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from typing import Any

import pytest
from botocore.exceptions import ClientError
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from ripple_stage.core.security import create_access_token, hash_password
from ripple_stage.db.session import Base, Database
from ripple_stage.db.session import get_db as app_get_session
from ripple_stage.main import create_app
from ripple_stage.models import User
from ripple_stage.services.media import MediaStore, get_media_store

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "password123"


class FakeS3Client:
    """Records S3 calls; keys listed in ``failing_keys`` raise ``ClientError``."""

    def __init__(self) -> None:
        self.deleted: list[str] = []
        self.failing_keys: set[str] = set()
        self.presigned: list[dict[str, Any]] = []

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:  # noqa: N803
        if Key in self.failing_keys:
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
                "DeleteObject",
            )
        self.deleted.append(Key)
        return {}

    def generate_presigned_url(self, ClientMethod: str, Params: dict[str, Any], ExpiresIn: int) -> str:  # noqa: N803
        self.presigned.append(Params)
        return f"https://uploads.test/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app(engine: Engine) -> FastAPI:
    return create_app(Database(TEST_DB_URL, engine=engine))


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture()
def media_store(s3_client: FakeS3Client) -> MediaStore:
    """Media store backed by the recording S3 client."""
    return MediaStore("test-bucket", region="eu-west-1", client=s3_client)


@pytest.fixture(autouse=True)
def override_media_store(app: FastAPI, media_store: MediaStore) -> Iterator[None]:
    app.dependency_overrides[get_media_store] = lambda: media_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_media_store, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_user(db_session: Session, username: str) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return the primary test user."""
    return make_user(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return make_user(db_session, "bob")


@pytest.fixture()
def third_user(db_session: Session) -> User:
    """Create and return a third persisted user."""
    return make_user(db_session, "carol")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user)


@pytest.fixture()
def third_auth_token(third_user: User) -> dict[str, str]:
    """Return authorization headers for the third test user."""
    return auth_headers(third_user)
