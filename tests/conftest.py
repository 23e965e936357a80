"""
Test configuration and fixtures for UpTask tests.

Provides:
- Test database with SQLite in-memory for speed
- FastAPI test client with database and mail dependency overrides
- A recording notification sender standing in for SMTP
- Authentication helpers (JWT token generation)
- Common fixtures for users, projects and tasks
"""

import logging
import os
from typing import Generator, List

# Settings are read at import time, so they must be in place before uptask loads
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from uptask import models
from uptask.auth.security import create_access_token, hash_password
from uptask.database import Base, get_db
from uptask.main import app
from uptask.notifications import (
    BackgroundNotificationSender,
    Notification,
    NotificationSender,
    get_notification_sender,
)

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

# SQLite in-memory database for fast testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

DEFAULT_PASSWORD = "password123"


class RecordingNotificationSender(NotificationSender):
    """Keeps every notification instead of mailing it."""

    def __init__(self):
        self.sent: List[Notification] = []

    def send(self, notification: Notification) -> None:
        self.sent.append(notification)

    @property
    def last(self) -> Notification:
        return self.sent[-1]


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.

    This ensures test isolation and fast execution.
    """
    logger.debug("Creating test database")

    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        logger.debug("Test database cleaned up")


@pytest.fixture(scope="function")
def outbox() -> RecordingNotificationSender:
    return RecordingNotificationSender()


@pytest.fixture(scope="function")
def client(test_db: Session, outbox: RecordingNotificationSender) -> TestClient:
    """
    Create FastAPI test client with database and mail dependency overrides.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sender] = lambda: outbox

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def mail_client(test_db: Session, outbox: RecordingNotificationSender) -> TestClient:
    """
    Test client that keeps the production mail path: routes queue mail on the
    request's BackgroundTasks and outbox only sees what actually gets delivered.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    def override_sender(background_tasks: BackgroundTasks) -> NotificationSender:
        return BackgroundNotificationSender(background_tasks, outbox)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sender] = override_sender

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(
    db: Session,
    name: str,
    email: str,
    password: str = DEFAULT_PASSWORD,
    confirmed: bool = True,
) -> models.User:
    user = models.User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        confirmed=confirmed,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {email} with ID: {user.id}")
    return user


@pytest.fixture(scope="function")
def manager_user(test_db: Session) -> models.User:
    """User who creates the shared test project."""
    return make_user(test_db, "Manager User", "manager@uptask.com")


@pytest.fixture(scope="function")
def collaborator_user(test_db: Session) -> models.User:
    return make_user(test_db, "Collaborator User", "collaborator@uptask.com")


@pytest.fixture(scope="function")
def outsider_user(test_db: Session) -> models.User:
    """Confirmed user with no role in any fixture project."""
    return make_user(test_db, "Outsider User", "outsider@uptask.com")


@pytest.fixture(scope="function")
def project(test_db: Session, manager_user: models.User) -> models.Project:
    """
    Create a project managed by manager_user, with no collaborators.
    """
    logger.debug("Creating test project")
    project = models.Project(
        project_name="Website Redesign",
        client_name="Acme Corp",
        description="Refresh the marketing site",
        created_by=manager_user.id,
    )
    project.members.append(models.ProjectMember(user_id=manager_user.id, role=models.ProjectRole.manager))
    test_db.add(project)
    test_db.commit()
    test_db.refresh(project)
    logger.info(f"Created project with ID: {project.id}")
    return project


@pytest.fixture(scope="function")
def team_project(
    test_db: Session, project: models.Project, collaborator_user: models.User
) -> models.Project:
    """The test project with collaborator_user on its team."""
    project.members.append(
        models.ProjectMember(user_id=collaborator_user.id, role=models.ProjectRole.collaborator)
    )
    test_db.commit()
    test_db.refresh(project)
    return project


@pytest.fixture(scope="function")
def task(test_db: Session, team_project: models.Project) -> models.Task:
    """A pending task in team_project."""
    task = models.Task(
        project_id=team_project.id,
        name="Design landing page",
        description="Hero section and call to action",
        status=models.TaskStatus.pending,
    )
    test_db.add(task)
    test_db.commit()
    test_db.refresh(task)
    logger.info(f"Created task with ID: {task.id}")
    return task


def create_auth_token(user: models.User) -> str:
    """
    Create a JWT access token for a user.

    Args:
        user: User model instance

    Returns:
        JWT access token string
    """
    return create_access_token({"sub": user.id})


def auth_headers(user: models.User) -> dict:
    return {"Authorization": f"Bearer {create_auth_token(user)}"}
