"""Shared test fixtures."""
import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# In-memory SQLite for tests; must be set before the package reads its settings
TEST_DB_URL = "sqlite://"
os.environ["TEAMTASK_DATABASE_URL"] = TEST_DB_URL
os.environ["TEAMTASK_LOG_LEVEL"] = "WARNING"
os.environ["TEAMTASK_ATTACHMENT_MAX_FILES_PER_TASK"] = "3"

from teamtask_core import models  # noqa: E402
from teamtask_core.api.main import app  # noqa: E402
from teamtask_core.database import get_db  # noqa: E402
from teamtask_core.models import Base  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_engine):
    """HTTP test client with the database dependency pointed at the test engine."""
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_user(db):
    """Create a user directly in the database."""
    counter = {"n": 0}

    def _make(
        name: str = None,
        role: models.SystemRole = models.SystemRole.MEMBER,
        status: models.UserStatus = models.UserStatus.ACTIVE,
    ) -> models.User:
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        user = models.User(email=f"{name}@example.com", first_name=name.title(), role=role, status=status)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_team(db):
    """Create an ACTIVE team with ``owner`` as its OWNER member."""

    def _make(owner: models.User, name: str = "Platform") -> models.Team:
        team = models.Team(name=name, owner_id=owner.id, status=models.TeamStatus.ACTIVE)
        db.add(team)
        db.flush()
        db.add(models.TeamMember(team_id=team.id, user_id=owner.id, role=models.TeamRole.OWNER))
        db.commit()
        db.refresh(team)
        return team

    return _make


@pytest.fixture
def add_member(db):
    """Put a user on a team's roster."""

    def _add(
        team: models.Team,
        user: models.User,
        role: models.TeamRole = models.TeamRole.MEMBER,
        status: models.TeamMemberStatus = models.TeamMemberStatus.ACTIVE,
    ) -> models.TeamMember:
        member = models.TeamMember(team_id=team.id, user_id=user.id, role=role, status=status)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _add


@pytest.fixture
def make_project(db):
    def _make(
        team: models.Team,
        name: str = "Roadmap",
        status: models.ProjectStatus = models.ProjectStatus.ACTIVE,
    ) -> models.Project:
        project = models.Project(team_id=team.id, name=name, status=status)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make


@pytest.fixture
def make_task(db):
    def _make(
        project: models.Project,
        title: str = "Write docs",
        status: models.TaskStatus = models.TaskStatus.TO_DO,
        assigned_to: int = None,
    ) -> models.Task:
        task = models.Task(project_id=project.id, title=title, status=status, assigned_to=assigned_to)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make


@pytest.fixture
def world(make_user, make_team, add_member, make_project, make_task):
    """
    A small tenant: one team with an owner, a team admin and a member, one
    ACTIVE project with a task, an outsider and a system admin.
    """
    owner = make_user("owner")
    team_admin = make_user("teamadmin")
    member = make_user("member")
    outsider = make_user("outsider")
    sysadmin = make_user("sysadmin", role=models.SystemRole.ADMIN)

    team = make_team(owner)
    add_member(team, team_admin, models.TeamRole.ADMIN)
    add_member(team, member)
    project = make_project(team)
    task = make_task(project)

    class World:
        pass

    w = World()
    w.owner, w.team_admin, w.member, w.outsider, w.sysadmin = owner, team_admin, member, outsider, sysadmin
    w.team, w.project, w.task = team, project, task
    return w


@pytest.fixture
def future():
    """A date comfortably in the future."""
    return datetime(datetime.utcnow().year + 2, 1, 1)
