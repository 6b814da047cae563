"""SQLAlchemy database models.

Entities reference each other by integer id only. Parent/child lookups go
through ``lookup`` rather than traversable relationships.
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    BigInteger,
    DateTime,
    ForeignKey,
    Enum,
    Index,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import declarative_base

# Base class for all models
Base = declarative_base()

# Partial-index predicate shared by the "unique among non-deleted rows" indexes
NOT_DELETED_PREDICATE = text("status != 'deleted'")


def _enum_column(enum_cls, **kwargs) -> Column:
    """Enum column persisted by value (``"to_do"``), not by member name."""
    return Column(
        Enum(enum_cls, values_callable=lambda x: [e.value for e in x], native_enum=False, length=32),
        **kwargs,
    )


# =============================================================================
# Enums
# =============================================================================


class SystemRole(str, enum.Enum):
    """System-wide user role. ADMIN bypasses most team-scoped checks."""

    MEMBER = "member"
    MANAGER = "manager"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    """User account lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class TeamStatus(str, enum.Enum):
    """Team lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class TeamRole(str, enum.Enum):
    """Per-team authorization role, distinct from the user's system role."""

    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"


class TeamMemberStatus(str, enum.Enum):
    """Roster entry status."""

    ACTIVE = "active"
    REMOVED = "removed"
    INACTIVE = "inactive"


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status.

    DELETED is reachable from every status and can be restored to PLANNED
    by a system admin.
    """

    PLANNED = "planned"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    DELETED = "deleted"


class TaskStatus(str, enum.Enum):
    """Task lifecycle status. DELETED is only reachable through task deletion."""

    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"
    BLOCKED = "blocked"
    DELETED = "deleted"


class TaskPriority(str, enum.Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CommentStatus(str, enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class AttachmentStatus(str, enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """
    User model.

    Credentials live with the authentication provider; users are matched to
    the authenticated principal by email.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = _enum_column(SystemRole, nullable=False, default=SystemRole.MEMBER, index=True)
    status = _enum_column(UserStatus, nullable=False, default=UserStatus.ACTIVE, index=True)

    # Audit fields
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value}, {self.status.value})>"


class Team(Base):
    """
    Team model. A team owns projects and has a roster of TeamMembers.

    Every ACTIVE team has exactly one OWNER among its active members.
    """

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = _enum_column(TeamStatus, nullable=False, default=TeamStatus.ACTIVE, index=True)

    # Audit fields
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Team {self.id} {self.name!r} ({self.status.value})>"


class TeamMember(Base):
    """Roster entry linking a user to a team with a team role."""

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = _enum_column(TeamRole, nullable=False, default=TeamRole.MEMBER, index=True)
    status = _enum_column(TeamMemberStatus, nullable=False, default=TeamMemberStatus.ACTIVE, index=True)
    joined_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    def __repr__(self) -> str:
        return f"<TeamMember team={self.team_id} user={self.user_id} {self.role.value}>"


class Project(Base):
    """Project model. Existentially owned by its team."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    status = _enum_column(ProjectStatus, nullable=False, default=ProjectStatus.PLANNED, index=True)
    start_date = Column(DateTime)
    end_date = Column(DateTime)

    # Audit fields
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    def __repr__(self) -> str:
        return f"<Project {self.id} {self.name!r} ({self.status.value})>"


class Task(Base):
    """Task model. Title is unique per project (case-insensitive) among non-deleted tasks."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = _enum_column(TaskStatus, nullable=False, default=TaskStatus.TO_DO, index=True)
    priority = _enum_column(TaskPriority, nullable=False, default=TaskPriority.MEDIUM)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    due_date = Column(DateTime)
    completed_at = Column(DateTime)

    # Audit fields
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    def __repr__(self) -> str:
        return f"<Task {self.id} {self.title!r} ({self.status.value})>"


class Comment(Base):
    """Comment on a task. ``user_id`` is the author."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    status = _enum_column(CommentStatus, nullable=False, default=CommentStatus.ACTIVE, index=True)

    # Audit fields
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    def __repr__(self) -> str:
        return f"<Comment {self.id} on task {self.task_id}>"


class Attachment(Base):
    """
    Attachment metadata. ``user_id`` is the uploader.

    File bytes live in object storage under ``object_key``; this table only
    records where they are.
    """

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    original_filename = Column(String(255), nullable=False)
    stored_filename = Column(String(255), nullable=False)
    object_key = Column(String(512), nullable=False)
    content_type = Column(String(255), nullable=False, default="application/octet-stream")
    file_size = Column(BigInteger, nullable=False)
    status = _enum_column(AttachmentStatus, nullable=False, default=AttachmentStatus.ACTIVE, index=True)

    # Audit fields
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    def __repr__(self) -> str:
        return f"<Attachment {self.id} {self.original_filename!r}>"


# =============================================================================
# Uniqueness backstops (case-insensitive, ignoring DELETED rows)
# =============================================================================
# Services check-then-write these names; the indexes are the final guard when
# two concurrent writes both pass the check.

Index(
    "uq_teams_name_not_deleted",
    func.lower(Team.name),
    unique=True,
    sqlite_where=NOT_DELETED_PREDICATE,
    postgresql_where=NOT_DELETED_PREDICATE,
)

Index(
    "uq_projects_team_name_not_deleted",
    Project.team_id,
    func.lower(Project.name),
    unique=True,
    sqlite_where=NOT_DELETED_PREDICATE,
    postgresql_where=NOT_DELETED_PREDICATE,
)

Index(
    "uq_tasks_project_title_not_deleted",
    Task.project_id,
    func.lower(Task.title),
    unique=True,
    sqlite_where=NOT_DELETED_PREDICATE,
    postgresql_where=NOT_DELETED_PREDICATE,
)
