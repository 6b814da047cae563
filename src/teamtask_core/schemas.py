"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .models import (
    SystemRole,
    UserStatus,
    TeamStatus,
    TeamRole,
    TeamMemberStatus,
    ProjectStatus,
    TaskStatus,
    TaskPriority,
    CommentStatus,
    AttachmentStatus,
)


# ============================================================================
# User Schemas
# ============================================================================

class UserResponse(BaseModel):
    """Schema for user responses."""

    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: SystemRole
    status: UserStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class UserRoleUpdate(BaseModel):
    """Schema for changing a user's system role."""

    role: SystemRole


# ============================================================================
# Team Schemas
# ============================================================================

class TeamBase(BaseModel):
    """Base schema for team fields."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class TeamCreate(TeamBase):
    """Schema for creating a team. The creator becomes its owner."""

    pass


class TeamUpdate(BaseModel):
    """Schema for updating a team. Status changes are owner-only."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    status: Optional[TeamStatus] = None


class TeamResponse(TeamBase):
    """Schema for team responses."""

    id: int
    owner_id: int
    status: TeamStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class TeamListResponse(BaseModel):
    """Schema for paginated team list."""

    items: list[TeamResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# Team Member Schemas
# ============================================================================

class TeamMemberCreate(BaseModel):
    """Schema for adding a user to a team."""

    user_id: int
    role: TeamRole = TeamRole.MEMBER


class TeamMemberRoleUpdate(BaseModel):
    """Schema for updating a team member's role."""

    role: TeamRole


class TeamMemberResponse(BaseModel):
    """Schema for team member responses."""

    id: int
    team_id: int
    user_id: int
    role: TeamRole
    status: TeamMemberStatus
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class MemberCountResponse(BaseModel):
    team_id: int
    count: int


# ============================================================================
# Project Schemas
# ============================================================================

class ProjectBase(BaseModel):
    """Base schema for project fields."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProjectCreate(ProjectBase):
    """Schema for creating a new project."""

    team_id: int
    status: Optional[ProjectStatus] = None


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ProjectTransfer(BaseModel):
    """Schema for moving a project to another team."""

    team_id: int


class ProjectResponse(ProjectBase):
    """Schema for project responses."""

    id: int
    team_id: int
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int] = None
    updated_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class ProjectListResponse(BaseModel):
    """Schema for paginated project list."""

    items: list[ProjectResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# Task Schemas
# ============================================================================

class TaskBase(BaseModel):
    """Base schema for task fields."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    project_id: int
    assigned_to: Optional[int] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Task title cannot be blank")
        return v


class TaskUpdate(BaseModel):
    """Schema for updating a task. Deletion has its own endpoint."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None


class TaskAssign(BaseModel):
    assignee_id: int


class TaskResponse(TaskBase):
    """Schema for task responses."""

    id: int
    project_id: int
    status: TaskStatus
    assigned_to: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int] = None
    updated_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class TaskListResponse(BaseModel):
    """Schema for paginated task list."""

    items: list[TaskResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# Comment Schemas
# ============================================================================

class CommentCreate(BaseModel):
    """Schema for commenting on a task."""

    task_id: int
    content: str = Field(..., min_length=1)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    """Schema for comment responses. ``user_id`` is the author."""

    id: int
    task_id: int
    user_id: int
    content: str
    status: CommentStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class CommentListResponse(BaseModel):
    """Schema for paginated comment list."""

    items: list[CommentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# Attachment Schemas
# ============================================================================

class AttachmentCreate(BaseModel):
    """
    Schema for registering an uploaded file.

    The bytes go to object storage; only the metadata is recorded here.
    """

    task_id: int
    original_filename: str = Field(..., max_length=255)
    content_type: Optional[str] = Field(None, max_length=255)
    file_size: int = Field(..., ge=0)


class AttachmentResponse(BaseModel):
    """Schema for attachment responses. ``user_id`` is the uploader."""

    id: int
    task_id: int
    user_id: int
    original_filename: str
    stored_filename: str
    object_key: str
    content_type: str
    file_size: int
    status: AttachmentStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class AttachmentDownload(BaseModel):
    """Where to fetch an attachment's bytes and how to present them."""

    object_key: str
    original_filename: str
    content_type: str
    file_size: int

    model_config = ConfigDict(from_attributes=True)


class AttachmentListResponse(BaseModel):
    """Schema for paginated attachment list."""

    items: list[AttachmentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
