"""Initial schema with users, teams, projects, tasks, comments and attachments.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOT_DELETED = sa.text("status != 'deleted'")


def _status(*values, name, default=None):
    # Enums are stored as plain strings (native_enum=False in the models)
    return sa.Column(
        name,
        sa.Enum(*values, name=f'{name}_enum', native_enum=False, length=32),
        nullable=False,
        server_default=default,
    )


def _audit_columns(with_created_by=True):
    columns = [
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    ]
    if with_created_by:
        columns.append(sa.Column('created_by', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL')))
    columns.append(sa.Column('updated_by', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL')))
    return columns


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        _status('member', 'manager', 'admin', name='role', default='member'),
        _status('active', 'inactive', 'suspended', 'deleted', name='status', default='active'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_status', 'users', ['status'])

    op.create_table(
        'teams',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('owner_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        _status('active', 'inactive', 'deleted', name='status', default='active'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_teams_owner_id', 'teams', ['owner_id'])
    op.create_index('ix_teams_status', 'teams', ['status'])
    op.create_index(
        'uq_teams_name_not_deleted', 'teams', [sa.text('lower(name)')],
        unique=True, postgresql_where=NOT_DELETED, sqlite_where=NOT_DELETED,
    )

    op.create_table(
        'team_members',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.Integer, sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _status('member', 'admin', 'owner', name='role', default='member'),
        _status('active', 'removed', 'inactive', name='status', default='active'),
        sa.Column('joined_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_team_members_team_user'),
    )
    op.create_index('ix_team_members_team_id', 'team_members', ['team_id'])
    op.create_index('ix_team_members_user_id', 'team_members', ['user_id'])
    op.create_index('ix_team_members_role', 'team_members', ['role'])
    op.create_index('ix_team_members_status', 'team_members', ['status'])

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.Integer, sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text),
        _status('planned', 'active', 'on_hold', 'completed', 'archived', 'deleted', name='status', default='planned'),
        sa.Column('start_date', sa.DateTime),
        sa.Column('end_date', sa.DateTime),
        *_audit_columns(),
    )
    op.create_index('ix_projects_team_id', 'projects', ['team_id'])
    op.create_index('ix_projects_status', 'projects', ['status'])
    op.create_index('ix_projects_created_at', 'projects', ['created_at'])
    op.create_index('ix_projects_created_by', 'projects', ['created_by'])
    op.create_index(
        'uq_projects_team_name_not_deleted', 'projects', ['team_id', sa.text('lower(name)')],
        unique=True, postgresql_where=NOT_DELETED, sqlite_where=NOT_DELETED,
    )

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('project_id', sa.Integer, sa.ForeignKey('projects.id'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text),
        _status('to_do', 'in_progress', 'in_review', 'done', 'blocked', 'deleted', name='status', default='to_do'),
        _status('low', 'medium', 'high', 'urgent', name='priority', default='medium'),
        sa.Column('assigned_to', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('due_date', sa.DateTime),
        sa.Column('completed_at', sa.DateTime),
        *_audit_columns(),
    )
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_assigned_to', 'tasks', ['assigned_to'])
    op.create_index('ix_tasks_created_at', 'tasks', ['created_at'])
    op.create_index('ix_tasks_created_by', 'tasks', ['created_by'])
    op.create_index(
        'uq_tasks_project_title_not_deleted', 'tasks', ['project_id', sa.text('lower(title)')],
        unique=True, postgresql_where=NOT_DELETED, sqlite_where=NOT_DELETED,
    )

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('task_id', sa.Integer, sa.ForeignKey('tasks.id'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        _status('active', 'deleted', name='status', default='active'),
        *_audit_columns(with_created_by=False),
    )
    op.create_index('ix_comments_task_id', 'comments', ['task_id'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_status', 'comments', ['status'])
    op.create_index('ix_comments_created_at', 'comments', ['created_at'])

    op.create_table(
        'attachments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('task_id', sa.Integer, sa.ForeignKey('tasks.id'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('original_filename', sa.String(255), nullable=False),
        sa.Column('stored_filename', sa.String(255), nullable=False),
        sa.Column('object_key', sa.String(512), nullable=False),
        sa.Column('content_type', sa.String(255), nullable=False, server_default='application/octet-stream'),
        sa.Column('file_size', sa.BigInteger, nullable=False),
        _status('active', 'deleted', name='status', default='active'),
        *_audit_columns(with_created_by=False),
    )
    op.create_index('ix_attachments_task_id', 'attachments', ['task_id'])
    op.create_index('ix_attachments_user_id', 'attachments', ['user_id'])
    op.create_index('ix_attachments_status', 'attachments', ['status'])
    op.create_index('ix_attachments_created_at', 'attachments', ['created_at'])


def downgrade() -> None:
    op.drop_table('attachments')
    op.drop_table('comments')
    op.drop_table('tasks')
    op.drop_table('projects')
    op.drop_table('team_members')
    op.drop_table('teams')
    op.drop_table('users')
