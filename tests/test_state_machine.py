"""Tests for state machine validation."""
import pytest

from teamtask_core.exceptions import InvalidRequestError, InvalidTransitionError, LastOwnerError
from teamtask_core.models import ProjectStatus, TaskStatus, TeamRole, TeamStatus, UserStatus
from teamtask_core.project_state_machine import (
    PROJECT_TRANSITION_MATRIX,
    resolve_initial_project_status,
    validate_project_transition,
)
from teamtask_core.state_machine import (
    TASK_TRANSITION_MATRIX,
    get_allowed_transitions,
    is_terminal_task_status,
    is_transition_valid,
    validate_task_transition,
)
from teamtask_core.team_state_machine import (
    validate_role_transition,
    validate_team_status_transition,
)
from teamtask_core.user_state_machine import validate_user_status_transition


class TestTaskTransitions:
    """Test task status transition validation."""

    def test_valid_forward_transitions(self):
        """Test that the normal forward path is allowed."""
        # To do → In progress
        assert is_transition_valid(TASK_TRANSITION_MATRIX, TaskStatus.TO_DO, TaskStatus.IN_PROGRESS)
        validate_task_transition(TaskStatus.TO_DO, TaskStatus.IN_PROGRESS)

        # In progress → In review
        assert is_transition_valid(TASK_TRANSITION_MATRIX, TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW)
        validate_task_transition(TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW)

        # In review → Done
        assert is_transition_valid(TASK_TRANSITION_MATRIX, TaskStatus.IN_REVIEW, TaskStatus.DONE)
        validate_task_transition(TaskStatus.IN_REVIEW, TaskStatus.DONE)

        # In progress → Done (skip review)
        validate_task_transition(TaskStatus.IN_PROGRESS, TaskStatus.DONE)

    def test_valid_back_transitions(self):
        """Test reopening and unblocking."""
        validate_task_transition(TaskStatus.DONE, TaskStatus.TO_DO)
        validate_task_transition(TaskStatus.DONE, TaskStatus.IN_PROGRESS)
        validate_task_transition(TaskStatus.IN_REVIEW, TaskStatus.IN_PROGRESS)
        validate_task_transition(TaskStatus.BLOCKED, TaskStatus.TO_DO)
        validate_task_transition(TaskStatus.BLOCKED, TaskStatus.IN_PROGRESS)

    def test_noop_transitions_rejected(self):
        """Test that requesting the current status is an error."""
        for status in TaskStatus:
            assert not is_transition_valid(TASK_TRANSITION_MATRIX, status, status)

            with pytest.raises(InvalidTransitionError) as exc_info:
                validate_task_transition(status, status)

            assert "already" in str(exc_info.value)

    def test_blocked_cannot_jump_to_done(self):
        """Test that a blocked task must be unblocked before completion."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_task_transition(TaskStatus.BLOCKED, TaskStatus.DONE)

        error = exc_info.value
        assert error.current_status == TaskStatus.BLOCKED
        assert error.requested_status == TaskStatus.DONE
        assert set(error.allowed_transitions) == {TaskStatus.TO_DO, TaskStatus.IN_PROGRESS}
        assert "unblocked" in error.message

    def test_to_do_cannot_skip_to_review_or_done(self):
        """Test that work must start before review or completion."""
        for target in (TaskStatus.IN_REVIEW, TaskStatus.DONE):
            with pytest.raises(InvalidTransitionError) as exc_info:
                validate_task_transition(TaskStatus.TO_DO, target)
            assert "must be started" in exc_info.value.message

    def test_deleted_only_through_delete_operation(self):
        """Test that DELETED cannot be requested as a status update."""
        for status in TaskStatus:
            if status == TaskStatus.DELETED:
                continue
            with pytest.raises(InvalidTransitionError) as exc_info:
                validate_task_transition(status, TaskStatus.DELETED)
            assert "delete operation" in exc_info.value.message

    def test_deleted_is_terminal(self):
        """Test that a deleted task accepts no status change."""
        assert is_terminal_task_status(TaskStatus.DELETED)
        assert get_allowed_transitions(TASK_TRANSITION_MATRIX, TaskStatus.DELETED) == []

        for status in TaskStatus:
            if status == TaskStatus.DELETED:
                continue
            with pytest.raises(InvalidTransitionError) as exc_info:
                validate_task_transition(TaskStatus.DELETED, status)
            assert "deleted task" in exc_info.value.message

    def test_get_allowed_transitions(self):
        """Test allowed-next sets for each status."""
        assert set(get_allowed_transitions(TASK_TRANSITION_MATRIX, TaskStatus.TO_DO)) == {
            TaskStatus.IN_PROGRESS,
            TaskStatus.BLOCKED,
        }
        assert set(get_allowed_transitions(TASK_TRANSITION_MATRIX, TaskStatus.IN_PROGRESS)) == {
            TaskStatus.IN_REVIEW,
            TaskStatus.DONE,
            TaskStatus.BLOCKED,
            TaskStatus.TO_DO,
        }
        assert not is_terminal_task_status(TaskStatus.DONE)

    def test_error_message_lists_allowed_targets(self):
        """Test that the message names the valid next statuses."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_task_transition(TaskStatus.DONE, TaskStatus.IN_REVIEW)

        message = exc_info.value.message
        assert "done → in_review" in message
        assert "to_do" in message
        assert "in_progress" in message


class TestProjectTransitions:
    """Test project status transition validation."""

    def test_lifecycle_path(self):
        validate_project_transition(ProjectStatus.PLANNED, ProjectStatus.ACTIVE)
        validate_project_transition(ProjectStatus.ACTIVE, ProjectStatus.COMPLETED)
        validate_project_transition(ProjectStatus.COMPLETED, ProjectStatus.ARCHIVED)
        validate_project_transition(ProjectStatus.ARCHIVED, ProjectStatus.PLANNED)

    def test_every_status_can_be_deleted(self):
        """Test that soft delete is reachable from every live status."""
        for status in ProjectStatus:
            if status != ProjectStatus.DELETED:
                validate_project_transition(status, ProjectStatus.DELETED)

    def test_deleted_only_restores_to_planned(self):
        assert get_allowed_transitions(PROJECT_TRANSITION_MATRIX, ProjectStatus.DELETED) == [
            ProjectStatus.PLANNED
        ]
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_project_transition(ProjectStatus.DELETED, ProjectStatus.ACTIVE)
        assert "restored to planned" in exc_info.value.message

    def test_planned_cannot_complete(self):
        with pytest.raises(InvalidTransitionError):
            validate_project_transition(ProjectStatus.PLANNED, ProjectStatus.COMPLETED)

    def test_initial_status_defaults_to_planned(self):
        assert resolve_initial_project_status(None) == ProjectStatus.PLANNED
        assert resolve_initial_project_status(ProjectStatus.ON_HOLD) == ProjectStatus.ON_HOLD

    def test_initial_status_rejects_late_statuses(self):
        for status in (ProjectStatus.COMPLETED, ProjectStatus.ARCHIVED, ProjectStatus.DELETED):
            with pytest.raises(InvalidRequestError):
                resolve_initial_project_status(status)


class TestTeamTransitions:
    """Test team role and team status transitions."""

    def test_member_admin_swap(self):
        validate_role_transition(1, TeamRole.MEMBER, TeamRole.ADMIN, is_last_owner=False)
        validate_role_transition(1, TeamRole.ADMIN, TeamRole.MEMBER, is_last_owner=False)

    def test_no_promotion_to_owner(self):
        for role in (TeamRole.MEMBER, TeamRole.ADMIN):
            with pytest.raises(InvalidTransitionError) as exc_info:
                validate_role_transition(1, role, TeamRole.OWNER, is_last_owner=False)
            assert "ownership transfer" in exc_info.value.message

    def test_last_owner_cannot_step_down(self):
        with pytest.raises(LastOwnerError) as exc_info:
            validate_role_transition(7, TeamRole.OWNER, TeamRole.ADMIN, is_last_owner=True)
        assert exc_info.value.team_id == 7

    def test_owner_with_co_owner_can_step_down(self):
        validate_role_transition(1, TeamRole.OWNER, TeamRole.MEMBER, is_last_owner=False)

    def test_same_role_rejected(self):
        with pytest.raises(InvalidTransitionError):
            validate_role_transition(1, TeamRole.ADMIN, TeamRole.ADMIN, is_last_owner=False)

    def test_team_status(self):
        validate_team_status_transition(TeamStatus.ACTIVE, TeamStatus.INACTIVE)
        validate_team_status_transition(TeamStatus.DELETED, TeamStatus.ACTIVE)
        with pytest.raises(InvalidTransitionError):
            validate_team_status_transition(TeamStatus.DELETED, TeamStatus.INACTIVE)


class TestUserTransitions:
    """Test user account status transitions."""

    def test_suspend_and_reactivate(self):
        validate_user_status_transition(UserStatus.ACTIVE, UserStatus.SUSPENDED)
        validate_user_status_transition(UserStatus.SUSPENDED, UserStatus.ACTIVE)

    def test_suspended_cannot_be_deactivated(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_user_status_transition(UserStatus.SUSPENDED, UserStatus.INACTIVE)
        assert "reactivated" in exc_info.value.message

    def test_deleted_only_restores(self):
        validate_user_status_transition(UserStatus.DELETED, UserStatus.ACTIVE)
        with pytest.raises(InvalidTransitionError):
            validate_user_status_transition(UserStatus.DELETED, UserStatus.SUSPENDED)
