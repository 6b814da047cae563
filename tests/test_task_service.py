"""Tests for task, comment and attachment operations."""
import pytest

from teamtask_core import models
from teamtask_core.exceptions import (
    AccessDeniedError,
    ActorNotActiveError,
    DuplicateResourceError,
    InvalidRequestError,
    InvalidTransitionError,
    ResourceNotFoundError,
    ResourceStateError,
)
from teamtask_core.services import attachments as attachment_service
from teamtask_core.services import comments as comment_service
from teamtask_core.services import tasks as task_service


class TestCreateTask:
    """Test task creation."""

    def test_member_creates_task(self, db, world):
        task = task_service.create_task(db, world.member, world.project.id, "  Ship it  ")

        assert task.title == "Ship it"
        assert task.status == models.TaskStatus.TO_DO
        assert task.priority == models.TaskPriority.MEDIUM
        assert task.created_by == world.member.id

    def test_outsider_cannot_create(self, db, world):
        with pytest.raises(AccessDeniedError):
            task_service.create_task(db, world.outsider, world.project.id, "Sneaky")

    def test_duplicate_title_case_insensitive(self, db, world):
        with pytest.raises(DuplicateResourceError):
            task_service.create_task(db, world.member, world.project.id, "WRITE DOCS")

    def test_deleted_task_frees_title(self, db, world):
        task_service.delete_task(db, world.owner, world.task.id)
        task = task_service.create_task(db, world.member, world.project.id, "Write docs")
        assert task.id != world.task.id

    def test_blank_title_rejected(self, db, world):
        with pytest.raises(InvalidRequestError):
            task_service.create_task(db, world.member, world.project.id, "   ")

    def test_project_must_be_active(self, db, world, make_project):
        planned = make_project(world.team, name="Later", status=models.ProjectStatus.PLANNED)
        with pytest.raises(ResourceStateError):
            task_service.create_task(db, world.owner, planned.id, "Too early")

    def test_create_with_self_assignment(self, db, world):
        task = task_service.create_task(db, world.member, world.project.id, "Mine", assigned_to=world.member.id)
        assert task.assigned_to == world.member.id

    def test_member_cannot_create_for_someone_else(self, db, world):
        with pytest.raises(AccessDeniedError):
            task_service.create_task(db, world.member, world.project.id, "Yours", assigned_to=world.owner.id)

    def test_inactive_actor_rejected(self, db, world, make_user, add_member):
        inactive = make_user("inactive", status=models.UserStatus.INACTIVE)
        add_member(world.team, inactive)
        with pytest.raises(ActorNotActiveError):
            task_service.create_task(db, inactive, world.project.id, "Nope")


class TestUpdateTask:
    """Test task updates and status transitions."""

    def test_assignee_moves_status(self, db, world, make_task):
        task = make_task(world.project, title="Mine", assigned_to=world.member.id)

        task = task_service.update_task(db, world.member, task.id, status=models.TaskStatus.IN_PROGRESS)
        assert task.status == models.TaskStatus.IN_PROGRESS

    def test_done_sets_and_reopen_clears_completed_at(self, db, world, make_task):
        task = make_task(world.project, title="Finish", status=models.TaskStatus.IN_PROGRESS)

        task = task_service.update_task(db, world.owner, task.id, status=models.TaskStatus.DONE)
        assert task.completed_at is not None

        task = task_service.update_task(db, world.owner, task.id, status=models.TaskStatus.TO_DO)
        assert task.completed_at is None

    def test_blocked_to_done_rejected(self, db, world, make_task):
        task = make_task(world.project, title="Stuck", status=models.TaskStatus.BLOCKED)

        with pytest.raises(InvalidTransitionError):
            task_service.update_task(db, world.owner, task.id, status=models.TaskStatus.DONE)

        db.refresh(task)
        assert task.status == models.TaskStatus.BLOCKED

    def test_same_status_rejected(self, db, world):
        with pytest.raises(InvalidTransitionError):
            task_service.update_task(db, world.owner, world.task.id, status=models.TaskStatus.TO_DO)

    def test_status_deleted_rejected(self, db, world):
        with pytest.raises(InvalidTransitionError):
            task_service.update_task(db, world.owner, world.task.id, status=models.TaskStatus.DELETED)

    def test_plain_member_cannot_update(self, db, world):
        with pytest.raises(AccessDeniedError):
            task_service.update_task(db, world.member, world.task.id, title="Renamed")

    def test_no_fields_rejected(self, db, world):
        with pytest.raises(InvalidRequestError):
            task_service.update_task(db, world.owner, world.task.id)

    def test_admin_cannot_revive_deleted_task(self, db, world):
        task_service.delete_task(db, world.owner, world.task.id)

        with pytest.raises(InvalidTransitionError):
            task_service.update_task(db, world.sysadmin, world.task.id, status=models.TaskStatus.TO_DO)
        with pytest.raises(ResourceStateError):
            task_service.update_task(db, world.sysadmin, world.task.id, title="Zombie")


class TestDeleteAndVisibility:
    """Test soft delete and who still sees deleted tasks."""

    def test_delete_hides_from_members(self, db, world):
        task_service.delete_task(db, world.team_admin, world.task.id)

        with pytest.raises(ResourceNotFoundError):
            task_service.get_task(db, world.member, world.task.id)

        admin_view = task_service.get_task(db, world.sysadmin, world.task.id)
        assert admin_view.status == models.TaskStatus.DELETED

    def test_delete_twice_is_not_found(self, db, world):
        task_service.delete_task(db, world.owner, world.task.id)
        with pytest.raises(ResourceNotFoundError):
            task_service.delete_task(db, world.owner, world.task.id)

    def test_member_cannot_delete(self, db, world):
        with pytest.raises(AccessDeniedError):
            task_service.delete_task(db, world.member, world.task.id)

    def test_list_orders_in_progress_first(self, db, world, make_task):
        make_task(world.project, title="Active", status=models.TaskStatus.IN_PROGRESS)
        make_task(world.project, title="Finished", status=models.TaskStatus.DONE)

        items, total = task_service.list_tasks_by_project(db, world.member, world.project.id)

        assert total == 3
        assert [t.status for t in items] == [
            models.TaskStatus.IN_PROGRESS,
            models.TaskStatus.TO_DO,
            models.TaskStatus.DONE,
        ]

    def test_list_for_admin_requires_admin(self, db, world):
        with pytest.raises(AccessDeniedError):
            task_service.list_all_tasks_for_admin(db, world.owner)

        _, total = task_service.list_all_tasks_for_admin(db, world.sysadmin)
        assert total == 1


class TestAssignment:
    """Test assign and unassign."""

    def test_team_admin_assigns_member(self, db, world):
        task = task_service.assign_task(db, world.team_admin, world.task.id, world.member.id)
        assert task.assigned_to == world.member.id

        items, total = task_service.list_my_tasks(db, world.member)
        assert total == 1
        assert items[0].id == world.task.id

    def test_cannot_assign_outsider(self, db, world):
        with pytest.raises(AccessDeniedError):
            task_service.assign_task(db, world.owner, world.task.id, world.outsider.id)

    def test_cannot_assign_inactive_user(self, db, world, make_user, add_member):
        away = make_user("away", status=models.UserStatus.SUSPENDED)
        add_member(world.team, away)
        with pytest.raises(ActorNotActiveError):
            task_service.assign_task(db, world.owner, world.task.id, away.id)

    def test_assignee_can_unassign_themself(self, db, world):
        task_service.assign_task(db, world.member, world.task.id, world.member.id)

        task = task_service.unassign_task(db, world.member, world.task.id)
        assert task.assigned_to is None

    def test_unassign_unassigned_task(self, db, world):
        with pytest.raises(ResourceStateError):
            task_service.unassign_task(db, world.owner, world.task.id)


class TestComments:
    """Test comment operations."""

    def test_member_comments_and_edits(self, db, world):
        comment = comment_service.create_comment(db, world.member, world.task.id, " Looks good ")
        assert comment.content == "Looks good"

        comment = comment_service.update_comment(db, world.member, comment.id, "Looks great")
        assert comment.content == "Looks great"
        assert comment.updated_by == world.member.id

    def test_other_member_cannot_edit(self, db, world, make_user, add_member):
        peer = make_user("peer")
        add_member(world.team, peer)
        comment = comment_service.create_comment(db, world.member, world.task.id, "Mine")

        with pytest.raises(AccessDeniedError):
            comment_service.update_comment(db, peer, comment.id, "Hijacked")

    def test_team_admin_moderates(self, db, world):
        comment = comment_service.create_comment(db, world.member, world.task.id, "Off topic")
        comment_service.delete_comment(db, world.team_admin, comment.id)

        items, total = comment_service.list_comments_by_task(db, world.member, world.task.id)
        assert total == 0

        _, admin_total = comment_service.list_comments_by_task(db, world.sysadmin, world.task.id)
        assert admin_total == 1

    def test_outsider_cannot_comment(self, db, world):
        with pytest.raises(AccessDeniedError):
            comment_service.create_comment(db, world.outsider, world.task.id, "Hello")

    def test_comments_by_user_is_admin_only(self, db, world):
        comment_service.create_comment(db, world.member, world.task.id, "One")

        with pytest.raises(AccessDeniedError):
            comment_service.list_comments_by_user(db, world.owner, world.member.id)

        _, total = comment_service.list_comments_by_user(db, world.sysadmin, world.member.id)
        assert total == 1


class TestAttachments:
    """Test attachment metadata operations."""

    def test_upload_records_object_key(self, db, world):
        attachment = attachment_service.upload_attachment(
            db, world.member, world.task.id, "Report.PDF", 2048,
        )

        assert attachment.object_key.startswith("attachments/")
        assert attachment.stored_filename.endswith(".pdf")
        assert attachment.content_type == "application/octet-stream"
        assert attachment.user_id == world.member.id

    def test_empty_and_oversized_files_rejected(self, db, world):
        with pytest.raises(InvalidRequestError, match="empty"):
            attachment_service.upload_attachment(db, world.member, world.task.id, "a.txt", 0)
        with pytest.raises(InvalidRequestError, match="MB"):
            attachment_service.upload_attachment(db, world.member, world.task.id, "a.txt", 11 * 1024 * 1024)

    def test_per_task_limit(self, db, world):
        # The test environment caps attachments at 3 per task
        for i in range(3):
            attachment_service.upload_attachment(db, world.member, world.task.id, f"{i}.txt", 10)

        with pytest.raises(InvalidRequestError, match="Maximum 3"):
            attachment_service.upload_attachment(db, world.member, world.task.id, "3.txt", 10)

    def test_uploader_deletes(self, db, world):
        attachment = attachment_service.upload_attachment(db, world.member, world.task.id, "a.txt", 10)
        attachment_service.delete_attachment(db, world.member, attachment.id)

        with pytest.raises(ResourceNotFoundError):
            attachment_service.get_attachment(db, world.member, attachment.id)

    def test_outsider_cannot_read(self, db, world):
        attachment = attachment_service.upload_attachment(db, world.member, world.task.id, "a.txt", 10)
        with pytest.raises(AccessDeniedError):
            attachment_service.get_attachment(db, world.outsider, attachment.id)

    def test_download_returns_storage_handle(self, db, world):
        attachment = attachment_service.upload_attachment(db, world.member, world.task.id, "Plan.pdf", 10)

        handle = attachment_service.download_attachment(db, world.team_admin, attachment.id)
        assert handle.object_key == attachment.object_key

        with pytest.raises(AccessDeniedError):
            attachment_service.download_attachment(db, world.outsider, attachment.id)

    def test_deleted_attachment_cannot_be_downloaded(self, db, world):
        attachment = attachment_service.upload_attachment(db, world.member, world.task.id, "a.txt", 10)
        attachment_service.delete_attachment(db, world.member, attachment.id)

        with pytest.raises(ResourceNotFoundError):
            attachment_service.download_attachment(db, world.sysadmin, attachment.id)
