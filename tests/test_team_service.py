"""Tests for team and roster operations."""
import pytest

from teamtask_core import models
from teamtask_core.exceptions import (
    AccessDeniedError,
    DuplicateResourceError,
    InvalidRequestError,
    InvalidTransitionError,
    LastOwnerError,
    ResourceNotFoundError,
    ResourceStateError,
    SelfOperationError,
)
from teamtask_core.relationships import is_team_member, is_team_owner
from teamtask_core.services import team_members as member_service
from teamtask_core.services import teams as team_service


class TestTeams:
    """Test team lifecycle."""

    def test_creator_becomes_owner(self, db, make_user):
        founder = make_user("founder")
        team = team_service.create_team(db, founder, " Core ", "The core team")

        assert team.name == "Core"
        assert team.owner_id == founder.id
        assert is_team_owner(db, founder.id, team.id)

    def test_duplicate_name_case_insensitive(self, db, world):
        with pytest.raises(DuplicateResourceError):
            team_service.create_team(db, world.outsider, "PLATFORM")

    def test_concurrent_duplicate_name_surfaces_as_duplicate(self, db, world, monkeypatch):
        # Another writer got past the name check first; the unique index catches it
        monkeypatch.setattr(team_service.lookup, "team_name_exists", lambda *args, **kwargs: False)

        with pytest.raises(DuplicateResourceError):
            team_service.create_team(db, world.member, "platform")

        assert team_service.get_team(db, world.member, world.team.id).name == "Platform"

    def test_get_team_requires_membership(self, db, world):
        assert team_service.get_team(db, world.member, world.team.id).id == world.team.id
        with pytest.raises(AccessDeniedError):
            team_service.get_team(db, world.outsider, world.team.id)

    def test_get_team_by_name(self, db, world):
        assert team_service.get_team_by_name(db, world.member, "platform").id == world.team.id

    def test_team_admin_updates_description(self, db, world):
        team = team_service.update_team(db, world.team_admin, world.team.id, description="New")
        assert team.description == "New"

    def test_status_change_is_owner_only(self, db, world):
        with pytest.raises(AccessDeniedError):
            team_service.update_team(db, world.team_admin, world.team.id, status=models.TeamStatus.INACTIVE)

        team = team_service.update_team(db, world.owner, world.team.id, status=models.TeamStatus.INACTIVE)
        assert team.status == models.TeamStatus.INACTIVE

    def test_update_cannot_delete(self, db, world):
        with pytest.raises(InvalidRequestError):
            team_service.update_team(db, world.owner, world.team.id, status=models.TeamStatus.DELETED)

    def test_same_status_rejected(self, db, world):
        with pytest.raises(InvalidTransitionError):
            team_service.update_team(db, world.owner, world.team.id, status=models.TeamStatus.ACTIVE)

    def test_list_my_teams(self, db, world, make_user, make_team):
        make_team(make_user("elsewhere"), name="Elsewhere")

        items, total = team_service.list_my_teams(db, world.member)
        assert total == 1
        assert items[0].id == world.team.id

    def test_list_all_is_admin_only(self, db, world):
        with pytest.raises(AccessDeniedError):
            team_service.list_all_teams_for_admin(db, world.owner)
        _, total = team_service.list_all_teams_for_admin(db, world.sysadmin)
        assert total == 1


class TestDeleteAndRestoreTeam:
    """Test soft delete and system admin restore."""

    def test_delete_deactivates_roster(self, db, world):
        team_service.delete_team(db, world.owner, world.team.id)

        db.refresh(world.team)
        assert world.team.status == models.TeamStatus.DELETED
        assert not is_team_member(db, world.member.id, world.team.id)

    def test_only_owner_deletes(self, db, world):
        with pytest.raises(AccessDeniedError):
            team_service.delete_team(db, world.team_admin, world.team.id)
        with pytest.raises(AccessDeniedError):
            team_service.delete_team(db, world.sysadmin, world.team.id)

    def test_restore_reactivates_inactive_members_only(self, db, world, make_user, add_member):
        former = make_user("former")
        add_member(world.team, former, status=models.TeamMemberStatus.REMOVED)
        team_service.delete_team(db, world.owner, world.team.id)

        team = team_service.restore_team(db, world.sysadmin, world.team.id)

        assert team.status == models.TeamStatus.ACTIVE
        assert is_team_member(db, world.member.id, team.id)
        assert not is_team_member(db, former.id, team.id)

    def test_restore_active_team(self, db, world):
        with pytest.raises(ResourceStateError):
            team_service.restore_team(db, world.sysadmin, world.team.id)

    def test_restore_requires_system_admin(self, db, world):
        team_service.delete_team(db, world.owner, world.team.id)
        with pytest.raises(AccessDeniedError):
            team_service.restore_team(db, world.owner, world.team.id)

    def test_deleted_team_reported_missing(self, db, world):
        team_service.delete_team(db, world.owner, world.team.id)
        with pytest.raises(ResourceNotFoundError):
            team_service.get_team(db, world.owner, world.team.id)


class TestMembers:
    """Test roster management."""

    def test_owner_adds_member(self, db, world):
        member = member_service.add_member(db, world.owner, world.team.id, world.outsider.id)

        assert member.role == models.TeamRole.MEMBER
        assert is_team_member(db, world.outsider.id, world.team.id)

    def test_team_admin_cannot_add(self, db, world):
        with pytest.raises(AccessDeniedError):
            member_service.add_member(db, world.team_admin, world.team.id, world.outsider.id)

    def test_cannot_add_as_owner(self, db, world):
        with pytest.raises(InvalidRequestError):
            member_service.add_member(db, world.owner, world.team.id, world.outsider.id, models.TeamRole.OWNER)

    def test_cannot_add_twice(self, db, world):
        with pytest.raises(DuplicateResourceError):
            member_service.add_member(db, world.owner, world.team.id, world.member.id)

    def test_re_adding_removed_member_reuses_row(self, db, world):
        member_service.remove_member(db, world.owner, world.team.id, world.member.id)
        readded = member_service.add_member(db, world.owner, world.team.id, world.member.id, models.TeamRole.ADMIN)

        assert readded.role == models.TeamRole.ADMIN
        assert readded.status == models.TeamMemberStatus.ACTIVE
        assert member_service.count_total_members_for_admin(db, world.sysadmin, world.team.id) == 3

    def test_system_admin_has_no_roster_override(self, db, world):
        with pytest.raises(AccessDeniedError):
            member_service.add_member(db, world.sysadmin, world.team.id, world.outsider.id)
        with pytest.raises(AccessDeniedError):
            member_service.remove_member(db, world.sysadmin, world.team.id, world.member.id)
        with pytest.raises(AccessDeniedError):
            member_service.update_member_role(
                db, world.sysadmin, world.team.id, world.member.id, models.TeamRole.ADMIN,
            )

        assert is_team_member(db, world.member.id, world.team.id)
        assert not is_team_member(db, world.outsider.id, world.team.id)

    def test_owner_cannot_remove_self(self, db, world):
        with pytest.raises(SelfOperationError):
            member_service.remove_member(db, world.owner, world.team.id, world.owner.id)

    def test_co_owner_removes_owner_but_not_self(self, db, world, make_user, add_member):
        co_owner = make_user("coowner")
        add_member(world.team, co_owner, models.TeamRole.OWNER)

        member_service.remove_member(db, co_owner, world.team.id, world.owner.id)

        with pytest.raises(SelfOperationError):
            member_service.remove_member(db, co_owner, world.team.id, co_owner.id)

    def test_owner_promotes_member(self, db, world):
        member = member_service.update_member_role(db, world.owner, world.team.id, world.member.id, models.TeamRole.ADMIN)
        assert member.role == models.TeamRole.ADMIN

    def test_no_promotion_to_owner(self, db, world):
        with pytest.raises(InvalidTransitionError):
            member_service.update_member_role(db, world.owner, world.team.id, world.member.id, models.TeamRole.OWNER)

    def test_last_owner_cannot_demote_self(self, db, world):
        with pytest.raises(LastOwnerError):
            member_service.update_member_role(db, world.owner, world.team.id, world.owner.id, models.TeamRole.ADMIN)

    def test_co_owner_demotes_other_owner(self, db, world, make_user, add_member):
        co_owner = make_user("coowner")
        add_member(world.team, co_owner, models.TeamRole.OWNER)

        member = member_service.update_member_role(db, co_owner, world.team.id, world.owner.id, models.TeamRole.MEMBER)
        assert member.role == models.TeamRole.MEMBER

        with pytest.raises(LastOwnerError):
            member_service.update_member_role(db, co_owner, world.team.id, co_owner.id, models.TeamRole.ADMIN)

    def test_member_leaves(self, db, world):
        member_service.leave_team(db, world.member, world.team.id)
        assert not is_team_member(db, world.member.id, world.team.id)

    def test_owner_cannot_leave(self, db, world):
        with pytest.raises(SelfOperationError):
            member_service.leave_team(db, world.owner, world.team.id)

    def test_list_and_count(self, db, world):
        items, total = member_service.list_members(db, world.member, world.team.id)
        assert total == 3
        assert member_service.count_active_members(db, world.member, world.team.id) == 3

        with pytest.raises(AccessDeniedError):
            member_service.list_members(db, world.outsider, world.team.id)

    def test_total_count_is_admin_only(self, db, world):
        with pytest.raises(AccessDeniedError):
            member_service.count_total_members_for_admin(db, world.owner, world.team.id)
