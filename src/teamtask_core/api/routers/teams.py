"""Teams and team membership API endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from teamtask_core import models, schemas
from teamtask_core.services import team_members as member_service
from teamtask_core.services import teams as team_service

from ...database import get_db
from ..dependencies import PageParams, get_current_actor

router = APIRouter(tags=["teams"])


@router.post("/", response_model=schemas.TeamResponse, status_code=201)
def create_team(
    team: schemas.TeamCreate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Create a team. The caller becomes its owner."""
    return team_service.create_team(db, actor, team.name, team.description)


@router.get("/me", response_model=schemas.TeamListResponse)
def list_my_teams(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = team_service.list_my_teams(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/admin/all", response_model=schemas.TeamListResponse)
def list_all_teams(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = team_service.list_all_teams_for_admin(db, actor, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/by-name", response_model=schemas.TeamResponse)
def get_team_by_name(
    name: str = Query(..., min_length=1, description="Team name (case-insensitive)"),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return team_service.get_team_by_name(db, actor, name)


@router.get("/owner/{owner_id}", response_model=schemas.TeamListResponse)
def list_owner_teams(
    owner_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, total = team_service.list_teams_by_owner(db, actor, owner_id, skip=paging.skip, limit=paging.page_size)
    return paging.response(items, total)


@router.get("/{team_id}", response_model=schemas.TeamResponse)
def get_team(
    team_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return team_service.get_team(db, actor, team_id)


@router.put("/{team_id}", response_model=schemas.TeamResponse)
def update_team(
    team_id: int,
    update: schemas.TeamUpdate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """
    Update a team.

    Name and description: team owner or admin. Status: team owner only.
    """
    return team_service.update_team(db, actor, team_id, **update.model_dump(exclude_unset=True))


@router.delete("/{team_id}", status_code=204)
def delete_team(
    team_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    team_service.delete_team(db, actor, team_id)


@router.post("/{team_id}/restore", response_model=schemas.TeamResponse)
def restore_team(
    team_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return team_service.restore_team(db, actor, team_id)


# ============================================================================
# Members
# ============================================================================


@router.get("/{team_id}/members", response_model=list[schemas.TeamMemberResponse])
def list_members(
    team_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    items, _ = member_service.list_members(db, actor, team_id, skip=paging.skip, limit=paging.page_size)
    return items


@router.post("/{team_id}/members", response_model=schemas.TeamMemberResponse, status_code=201)
def add_member(
    team_id: int,
    member: schemas.TeamMemberCreate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Add a user to the team as member or admin (team owner only)."""
    return member_service.add_member(db, actor, team_id, member.user_id, member.role)


@router.get("/{team_id}/members/count", response_model=schemas.MemberCountResponse)
def count_active_members(
    team_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return {"team_id": team_id, "count": member_service.count_active_members(db, actor, team_id)}


@router.get("/{team_id}/members/count/all", response_model=schemas.MemberCountResponse)
def count_all_members(
    team_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    """Roster rows in every status (system admins only)."""
    return {"team_id": team_id, "count": member_service.count_total_members_for_admin(db, actor, team_id)}


@router.post("/{team_id}/leave", status_code=204)
def leave_team(
    team_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    member_service.leave_team(db, actor, team_id)


@router.get("/{team_id}/members/{user_id}", response_model=schemas.TeamMemberResponse)
def get_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return member_service.get_member(db, actor, team_id, user_id)


@router.put("/{team_id}/members/{user_id}", response_model=schemas.TeamMemberResponse)
def update_member_role(
    team_id: int,
    user_id: int,
    update: schemas.TeamMemberRoleUpdate,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    return member_service.update_member_role(db, actor, team_id, user_id, update.role)


@router.delete("/{team_id}/members/{user_id}", status_code=204)
def remove_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    actor: models.User = Depends(get_current_actor),
):
    member_service.remove_member(db, actor, team_id, user_id)
