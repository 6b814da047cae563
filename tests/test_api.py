"""HTTP-level tests: routing, error mapping and response shapes."""
from teamtask_core import models

API = "/api/v1"


def as_user(user: models.User) -> dict:
    return {"X-Authenticated-User": user.email}


class TestServerEndpoints:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "TeamTask Core API"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAuthentication:
    """Test actor resolution and its error codes."""

    def test_missing_header_is_401(self, client, world):
        response = client.get(f"{API}/tasks/me")
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"

    def test_unknown_user_is_401(self, client, world):
        response = client.get(f"{API}/tasks/me", headers={"X-Authenticated-User": "ghost@example.com"})
        assert response.status_code == 401

    def test_inactive_actor_is_403(self, client, db, world):
        world.member.status = models.UserStatus.INACTIVE
        db.commit()

        response = client.get(f"{API}/tasks/me", headers=as_user(world.member))
        assert response.status_code == 403
        assert response.json()["error"] == "actor_not_active"


class TestTaskEndpoints:
    """Test the task routes end to end."""

    def test_create_and_get(self, client, world):
        response = client.post(
            f"{API}/tasks/",
            json={"project_id": world.project.id, "title": "From API", "priority": "high"},
            headers=as_user(world.member),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "to_do"
        assert body["priority"] == "high"

        response = client.get(f"{API}/tasks/{body['id']}", headers=as_user(world.member))
        assert response.status_code == 200
        assert response.json()["title"] == "From API"

    def test_outsider_gets_403(self, client, world):
        response = client.get(f"{API}/tasks/{world.task.id}", headers=as_user(world.outsider))
        assert response.status_code == 403
        assert response.json()["error"] == "access_denied"

    def test_missing_task_is_404(self, client, world):
        response = client.get(f"{API}/tasks/9999", headers=as_user(world.member))
        assert response.status_code == 404

    def test_invalid_transition_is_409_with_allowed_list(self, client, world):
        response = client.put(
            f"{API}/tasks/{world.task.id}",
            json={"status": "done"},
            headers=as_user(world.owner),
        )
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "invalid_transition"
        assert body["current_status"] == "to_do"
        assert body["requested_status"] == "done"
        assert set(body["allowed_transitions"]) == {"in_progress", "blocked"}

    def test_duplicate_title_is_409(self, client, world):
        response = client.post(
            f"{API}/tasks/",
            json={"project_id": world.project.id, "title": "write docs"},
            headers=as_user(world.member),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate"

    def test_list_by_project_is_paginated(self, client, world):
        response = client.get(
            f"{API}/tasks/project/{world.project.id}",
            params={"page": 1, "page_size": 10},
            headers=as_user(world.member),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["total_pages"] == 1
        assert body["page_size"] == 10

    def test_delete_returns_204(self, client, world):
        response = client.delete(f"{API}/tasks/{world.task.id}", headers=as_user(world.team_admin))
        assert response.status_code == 204

    def test_assign_and_unassign(self, client, world):
        response = client.post(
            f"{API}/tasks/{world.task.id}/assign",
            json={"assignee_id": world.member.id},
            headers=as_user(world.owner),
        )
        assert response.status_code == 200
        assert response.json()["assigned_to"] == world.member.id

        response = client.post(f"{API}/tasks/{world.task.id}/unassign", headers=as_user(world.member))
        assert response.status_code == 200
        assert response.json()["assigned_to"] is None


class TestTeamAndProjectEndpoints:
    """Test team, roster and project routes."""

    def test_create_team(self, client, world):
        response = client.post(f"{API}/teams/", json={"name": "Design"}, headers=as_user(world.outsider))
        assert response.status_code == 201
        assert response.json()["owner_id"] == world.outsider.id

    def test_last_owner_demotion_is_409(self, client, world):
        response = client.put(
            f"{API}/teams/{world.team.id}/members/{world.owner.id}",
            json={"role": "admin"},
            headers=as_user(world.owner),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invariant_violation"

    def test_add_member_and_count(self, client, world):
        response = client.post(
            f"{API}/teams/{world.team.id}/members",
            json={"user_id": world.outsider.id},
            headers=as_user(world.owner),
        )
        assert response.status_code == 201
        assert response.json()["role"] == "member"

        response = client.get(f"{API}/teams/{world.team.id}/members/count", headers=as_user(world.member))
        assert response.json() == {"team_id": world.team.id, "count": 4}

    def test_team_by_name(self, client, world):
        response = client.get(f"{API}/teams/by-name", params={"name": "PLATFORM"}, headers=as_user(world.member))
        assert response.status_code == 200
        assert response.json()["id"] == world.team.id

    def test_project_list_for_team(self, client, world):
        response = client.get(f"{API}/projects/team/{world.team.id}", headers=as_user(world.member))
        assert response.status_code == 200
        assert [p["name"] for p in response.json()["items"]] == ["Roadmap"]

    def test_task_in_planned_project_is_409(self, client, world, make_project):
        planned = make_project(world.team, name="Later", status=models.ProjectStatus.PLANNED)
        response = client.post(
            f"{API}/tasks/",
            json={"project_id": planned.id, "title": "Too early"},
            headers=as_user(world.owner),
        )
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"

    def test_transfer_requires_system_admin(self, client, world, make_user, make_team):
        other = make_team(make_user("otherowner"), name="Other")
        response = client.post(
            f"{API}/projects/{world.project.id}/transfer",
            json={"team_id": other.id},
            headers=as_user(world.owner),
        )
        assert response.status_code == 403


class TestUserEndpoints:
    def test_me(self, client, world):
        response = client.get(f"{API}/users/me", headers=as_user(world.member))
        assert response.status_code == 200
        assert response.json()["email"] == "member@example.com"

    def test_admin_suspends_user(self, client, world):
        response = client.post(f"{API}/users/{world.member.id}/suspend", headers=as_user(world.sysadmin))
        assert response.status_code == 200
        assert response.json()["status"] == "suspended"

    def test_invalid_page_size_is_422(self, client, world):
        response = client.get(f"{API}/tasks/me", params={"page_size": 0}, headers=as_user(world.member))
        assert response.status_code == 422


class TestAttachmentEndpoints:
    def test_download_handle(self, client, world):
        response = client.post(
            f"{API}/attachments/",
            json={"task_id": world.task.id, "original_filename": "notes.md", "file_size": 42},
            headers=as_user(world.member),
        )
        assert response.status_code == 201
        attachment = response.json()

        response = client.get(f"{API}/attachments/{attachment['id']}/download", headers=as_user(world.owner))
        assert response.status_code == 200
        assert response.json() == {
            "object_key": attachment["object_key"],
            "original_filename": "notes.md",
            "content_type": "application/octet-stream",
            "file_size": 42,
        }
