"""
Tests for the task lifecycle and status history.

Tests cover:
- Manager-only task create/update/delete
- Status changes by any member, each appending one history entry
- Same-status moves
- Project/task mismatch handling
- Full manager + collaborator scenario through the API
"""

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from uptask import models, workflow
from uptask.errors import ForbiddenError, NotFoundError
from tests.conftest import auth_headers

logger = logging.getLogger(__name__)


# ============== Core Operations ==============


def test_create_task_starts_pending(
    test_db: Session, project: models.Project, manager_user: models.User
):
    task = workflow.create_task(test_db, project, "Write copy", "Landing page text", manager_user.id)

    assert task.status == models.TaskStatus.pending
    assert task.project_id == project.id
    assert task.status_history == []


def test_create_task_requires_manager(
    test_db: Session, team_project: models.Project, collaborator_user: models.User
):
    with pytest.raises(ForbiddenError):
        workflow.create_task(test_db, team_project, "Sneaky", "Should not exist", collaborator_user.id)

    assert test_db.query(models.Task).count() == 0


def test_update_status_appends_history(
    test_db: Session, task: models.Task, manager_user: models.User, collaborator_user: models.User
):
    workflow.update_status(test_db, task, models.TaskStatus.in_progress, collaborator_user.id)
    workflow.update_status(test_db, task, models.TaskStatus.under_review, manager_user.id)
    workflow.update_status(test_db, task, models.TaskStatus.completed, collaborator_user.id)

    assert task.status == models.TaskStatus.completed
    history = [(c.from_status, c.to_status, c.actor_id) for c in task.status_history]
    assert history == [
        (models.TaskStatus.pending, models.TaskStatus.in_progress, collaborator_user.id),
        (models.TaskStatus.in_progress, models.TaskStatus.under_review, manager_user.id),
        (models.TaskStatus.under_review, models.TaskStatus.completed, collaborator_user.id),
    ]
    assert [c.position for c in task.status_history] == [0, 1, 2]
    logger.info("✓ Status history records every transition in order")


def test_same_status_move_is_recorded(
    test_db: Session, task: models.Task, collaborator_user: models.User
):
    workflow.update_status(test_db, task, models.TaskStatus.pending, collaborator_user.id)

    assert task.status == models.TaskStatus.pending
    assert len(task.status_history) == 1
    assert task.status_history[0].from_status == task.status_history[0].to_status


def test_any_status_may_follow_any_other(
    test_db: Session, task: models.Task, manager_user: models.User
):
    workflow.update_status(test_db, task, models.TaskStatus.completed, manager_user.id)
    workflow.update_status(test_db, task, models.TaskStatus.on_hold, manager_user.id)
    workflow.update_status(test_db, task, models.TaskStatus.pending, manager_user.id)

    assert task.status == models.TaskStatus.pending
    assert len(task.status_history) == 3


def test_update_status_rejects_non_member(
    test_db: Session, task: models.Task, outsider_user: models.User
):
    with pytest.raises(ForbiddenError):
        workflow.update_status(test_db, task, models.TaskStatus.completed, outsider_user.id)

    assert task.status == models.TaskStatus.pending
    assert task.status_history == []


def test_update_task_leaves_status_alone(
    test_db: Session, task: models.Task, manager_user: models.User
):
    workflow.update_status(test_db, task, models.TaskStatus.in_progress, manager_user.id)
    workflow.update_task(test_db, task, "Renamed", "New description", manager_user.id)

    assert task.name == "Renamed"
    assert task.description == "New description"
    assert task.status == models.TaskStatus.in_progress


def test_get_task_checks_project(
    test_db: Session, task: models.Task, manager_user: models.User
):
    other = models.Project(
        project_name="Other",
        client_name="Other client",
        description="Unrelated",
        created_by=manager_user.id,
    )
    other.members.append(models.ProjectMember(user_id=manager_user.id, role=models.ProjectRole.manager))
    test_db.add(other)
    test_db.commit()

    with pytest.raises(NotFoundError):
        workflow.get_task(test_db, other, task.id, manager_user.id)

    found = workflow.get_task(test_db, task.project, task.id, manager_user.id)
    assert found.id == task.id


def test_delete_task_removes_notes_and_history(
    test_db: Session, task: models.Task, manager_user: models.User, collaborator_user: models.User
):
    workflow.update_status(test_db, task, models.TaskStatus.in_progress, collaborator_user.id)
    task.notes.append(models.Note(content="On it", author_id=collaborator_user.id))
    test_db.commit()

    workflow.delete_task(test_db, task, manager_user.id)

    assert test_db.query(models.Task).count() == 0
    assert test_db.query(models.Note).count() == 0
    assert test_db.query(models.TaskStatusChange).count() == 0


def test_delete_task_requires_manager(
    test_db: Session, task: models.Task, collaborator_user: models.User
):
    with pytest.raises(ForbiddenError):
        workflow.delete_task(test_db, task, collaborator_user.id)

    assert test_db.query(models.Task).count() == 1


# ============== Task Endpoints ==============


def test_collaborator_scenario(
    client: TestClient,
    project: models.Project,
    manager_user: models.User,
    collaborator_user: models.User,
):
    """Manager creates a project, adds a collaborator; the collaborator may only move status."""
    manager = auth_headers(manager_user)
    collaborator = auth_headers(collaborator_user)

    response = client.post(f"/api/projects/{project.id}/team", json={"id": collaborator_user.id}, headers=manager)
    assert response.status_code == 200

    response = client.post(
        f"/api/projects/{project.id}/tasks",
        json={"name": "Build API", "description": "REST endpoints"},
        headers=manager,
    )
    assert response.status_code == 201, f"Expected 201, got {response.status_code}: {response.json()}"
    task_id = response.json()["id"]
    task_url = f"/api/projects/{project.id}/tasks/{task_id}"

    response = client.post(f"{task_url}/status", json={"status": "inProgress"}, headers=collaborator)
    assert response.status_code == 200
    assert response.json()["status"] == "inProgress"

    response = client.put(task_url, json={"name": "Hijack", "description": "Nope"}, headers=collaborator)
    assert response.status_code == 403

    response = client.delete(task_url, headers=collaborator)
    assert response.status_code == 403

    response = client.get(task_url, headers=manager)
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Build API"
    assert len(data["status_history"]) == 1
    assert data["status_history"][0]["from_status"] == "pending"
    assert data["status_history"][0]["to_status"] == "inProgress"
    assert data["status_history"][0]["actor"]["id"] == collaborator_user.id
    logger.info("✓ Collaborator can move status but not edit or delete")


def test_create_then_fetch_round_trip(
    client: TestClient, project: models.Project, manager_user: models.User
):
    headers = auth_headers(manager_user)
    response = client.post(
        f"/api/projects/{project.id}/tasks",
        json={"name": "Audit", "description": "Accessibility audit"},
        headers=headers,
    )
    created = response.json()

    response = client.get(f"/api/projects/{project.id}/tasks/{created['id']}", headers=headers)
    fetched = response.json()
    assert (fetched["name"], fetched["description"], fetched["status"]) == ("Audit", "Accessibility audit", "pending")


def test_task_under_wrong_project_is_not_found(
    client: TestClient, task: models.Task, manager_user: models.User
):
    headers = auth_headers(manager_user)
    response = client.post(
        "/api/projects",
        json={"project_name": "Second", "client_name": "Client", "description": "Another project"},
        headers=headers,
    )
    other_id = response.json()["id"]

    response = client.get(f"/api/projects/{other_id}/tasks/{task.id}", headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Task not found"


def test_invalid_status_rejected(
    client: TestClient, task: models.Task, manager_user: models.User
):
    response = client.post(
        f"/api/projects/{task.project_id}/tasks/{task.id}/status",
        json={"status": "archived"},
        headers=auth_headers(manager_user),
    )
    assert response.status_code == 422


def test_malformed_task_id(client: TestClient, team_project: models.Project, manager_user: models.User):
    response = client.get(f"/api/projects/{team_project.id}/tasks/xyz", headers=auth_headers(manager_user))
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid ID"


def test_missing_task(client: TestClient, team_project: models.Project, manager_user: models.User):
    response = client.get(
        f"/api/projects/{team_project.id}/tasks/{models.new_object_id()}",
        headers=auth_headers(manager_user),
    )
    assert response.status_code == 404


def test_list_tasks_visible_to_collaborator_only(
    client: TestClient, task: models.Task, collaborator_user: models.User, outsider_user: models.User
):
    url = f"/api/projects/{task.project_id}/tasks"

    response = client.get(url, headers=auth_headers(collaborator_user))
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [task.id]

    response = client.get(url, headers=auth_headers(outsider_user))
    assert response.status_code == 404


def test_outsider_cannot_change_status(
    client: TestClient, task: models.Task, outsider_user: models.User
):
    response = client.post(
        f"/api/projects/{task.project_id}/tasks/{task.id}/status",
        json={"status": "completed"},
        headers=auth_headers(outsider_user),
    )
    assert response.status_code == 404
