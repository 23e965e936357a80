"""Project creation, listing, update and cascading delete."""

import logging
from typing import List

from sqlalchemy.orm import Session

from uptask.auth.permissions import authorize_mutation
from uptask.models import Project, ProjectMember, ProjectRole

logger = logging.getLogger(__name__)


def create_project(
    db: Session, project_name: str, client_name: str, description: str, creator_id: str
) -> Project:
    """Create a project; the creator becomes its manager."""
    logger.debug(f"User {creator_id} creating project: {project_name}")

    project = Project(
        project_name=project_name,
        client_name=client_name,
        description=description,
        created_by=creator_id,
    )
    project.members.append(ProjectMember(user_id=creator_id, role=ProjectRole.manager))
    db.add(project)
    db.commit()
    db.refresh(project)

    logger.info(f"Project created: {project.project_name} (ID: {project.id}) by user {creator_id}")
    return project


def list_projects(db: Session, user_id: str) -> List[Project]:
    """Projects in which ``user_id`` holds any role, oldest first."""
    projects = (
        db.query(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == user_id)
        .order_by(Project.created_at)
        .all()
    )
    logger.debug(f"User {user_id} retrieved {len(projects)} projects")
    return projects


def update_project(
    db: Session, project: Project, project_name: str, client_name: str, description: str, actor_id: str
) -> Project:
    """
    Replace a project's details.

    Raises:
        ForbiddenError: if the actor is not a manager
    """
    authorize_mutation(project, actor_id)

    project.project_name = project_name
    project.client_name = client_name
    project.description = description
    db.commit()
    db.refresh(project)

    logger.info(f"Project {project.id} updated by user {actor_id}")
    return project


def delete_project(db: Session, project: Project, actor_id: str) -> None:
    """
    Delete a project with its memberships, tasks, notes and status history.

    Everything is removed in one transaction: either the whole tree goes or
    nothing does.

    Raises:
        ForbiddenError: if the actor is not a manager
    """
    authorize_mutation(project, actor_id)

    project_id = project.id
    db.delete(project)
    db.commit()

    logger.info(f"Project deleted: {project_id} by user {actor_id}")
