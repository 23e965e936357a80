"""
Project-level authorization.

Managers hold full mutation rights over a project (its details, tasks and
roster). Collaborators may read the project and move task status. Everyone
else cannot see the project at all: lookups on behalf of a non-member fail
with ``NotFoundError`` so project existence is never leaked.

All predicates operate on an already-loaded ``Project`` and have no side
effects.
"""

import logging

from sqlalchemy.orm import Session

from uptask.errors import ForbiddenError, NotFoundError
from uptask.models import Project, ProjectRole

logger = logging.getLogger(__name__)


def is_manager(project: Project, user_id: str) -> bool:
    """True iff ``user_id`` holds the manager role in ``project``."""
    return project.role_of(user_id) == ProjectRole.manager


def is_member(project: Project, user_id: str) -> bool:
    """True iff ``user_id`` is a manager or collaborator of ``project``."""
    return project.role_of(user_id) is not None


def authorize_mutation(project: Project, user_id: str) -> None:
    """
    Require the manager role for a mutating operation.

    Gates project update/delete, task create/update/delete and roster changes.

    Args:
        project: Loaded project
        user_id: Id of the acting user

    Raises:
        ForbiddenError: if the user is not a manager, regardless of team membership
    """
    if not is_manager(project, user_id):
        logger.info(f"User {user_id} is not a manager of project {project.id}, mutation denied")
        raise ForbiddenError("Only project managers can perform this action")
    logger.debug(f"Mutation authorized for user {user_id} on project {project.id}")


def authorize_read(project: Project, user_id: str) -> None:
    """
    Require membership to see a project.

    Raises:
        NotFoundError: if the user is neither manager nor collaborator
    """
    if not is_member(project, user_id):
        logger.info(f"User {user_id} has no membership in project {project.id}, returning 404")
        raise NotFoundError("Project not found")


def get_visible_project(db: Session, project_id: str, user_id: str) -> Project:
    """
    Load a project on behalf of a user.

    Args:
        db: Database session
        project_id: Id of the project to load
        user_id: Id of the requesting user

    Returns:
        The project, if it exists and the user is a member

    Raises:
        NotFoundError: if the project is absent or the user is not a member

    Example:
        >>> project = get_visible_project(db, project_id, current_user.id)
        >>> authorize_mutation(project, current_user.id)
    """
    project = db.query(Project).filter(Project.id == project_id).first()
    if project is None:
        logger.info(f"Project {project_id} not found")
        raise NotFoundError("Project not found")

    authorize_read(project, user_id)
    return project
