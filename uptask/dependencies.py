"""
Path resolution for project routes.

Each dependency validates the id it receives, loads the entity on behalf of the
authenticated user and hands it to the route, which passes it explicitly into
the core operation. Malformed ids fail with 400 before anything is loaded;
projects the user cannot see fail with 404.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from uptask import workflow
from uptask.auth.dependencies import get_current_user
from uptask.auth.permissions import get_visible_project
from uptask.database import get_db
from uptask.errors import BadRequestError
from uptask.models import Project, Task, User, is_object_id

logger = logging.getLogger(__name__)


def ensure_object_id(value: str) -> str:
    """
    Raises:
        BadRequestError: if ``value`` is not a 24-character hexadecimal id
    """
    if not is_object_id(value):
        logger.info(f"Rejected malformed id: {value!r}")
        raise BadRequestError("Invalid ID")
    return value


def get_project_for_user(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Project:
    ensure_object_id(project_id)
    return get_visible_project(db, project_id, current_user.id)


def get_task_for_user(
    task_id: str,
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Task:
    ensure_object_id(task_id)
    return workflow.get_task(db, project, task_id, current_user.id)
