"""
Project roster management.

A user holds at most one role per project. The ``(project_id, user_id)``
unique constraint on ``ProjectMember`` enforces that in the store, so two
concurrent ``add_member`` calls for the same user cannot both succeed: the
loser's insert fails and surfaces as ``AlreadyMemberError``.

Only collaborators are added or removed here; managers are fixed at project
creation.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from uptask.accounts import find_user_by_email
from uptask.auth.permissions import authorize_mutation, is_member
from uptask.errors import AlreadyMemberError, NotAMemberError, NotFoundError
from uptask.models import Project, ProjectMember, ProjectRole, User

logger = logging.getLogger(__name__)


@dataclass
class TeamRoster:
    managers: List[User] = field(default_factory=list)
    collaborators: List[User] = field(default_factory=list)


def find_candidate(db: Session, email: str) -> User:
    """
    Find a user to add to a project by email (case-insensitive).

    Raises:
        NotFoundError: if no user has that email
    """
    logger.debug(f"Looking up candidate member by email: {email}")
    user = find_user_by_email(db, email)
    if user is None:
        logger.info(f"Candidate not found for email: {email}")
        raise NotFoundError("User not found")
    return user


def add_member(db: Session, project: Project, user_id: str, actor_id: str) -> ProjectMember:
    """
    Add a user to the project team as a collaborator.

    Args:
        db: Database session
        project: Loaded project
        user_id: Id of the user to add
        actor_id: Id of the user performing the change (must be a manager)

    Returns:
        The created membership

    Raises:
        ForbiddenError: if the actor is not a manager
        NotFoundError: if the user does not exist
        AlreadyMemberError: if the user already holds any role in the project
    """
    logger.debug(f"User {actor_id} adding member {user_id} to project {project.id}")
    authorize_mutation(project, actor_id)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.info(f"User {user_id} not found, cannot add to project {project.id}")
        raise NotFoundError("User not found")

    if is_member(project, user_id):
        logger.info(f"User {user_id} already has role {project.role_of(user_id).value} in project {project.id}")
        raise AlreadyMemberError()

    membership = ProjectMember(user=user, role=ProjectRole.collaborator)
    project.members.append(membership)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert for the same user
        db.rollback()
        logger.info(f"Concurrent membership insert for user {user_id} in project {project.id}")
        raise AlreadyMemberError()

    db.refresh(membership)
    logger.info(f"User {user_id} added to project {project.id} as collaborator")
    return membership


def remove_member(db: Session, project: Project, user_id: str, actor_id: str) -> None:
    """
    Remove a collaborator from the project team.

    Managers cannot be removed through this path; asking to remove one fails
    exactly like asking to remove a stranger.

    Raises:
        ForbiddenError: if the actor is not a manager
        NotAMemberError: if the user is not a collaborator of the project
    """
    logger.debug(f"User {actor_id} removing member {user_id} from project {project.id}")
    authorize_mutation(project, actor_id)

    deleted = (
        db.query(ProjectMember)
        .filter(
            ProjectMember.project_id == project.id,
            ProjectMember.user_id == user_id,
            ProjectMember.role == ProjectRole.collaborator,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        db.rollback()
        logger.info(f"User {user_id} is not a collaborator of project {project.id}")
        raise NotAMemberError()

    db.commit()
    logger.info(f"User {user_id} removed from project {project.id}")


def list_team(project: Project, caller_id: str) -> TeamRoster:
    """
    Return the project's managers and collaborators, excluding the caller.

    Raises:
        NotFoundError: if the caller is not a member
    """
    if not is_member(project, caller_id):
        raise NotFoundError("Project not found")

    roster = TeamRoster(
        managers=[u for u in project.managers if u.id != caller_id],
        collaborators=[u for u in project.team if u.id != caller_id],
    )
    logger.debug(
        f"Project {project.id} roster for {caller_id}: "
        f"{len(roster.managers)} managers, {len(roster.collaborators)} collaborators"
    )
    return roster
