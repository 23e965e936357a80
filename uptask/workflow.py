"""
Task lifecycle within a project.

Editing, creating and deleting tasks is reserved for project managers. Moving
a task between statuses is open to every project member, and every move is
appended to the task's status history with the actor and a timestamp.

There is no state diagram: any status may follow any other, including the
current one. A same-status move is recorded like any other so the history
grows by exactly one entry per call.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from uptask.auth.permissions import authorize_mutation, authorize_read, is_member
from uptask.errors import ForbiddenError, NotFoundError
from uptask.models import Project, Task, TaskStatus, TaskStatusChange
from uptask.time_utils import utc_now

logger = logging.getLogger(__name__)

INITIAL_STATUS = list(TaskStatus)[0]


def create_task(db: Session, project: Project, name: str, description: str, actor_id: str) -> Task:
    """
    Create a task in a project, starting in the initial status.

    Raises:
        ForbiddenError: if the actor is not a manager
    """
    logger.debug(f"User {actor_id} creating task '{name}' in project {project.id}")
    authorize_mutation(project, actor_id)

    task = Task(name=name, description=description, status=INITIAL_STATUS)
    project.tasks.append(task)
    db.commit()
    db.refresh(task)

    logger.info(f"Task created: id={task.id} in project {project.id} by user {actor_id}")
    return task


def list_tasks(db: Session, project: Project, actor_id: str) -> List[Task]:
    authorize_read(project, actor_id)
    return (
        db.query(Task)
        .filter(Task.project_id == project.id)
        .order_by(Task.created_at)
        .all()
    )


def get_task(db: Session, project: Project, task_id: str, actor_id: str) -> Task:
    """
    Load a task through the project it belongs to.

    Task ids are resolved independently of project ids, so the task's stored
    project reference is checked against ``project``; a mismatch is treated
    as absence.

    Raises:
        NotFoundError: if the task does not exist, belongs to another project,
            or the actor cannot see the project
    """
    authorize_read(project, actor_id)

    task = db.query(Task).filter(Task.id == task_id).first()
    if task is None:
        logger.info(f"Task {task_id} not found")
        raise NotFoundError("Task not found")

    if task.project_id != project.id:
        logger.info(f"Task {task_id} belongs to project {task.project_id}, not {project.id}")
        raise NotFoundError("Task not found")

    return task


def update_task(db: Session, task: Task, name: str, description: str, actor_id: str) -> Task:
    """
    Update a task's name and description. Status is left untouched.

    Raises:
        ForbiddenError: if the actor is not a manager of the task's project
    """
    logger.debug(f"User {actor_id} updating task {task.id}")
    authorize_mutation(task.project, actor_id)

    task.name = name
    task.description = description
    db.commit()
    db.refresh(task)

    logger.info(f"Task {task.id} updated by user {actor_id}")
    return task


def update_status(db: Session, task: Task, new_status: TaskStatus, actor_id: str) -> Task:
    """
    Move a task to ``new_status`` and log the transition.

    Args:
        db: Database session
        task: Loaded task
        new_status: Target status, any value is accepted
        actor_id: Id of the user moving the task (manager or collaborator)

    Returns:
        The updated task

    Raises:
        ForbiddenError: if the actor is not a member of the task's project
    """
    if not is_member(task.project, actor_id):
        logger.info(f"User {actor_id} is not a member of project {task.project_id}, status change denied")
        raise ForbiddenError("Only project members can change task status")

    new_status = TaskStatus(new_status)
    old_status = task.status
    task.status_history.append(
        TaskStatusChange(
            from_status=old_status,
            to_status=new_status,
            actor_id=actor_id,
            changed_at=utc_now(),
        )
    )
    task.status = new_status
    db.commit()
    db.refresh(task)

    logger.info(f"Task {task.id} status changed: {old_status.value} -> {new_status.value} by user {actor_id}")
    return task


def delete_task(db: Session, task: Task, actor_id: str) -> None:
    """
    Delete a task together with its notes and status history.

    The cascade runs in the same transaction as the task delete.

    Raises:
        ForbiddenError: if the actor is not a manager of the task's project
    """
    logger.debug(f"User {actor_id} deleting task {task.id}")
    authorize_mutation(task.project, actor_id)

    task_id = task.id
    db.delete(task)
    db.commit()

    logger.info(f"Task {task_id} deleted by user {actor_id}")
