from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from uptask import projects, schemas, workflow
from uptask.auth.dependencies import get_current_user
from uptask.database import get_db
from uptask.dependencies import get_project_for_user, get_task_for_user
from uptask.models import Project, Task, User

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _project_out(project: Project, user_id: str, schema=schemas.Project):
    out = schema.model_validate(project)
    out.role = project.role_of(user_id)
    return out


# ============== Projects ==============

@router.post("", response_model=schemas.Project, status_code=status.HTTP_201_CREATED)
def create_project(
    project: schemas.ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new project with the caller as its manager."""
    db_project = projects.create_project(
        db, project.project_name, project.client_name, project.description, current_user.id
    )
    return _project_out(db_project, current_user.id)


@router.get("", response_model=List[schemas.Project])
def list_projects(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the projects the caller manages or collaborates on."""
    return [_project_out(p, current_user.id) for p in projects.list_projects(db, current_user.id)]


@router.get("/{project_id}", response_model=schemas.ProjectWithTasks)
def get_project(
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
):
    """Get a project with its tasks and roster (members only)."""
    return _project_out(project, current_user.id, schemas.ProjectWithTasks)


@router.put("/{project_id}", response_model=schemas.Project)
def update_project(
    update: schemas.ProjectUpdate,
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update project details (managers only)."""
    db_project = projects.update_project(
        db, project, update.project_name, update.client_name, update.description, current_user.id
    )
    return _project_out(db_project, current_user.id)


@router.delete("/{project_id}", response_model=schemas.MessageResponse)
def delete_project(
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a project and everything in it (managers only)."""
    projects.delete_project(db, project, current_user.id)
    return {"message": "Project deleted"}


# ============== Tasks ==============

@router.post("/{project_id}/tasks", response_model=schemas.Task, status_code=status.HTTP_201_CREATED)
def create_task(
    task: schemas.TaskCreate,
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task in the project (managers only)."""
    return workflow.create_task(db, project, task.name, task.description, current_user.id)


@router.get("/{project_id}/tasks", response_model=List[schemas.TaskSummary])
def list_tasks(
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return workflow.list_tasks(db, project, current_user.id)


@router.get("/{project_id}/tasks/{task_id}", response_model=schemas.Task)
def get_task(task: Task = Depends(get_task_for_user)):
    """Get a task with its status history."""
    return task


@router.put("/{project_id}/tasks/{task_id}", response_model=schemas.Task)
def update_task(
    update: schemas.TaskUpdate,
    task: Task = Depends(get_task_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a task's name and description (managers only)."""
    return workflow.update_task(db, task, update.name, update.description, current_user.id)


@router.delete("/{project_id}/tasks/{task_id}", response_model=schemas.MessageResponse)
def delete_task(
    task: Task = Depends(get_task_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a task with its notes (managers only)."""
    workflow.delete_task(db, task, current_user.id)
    return {"message": "Task deleted"}


@router.post("/{project_id}/tasks/{task_id}/status", response_model=schemas.Task)
def update_task_status(
    update: schemas.StatusUpdate,
    task: Task = Depends(get_task_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move a task to another status (any project member)."""
    return workflow.update_status(db, task, update.status, current_user.id)
