from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from uptask import membership, schemas
from uptask.auth.dependencies import get_current_user
from uptask.auth.permissions import authorize_mutation
from uptask.database import get_db
from uptask.dependencies import ensure_object_id, get_project_for_user
from uptask.models import Project, User

router = APIRouter(prefix="/api/projects/{project_id}/team", tags=["team"])


@router.post("/find", response_model=schemas.UserPublic)
def find_member_by_email(
    request: schemas.EmailRequest,
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Look up a user to invite by email (managers only)."""
    authorize_mutation(project, current_user.id)
    return membership.find_candidate(db, request.email)


@router.get("", response_model=schemas.TeamRoster)
def get_project_team(
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
):
    """List managers and collaborators other than the caller."""
    roster = membership.list_team(project, current_user.id)
    return schemas.TeamRoster(
        managers=[schemas.UserPublic.model_validate(u) for u in roster.managers],
        collaborators=[schemas.UserPublic.model_validate(u) for u in roster.collaborators],
    )


@router.post("", response_model=schemas.MessageResponse)
def add_member(
    request: schemas.MemberAdd,
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a user to the team as a collaborator (managers only)."""
    ensure_object_id(request.id)
    membership.add_member(db, project, request.id, current_user.id)
    return {"message": "User added to the project"}


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def remove_member(
    user_id: str,
    project: Project = Depends(get_project_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a collaborator from the team (managers only)."""
    ensure_object_id(user_id)
    membership.remove_member(db, project, user_id, current_user.id)
    return {"message": "User removed from the project"}
