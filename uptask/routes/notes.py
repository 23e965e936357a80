from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from uptask import notes, schemas
from uptask.auth.dependencies import get_current_user
from uptask.database import get_db
from uptask.dependencies import ensure_object_id, get_task_for_user
from uptask.models import Task, User

router = APIRouter(prefix="/api/projects/{project_id}/tasks/{task_id}/notes", tags=["notes"])


@router.post("", response_model=schemas.Note, status_code=status.HTTP_201_CREATED)
def create_note(
    note: schemas.NoteCreate,
    task: Task = Depends(get_task_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notes.create_note(db, task, note.content, current_user.id)


@router.get("", response_model=List[schemas.Note])
def list_notes(
    task: Task = Depends(get_task_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notes.list_notes(db, task, current_user.id)


@router.delete("/{note_id}", response_model=schemas.MessageResponse)
def delete_note(
    note_id: str,
    task: Task = Depends(get_task_for_user),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a note (its author only)."""
    ensure_object_id(note_id)
    notes.delete_note(db, task, note_id, current_user.id)
    return {"message": "Note deleted"}
