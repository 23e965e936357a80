"""Notes attached to tasks. Any project member may write one; only its author may delete it."""

import logging
from typing import List

from sqlalchemy.orm import Session

from uptask.auth.permissions import authorize_read
from uptask.errors import ForbiddenError, NotFoundError
from uptask.models import Note, Task

logger = logging.getLogger(__name__)


def create_note(db: Session, task: Task, content: str, author_id: str) -> Note:
    authorize_read(task.project, author_id)

    note = Note(content=content, author_id=author_id)
    task.notes.append(note)
    db.commit()
    db.refresh(note)

    logger.info(f"Note {note.id} added to task {task.id} by user {author_id}")
    return note


def list_notes(db: Session, task: Task, actor_id: str) -> List[Note]:
    authorize_read(task.project, actor_id)
    return (
        db.query(Note)
        .filter(Note.task_id == task.id)
        .order_by(Note.created_at)
        .all()
    )


def delete_note(db: Session, task: Task, note_id: str, actor_id: str) -> None:
    """
    Delete a note from a task.

    Raises:
        NotFoundError: if the note does not exist or belongs to another task
        ForbiddenError: if the actor did not write the note
    """
    authorize_read(task.project, actor_id)

    note = db.query(Note).filter(Note.id == note_id).first()
    if note is None or note.task_id != task.id:
        logger.info(f"Note {note_id} not found on task {task.id}")
        raise NotFoundError("Note not found")

    if note.author_id != actor_id:
        logger.info(f"User {actor_id} attempted to delete note {note_id} written by {note.author_id}")
        raise ForbiddenError("Can only delete your own notes")

    db.delete(note)
    db.commit()
    logger.info(f"Note {note_id} deleted by user {actor_id}")
