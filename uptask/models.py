import enum
import re
import secrets
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from uptask.database import Base
from uptask.time_utils import utc_now


OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


def new_object_id() -> str:
    """Generate a 24-character hexadecimal document id."""
    return secrets.token_hex(12)


def is_object_id(value: str) -> bool:
    return isinstance(value, str) and OBJECT_ID_PATTERN.fullmatch(value) is not None


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ProjectRole(str, enum.Enum):
    manager = "manager"
    collaborator = "collaborator"


class TaskStatus(str, enum.Enum):
    pending = "pending"
    on_hold = "onHold"
    in_progress = "inProgress"
    under_review = "underReview"
    completed = "completed"


task_status_enum = Enum(TaskStatus, name="task_status", values_callable=_enum_values)


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(255), nullable=False)
    # Always stored lowercased; lookups lowercase their input too
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    confirmed = Column(Boolean, nullable=False, default=False)

    # Confirmation / password reset code, single use
    token = Column(String(6), nullable=True, index=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    memberships = relationship("ProjectMember", back_populates="user", cascade="all, delete-orphan")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(24), primary_key=True, default=new_object_id)
    project_name = Column(String(255), nullable=False)
    client_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    created_by = Column(String(24), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    tasks = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Task.created_at",
    )

    def role_of(self, user_id: str) -> Optional[ProjectRole]:
        for member in self.members:
            if member.user_id == user_id:
                return member.role
        return None

    @property
    def managers(self) -> List["User"]:
        return [m.user for m in self.members if m.role == ProjectRole.manager]

    @property
    def team(self) -> List["User"]:
        return [m.user for m in self.members if m.role == ProjectRole.collaborator]


class ProjectMember(Base):
    """A user's single role within a project."""

    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

    id = Column(String(24), primary_key=True, default=new_object_id)
    project_id = Column(String(24), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        Enum(ProjectRole, name="project_role", values_callable=_enum_values),
        nullable=False,
        default=ProjectRole.collaborator,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    project = relationship("Project", back_populates="members")
    user = relationship("User", back_populates="memberships")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(24), primary_key=True, default=new_object_id)
    project_id = Column(String(24), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(task_status_enum, nullable=False, default=TaskStatus.pending)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    project = relationship("Project", back_populates="tasks")
    status_history = relationship(
        "TaskStatusChange",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskStatusChange.position",
        collection_class=ordering_list("position"),
    )
    notes = relationship(
        "Note",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Note.created_at",
    )


class TaskStatusChange(Base):
    """One entry of a task's append-only status log."""

    __tablename__ = "task_status_changes"

    id = Column(String(24), primary_key=True, default=new_object_id)
    task_id = Column(String(24), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    from_status = Column(task_status_enum, nullable=False)
    to_status = Column(task_status_enum, nullable=False)
    actor_id = Column(String(24), ForeignKey("users.id", ondelete="SET NULL"))
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    task = relationship("Task", back_populates="status_history")
    actor = relationship("User")


class Note(Base):
    __tablename__ = "notes"

    id = Column(String(24), primary_key=True, default=new_object_id)
    task_id = Column(String(24), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(24), ForeignKey("users.id", ondelete="SET NULL"))
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    task = relationship("Task", back_populates="notes")
    author = relationship("User")
