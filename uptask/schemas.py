from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from uptask.models import ProjectRole, TaskStatus


class MessageResponse(BaseModel):
    message: str


# User schemas
class UserPublic(BaseModel):
    """Projection of a user that is safe to show to other users."""

    id: str
    name: str
    email: str

    class Config:
        from_attributes = True


class PasswordConfirmation(BaseModel):
    password: str = Field(..., min_length=8, max_length=100)
    password_confirmation: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("Passwords do not match")
        return self


class RegisterRequest(PasswordConfirmation):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class EmailRequest(BaseModel):
    email: EmailStr


class NewPasswordRequest(PasswordConfirmation):
    pass


class ChangePasswordRequest(PasswordConfirmation):
    current_password: str = Field(..., min_length=1)


class PasswordCheckRequest(BaseModel):
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Note schemas
class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)


class Note(BaseModel):
    id: str
    task_id: str
    content: str
    author: Optional[UserPublic] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Task schemas
class TaskBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class TaskCreate(TaskBase):
    pass


class TaskUpdate(TaskBase):
    pass


class StatusUpdate(BaseModel):
    status: TaskStatus


class StatusChange(BaseModel):
    from_status: TaskStatus
    to_status: TaskStatus
    actor: Optional[UserPublic] = None
    changed_at: datetime

    class Config:
        from_attributes = True


class TaskSummary(TaskBase):
    id: str
    project_id: str
    status: TaskStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Task(TaskSummary):
    status_history: List[StatusChange] = Field(default_factory=list)


# Project schemas
class ProjectBase(BaseModel):
    project_name: str = Field(..., min_length=1, max_length=255)
    client_name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(ProjectBase):
    pass


class Project(ProjectBase):
    id: str
    created_by: Optional[str] = None
    role: Optional[ProjectRole] = None  # the caller's role in this project
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectWithTasks(Project):
    managers: List[UserPublic] = Field(default_factory=list)
    team: List[UserPublic] = Field(default_factory=list)
    tasks: List[TaskSummary] = Field(default_factory=list)


# Team schemas
class MemberAdd(BaseModel):
    id: str


class TeamRoster(BaseModel):
    managers: List[UserPublic] = Field(default_factory=list)
    collaborators: List[UserPublic] = Field(default_factory=list)
