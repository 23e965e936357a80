"""
Authentication and account API endpoints.

This module provides REST API endpoints for:
- Account creation and confirmation
- Login
- Confirmation code and password reset code requests
- Profile and password management for the logged-in user
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from uptask import accounts, schemas
from uptask.auth.dependencies import get_current_user
from uptask.database import get_db
from uptask.errors import AccountNotConfirmedError
from uptask.models import User
from uptask.notifications import NotificationSender, get_notification_sender

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/create-account", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    request: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    sender: NotificationSender = Depends(get_notification_sender),
):
    """
    Register a new account.

    The account starts unconfirmed; a confirmation code is emailed.

    Raises:
        409 if the email is already registered
    """
    accounts.register_user(db, request.name, request.email, request.password, sender)
    return {"message": "Account created, check your email to confirm it"}


@router.post("/confirm-account", response_model=schemas.MessageResponse)
def confirm_account(request: schemas.TokenRequest, db: Session = Depends(get_db)):
    """Confirm an account with the emailed code (401 if unknown or expired)."""
    accounts.confirm_account(db, request.token)
    return {"message": "Account confirmed"}


@router.post("/login", response_model=schemas.TokenResponse)
def login(
    request: schemas.LoginRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sender: NotificationSender = Depends(get_notification_sender),
):
    """
    Login with email and password.

    Returns:
        Access token for API requests

    Raises:
        401 if credentials are invalid or the account is not confirmed
    """
    try:
        access_token = accounts.login(db, request.email, request.password, sender)
    except AccountNotConfirmedError as e:
        # The error handler builds a fresh response, which would drop the queued email
        return JSONResponse(
            status_code=e.status_code,
            content={"detail": e.message},
            background=background_tasks,
        )
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/request-code", response_model=schemas.MessageResponse)
def request_code(
    request: schemas.EmailRequest,
    db: Session = Depends(get_db),
    sender: NotificationSender = Depends(get_notification_sender),
):
    accounts.request_confirmation_code(db, request.email, sender)
    return {"message": "A new code has been sent to your email"}


@router.post("/forgot-password", response_model=schemas.MessageResponse)
def forgot_password(
    request: schemas.EmailRequest,
    db: Session = Depends(get_db),
    sender: NotificationSender = Depends(get_notification_sender),
):
    accounts.forgot_password(db, request.email, sender)
    return {"message": "Check your email for instructions"}


@router.post("/validate-token", response_model=schemas.MessageResponse)
def validate_token(request: schemas.TokenRequest, db: Session = Depends(get_db)):
    accounts.validate_token(db, request.token)
    return {"message": "Valid token, set your new password"}


@router.post("/update-password/{token}", response_model=schemas.MessageResponse)
def update_password_with_token(
    token: str,
    request: schemas.NewPasswordRequest,
    db: Session = Depends(get_db),
):
    accounts.reset_password_with_token(db, token, request.password)
    return {"message": "Password updated"}


@router.get("/user", response_model=schemas.UserPublic)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's public profile."""
    logger.debug(f"Fetching user info for: {current_user.id}")
    return current_user


@router.put("/profile", response_model=schemas.MessageResponse)
def update_profile(
    request: schemas.ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.update_profile(db, current_user, request.name, request.email)
    return {"message": "Profile updated"}


@router.post("/update-password", response_model=schemas.MessageResponse)
def update_password(
    request: schemas.ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    accounts.change_password(db, current_user, request.current_password, request.password)
    return {"message": "Password updated"}


@router.post("/check-password", response_model=schemas.MessageResponse)
def check_password(
    request: schemas.PasswordCheckRequest,
    current_user: User = Depends(get_current_user),
):
    accounts.check_password(current_user, request.password)
    return {"message": "Correct password"}
