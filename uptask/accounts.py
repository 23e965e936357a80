"""
User accounts: registration, confirmation, login and password management.

Emails are always compared and stored lowercased. Confirmation and password
reset share one six-digit code per user; issuing a new code replaces the old
one, and consuming it clears it.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from uptask.auth.security import (
    create_access_token,
    generate_account_token,
    hash_password,
    is_account_token_format,
    verify_password,
)
from uptask.config import ACCOUNT_TOKEN_EXPIRE_MINUTES
from uptask.errors import (
    AccountNotConfirmedError,
    BadRequestError,
    EmailTakenError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from uptask.models import User
from uptask.notifications import Notification, NotificationKind, NotificationSender
from uptask.time_utils import expires_in, is_expired

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    """Case-insensitive email lookup; returns None when absent."""
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def _issue_token(db: Session, user: User) -> str:
    token = generate_account_token()
    while db.query(User.id).filter(User.token == token, User.id != user.id).first() is not None:
        token = generate_account_token()

    user.token = token
    user.token_expires_at = expires_in(ACCOUNT_TOKEN_EXPIRE_MINUTES)
    return token


def _send(sender: NotificationSender, kind: NotificationKind, user: User) -> None:
    sender.send(Notification(kind=kind, email=user.email, name=user.name, token=user.token))


def _user_for_token(db: Session, token: str) -> User:
    user = db.query(User).filter(User.token == token).first()
    if user is None or is_expired(user.token_expires_at):
        logger.info("Account token rejected: unknown or expired")
        raise UnauthorizedError("Invalid or expired token")
    return user


def register_user(
    db: Session, name: str, email: str, password: str, sender: NotificationSender
) -> User:
    """
    Create an unconfirmed account and email its confirmation code.

    Raises:
        EmailTakenError: if the email is already registered (any letter case)
    """
    email = normalize_email(email)
    logger.info(f"Registration attempt for email: {email}")

    if find_user_by_email(db, email) is not None:
        logger.info(f"Registration failed: email already exists: {email}")
        raise EmailTakenError()

    user = User(name=name, email=email, password_hash=hash_password(password), confirmed=False)
    db.add(user)
    _issue_token(db, user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Registration failed: concurrent registration for {email}")
        raise EmailTakenError()
    db.refresh(user)

    _send(sender, NotificationKind.confirmation, user)
    logger.info(f"User registered: {user.email} (ID: {user.id})")
    return user


def confirm_account(db: Session, token: str) -> User:
    """
    Consume a confirmation code.

    Raises:
        UnauthorizedError: if the code is unknown or expired
    """
    user = _user_for_token(db, token)
    user.confirmed = True
    user.token = None
    user.token_expires_at = None
    db.commit()

    logger.info(f"Account confirmed: {user.id}")
    return user


def login(db: Session, email: str, password: str, sender: NotificationSender) -> str:
    """
    Check credentials and return a session token.

    An unconfirmed account gets a fresh confirmation code by email instead.

    Raises:
        UnauthorizedError: on unknown email or wrong password
        AccountNotConfirmedError: if the account is not confirmed yet
    """
    logger.info(f"Login attempt for email: {email}")

    user = find_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info(f"Login failed: invalid credentials for {email}")
        raise UnauthorizedError("Invalid email or password")

    if not user.confirmed:
        _issue_token(db, user)
        db.commit()
        _send(sender, NotificationKind.confirmation, user)
        logger.info(f"Login refused for unconfirmed account {user.id}, new code sent")
        raise AccountNotConfirmedError()

    logger.info(f"User logged in: {user.email} (ID: {user.id})")
    return create_access_token({"sub": user.id})


def request_confirmation_code(db: Session, email: str, sender: NotificationSender) -> None:
    """
    Send a new confirmation code.

    Raises:
        NotFoundError: if the email is not registered
        ForbiddenError: if the account is already confirmed
    """
    user = find_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User is not registered")
    if user.confirmed:
        raise ForbiddenError("Account is already confirmed")

    _issue_token(db, user)
    db.commit()
    _send(sender, NotificationKind.confirmation, user)
    logger.info(f"Confirmation code reissued for user {user.id}")


def forgot_password(db: Session, email: str, sender: NotificationSender) -> None:
    """
    Send a password reset code.

    Raises:
        NotFoundError: if the email is not registered
    """
    user = find_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User is not registered")

    _issue_token(db, user)
    db.commit()
    _send(sender, NotificationKind.password_reset, user)
    logger.info(f"Password reset code issued for user {user.id}")


def validate_token(db: Session, token: str) -> None:
    """Check a code without consuming it."""
    _user_for_token(db, token)


def reset_password_with_token(db: Session, token: str, password: str) -> None:
    """
    Set a new password using a reset code, consuming the code.

    Raises:
        BadRequestError: if the code is not six digits
        UnauthorizedError: if the code is unknown or expired
    """
    if not is_account_token_format(token):
        raise BadRequestError("Invalid token")

    user = _user_for_token(db, token)
    user.password_hash = hash_password(password)
    user.token = None
    user.token_expires_at = None
    db.commit()
    logger.info(f"Password reset for user {user.id}")


def update_profile(db: Session, user: User, name: str, email: str) -> User:
    """
    Raises:
        EmailTakenError: if another account already uses ``email``
    """
    email = normalize_email(email)
    owner = find_user_by_email(db, email)
    if owner is not None and owner.id != user.id:
        logger.info(f"Profile update for {user.id} rejected: email {email} in use")
        raise EmailTakenError("That email is already registered")

    user.name = name
    user.email = email
    db.commit()
    db.refresh(user)
    logger.info(f"Profile updated for user {user.id}")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        logger.info(f"Password change for {user.id} rejected: wrong current password")
        raise UnauthorizedError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")


def check_password(user: User, password: str) -> None:
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Incorrect password")
