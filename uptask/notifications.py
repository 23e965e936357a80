"""
Outgoing account emails.

Account flows never talk to SMTP directly: they receive a ``NotificationSender``
and call ``send``. In the API the sender is a ``BackgroundNotificationSender``,
so mail goes out after the response and a delivery failure is logged rather
than failing the request. Tests swap in a recording sender.
"""

import enum
import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText

from fastapi import BackgroundTasks

from uptask import config

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    confirmation = "confirmation"
    password_reset = "password_reset"


@dataclass
class Notification:
    kind: NotificationKind
    email: str
    name: str
    token: str


class NotificationSender:
    """Delivers a notification. Implementations must not raise on delivery failure."""

    def send(self, notification: Notification) -> None:
        raise NotImplementedError


def _render(notification: Notification) -> MIMEText:
    if notification.kind == NotificationKind.confirmation:
        subject = "UpTask - Confirm your account"
        heading = "Confirm your account"
        intro = "You have created an UpTask account. Confirm it to get started."
        link = f"{config.FRONTEND_URL}/auth/confirm-account"
        action = "Confirm account"
    else:
        subject = "UpTask - Reset your password"
        heading = "Reset your password"
        intro = "You asked to reset your UpTask password."
        link = f"{config.FRONTEND_URL}/auth/new-password"
        action = "Reset password"

    html_body = f"""
    <html>
      <body style="font-family: Arial, Helvetica, sans-serif; background-color: #1F2937; padding: 20px;">
        <div style="max-width: 600px; margin: auto; background: #ffffff; padding: 40px 20px; text-align: center;">
          <h1 style="color: #111827;">{heading}</h1>
          <p style="color: #4B5563;">Hello {notification.name},<br>{intro}</p>
          <a href="{link}"
             style="display:inline-block;padding:12px 24px;background-color:#D946EF;
                    color:#ffffff;text-decoration:none;font-weight:bold;border-radius:4px;">
            {action}
          </a>
          <p style="color: #4B5563;">Enter this code: <strong style="color: #111827;">{notification.token}</strong></p>
          <p style="color: #6B7280; font-size: 14px;">
            This code expires in {config.ACCOUNT_TOKEN_EXPIRE_MINUTES} minutes.
            If you did not request it, ignore this email.
          </p>
        </div>
      </body>
    </html>
    """

    message = MIMEText(html_body, "html")
    message["Subject"] = subject
    message["From"] = f"UpTask <{config.SMTP_FROM}>"
    message["To"] = notification.email
    return message


class SmtpNotificationSender(NotificationSender):
    def __init__(
        self,
        host: str = None,
        port: int = None,
        user: str = None,
        password: str = None,
    ):
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.user = config.SMTP_USER if user is None else user
        self.password = config.SMTP_PASS if password is None else password

    def send(self, notification: Notification) -> None:
        message = _render(notification)
        try:
            # 465 is implicit TLS; anything else upgrades with STARTTLS when credentials are set
            if self.port == 465:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=30)
            with server:
                if self.port != 465 and self.user:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send {notification.kind.value} email to {notification.email}: {e}")
            return

        logger.info(f"Sent {notification.kind.value} email to {notification.email}")


class BackgroundNotificationSender(NotificationSender):
    """Defers delivery until after the response has been sent."""

    def __init__(self, background_tasks: BackgroundTasks, inner: NotificationSender):
        self.background_tasks = background_tasks
        self.inner = inner

    def send(self, notification: Notification) -> None:
        logger.debug(f"Queueing {notification.kind.value} email to {notification.email}")
        self.background_tasks.add_task(self.inner.send, notification)


def get_notification_sender(background_tasks: BackgroundTasks) -> NotificationSender:
    """FastAPI dependency returning the sender used by account routes."""
    return BackgroundNotificationSender(background_tasks, SmtpNotificationSender())
