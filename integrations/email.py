import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    sent: bool
    error: Optional[str] = None


class EmailSender:
    def __init__(self, server: Optional[str], port: int, email: Optional[str],
                 password: Optional[str], frontend_url: str = "", timeout: float = 15.0):
        self.server = server
        self.port = port
        self.email = email
        self.password = password
        self.frontend_url = frontend_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return all([self.server, self.port, self.email, self.password])

    def send(self, to_email: str, subject: str, body: str, html: Optional[str] = None) -> EmailResult:
        """Send one message. Failures are reported in the result, never raised."""
        if not self.configured:
            logger.info("SMTP not configured; skipping email to %s", to_email)
            return EmailResult(sent=False, error="Email service not configured")

        msg = EmailMessage()
        msg.set_content(body)
        if html:
            msg.add_alternative(html, subtype="html")
        msg["Subject"] = subject
        msg["From"] = self.email
        msg["To"] = to_email

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                smtp.starttls()
                smtp.login(self.email, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Failed to send email to %s: %s", to_email, exc)
            return EmailResult(sent=False, error=str(exc))

        logger.info("Email sent to %s", to_email)
        return EmailResult(sent=True)

    def send_task_assignment(self, to_email: str, assignee_name: str, task_title: str,
                             assigner_name: str, workspace_name: str,
                             due_date: Optional[str] = None) -> EmailResult:
        due_line = f"\nDue: {due_date}" if due_date else ""
        return self.send(
            to_email,
            subject=f"New task assigned: {task_title}",
            body=(
                f"Hi {assignee_name},\n\n{assigner_name} assigned you the task '{task_title}' "
                f"in the workspace '{workspace_name}'.{due_line}"
                f"\n\nOpen your tasks: {self.frontend_url}/tasks"
            ),
        )

    def send_workspace_invite(self, to_email: str, workspace_name: str, inviter: str) -> EmailResult:
        return self.send(
            to_email,
            subject="You're Invited to Join a Workspace",
            body=(
                f"Hi,\n\n{inviter} has invited you to join the workspace '{workspace_name}'."
                f"\nClick here to open the dashboard: {self.frontend_url}/dashboard"
            ),
        )
