import logging
import os
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .core.errors import Unavailable

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(__file__), 'email_templates')
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(['html']))

PURPOSE_VERIFY = "verify"
PURPOSE_RESET = "reset"


class NotificationError(Unavailable):
    default_message = "Failed to send email"


class Notifier(ABC):
    """Delivers one-time passcodes to a user's contact address."""

    @abstractmethod
    def send_otp(self, to_email: str, full_name: str, otp: str, purpose: str) -> None:
        pass


class EmailNotifier(Notifier):
    def __init__(self, server: str, port: int, user: str, password: str, timeout: float = 15.0):
        self.server = server
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send_email(self, to_email: str, subject: str, template_name: str, context: dict) -> None:
        template = env.get_template(template_name)
        html_content = template.render(context)

        msg = MIMEMultipart()
        msg['From'] = self.user
        msg['To'] = to_email
        msg['Subject'] = subject

        msg.attach(MIMEText(html_content, 'html'))

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send %r to %s: %s", subject, to_email, exc)
            raise NotificationError() from exc
        logger.info("Sent %r to %s", subject, to_email)

    def send_otp(self, to_email, full_name, otp, purpose):
        if purpose == PURPOSE_RESET:
            subject = "Password Reset Request"
            template_name = "password_reset.html"
        else:
            subject = f"Welcome {full_name or to_email}!"
            template_name = "verification.html"
        self.send_email(
            to_email=to_email,
            subject=subject,
            template_name=template_name,
            context={"otp": otp, "full_name": full_name}
        )
