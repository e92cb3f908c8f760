"""
SMTP mail transport

Sends HTML mail through an SMTP provider using the credentials from
settings. Credentials are not checked at startup; a send without them
fails with ConfigurationError.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from servicedesk.exceptions import ConfigurationError
from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Sends one HTML message per call over a fresh SMTP session"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def send(self, to: str, subject: str, html: str) -> None:
        """
        Send an HTML email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body

        Raises:
            ConfigurationError: If EMAIL_USER / EMAIL_PASSWORD are not set
            smtplib.SMTPException, OSError: If delivery fails
        """
        sender = self.settings.EMAIL_USER
        password = self.settings.EMAIL_PASSWORD
        if not sender or not password:
            raise ConfigurationError("Mail credentials are not configured")

        msg = MIMEMultipart("alternative")
        msg["From"] = sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=30) as server:
            if self.settings.SMTP_USE_TLS:
                server.starttls()
            server.login(sender, password)
            server.send_message(msg)
        logger.debug(f"Sent email '{subject}' to {to}")
