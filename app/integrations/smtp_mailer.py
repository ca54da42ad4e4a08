from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage

logger = logging.getLogger(__name__)


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    attachments: list[Attachment] = field(default_factory=list)


class SmtpMailer:
    """SMTP over SSL. send() never raises: failures are logged and reported as False."""

    def __init__(self, *, host: str, port: int, user: str, password: str, sender: str, timeout: int = 20):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def _build(self, email: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = email.to
        msg["Subject"] = email.subject
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(email.html, subtype="html")

        for att in email.attachments:
            maintype, _, subtype = att.content_type.partition("/")
            msg.add_attachment(att.content, maintype=maintype, subtype=subtype, filename=att.filename)
        return msg

    def send(self, email: OutgoingEmail) -> bool:
        if not self.configured:
            logger.warning("SMTP credentials not configured. Email to %s not sent.", email.to)
            return False

        try:
            with smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=ssl.create_default_context()
            ) as smtp:
                smtp.login(self.user, self.password)
                smtp.send_message(self._build(email))
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email send to %s failed: %s", email.to, e)
            return False

        logger.info("Email sent to %s: %s", email.to, email.subject)
        return True


def build_mailer(settings) -> SmtpMailer:
    return SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        user=settings.SMTP_USER,
        password=settings.SMTP_PASS,
        sender=settings.email_from,
    )
