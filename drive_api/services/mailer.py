import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from drive_api.core.config import Settings

logger = logging.getLogger(__name__)


class MailError(Exception):
    pass


class SMTPMailer:
    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        from_address: str,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.exception("failed to send email to %s", to)
            raise MailError("Email could not be sent") from e

        logger.info("email sent to %s: %s", to, subject)


class LogMailer:
    """Used when no SMTP host is configured; only logs the message."""

    def send(self, to: str, subject: str, html: str) -> None:
        # bodies can carry reset links, so only DEBUG shows them
        logger.info("email to %s: %s", to, subject)
        logger.debug("email body for %s:\n%s", to, html)


def build_mailer(settings: Settings):
    if not settings.SMTP_HOST:
        return LogMailer()
    return SMTPMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        use_tls=settings.SMTP_USE_TLS,
        from_address=settings.MAIL_FROM,
    )
