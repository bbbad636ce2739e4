# academic_records/utils/mailer.py
import logging
import smtplib
import socket
from email.message import EmailMessage

logger = logging.getLogger(__name__)


def send_email(config, to, subject, body):
    """Best effort: returns False instead of raising when delivery fails."""
    host = config.get("SMTP_HOST")
    if not host or not to:
        logger.debug("Mail disabled, skipped message to %s", to)
        return False

    msg = EmailMessage()
    msg["From"] = config.get("MAIL_SENDER")
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, config.get("SMTP_PORT", 587), timeout=config.get("SMTP_TIMEOUT", 20)) as server:
            if config.get("SMTP_USE_TLS"):
                server.starttls()
            if config.get("SMTP_USER"):
                server.login(config["SMTP_USER"], config.get("SMTP_PASSWORD", ""))
            server.send_message(msg)
    except (smtplib.SMTPException, socket.error) as e:
        logger.error("Email send error to %s: %s", to, e)
        return False

    logger.info("Email sent to %s", to)
    return True
