"""
mailer.py - OTP email delivery through Flask-Mail.
"""

import logging

from flask_mail import Mail, Message

from .exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

mail = Mail()

OTP_SUBJECT = "ChainVote Verification Code"


def mail_configured(app) -> bool:
    return bool(app.config.get("MAIL_USERNAME") and app.config.get("MAIL_PASSWORD"))


def send_otp(app, email: str, otp: str, ttl_seconds: int) -> bool:
    """
    Send the OTP to the voter.

    Returns True when an email was sent and False when mail is not configured,
    in which case the code is only written to the log.

    Raises:
        MailDeliveryError: the SMTP transport failed.
    """
    if not mail_configured(app):
        logger.warning("MAIL_USERNAME/MAIL_PASSWORD not set. OTP for %s is %s", email, otp)
        return False
    minutes = max(1, ttl_seconds // 60)
    msg = Message(OTP_SUBJECT, recipients=[email])
    msg.body = f"Your OTP for ChainVote is: {otp}\n\nThis code is valid for {minutes} minutes."
    try:
        mail.send(msg)
    except Exception as e:
        logger.error(f"Failed to send email to {email}: {e}")
        raise MailDeliveryError() from e
    logger.info(f"Email sent to {email}")
    return True
