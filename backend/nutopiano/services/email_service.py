# Overview: Outbound email (password reset) over SMTP.

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

logger = logging.getLogger(__name__)


def _smtp_configured(config) -> bool:
    return bool(config.get("SMTP_HOST") and config.get("SMTP_USER") and config.get("SMTP_PASS"))


def send_email(to_email: str, subject: str, html_body: str, text_body: str | None = None) -> bool:
    """
    Send an email.

    Returns True on delivery, False when SMTP is unconfigured (message is
    logged instead) or delivery failed. Never raises.
    """
    config = current_app.config
    if not _smtp_configured(config):
        logger.info("SMTP not configured; email to=%s subject=%s\n%s", to_email, subject, text_body or html_body)
        return False

    sender = config.get("SMTP_FROM") or config.get("SMTP_USER")
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to_email
    if text_body:
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    try:
        if config.get("SMTP_SECURE"):
            server = smtplib.SMTP_SSL(config["SMTP_HOST"], config.get("SMTP_PORT") or 465, timeout=10)
        else:
            server = smtplib.SMTP(config["SMTP_HOST"], config.get("SMTP_PORT") or 587, timeout=10)
            server.starttls()
        with server:
            server.login(config["SMTP_USER"], config["SMTP_PASS"])
            server.sendmail(sender, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error sending email to %s: %s", to_email, e)
        return False


def send_password_reset_email(to_email: str, reset_url: str) -> bool:
    site_name = current_app.config.get("SITE_NAME") or "Nutopiano"
    subject = f"{site_name} | Password reset"
    text_body = (
        f"A password reset was requested for your {site_name} account.\n\n"
        f"Reset your password: {reset_url}\n\n"
        "This link expires in 30 minutes. If you did not request it, ignore this email."
    )
    html_body = f"""
    <p>A password reset was requested for your {site_name} account.</p>
    <p><a href="{reset_url}">Reset your password</a></p>
    <p>This link expires in 30 minutes. If you did not request it, ignore this email.</p>
    """
    return send_email(to_email, subject, html_body, text_body)
