from __future__ import annotations

import smtplib
from email.mime.text import MIMEText

from .settings import Settings, settings as default_settings


def _smtp_configured(s: Settings) -> bool:
    return bool(s.smtp_host and s.smtp_port and s.smtp_user and s.smtp_password and s.email_from and s.email_to)


def send_email(subject: str, body: str, settings: Settings | None = None) -> bool:
    """Mail a rollover alert. Returns False (never raises) when disabled or on SMTP errors.

    Enabled with FF_ENABLE_EMAIL=true plus FF_SMTP_HOST/PORT/USER/PASSWORD and
    FF_EMAIL_FROM/TO.
    """
    s = settings or default_settings
    if not s.enable_email or not _smtp_configured(s):
        return False

    msg = MIMEText(body, "plain")
    msg["From"] = s.email_from
    msg["To"] = s.email_to
    msg["Subject"] = subject
    try:
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=10) as server:
            server.starttls()
            server.login(s.smtp_user, s.smtp_password)
            server.sendmail(s.email_from, [s.email_to], msg.as_string())
    except (OSError, smtplib.SMTPException):
        return False
    return True


def rollover_failed(service: str | None, detail: str, settings: Settings | None = None) -> bool:
    target = f" ({service})" if service else ""
    subject = f"🚨 ROLLOVER FAILED{target}"
    body = f"Service: {service or '-'}\nDetail: {detail}\nThe next worker tick will retry."
    return send_email(subject, body, settings)
