import logging
import smtplib
from email.mime.text import MIMEText

import requests

log = logging.getLogger("shop")


def configure_logging(log_file=None):
    if log.handlers:
        return log
    log.setLevel(logging.INFO)
    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        log.addHandler(fh)
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    log.addHandler(ch)
    return log


def notify(msg: str, settings):
    """Best-effort alert to Slack and e-mail. Never raises."""
    log.info(msg)
    webhook = settings.get("SLACK_WEBHOOK_URL")
    try:
        if webhook:
            requests.post(webhook, json={"text": msg}, timeout=5)
    except Exception as e:
        log.warning(f"Slack notify failed: {e}")
    host, to = settings.get("SMTP_HOST"), settings.get("ALERT_EMAIL_TO")
    try:
        if host and to:
            user, password = settings.get("SMTP_USER"), settings.get("SMTP_PASS")
            m = MIMEText(msg)
            m["Subject"] = f"[{settings.get('SITE_NAME', 'My Shop')}] Notification"
            m["From"] = user or "noreply@localhost"
            m["To"] = to
            with smtplib.SMTP(host, settings.get("SMTP_PORT", 587), timeout=5) as s:
                s.starttls()
                if user and password:
                    s.login(user, password)
                s.send_message(m)
    except Exception as e:
        log.warning(f"Email notify failed: {e}")
