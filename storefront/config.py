import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///store.db")
SITE_NAME    = os.getenv("SITE_NAME", "My Shop")

# No fallbacks for secrets: admin routes stay closed and the app refuses to
# boot until these are supplied.
ADMIN_TOKEN    = os.getenv("ADMIN_TOKEN")
APP_SECRET     = os.getenv("APP_SECRET")
AUTH_TTL_HOURS = int(os.getenv("AUTH_TTL_HOURS", str(24 * 7)))

UPLOAD_DIR       = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(2 * 1024 * 1024)))

LOG_FILE = os.getenv("LOG_FILE", "app.log")

SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL")
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
ALERT_EMAIL_TO = os.getenv("ALERT_EMAIL_TO")

PORT = int(os.getenv("PORT", "5000"))


def as_dict():
    return {k: v for k, v in globals().items() if k.isupper()}
