import os
import time
import secrets
import logging

from .errors import ValidationError

log = logging.getLogger("shop")

URL_PREFIX = "/uploads/"


def _safe_ext(filename):
    ext = os.path.splitext(filename or "")[1].lower()
    return ext if 1 < len(ext) <= 8 else ".jpg"


def save_image(file, upload_dir) -> str:
    """Store an uploaded image and return the URL it is served under."""
    if file is None or not file.filename:
        raise ValidationError("image upload failed")
    if not (file.mimetype or "").startswith("image/"):
        raise ValidationError("only image files are allowed")
    os.makedirs(upload_dir, exist_ok=True)
    name = f"p_{int(time.time() * 1000)}_{secrets.token_hex(6)}{_safe_ext(file.filename)}"
    file.save(os.path.join(upload_dir, name))
    log.info(f"Stored upload {name}")
    return URL_PREFIX + name


def delete_image(image_url, upload_dir) -> bool:
    if not image_url or not image_url.startswith(URL_PREFIX):
        return False
    name = os.path.basename(image_url[len(URL_PREFIX):])
    if not name:
        return False
    try:
        os.remove(os.path.join(upload_dir, name))
    except FileNotFoundError:
        return False
    except OSError as e:
        log.warning(f"Could not remove {name}: {e}")
        return False
    return True
