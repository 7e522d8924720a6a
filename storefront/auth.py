import time
import logging

import bcrypt
from flask import current_app, jsonify
from flask_login import LoginManager, UserMixin
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .errors import ValidationError, AuthError, ConflictError
from .models import User

log = logging.getLogger("shop")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt ignores (or rejects) anything past this
TOKEN_SALT = "auth-token"

_dummy_hash = None


# ---------- Passwords ----------
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except ValueError:
        return False


def _burn_a_check(password):
    # unknown emails cost the same bcrypt round as wrong passwords
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("not-a-real-password")
    verify_password(password, _dummy_hash)


# ---------- Tokens ----------
class TokenIssuer:
    """Signed, self-contained bearer tokens. Nothing is stored server-side."""

    def __init__(self, secret, ttl_hours):
        if not secret:
            raise RuntimeError("APP_SECRET must be set to issue auth tokens")
        self.serializer = URLSafeTimedSerializer(secret, salt=TOKEN_SALT)
        self.max_age = int(ttl_hours * 3600)

    def issue(self, user) -> str:
        return self.serializer.dumps({
            "sub": user.id,
            "email": user.email,
            "fullName": user.full_name,
            "exp": int(time.time()) + self.max_age,
        })

    def verify(self, token) -> dict:
        try:
            payload = self.serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            raise AuthError("token expired")
        except BadSignature:
            raise AuthError("invalid token")
        exp = payload.get("exp") if isinstance(payload, dict) else None
        if not isinstance(exp, int) or exp < time.time():
            raise AuthError("token expired")
        return payload


# ---------- Register / login ----------
def _normalize_email(email):
    return str(email or "").strip().lower()


def register(db, issuer, full_name, email, password):
    full_name = str(full_name or "").strip()
    email = _normalize_email(email)
    password = str(password or "")
    if not full_name or not email or not password:
        raise ValidationError("missing fields")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("password too short")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError("password too long")

    exists = db.execute(select(User.id).where(User.email == email)).first()
    if exists:
        raise ConflictError("email already exists")
    u = User(full_name=full_name, email=email, password_hash=hash_password(password))
    db.add(u)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration for the same address
        db.rollback()
        raise ConflictError("email already exists")
    log.info(f"Registered user #{u.id}")
    return u, issuer.issue(u)


def login(db, issuer, email, password):
    email = _normalize_email(email)
    password = str(password or "")
    if not email or not password:
        raise ValidationError("missing fields")
    u = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if u is None:
        _burn_a_check(password)
        raise AuthError("invalid credentials")
    if not verify_password(password, u.password_hash):
        raise AuthError("invalid credentials")
    return u, issuer.issue(u)


# ---------- Flask-Login ----------
login_manager = LoginManager()


class LoginUser(UserMixin):
    def __init__(self, u: User):
        self.id = str(u.id)
        self.email = u.email
        self.full_name = u.full_name

    def to_dict(self):
        return {"id": int(self.id), "fullName": self.full_name, "email": self.email}


@login_manager.request_loader
def load_user_from_request(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    ext = current_app.extensions["storefront"]
    try:
        payload = ext.tokens.verify(token.strip())
    except AuthError:
        return None
    with ext.sessions() as db:
        u = db.get(User, payload.get("sub"))
        return LoginUser(u) if u else None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "unauthorized"}), 401
