import hmac
import time
import secrets
import logging
from functools import wraps
from collections import namedtuple

from flask import Flask, Blueprint, current_app, request, jsonify, send_from_directory
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from . import config, catalog, orders, media
from .auth import TokenIssuer, login_manager, register, login
from .db import make_engine, init_db, make_session_factory
from .errors import StoreError, StorageError, ValidationError, AuthError
from .notify import configure_logging, notify
from .pricing import money

log = logging.getLogger("shop")

Storefront = namedtuple("Storefront", "engine sessions tokens started")

api = Blueprint("api", __name__, url_prefix="/api")


def main_session():
    return current_app.extensions["storefront"].sessions()


def alert(msg):
    notify(msg, current_app.config)


def body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def require_admin(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("ADMIN_TOKEN")
        given = request.headers.get("x-admin-token", "")
        if not expected or not hmac.compare_digest(given.encode(), expected.encode()):
            raise AuthError("unauthorized (admin token missing/invalid)")
        return fn(*args, **kwargs)
    return wrapper


# --------------------------- PUBLIC ---------------------------
@api.get("/health")
def health():
    started = current_app.extensions["storefront"].started
    return jsonify({"ok": True, "uptime": round(time.time() - started, 3)})


@api.get("/products")
def products_list():
    with main_session() as db:
        rows = catalog.list_products(db, q=request.args.get("q"), category=request.args.get("category"))
        return jsonify([p.to_dict() for p in rows])


@api.get("/products/<int:pid>")
def product_detail(pid):
    with main_session() as db:
        return jsonify(catalog.get_product(db, pid).to_dict())


@api.get("/categories")
def categories():
    with main_session() as db:
        return jsonify(catalog.list_categories(db))


@api.post("/orders")
def order_create():
    data = body()
    with main_session() as db:
        o = orders.place_order(db, data, data.get("items"))
        order_id, customer, total = o.id, o.customer_name, money(o.total)
    alert(f"New order #{order_id} from {customer}, total {total}")
    return jsonify({"ok": True, "orderId": order_id, "total": float(total)})


@api.post("/contact")
def contact():
    data = body()
    email = str(data.get("email") or "").strip()
    message = str(data.get("message") or "").strip()
    if not email or not message:
        raise ValidationError("email and message are required")
    if len(message) < 5:
        raise ValidationError("message is too short")
    alert(f"Contact message from {email}: {message}")
    return jsonify({"ok": True, "id": f"{int(time.time() * 1000)}-{secrets.randbelow(10000)}"})


# --------------------------- AUTH ---------------------------
@api.post("/auth/register")
def auth_register():
    data = body()
    tokens = current_app.extensions["storefront"].tokens
    with main_session() as db:
        u, token = register(db, tokens, data.get("fullName"), data.get("email"), data.get("password"))
        return jsonify({"ok": True, "token": token, "user": u.to_dict()})


@api.post("/auth/login")
def auth_login():
    data = body()
    tokens = current_app.extensions["storefront"].tokens
    with main_session() as db:
        try:
            u, token = login(db, tokens, data.get("email"), data.get("password"))
        except AuthError:
            alert(f"Failed login attempt for {str(data.get('email') or '').strip().lower()}")
            raise
        return jsonify({"ok": True, "token": token, "user": u.to_dict()})


@api.get("/auth/me")
@login_required
def auth_me():
    return jsonify({"ok": True, "user": current_user.to_dict()})


# --------------------------- ADMIN ---------------------------
@api.post("/admin/products")
@require_admin
def admin_product_create():
    with main_session() as db:
        p = catalog.create_product(db, body())
        return jsonify({"ok": True, "id": p.id, "product": p.to_dict()})


@api.put("/admin/products/<int:pid>")
@require_admin
def admin_product_update(pid):
    with main_session() as db:
        p = catalog.update_product(db, pid, body())
        return jsonify({"ok": True, "product": p.to_dict()})


@api.delete("/admin/products/<int:pid>")
@require_admin
def admin_product_delete(pid):
    with main_session() as db:
        p = catalog.delete_product(db, pid, current_app.config["UPLOAD_DIR"])
    alert(f"Product #{pid} ({p.name}) deleted")
    return jsonify({"ok": True, "deleted": 1})


@api.get("/admin/orders")
@require_admin
def admin_orders():
    with main_session() as db:
        return jsonify([o.to_dict() for o in orders.list_orders(db)])


@api.put("/admin/orders/<int:oid>/status")
@require_admin
def admin_order_status(oid):
    with main_session() as db:
        o = orders.update_order_status(db, oid, body().get("status"))
        return jsonify({"ok": True, "order": o.to_dict()})


@api.post("/admin/upload")
@require_admin
def admin_upload():
    url = media.save_image(request.files.get("image"), current_app.config["UPLOAD_DIR"])
    return jsonify({"ok": True, "imageUrl": url})


# --------------------------- ERRORS ---------------------------
def store_error(e: StoreError):
    if isinstance(e, StorageError):
        return jsonify({"error": "storage error"}), e.status_code
    return jsonify({"error": e.message}), e.status_code


def storage_failure(e: SQLAlchemyError):
    log.exception("Database error")
    return jsonify({"error": "storage error"}), 500


def http_error(e: HTTPException):
    return jsonify({"error": e.description or e.name}), e.code


# --------------------------- APP ---------------------------
def create_app(overrides=None):
    settings = config.as_dict()
    settings.update(overrides or {})
    if not settings.get("APP_SECRET"):
        raise RuntimeError("APP_SECRET is not set; refusing to start with an unsigned token secret")
    configure_logging(settings.get("LOG_FILE"))

    app = Flask(__name__)
    app.config.update(settings)
    app.config["MAX_CONTENT_LENGTH"] = settings["MAX_UPLOAD_BYTES"]
    app.secret_key = settings["APP_SECRET"]

    engine = make_engine(settings["DATABASE_URL"])
    init_db(engine)
    app.extensions["storefront"] = Storefront(
        engine=engine,
        sessions=make_session_factory(engine),
        tokens=TokenIssuer(settings["APP_SECRET"], settings["AUTH_TTL_HOURS"]),
        started=time.time(),
    )
    if not settings.get("ADMIN_TOKEN"):
        log.warning("ADMIN_TOKEN is not set; admin endpoints will reject every request")

    login_manager.init_app(app)
    app.register_blueprint(api)
    app.register_error_handler(StoreError, store_error)
    app.register_error_handler(SQLAlchemyError, storage_failure)
    app.register_error_handler(HTTPException, http_error)

    @app.get("/uploads/<path:filename>")
    def uploads(filename):
        return send_from_directory(app.config["UPLOAD_DIR"], filename, conditional=True, max_age=7 * 24 * 3600)

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=config.PORT, debug=True)
