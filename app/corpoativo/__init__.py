import logging

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound as RouteNotFound

from app.corpoativo.admin import bp as admin_bp
from app.corpoativo.auth import bp as auth_bp
from app.corpoativo.config import load_config
from app.corpoativo.db import init_db, session_scope, teardown_db_session
from app.corpoativo.errors import AppError
from app.corpoativo.models import Base
from app.corpoativo.modules.catalog.admin import bp as catalog_bp
from app.corpoativo.modules.leads.admin import bp as leads_bp
from app.corpoativo.modules.students.admin import bp as students_bp
from app.corpoativo.rbac import load_current_user
from app.corpoativo.routes import bp as routes_bp
from app.corpoativo.seed import seed_from_config

logger = logging.getLogger(__name__)


def _check_production_config(app: Flask) -> None:
    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env not in ("prod", "production"):
        return
    if not app.config.get("DATABASE_URL_EXPLICIT") or str(app.config.get("DATABASE_URL") or "").strip() == "":
        raise RuntimeError("DATABASE_URL is required in production.")
    if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
        raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
    if app.config.get("OWNER_PASSWORD") == "corpo123":
        raise RuntimeError("OWNER_PASSWORD must be changed from the default in production.")


def _register_error_handlers(app: Flask) -> None:
    def _error(message: str, status: int):
        return jsonify({"error": message}), status

    @app.errorhandler(AppError)
    def _app_error(e: AppError):  # type: ignore[no-redef]
        return _error(e.message, e.status_code)

    @app.errorhandler(RouteNotFound)
    @app.errorhandler(MethodNotAllowed)
    def _route_not_found(e):  # type: ignore[no-redef]
        # Unknown method on a known path is answered like an unknown route.
        return _error("Route not found.", 404)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):  # type: ignore[no-redef]
        return _error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (path=%s request_id=%s)", request.path, getattr(g, "request_id", None))
        return _error("Internal server error.", 500)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")
    app.json.sort_keys = False  # type: ignore[attr-defined]

    _check_production_config(app)

    init_db(app)

    if app.config.get("AUTO_INIT_DB"):
        engine = app.extensions["sqlalchemy_engine"]
        Base.metadata.create_all(bind=engine)
        with session_scope(app) as s:
            seed_from_config(s, app.config)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(catalog_bp, url_prefix="/api/admin")
    app.register_blueprint(leads_bp, url_prefix="/api/admin")
    app.register_blueprint(students_bp, url_prefix="/api/admin")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)
    _register_error_handlers(app)

    logger.info("create_app() complete; app ready to serve")

    return app
