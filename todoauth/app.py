"""Application factory, CORS handling, routing and the server entry point."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Sequence

from dotenv import load_dotenv
from flask import Flask, Response, request
from pymongo.errors import PyMongoError

from . import auth_handlers as ah
from . import preference_handlers as ph
from . import todo_handlers as th
from .auth import login_required
from .database import connect

log = logging.getLogger(__name__)

DEFAULT_ENV = "development"
DEFAULT_PORT = "8080"
DEFAULT_ALLOWED_ORIGINS = ("http://localhost:4200",)
ALLOW_METHODS = "POST, GET, OPTIONS, PUT, DELETE"
ALLOW_HEADERS = "Origin, Content-Type, Authorization, X-Requested-With"

_ROUTES = (
    ("/register", ah.register, "POST", False),
    ("/login", ah.login, "POST", False),
    ("/logout", ah.logout, "POST", False),
    ("/check-email", ah.check_email, "POST", False),
    ("/preferences", ph.get_preferences, "GET", True),
    ("/preferences", ph.update_preferences, "PUT", True),
    ("/todos", th.get_todos, "GET", True),
    ("/todos", th.create_todo, "POST", True),
    ("/todos/reorder", th.reorder_todos, "PUT", True),
    ("/todos/<todo_id>", th.update_todo, "PUT", True),
    ("/todos/<todo_id>", th.delete_todo, "DELETE", True),
)


def load_environment(env: str | None = None) -> str:
    """Load the .env file for ``env`` without overriding set variables; return ``env``."""
    env = env or os.environ.get("APP_ENV") or DEFAULT_ENV
    filename = ".env.development" if env == DEFAULT_ENV else ".env.production"
    if Path(filename).is_file():
        load_dotenv(filename, override=False)
    else:
        log.warning("⚠️ No se pudo cargar %s, usando variables del sistema", filename)
    return env


def create_app(database: Any, allowed_origins: Iterable[str] | None = None) -> Flask:
    """Build the web application serving ``database``."""
    origins = frozenset(DEFAULT_ALLOWED_ORIGINS if allowed_origins is None else allowed_origins)
    app = Flask(__name__)
    app.config["DATABASE"] = database
    app.json.sort_keys = False
    app.json.ensure_ascii = False

    @app.before_request
    def _answer_preflight() -> Any:
        return Response(status=204) if request.method == "OPTIONS" else None

    @app.after_request
    def _add_cors_headers(response: Response) -> Response:
        origin = request.headers.get("Origin")
        if origin in origins:
            response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        response.headers["Access-Control-Allow-Credentials"] = "true"
        return response

    for code in (404, 405):
        app.register_error_handler(
            code, lambda _e: Response("404 page not found", status=404, mimetype="text/plain")
        )

    for rule, view, method, protected in _ROUTES:
        app.add_url_rule(
            rule, view.__name__, login_required(view) if protected else view, methods=[method]
        )
    return app


def main(argv: Sequence[str] | None = None) -> None:
    """Load configuration, connect to MongoDB and serve the API."""
    logging.basicConfig(level=logging.INFO)
    env = load_environment()
    try:
        database = connect(os.environ.get("MONGODB_URI", ""), os.environ.get("MONGODB_NAME", ""))
    except PyMongoError as exc:
        log.error("%s", exc)
        raise SystemExit(1) from exc

    raw = os.environ.get("CORS_ALLOWED_ORIGINS", "")
    origins = tuple(p.strip() for p in raw.split(",") if p.strip()) or DEFAULT_ALLOWED_ORIGINS
    app = create_app(database, origins)

    port = os.environ.get("PORT", "")
    if not port:
        port = DEFAULT_PORT
        log.info("INFO: PORT not set, defaulting to %s", port)
    print(f"🚀 Servidor corriendo en modo {env} en http://localhost:{port}")
    app.run(host="0.0.0.0", port=int(port))