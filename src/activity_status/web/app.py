"""
Flask application for the activity status API.
"""

from typing import Optional

from flask import Flask, Response, request
from werkzeug.exceptions import HTTPException

from activity_status.config import Config, get_config
from activity_status.core.factories import Services, create_services
from activity_status.logger import get_logger
from activity_status.web.scheduler_manager import SchedulerManager
from activity_status.web.serializers import error_response

logger = get_logger(__name__)

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"
CORS_MAX_AGE = "86400"


def resolve_origin(origin: Optional[str], allowed_origins: list[str]) -> str:
    """Pick the Access-Control-Allow-Origin value for a request.

    Args:
        origin: Request Origin header
        allowed_origins: Allowlist; the first entry is the fallback

    Returns:
        The request origin when allowed, otherwise the first allowed origin
    """
    if origin and origin in allowed_origins:
        return origin
    return allowed_origins[0]


def create_app(
    config: Optional[Config] = None,
    services: Optional[Services] = None,
    start_scheduler: Optional[bool] = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional configuration (global config when omitted)
        services: Pre-wired core services (created from config when omitted)
        start_scheduler: Start the periodic refresh (config.scheduler.enabled when None)

    Returns:
        Configured Flask application
    """
    config = config or get_config()
    services = services or create_services(config)

    app = Flask(__name__)
    app.config["DEBUG"] = config.web.debug
    # Errors always go through the JSON error handler, also under test
    app.config["PROPAGATE_EXCEPTIONS"] = False

    app.extensions["activity_status"] = services
    scheduler_manager = SchedulerManager(app)

    from activity_status.web.blueprints import (
        ActivitiesBlueprint,
        HealthBlueprint,
        StatusBlueprint,
    )

    app.register_blueprint(StatusBlueprint().blueprint)
    app.register_blueprint(ActivitiesBlueprint().blueprint)
    app.register_blueprint(HealthBlueprint().blueprint)

    allowed_origins = config.web.allowed_origins

    @app.before_request
    def handle_preflight():
        """Answer CORS preflight requests for any path."""
        if request.method == "OPTIONS":
            return Response(status=204)
        return None

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        """Attach CORS headers to every response."""
        response.headers["Access-Control-Allow-Origin"] = resolve_origin(
            request.headers.get("Origin"), allowed_origins
        )
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        response.headers["Vary"] = "Origin"
        return response

    # ========================================================================
    # Error Handlers
    # ========================================================================

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(e):
        """Unknown paths and unsupported methods."""
        return Response("Not Found", status=404, mimetype="text/plain")

    @app.errorhandler(Exception)
    def server_error(e):
        """Turn uncaught exceptions into {"error": message} with status 500."""
        if isinstance(e, HTTPException) and e.code is not None and e.code < 500:
            return e

        original = getattr(e, "original_exception", None) or e
        logger.opt(exception=original).error(f"Request {request.method} {request.path} failed: {original}")

        if config.web.expose_error_details:
            message = str(original) or type(original).__name__
        else:
            message = "Internal Server Error"
        return error_response(message, 500)

    # ========================================================================
    # Scheduler
    # ========================================================================

    if start_scheduler is None:
        start_scheduler = config.scheduler.enabled

    scheduler_manager.initialize_scheduler(services.refresher)
    if start_scheduler:
        scheduler_manager.start_scheduler()

    logger.info(f"Web app created with {len(services.refresher.sources)} sources")

    return app
