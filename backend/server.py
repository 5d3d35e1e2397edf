"""
Flask application entry point for the maternity backend.

Registers the current-pregnancy API.
"""

import logging

from flask import Flask

from maternity.config import config
from maternity.api.pregnancy import bp as pregnancy_bp
from maternity.db.postgres import close_db_session, rollback_session


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(init_database: bool = False):
    """Create and configure Flask app."""
    app = Flask(__name__)

    # Load config
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["DEBUG"] = config.DEBUG

    # Enable CORS for the browser front-end
    @app.after_request
    def after_request(response):
        response.headers.add("Access-Control-Allow-Origin", "*")
        response.headers.add("Access-Control-Allow-Headers", "Content-Type,Authorization,X-User-Name")
        response.headers.add("Access-Control-Allow-Methods", "GET,PATCH,POST,DELETE,OPTIONS")
        return response

    # Ensure clean session state at the start of each request
    @app.before_request
    def ensure_clean_session():
        rollback_session()

    # Clean up database session at the end of each request
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        close_db_session(exception)

    app.register_blueprint(pregnancy_bp)  # /api/v1/pregnancy/*

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Initialize database tables if requested (development only)
    if init_database:
        with app.app_context():
            from maternity.db.postgres import init_db
            init_db()
            logging.getLogger("server").info("Database tables initialized")

    return app


if __name__ == "__main__":
    configure_logging()
    logger = logging.getLogger("server")
    app = create_app(init_database=config.DEBUG)
    logger.info(f"Starting server on port {config.PORT} (debug={config.DEBUG})")
    logger.info("Routes: /api/v1/pregnancy/* (Current pregnancy), /health (Health check)")
    app.run(debug=config.DEBUG, port=config.PORT)
