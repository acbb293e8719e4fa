"""
Flask application factory for the Receivables Audit Workbench.
"""
from flask import Flask, g, session, request
from flask_caching import Cache
import logging
import os
from datetime import datetime, timedelta
import uuid

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Silence verbose HTTP client logging
logging.getLogger("urllib3").setLevel(logging.WARNING)

# Initialize cache (will be configured in create_app)
cache = Cache()


def create_app(config_name='default', test_config=None):
    """
    Application factory pattern.

    Args:
        config_name: Configuration name (for future environments)
        test_config: Optional mapping of Flask settings overriding the defaults

    Returns:
        Configured Flask application instance
    """
    from config import config

    app = Flask(__name__)

    # App configuration
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['MAX_CONTENT_LENGTH'] = config.ingestion.max_upload_mb * 1024 * 1024
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(
        minutes=config.session.idle_timeout_minutes
    )

    # Cache configuration
    # SimpleCache keeps audit state in-process (single-worker deployments)
    # For multi-worker: switch to Redis or FileSystemCache
    app.config['CACHE_TYPE'] = 'SimpleCache'
    app.config['CACHE_DEFAULT_TIMEOUT'] = config.session.get_state_timeout_seconds()

    if test_config:
        app.config.update(test_config)

    # Initialize cache with app
    cache.init_app(app)

    app.logger.info(f"[CACHE] Initialized {app.config['CACHE_TYPE']} with {app.config['CACHE_DEFAULT_TIMEOUT']}s timeout")

    # Register blueprints
    from web.views import bp as main_bp
    app.register_blueprint(main_bp)

    @app.before_request
    def ensure_audit_session():
        """Maintain the session id that keys this browser's audit state."""

        def _parse_iso_datetime(value):
            if not value:
                return None
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                return None

        timeout_minutes = config.session.idle_timeout_minutes
        now = datetime.utcnow()

        session.permanent = True
        current_session_id = session.get('session_id')
        last_activity_at = _parse_iso_datetime(session.get('last_activity_at'))

        is_expired = False
        if current_session_id and last_activity_at:
            is_expired = now - last_activity_at > timedelta(minutes=timeout_minutes)

        if current_session_id and is_expired:
            app.logger.info(
                f"[SESSION] Expired session (session_id={current_session_id}, idle_minutes={timeout_minutes})"
            )
            from web.session_state import discard_store
            discard_store(current_session_id)
            session.pop('session_id', None)
            current_session_id = None

        if not current_session_id:
            current_session_id = str(uuid.uuid4())
            session['session_id'] = current_session_id
            app.logger.info(f"[SESSION] Started session (session_id={current_session_id})")

        session['last_activity_at'] = now.isoformat()
        g.session_id = current_session_id

        app.logger.debug(f"Request: {request.method} {request.path} (session_id={current_session_id})")

    return app
