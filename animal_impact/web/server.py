"""
================================================================================
WEB SERVER - Flask REST API and Single-Page App Host
================================================================================

REST API for the impact tracker plus static hosting of the browser client.

Features:
    - Account registration and login with bcrypt password hashing
    - Stateless bearer tokens (HS256 JWT, 7-day expiry)
    - Contribution logging: donations, vegan conversions, media shares,
      campaign participation
    - Per-user dashboard aggregation
    - Global per-client rate limiting (Flask-Limiter, in-memory storage)
    - CORS for /api/* and basic security headers on every response
    - Health check with uptime and memory figures

API Endpoints:
    POST /api/register    - Create account, returns token
    POST /api/login       - Authenticate, returns token
    GET  /api/dashboard   - Stats and recent activity (bearer token)
    POST /api/donations   - Record a donation (bearer token)
    POST /api/conversions - Record a vegan conversion (bearer token)
    POST /api/media       - Record a media share (bearer token)
    POST /api/campaigns   - Record campaign participation (bearer token)
    GET  /api/health      - Liveness and storage connectivity

Error Responses:
    {"error": "<message>"} with the status code of the raised ImpactError;
    validation errors also carry "missing": [...]. Unexpected failures are
    logged server-side and returned as 500 "Internal server error".

Usage:
    python -m animal_impact.web.server
    # or
    python cli.py serve

Author: Animal Impact Team
Last Modified: October 2026
================================================================================
"""

import time as _time
from datetime import datetime, timezone
from functools import wraps
from types import SimpleNamespace

import psutil
from flask import Flask, current_app, jsonify, request, send_from_directory
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

from animal_impact.core import AuthService, DashboardService, create_store, seed_demo_data
from animal_impact.core.errors import ImpactError, StorageError
from animal_impact.core.records import RECORD_KINDS, RecordValidator
from animal_impact.utils.config import Settings, load_settings
from animal_impact.utils.constants import APP_VERSION, STATIC_DIR
from animal_impact.utils.logger import audit_log, logger, setup_logging

RATE_LIMIT_MESSAGE = 'Too many requests, please try again later.'


def _services():
    return current_app.extensions['animal_impact']


def _client_ip():
    return request.remote_addr or 'unknown'


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _bearer_token():
    """Second space-separated part of the Authorization header, if any."""
    header = request.headers.get('Authorization', '')
    parts = header.split(' ')
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def token_required(f):
    """Decorator to require a valid bearer token; passes the Identity as the first argument"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = _services().auth.verify(_bearer_token())
        return f(identity, *args, **kwargs)
    return decorated_function


def _memory_usage() -> dict:
    """Process resident memory and total system memory, in MB."""
    used = psutil.Process().memory_info().rss
    total = psutil.virtual_memory().total
    return {
        'used': f"{round(used / 1024 / 1024)} MB",
        'total': f"{round(total / 1024 / 1024)} MB",
    }


def create_app(settings: Settings = None, store=None) -> Flask:
    """
    Build the Flask application.

    Args:
        settings: Runtime settings (loaded from config.json + environment if omitted)
        store: Storage backend (built from settings if omitted); initialized here

    Returns:
        Flask: Configured application
    """
    settings = settings or load_settings()
    store = store or create_store(settings)
    store.initialize()

    auth = AuthService.from_settings(store, settings)
    dashboard = DashboardService(store)
    if settings.seed_demo:
        seed_demo_data(store, auth)

    app = Flask(__name__, static_folder=str(STATIC_DIR), static_url_path='/static')
    app.json.sort_keys = False
    app.extensions['animal_impact'] = SimpleNamespace(
        settings=settings,
        store=store,
        auth=auth,
        dashboard=dashboard,
        started_at=_time.monotonic(),
    )

    origins = [o.strip() for o in settings.cors_origins.split(',')] if settings.cors_origins != '*' else '*'
    CORS(app, resources={r"/api/*": {"origins": origins}})

    # Initialize rate limiter
    Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[settings.rate_limit],
        storage_uri="memory://",
        enabled=settings.rate_limit_enabled,
    )

    _register_error_handlers(app)
    _register_routes(app)

    @app.after_request
    def add_security_headers(response):
        """Add security headers to response"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'no-referrer'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        if settings.is_production:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    logger.info(f"App created ({store.backend} storage, {settings.environment})")
    return app


# ====================================================================================
# ERROR HANDLING
# ====================================================================================

def _register_error_handlers(app: Flask):
    @app.errorhandler(ImpactError)
    def handle_impact_error(e):
        if isinstance(e, StorageError):
            logger.exception(f"Storage failure on {request.method} {request.path}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(429)
    def handle_rate_limit(e):
        logger.warning(f"Rate limit exceeded for {_client_ip()} on {request.path}")
        return jsonify({'error': RATE_LIMIT_MESSAGE}), 429

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({'error': 'Internal server error'}), 500


# ====================================================================================
# ROUTES
# ====================================================================================

def _create_record(kind_key: str, identity):
    kind = RECORD_KINDS[kind_key]
    fields = RecordValidator.clean(kind, _json_body())
    record_id = _services().store.insert_record(kind, identity.user_id, fields)
    logger.info(f"User {identity.user_id} added {kind.key} record {record_id}")
    return jsonify({'message': kind.success_message, 'id': record_id}), 201


def _register_routes(app: Flask):

    @app.route('/api/register', methods=['POST'])
    def api_register():
        data = _json_body()
        try:
            token, user = _services().auth.register(data.get('email'), data.get('name'), data.get('password'))
        except ImpactError as e:
            audit_log('REGISTER_FAILED', e.message, user=str(data.get('email')), ip=_client_ip())
            raise
        audit_log('REGISTER', f"user_id={user['id']}", user=user['email'], ip=_client_ip())
        return jsonify({'message': 'User created successfully', 'token': token, 'user': user}), 201

    @app.route('/api/login', methods=['POST'])
    def api_login():
        data = _json_body()
        try:
            token, user = _services().auth.login(data.get('email'), data.get('password'))
        except ImpactError as e:
            audit_log('LOGIN_FAILED', e.message, user=str(data.get('email')), ip=_client_ip())
            raise
        audit_log('LOGIN_SUCCESS', f"user_id={user['id']}", user=user['email'], ip=_client_ip())
        return jsonify({'message': 'Login successful', 'token': token, 'user': user})

    @app.route('/api/dashboard', methods=['GET'])
    @token_required
    def api_dashboard(identity):
        return jsonify(_services().dashboard.get_dashboard(identity.user_id))

    @app.route('/api/donations', methods=['POST'])
    @token_required
    def api_donations(identity):
        return _create_record('donations', identity)

    @app.route('/api/conversions', methods=['POST'])
    @token_required
    def api_conversions(identity):
        return _create_record('conversions', identity)

    @app.route('/api/media', methods=['POST'])
    @token_required
    def api_media(identity):
        return _create_record('media', identity)

    @app.route('/api/campaigns', methods=['POST'])
    @token_required
    def api_campaigns(identity):
        return _create_record('campaigns', identity)

    @app.route('/api/health', methods=['GET'])
    def api_health():
        services = _services()
        try:
            services.store.ping()
        except Exception:
            logger.exception("Health check failed")
            return jsonify({
                'status': 'unhealthy',
                'database': 'disconnected',
                'error': 'Database connection failed',
            }), 500
        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'uptime': round(_time.monotonic() - services.started_at, 3),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': APP_VERSION,
            'environment': services.settings.environment,
            'memory': _memory_usage(),
        })

    @app.route('/api', defaults={'path': ''}, methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
    @app.route('/api/<path:path>', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
    def api_not_found(path):
        return jsonify({'error': 'API endpoint not found'}), 404

    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def spa(path):
        """Serve static assets, falling back to index.html for client-side routes"""
        static_dir = app.static_folder
        if path and (STATIC_DIR / path).is_file():
            return send_from_directory(static_dir, path)
        return send_from_directory(static_dir, 'index.html')


def main():
    """Start the web server"""
    settings = load_settings()
    setup_logging('web', settings.log_level)

    print("=" * 60)
    print("Animal Impact Tracker - Web Server")
    print("=" * 60)

    app = create_app(settings)

    print(f"\n🌱 Server running on http://localhost:{settings.port}")
    print(f"   Storage: {settings.storage_backend} ({settings.storage_path})")
    print(f"   Environment: {settings.environment}\n")
    app.run(host=settings.host, port=settings.port, debug=False)


if __name__ == '__main__':
    main()
