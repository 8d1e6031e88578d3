import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.errors import RateLimitExceeded
from flask_limiter.util import get_remote_address

load_dotenv()

from transport_backend.config import DevConfig
from transport_backend.extensions import db

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


def configure_logging(app):
    handlers = [logging.StreamHandler()]
    if app.config.get('LOG_TO_FILE', True):
        os.makedirs(app.config['LOGS_DIR'], exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(app.config['LOGS_DIR'], 'app.log')))
    logging.basicConfig(
        level=logging.DEBUG if app.config.get('DEBUG') else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        handlers=handlers,
    )


def register_blueprints(app):
    from transport_backend.api.driver import driver_bp
    from transport_backend.api.vehicle import vehicle_bp
    from transport_backend.api.trip import trip_bp
    from transport_backend.api.subcontractor import subcontractor_bp
    from transport_backend.api.mission import mission_bp
    from transport_backend.api.reference import reference_bp
    from transport_backend.api.dashboard import dashboard_bp
    from transport_backend.api.reports import reports_bp
    from transport_backend.api.sync_queue import sync_queue_bp
    from transport_backend.api.alerts import alerts_bp

    for blueprint in (driver_bp, vehicle_bp, trip_bp, subcontractor_bp, mission_bp,
                      reference_bp, dashboard_bp, reports_bp, sync_queue_bp, alerts_bp):
        app.register_blueprint(blueprint, url_prefix='/api')
        logger.debug(f"Registered blueprint {blueprint.name}")


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        logger.error(f"404 error for path: {request.path}")
        if request.path.startswith('/api/'):
            return jsonify({'error': 'API endpoint not found', 'path': request.path}), 404
        return jsonify({'error': 'Page not found', 'path': request.path}), 404

    @app.errorhandler(400)
    def bad_request(error):
        logger.error(f"400 Bad Request for {request.method} {request.url}: {error}")
        return jsonify({'error': 'Bad Request'}), 400

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(RateLimitExceeded)
    def ratelimit_handler(e):
        logger.warning(f"Rate limit exceeded for {get_remote_address()}: {e.description}")
        return jsonify({'error': 'Too many requests. Please slow down.'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Unhandled exception for {request.method} {request.url}: {error}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500


def create_app(config_class=DevConfig):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    if app.config.get('DB_TYPE') == 'sqlite' and app.config.get('STORAGE_PATH'):
        os.makedirs(app.config['STORAGE_PATH'], exist_ok=True)

    db.init_app(app)
    limiter.init_app(app)
    CORS(app, supports_credentials=True, resources={r"/api/*": {"origins": [app.config.get('FRONTEND_URL', 'http://localhost:3000')]}})
    logger.info("Database connected: %s", "sqlite" if "sqlite" in (app.config.get("SQLALCHEMY_DATABASE_URI") or "") else "non-sqlite")

    register_blueprints(app)
    register_error_handlers(app)

    @app.before_request
    def log_request_info():
        logger.debug(f"Request: {request.method} {request.url}")
        if request.is_json and request.content_length:
            logger.debug(f"JSON data: {request.get_json(silent=True)}")

    @app.after_request
    def log_response_info(response):
        logger.debug(f"Response: {response.status_code}")
        if response.status_code >= 400:
            logger.error(f"Error response: {response.status_code} for {request.method} {request.url}")
            if response.is_json:
                logger.error(f"Response data: {response.get_json()}")
        return response

    @app.route('/')
    def root():
        return {'status': 'ok', 'message': 'Transport backend API is running. Available endpoints: /api/*'}

    @app.route('/api/health-check')
    def health_check():
        healthy = db.health_check()
        body = {'status': 'ok' if healthy else 'degraded', 'database': healthy, 'pool': db.get_pool_stats()}
        return jsonify(body), 200 if healthy else 503

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        db.create_all()
        logger.info("Database tables created")

    @app.cli.command('seed')
    def seed_command():
        """Load demo reference data, drivers, vehicles and trips."""
        from transport_backend.seed_data import seed
        seed(db.session)

    if app.config.get('AUTO_CREATE_TABLES'):
        with app.app_context():
            db.create_all()

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host=app.config.get('FLASK_HOST', '::'), port=app.config.get('FLASK_PORT', 5000), debug=app.config.get('DEBUG', False))
