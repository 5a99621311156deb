"""
OJT Tracker Backend - Main Application
On-the-Job-Training attendance with face-verified time in / time out
"""

import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from config import Config
from engines.facial_recognition.capture import CaptureRegistry
from engines.facial_recognition.matcher import FaceMatcher
from services.attendance_service import AttendanceService
from services.db_manager import DBManager
from services.face_service import FaceService

logger = logging.getLogger(__name__)


def configure_logging(config=Config):
    """Log to stderr, and to LOG_FILE when one is set"""
    handlers = [logging.StreamHandler()]
    if config.LOG_FILE:
        log_dir = os.path.dirname(config.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(config.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def create_app(config=Config, db=None):
    """
    Build the Flask app.

    Args:
        config: settings object (Config or a subclass)
        db: DBManager-like object; a DBManager on config.DATABASE_URL if omitted
    """
    app = Flask(__name__)
    app.config.from_object(config)
    app.url_map.strict_slashes = False

    # Initialize extensions
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    JWTManager(app)

    # Initialize database
    if db is None:
        db = DBManager(config.DATABASE_URL)
    app.db = db

    # Face matching is configured once here; every comparison uses this matcher
    matcher = FaceMatcher(
        threshold=config.FACE_MATCH_THRESHOLD,
        mismatch_policy=config.FACE_MISMATCH_POLICY,
        identify_strategy=config.FACE_IDENTIFY_STRATEGY,
    )
    app.face_service = FaceService(db, matcher)
    app.attendance_service = AttendanceService(
        db, app.face_service, default_total_hours=config.OJT_DEFAULT_TOTAL_HOURS)
    app.capture_registry = CaptureRegistry()
    logger.info(f"Face matcher configured: {matcher.get_stats()}")

    # Register blueprints
    from api.auth import auth_bp
    from api.facial_recognition import facial_bp
    from api.attendance import attendance_bp
    from api.users import users_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(facial_bp, url_prefix='/api/facial-recognition')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(users_bp, url_prefix='/api/user')

    # API root
    @app.route('/api')
    def api_info():
        return jsonify({
            "message": "OJT Tracker API",
            "version": "1.0.0",
            "status": "online"
        })

    # Health check
    @app.route('/health')
    def health():
        try:
            app.db.ping()
            return jsonify({
                "status": "healthy",
                "database": "connected",
                "face_matcher": app.face_service.get_stats(),
            })
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return jsonify({
                "status": "unhealthy",
                "error": str(e)
            }), 500

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"success": False, "error": "Not found", "code": "not_found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"success": False, "error": "Internal server error", "code": "server_error"}), 500

    return app


if __name__ == '__main__':
    configure_logging(Config)
    logger.info("Starting OJT Tracker Backend...")
    logger.info(f"Server running on {Config.HOST}:{Config.PORT}")

    app = create_app(Config)
    app.run(
        host=Config.HOST,
        port=Config.PORT,
        debug=(Config.FLASK_ENV == 'development')
    )
