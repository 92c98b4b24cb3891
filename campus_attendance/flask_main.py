"""
Flask Main Application
Wires storage, token rotation and the attendance services into one app
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import atexit
import logging
import os
import traceback
import weakref

from .core.config import Settings, settings as default_settings
from .core.exceptions import CustomHTTPException, StorageError
from .core.geofence import CampusGeofence
from .core.rotation import RotationManager
from .core.tokens import TokenService
from .core.utils import Clock, format_datetime, utc_now
from .services import AttendanceService, SessionService
from .storage import AttendanceStore, create_store

logger = logging.getLogger(__name__)

_live_cores = weakref.WeakSet()


@atexit.register
def _shutdown_live_cores():
    for core in list(_live_cores):
        core.shutdown()


class AttendanceCore:
    """Services shared by all requests of one app instance"""

    def __init__(self, settings: Settings, store: AttendanceStore, clock: Clock = utc_now,
                 start_rotation: bool = True):
        self.settings = settings
        self.store = store
        self.clock = clock
        self.tokens = TokenService(store, settings.QR_ROTATION_INTERVAL_MS, clock)
        self.rotation = RotationManager(self.tokens, settings.rotation_interval_seconds) if start_rotation else None
        self.geofence = CampusGeofence.from_settings(settings)
        self.sessions = SessionService(store, self.rotation, clock)
        self.attendance = AttendanceService(store, self.sessions, self.tokens, self.geofence, clock)

        if self.rotation is not None:
            try:
                resumed = self.sessions.resume_rotation()
                if resumed:
                    logger.info(f"🔄 Resumed token rotation for {resumed} active sessions")
            except StorageError as e:
                logger.warning(f"⚠️ Could not resume token rotation at startup: {e}")

    def shutdown(self):
        if self.rotation is not None:
            self.rotation.stop_all()
        self.store.close()


def create_app(settings: Settings = None, store: AttendanceStore = None, clock: Clock = None,
               start_rotation: bool = True):
    """Create and configure Flask application"""
    settings = settings or default_settings

    logging.basicConfig(
        level=logging.INFO if not settings.DEBUG else logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.SECRET_KEY
    CORS(app, origins=settings.ALLOWED_ORIGINS, supports_credentials=True)

    core = AttendanceCore(
        settings,
        store if store is not None else create_store(settings),
        clock or utc_now,
        start_rotation=start_rotation,
    )
    app.extensions['campus_attendance'] = core
    _live_cores.add(core)

    # Global exception handler
    @app.errorhandler(CustomHTTPException)
    def handle_custom_exception(error):
        if error.status_code >= 500:
            logger.error(f"CustomHTTPException: {error.detail} (Status: {error.status_code})")
        else:
            logger.info(f"{error.error_type}: {error.detail} (Status: {error.status_code})")
        return jsonify({
            "error": error.detail,
            "error_type": error.error_type,
            "extra_data": error.extra_data
        }), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors"""
        logger.info(f"404 Not Found: {request.path}")
        return jsonify({
            "error": "Endpoint not found",
            "error_type": "not_found",
            "message": "The requested endpoint does not exist"
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            "error": "Method not allowed",
            "error_type": "method_not_allowed"
        }), 405

    @app.errorhandler(Exception)
    def handle_general_exception(error):
        if isinstance(error, HTTPException):
            return jsonify({
                "error": error.description,
                "error_type": "http_error"
            }), error.code
        logger.error(f"Unhandled exception: {error}")
        logger.error(f"Exception type: {type(error).__name__}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({
            "error": "Internal server error",
            "error_type": "internal_error",
            "message": str(error) if settings.DEBUG else "An unexpected error occurred"
        }), 500

    # Health check endpoint
    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        storage_status = core.store.health()
        healthy = storage_status.get("status") == "healthy"
        return jsonify({
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": format_datetime(core.clock()),
            "storage": storage_status
        }), 200 if healthy else 503

    @app.route('/info', methods=['GET'])
    def app_info():
        """Application information"""
        return jsonify({
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "storage_backend": settings.STORAGE_BACKEND,
            "qr_rotation_interval_ms": settings.QR_ROTATION_INTERVAL_MS,
            "geofence": {
                "center": {"lat": settings.CAMPUS_CENTER_LAT, "lng": settings.CAMPUS_CENTER_LNG},
                "radius_meters": settings.GEOFENCE_RADIUS_METERS
            },
            "debug": settings.DEBUG
        })

    from .routers.flask_attendance import attendance_bp
    app.register_blueprint(attendance_bp, url_prefix='/attendance')
    logger.info("✅ Attendance blueprint registered")

    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 8000)), debug=default_settings.DEBUG)
