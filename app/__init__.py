# app/__init__.py

import logging
import time
import click
from flask import Flask, g, request
from flask_cors import CORS
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from .config import Config
from .errors import register_error_handlers
from db.extensions import db, migrate, mail, redis_client, check_redis_health


def create_app(config_class=Config):
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class)

    CORS(app,
         origins=app.config['CORS_ORIGINS'],
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'],
         supports_credentials=True,
         expose_headers=['Content-Type', 'Authorization'],
         max_age=3600
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Tables must be registered on the metadata before migrations or create_all
    from models import user, ground, booking, bookingCourt, payment, timeSlot, review  # noqa: F401

    from controllers.auth_controller import auth_bp
    from controllers.ground_controller import ground_bp
    from controllers.booking_controller import booking_bp
    from controllers.review_controller import review_bp
    from controllers.timeslot_controller import timeslot_bp
    from controllers.admin_controller import admin_bp

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/api')
    app.register_blueprint(ground_bp, url_prefix='/api')
    app.register_blueprint(booking_bp, url_prefix='/api')
    app.register_blueprint(review_bp, url_prefix='/api')
    app.register_blueprint(timeslot_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api')

    register_error_handlers(app)

    # Configure logging
    debug_mode = app.config.get('DEBUG', False)
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    app.logger.setLevel(log_level)

    slow_ms = app.config.get('SLOW_REQUEST_MS', 500)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()
        if debug_mode:
            app.logger.debug(f"🚀 {request.method} {request.full_path.rstrip('?')}")

    @app.after_request
    def log_timing(response):
        started = g.get('request_started')
        if started is None:
            return response

        elapsed = (time.perf_counter() - started) * 1000
        user = g.get('current_user')
        who = user.id if user is not None else 'anonymous'
        line = f"{request.method} {request.path} -> {response.status_code} in {elapsed:.1f}ms ({who})"
        if elapsed > slow_ms:
            app.logger.warning(f"⚠️  SLOW REQUEST: {line}")
        elif debug_mode:
            app.logger.info(f"✅ {line}")
        return response

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring"""
        try:
            db.session.execute(text('SELECT 1'))
            database_ok = True
        except SQLAlchemyError as e:
            app.logger.error(f"❌ Health check database failure: {str(e)}")
            database_ok = False

        redis_ok = check_redis_health(redis_client)

        body = {
            'status': 'ok' if database_ok and redis_ok else 'error',
            'database': 'connected' if database_ok else 'disconnected',
            'redis': 'connected' if redis_ok else 'disconnected',
            'timestamp': time.time()
        }
        return body, 200 if database_ok and redis_ok else 500

    @app.cli.command('expire-bookings')
    def expire_bookings_command():
        """Cancel unpaid bookings whose payment hold has lapsed."""
        from services.booking_service import BookingService
        expired = BookingService.expire_stale_bookings()
        click.echo(f"Expired {expired} booking(s)")

    return app
