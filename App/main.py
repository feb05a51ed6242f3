import uuid
from time import perf_counter

from dotenv import load_dotenv
from flask import Flask, jsonify, request, g
from flask_cors import CORS
from sqlalchemy import text

from App.config import load_config
from App.database import db, ensure_tables, init_db
from App.logging_config import configure_logging
from App.services import GroupAssignmentService
from App.utils.time_utils import isoformat_or_none, utc_now
from App.views import views


def add_views(app):
    for view in views:
        app.register_blueprint(view)


def register_api_v2(app):
    """Register API v2 blueprint for the editor and display front ends"""
    from App.views.api_v2 import register_api_v2
    register_api_v2(app)


def create_app(overrides={}):
    # Load environment variables from .env if present
    load_dotenv()
    app = Flask(__name__)
    load_config(app, overrides)

    configure_logging(app)
    app.logger.info(
        'Flask application configured',
        extra={
            'event': 'app_boot',
            'environment': app.config.get('ENV'),
            'debug': app.debug,
            'service': app.config.get('SERVICE_NAME', 'classroom-group-assignment'),
        },
    )

    @app.before_request
    def _structured_request_logging() -> None:
        g.request_timer = perf_counter()
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        app.logger.info(
            'Incoming request',
            extra={
                'event': 'request_started',
                'request_id': g.request_id,
                'method': request.method,
                'path': request.path,
                'remote_addr': request.remote_addr,
            },
        )

    @app.after_request
    def _structured_response_logging(response):
        duration_ms = None
        if hasattr(g, 'request_timer'):
            duration_ms = round((perf_counter() - g.request_timer) * 1000, 2)
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers['X-Request-ID'] = request_id
        app.logger.info(
            'Completed request',
            extra={
                'event': 'request_completed',
                'request_id': request_id,
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': duration_ms,
            },
        )
        return response

    @app.teardown_request
    def _structured_request_teardown(exc):
        if exc is not None:
            app.logger.exception(
                'Unhandled request exception',
                extra={
                    'event': 'request_exception',
                    'request_id': getattr(g, 'request_id', None),
                    'method': getattr(request, 'method', None),
                    'path': getattr(request, 'path', None),
                },
            )

    # The shared display and the editor run as separate front ends
    CORS(app, resources={
        r"/api/*": {
            "origins": app.config.get('CORS_ORIGINS', []),
            "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "X-Request-ID"],
        }
    })

    add_views(app)
    register_api_v2(app)
    init_db(app)
    GroupAssignmentService().init_app(app)

    try:
        created = ensure_tables(app)
        app.logger.info(
            'Database tables created' if created else 'Database tables already exist',
            extra={'event': 'db_schema_sync', 'tables': created, 'mode': 'initial' if created else 'noop'},
        )
    except Exception as e:
        app.logger.error(
            'Database table creation failed',
            extra={'event': 'db_schema_error', 'error': str(e)},
        )

    @app.get("/healthcheck")
    def healthcheck():
        checks = {'app': {'ok': True, 'time': isoformat_or_none(utc_now())}}
        overall_ok = True

        if app.config.get('SECRET_KEY'):
            checks['config'] = {'ok': True}
        else:
            checks['config'] = {'ok': False, 'missing': ['SECRET_KEY']}
            overall_ok = False

        try:
            db.session.execute(text("SELECT 1"))
            checks['db'] = {'ok': True}
        except Exception as e:
            db.session.rollback()
            checks['db'] = {'ok': False, 'error': str(e)}
            overall_ok = False

        service = app.extensions.get('group_assignment')
        checks['sessions'] = {'ok': service is not None, 'open': len(service.sessions) if service else 0}

        status_code = 200 if overall_ok else 503
        app.logger.info(
            'Healthcheck completed',
            extra={
                'event': 'healthcheck_completed',
                'overall_ok': overall_ok,
                'checks': checks,
                'request_id': getattr(g, 'request_id', None),
            },
        )
        return jsonify(status='ok' if overall_ok else 'fail', checks=checks), status_code

    app.app_context().push()
    return app
