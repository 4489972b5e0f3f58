# app.py
"""
Flask Application Factory for the Funding Request Form Mailer

This application factory wires together:
- Environment-based configuration (optionally loaded from a .env file)
- The submission handler with its configured mail transport
- Logging, including the decision-point audit log
- Error handlers that never expose a stack trace to the visitor
- Security headers on every response
"""

import os
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask, request, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from config.settings import FormMailerConfig, TestingConfig
from core.handler import SubmissionHandler
from core.transport import MailTransport
from middleware.security import security_headers
from routes.submit import submit_bp
from services.audit import AUDIT_LOGGER_NAME, configure_audit_file

# Loggers that receive the application's handlers
APP_LOGGERS = ('core', 'services', 'routes', AUDIT_LOGGER_NAME)

# Handlers attached by the last setup_logging() call
_installed_handlers = []


def setup_logging(app: Flask) -> None:
    """
    Configure application logging

    This setup provides:
    - A stream handler on the application and package loggers
    - An optional rotating log file (LOG_FILE)
    - An optional append-only audit file (AUDIT_LOG_FILE)
    - SMTP conversation lines at DEBUG when SMTP_DEBUG is set
    """
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper(), logging.INFO)
    smtp_debug = app.config['TRANSPORT'].smtp_debug

    # Replace Flask's default handler with ours
    app.logger.handlers.clear()

    formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = [logging.StreamHandler()]

    log_file = app.config.get('LOG_FILE')
    if log_file:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(logging.DEBUG if smtp_debug else log_level)

    for name in (app.logger.name,) + APP_LOGGERS:
        target = logging.getLogger(name)
        # Drop handlers from an earlier create_app() so lines are not duplicated
        for old in _installed_handlers:
            target.removeHandler(old)
        for handler in handlers:
            target.addHandler(handler)
        target.setLevel(log_level)
    _installed_handlers[:] = handlers

    logging.getLogger('core.transport').setLevel(logging.DEBUG if smtp_debug else logging.NOTSET)

    audit_file = app.config.get('AUDIT_LOG_FILE')
    if audit_file:
        configure_audit_file(audit_file)

    # Suppress verbose third-party logs in production
    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def configure_error_handlers(app: Flask) -> None:
    """Plain-text error responses; the visitor never sees a stack trace"""

    @app.errorhandler(404)
    def not_found(error):
        return 'Not Found', 404, {'Content-Type': 'text/plain; charset=utf-8'}

    @app.errorhandler(405)
    def method_not_allowed(error):
        app.logger.warning(f"Method {request.method} not allowed for {request.path}")
        return 'Method Not Allowed', 405, {'Content-Type': 'text/plain; charset=utf-8'}

    @app.errorhandler(413)
    def payload_too_large(error):
        app.logger.warning(f"Oversized request from {request.remote_addr}")
        return 'Request Entity Too Large', 413, {'Content-Type': 'text/plain; charset=utf-8'}

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal server error: {error}", exc_info=True)
        return 'Internal Server Error', 500, {'Content-Type': 'text/plain; charset=utf-8'}


def configure_health_checks(app: Flask) -> None:
    @app.route('/health')
    def health_check():
        """Liveness probe reporting the selected transport"""
        handler = app.extensions['submission_handler']
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'transport': handler.transport.name,
        })


def create_app(config_name: str = None,
               overrides: Optional[Dict[str, Any]] = None,
               transport: Optional[MailTransport] = None) -> Flask:
    """
    Flask application factory

    Args:
        config_name: 'testing' or 'production'
        overrides: Config values applied after the environment
        transport: Mail transport to use instead of the configured one

    Returns:
        Configured Flask application instance
    """
    config_name = config_name or os.environ.get('FORM_MAILER_ENV', 'production')

    # Tests control the environment themselves
    if config_name != 'testing':
        load_dotenv()

    app = Flask(__name__,
                static_folder='static',
                template_folder='templates')

    config_class = TestingConfig if config_name == 'testing' else FormMailerConfig
    app.config.from_object(config_class)
    app.config.update(config_class.from_env())
    app.config.update(overrides or {})

    # Behind a reverse proxy the Host header is the one the visitor used
    if config_name == 'production':
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    setup_logging(app)

    handler = SubmissionHandler(
        app.config['TRANSPORT'],
        recipient=app.config['RECIPIENT'],
        transport=transport,
    )
    app.extensions['submission_handler'] = handler
    app.logger.info(f"Form mailer starting in {config_name} mode with {handler.transport.name} transport")

    app.register_blueprint(submit_bp)
    configure_error_handlers(app)
    configure_health_checks(app)
    app.after_request(security_headers)

    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
