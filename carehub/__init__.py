"""
CareHub Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply config (test or env-based), init extensions (DB, Mail).
  • Register blueprints: auth (/auth), main (/), api (/api) and the feature APIs
    (/api/rag, /api/scorm, /api/training, /api/team, /api/feedback, /api/profile-chat).
  • Record request metrics and register global error handlers.
  • CLI: `flask send-reminders` runs the automated training reminder sweep.
"""

import json
import time

import click
from flask import Flask, g, request

from .models import db
from .routes import (
    auth_bp, main_bp, api_bp, rag_bp, scorm_bp, training_bp,
    team_bp, newsfeed_bp, feedback_bp, profile_chat_bp
)
from .config import Config
from .utils.mailer import mail
from .utils.prom_metrics import observe_request


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__, template_folder='templates')

    # Configuration
    if test_config:
        app.config.update(test_config)
    else:
        app.config.from_object(Config())

    # Initialize extensions
    db.init_app(app)
    mail.init_app(app)

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(rag_bp, url_prefix='/api/rag')
    app.register_blueprint(scorm_bp, url_prefix='/api/scorm')
    app.register_blueprint(training_bp, url_prefix='/api/training')
    app.register_blueprint(team_bp, url_prefix='/api/team')
    app.register_blueprint(newsfeed_bp, url_prefix='/api')
    app.register_blueprint(feedback_bp, url_prefix='/api/feedback')
    app.register_blueprint(profile_chat_bp, url_prefix='/api/profile-chat')

    # Register error handlers
    from .utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    register_request_metrics(app)
    register_commands(app)

    return app


def register_request_metrics(app):
    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def record_request(response):
        started = g.pop('request_started', None)
        if started is not None:
            endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
            observe_request(endpoint, response.status_code, time.time() - started)
        return response


def register_commands(app):
    @app.cli.command('send-reminders')
    def send_reminders_command():
        """Email upcoming and overdue training reminders."""
        from .utils.reminders import run_automated_reminders
        click.echo(json.dumps(run_automated_reminders()))

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        db.create_all()
        click.echo('Database tables created')
