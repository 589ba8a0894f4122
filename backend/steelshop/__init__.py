from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _settings_from_env() -> Dict[str, Any]:
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'JWT_ACCESS_TOKEN_EXPIRES_MINUTES': int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES_MINUTES', '60')),
        'AUTH_REDIRECT_PATH': os.getenv('AUTH_REDIRECT_PATH', '/auth'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
    }


def _error_payload(status: int, title: str, detail: str, redirect: Optional[str] = None):
    body = {'error': {'status': status, 'title': title, 'detail': detail}}
    if redirect:
        body['redirect'] = redirect
    return body, status


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config.update(_settings_from_env())
    if config:
        # tests or callers may override environment defaults
        app.config.update(config)
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(minutes=int(app.config['JWT_ACCESS_TOKEN_EXPIRES_MINUTES']))
    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # one shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .routes.iam import iam_bp
    from .routes.navigation import nav_bp
    from .routes.job_orders import jo_bp
    from .routes.production import prod_bp
    from .routes.customers import cust_bp
    from .routes.payroll import payroll_bp
    from .routes.dashboard import dash_bp
    app.register_blueprint(iam_bp, url_prefix='/iam')
    app.register_blueprint(nav_bp, url_prefix='/nav')
    app.register_blueprint(jo_bp, url_prefix='/job-orders')
    app.register_blueprint(prod_bp, url_prefix='/production')
    app.register_blueprint(cust_bp, url_prefix='/customers')
    app.register_blueprint(payroll_bp, url_prefix='/payroll')
    app.register_blueprint(dash_bp, url_prefix='/dashboard')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @app.teardown_appcontext
    def release_session(exc):  # type: ignore
        if exc is not None and SessionLocal is not None:
            SessionLocal.rollback()

    from .errors import DomainError

    @app.errorhandler(DomainError)
    def handle_domain_error(e):  # type: ignore
        SessionLocal.rollback()
        redirect = app.config['AUTH_REDIRECT_PATH'] if e.status_code == 401 else None
        return _error_payload(e.status_code, e.title, e.detail, redirect)

    # Unified error handler producing the standard JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            SessionLocal.rollback()
            redirect = app.config['AUTH_REDIRECT_PATH'] if e.code == 401 else None
            return _error_payload(e.code, e.name, e.description, redirect)
        app.logger.exception('Unhandled exception')
        SessionLocal.rollback()
        return _error_payload(500, 'Internal Server Error', 'Unexpected error')

    from .openapi import build_openapi_spec

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec(app)

    @app.route('/docs')
    def docs_index():
        # Redoc from CDN, no local assets
        return (
            "<!DOCTYPE html><html><head><title>Steel Shop API Docs</title>"
            "<link rel=\"stylesheet\" href=\"https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.css\" />"
            "</head><body><redoc spec-url='/openapi.json'></redoc>"
            "<script src='https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.js'></script>"
            "</body></html>"
        )

    return app


def get_db():
    return SessionLocal()
