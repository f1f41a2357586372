# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Ouvidoria API - Flask Application Factory

Builds the Flask application with OpenAPI 3.0 support, wires the storage
backend, the manifestation core and the ambient middleware.
"""

import os
from typing import Any, Dict, Optional

from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag

from .observability.config import setup_observability
from .observability.middleware import add_observability_middleware
from .middleware.cors import configure_cors
from .middleware.error_handler import ErrorHandlerMiddleware
from .services.gateway import build_gateway
from .services.hal import create_hal_formatter
from .services.health import HealthCheckService
from .services.mongodb import MongoDBService
from .services.redis import RedisService
from .services.repository import MongoManifestacaoRepository
from .services.repository_local import InMemoryManifestacaoRepository
from .routes.manifestacoes import manifestacoes_bp
from .routes.admin import admin_bp

SERVICE_VERSION = "1.0.0"

info = Info(
    title="Ouvidoria API",
    version=SERVICE_VERSION,
    description="Citizen manifestation intake, protocol tracking and staff triage with HATEOAS links"
)

health_tag = Tag(name="Health", description="System health and status")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> Dict[str, Any]:
    """Read configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'STORAGE_BACKEND': os.getenv('STORAGE_BACKEND', 'mongodb'),
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/ouvidoria_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'ouvidoria_dev'),
        'MONGODB_MAX_POOL_SIZE': int(os.getenv('MONGODB_MAX_POOL_SIZE', '10')),
        'MONGODB_SERVER_SELECTION_TIMEOUT_MS': int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000')),
        'REDIS_URL': os.getenv('REDIS_URL', ''),
        'REDIS_TOKEN': os.getenv('REDIS_TOKEN', ''),
        'RATE_LIMIT_ENABLED': _env_flag('RATE_LIMIT_ENABLED', 'true'),
        'PUBLIC_LOOKUP_RATE_LIMIT': os.getenv('PUBLIC_LOOKUP_RATE_LIMIT', '60 per hour'),
        'PROTOCOL_MAX_ATTEMPTS': int(os.getenv('PROTOCOL_MAX_ATTEMPTS', '3')),
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),
        'OTEL_ENABLED': _env_flag('OTEL_ENABLED', 'true'),
        'OTEL_EXPORTER_OTLP_ENDPOINT': os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT', ''),
        'CORS_ORIGINS': os.getenv('CORS_ORIGINS', ''),
    }


def build_repository(config: Dict[str, Any]):
    """Create the manifestation repository for the configured backend."""
    backend = config['STORAGE_BACKEND']
    if backend == 'memory':
        return InMemoryManifestacaoRepository()
    if backend == 'mongodb':
        mongodb_service = MongoDBService(
            config['MONGODB_URI'],
            config['MONGODB_DATABASE'],
            max_pool_size=config['MONGODB_MAX_POOL_SIZE'],
            server_selection_timeout_ms=config['MONGODB_SERVER_SELECTION_TIMEOUT_MS']
        )
        return MongoManifestacaoRepository(mongodb_service)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")


def create_app(
    config_overrides: Optional[Dict[str, Any]] = None,
    repository=None,
    redis_service=None,
    clock=None
) -> OpenAPI:
    """
    Create the Flask application.

    Args:
        config_overrides: Values replacing environment configuration
        repository: Pre-built repository (otherwise chosen by STORAGE_BACKEND)
        redis_service: Pre-built Redis service for rate limiting
        clock: Time source for the manifestation core

    Returns:
        Configured OpenAPI (Flask) application
    """
    config = load_config()
    config.update(config_overrides or {})

    setup_observability(
        config['ENVIRONMENT'],
        otel_enabled=config['OTEL_ENABLED'],
        service_version=SERVICE_VERSION,
        otlp_endpoint=config['OTEL_EXPORTER_OTLP_ENDPOINT'] or None
    )

    app = OpenAPI(__name__, info=info)
    app.config.update(config)

    add_observability_middleware(app, instrument=config['OTEL_ENABLED'])

    if repository is None:
        repository = build_repository(config)

    if redis_service is None and config['RATE_LIMIT_ENABLED'] and config['REDIS_URL']:
        redis_service = RedisService(config['REDIS_URL'], config['REDIS_TOKEN'] or None)

    hal_formatter = create_hal_formatter(config['BASE_URL'])
    gateway = build_gateway(
        repository,
        clock=clock,
        max_protocol_attempts=config['PROTOCOL_MAX_ATTEMPTS']
    )
    health_service = HealthCheckService(repository, redis_service, SERVICE_VERSION)

    ErrorHandlerMiddleware(app, hal_formatter)
    configure_cors(app)

    # Make services available to routes
    app.repository = repository
    app.redis_service = redis_service
    app.hal_formatter = hal_formatter
    app.gateway = gateway
    app.health_service = health_service

    app.register_api(manifestacoes_bp)
    app.register_api(admin_bp)

    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Storage and Redis health."""
        health_data = health_service.get_comprehensive_health()
        status_code = 503 if health_data["status"] == "unhealthy" else 200

        links = {'self': hal_formatter.builder.link_builder.build_self_link('/api/healthz')}
        return jsonify(hal_formatter.builder.build_resource_response(health_data, links)), status_code

    return app


if __name__ == '__main__':
    # Development server
    application = create_app()
    application.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=application.config['DEBUG']
    )
