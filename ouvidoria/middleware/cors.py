# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS middleware for the citizen portal and the administrative panel.
"""

from flask import Flask, request, make_response
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ['GET', 'POST', 'PATCH', 'OPTIONS']
ALLOWED_HEADERS = ['Accept', 'Content-Type', 'X-Request-ID', 'X-Actor']
EXPOSE_HEADERS = [
    'X-Request-ID',
    'X-Trace-ID',
    'X-RateLimit-Limit',
    'X-RateLimit-Remaining',
    'X-RateLimit-Reset',
    'Retry-After'
]


def parse_origins(value: Optional[str]) -> List[str]:
    """Split a comma separated CORS_ORIGINS value."""
    if not value:
        return []
    return [origin.strip().rstrip('/') for origin in value.split(',') if origin.strip()]


class CORSMiddleware:
    """Adds CORS headers for configured origins."""

    def __init__(self, app: Flask, allowed_origins: List[str], max_age: int = 86400):
        self.app = app
        self.allowed_origins = allowed_origins
        self.max_age = max_age
        self.register_cors_handlers()

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        if '*' in self.allowed_origins:
            return True
        return origin.rstrip('/') in self.allowed_origins

    def add_cors_headers(self, response, origin: str):
        response.headers['Access-Control-Allow-Origin'] = '*' if '*' in self.allowed_origins else origin
        response.headers['Access-Control-Allow-Methods'] = ', '.join(ALLOWED_METHODS)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(ALLOWED_HEADERS)
        response.headers['Access-Control-Expose-Headers'] = ', '.join(EXPOSE_HEADERS)
        response.headers['Access-Control-Max-Age'] = str(self.max_age)
        if '*' not in self.allowed_origins:
            response.headers.add('Vary', 'Origin')
        return response

    def register_cors_handlers(self):
        @self.app.before_request
        def handle_preflight():
            if request.method != 'OPTIONS':
                return None

            origin = request.headers.get('Origin')
            if not self.is_origin_allowed(origin):
                logger.warning("CORS preflight rejected", extra={'origin': origin})
                return make_response('', 403)

            return self.add_cors_headers(make_response('', 204), origin)

        @self.app.after_request
        def add_cors_headers_to_response(response):
            origin = request.headers.get('Origin')
            if request.method != 'OPTIONS' and self.is_origin_allowed(origin):
                self.add_cors_headers(response, origin)
            return response


def configure_cors(app: Flask) -> CORSMiddleware:
    """Configure CORS from ``app.config['CORS_ORIGINS']``."""
    return CORSMiddleware(app, parse_origins(app.config.get('CORS_ORIGINS')))
