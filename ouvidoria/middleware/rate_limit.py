# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Rate limiting middleware for public endpoints.
Fixed-window counters kept in Redis; requests are allowed when Redis is
unavailable.
"""

from functools import wraps
from flask import request, jsonify, current_app
from typing import Dict, Any, Optional, Callable, Tuple
import time
import hashlib
import logging

from ..services.hal import HalFormatter

logger = logging.getLogger(__name__)

WINDOW_UNITS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
}


def parse_rate_limit(value: str) -> Tuple[int, int]:
    """
    Parse a limit such as ``"60 per hour"`` or ``"10/minute"``.

    Returns:
        Tuple of (limit, window_seconds)
    """
    text = value.strip().lower().replace("/", " per ")
    parts = text.split(" per ")
    if len(parts) != 2:
        raise ValueError(f"Invalid rate limit: {value!r}")

    limit = int(parts[0].strip())
    unit = parts[1].strip().rstrip("s")
    if unit not in WINDOW_UNITS or limit <= 0:
        raise ValueError(f"Invalid rate limit: {value!r}")

    return limit, WINDOW_UNITS[unit]


class RateLimiter:
    """Redis-based fixed window rate limiter."""

    def __init__(self, redis_service, hal_formatter: HalFormatter, clock: Callable[[], float] = time.time):
        self.redis_service = redis_service
        self.hal_formatter = hal_formatter
        self.clock = clock

    def get_client_identifier(self) -> str:
        """Hash of IP address and user agent; callers are anonymous."""
        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr or 'unknown').split(',')[0].strip()
        user_agent = request.headers.get('User-Agent', '')

        identifier_string = f"{ip_address}:{user_agent}"
        identifier_hash = hashlib.sha256(identifier_string.encode()).hexdigest()[:32]
        return f"ip:{identifier_hash}"

    def get_rate_limit_key(self, identifier: str, endpoint: str, window_seconds: int) -> str:
        window_start = int(self.clock()) // window_seconds
        return f"rate_limit:{identifier}:{endpoint}:{window_start}"

    def check_rate_limit(
        self,
        identifier: str,
        endpoint: str,
        limit: int,
        window_seconds: int = 3600
    ) -> Dict[str, Any]:
        """
        Check if request is within rate limit.

        Args:
            identifier: Client identifier
            endpoint: Endpoint identifier
            limit: Maximum requests allowed
            window_seconds: Time window in seconds

        Returns:
            Dictionary with rate limit status
        """
        now = int(self.clock())
        reset_time = (now // window_seconds + 1) * window_seconds
        key = self.get_rate_limit_key(identifier, endpoint, window_seconds)

        count = self.redis_service.incr_with_ttl(key, window_seconds)
        if count is None:
            # Fail open when Redis is unavailable
            return {
                'allowed': True,
                'limit': limit,
                'remaining': limit,
                'reset_time': reset_time,
                'retry_after': 0
            }

        if count > limit:
            return {
                'allowed': False,
                'limit': limit,
                'remaining': 0,
                'reset_time': reset_time,
                'retry_after': max(reset_time - now, 1)
            }

        return {
            'allowed': True,
            'limit': limit,
            'remaining': limit - count,
            'reset_time': reset_time,
            'retry_after': 0
        }

    def add_rate_limit_headers(self, response, rate_limit_info: Dict[str, Any]):
        response.headers['X-RateLimit-Limit'] = str(rate_limit_info['limit'])
        response.headers['X-RateLimit-Remaining'] = str(rate_limit_info['remaining'])
        response.headers['X-RateLimit-Reset'] = str(rate_limit_info['reset_time'])

        if rate_limit_info['retry_after'] > 0:
            response.headers['Retry-After'] = str(rate_limit_info['retry_after'])

        return response


def rate_limit(config_key: str = 'PUBLIC_LOOKUP_RATE_LIMIT', endpoint: Optional[str] = None):
    """
    Decorator for rate limiting endpoints.

    The limit is read from ``current_app.config[config_key]`` on each
    request so tests and deployments can tune it without re-registering
    routes.
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_app.config.get('RATE_LIMIT_ENABLED', True):
                return f(*args, **kwargs)

            redis_service = getattr(current_app, 'redis_service', None)
            if redis_service is None:
                return f(*args, **kwargs)

            limit, window_seconds = parse_rate_limit(current_app.config[config_key])
            rate_limiter = RateLimiter(redis_service, current_app.hal_formatter)

            identifier = rate_limiter.get_client_identifier()
            endpoint_name = endpoint or request.endpoint or f.__name__

            rate_limit_info = rate_limiter.check_rate_limit(
                identifier,
                endpoint_name,
                limit,
                window_seconds
            )

            logger.debug(
                "Rate limit check",
                extra={
                    'identifier': identifier,
                    'endpoint': endpoint_name,
                    'limit': limit,
                    'remaining': rate_limit_info['remaining'],
                    'allowed': rate_limit_info['allowed']
                }
            )

            if not rate_limit_info['allowed']:
                logger.warning(
                    "Rate limit exceeded",
                    extra={
                        'identifier': identifier,
                        'endpoint': endpoint_name,
                        'limit': limit,
                        'retry_after': rate_limit_info['retry_after']
                    }
                )

                error_response = rate_limiter.hal_formatter.format_rate_limit_error(
                    f"Rate limit of {limit} requests per {window_seconds} seconds exceeded",
                    request.path
                )

                response = jsonify(error_response)
                response.status_code = 429
                response.mimetype = "application/problem+json"
                rate_limiter.add_rate_limit_headers(response, rate_limit_info)
                return response

            response = current_app.make_response(f(*args, **kwargs))
            rate_limiter.add_rate_limit_headers(response, rate_limit_info)
            return response

        return decorated_function
    return decorator
