# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Redis service for rate limiting counters.

Uses the Upstash HTTP client when a REDIS_TOKEN is configured (serverless
deployments) and the standard redis-py client otherwise. Every operation
fails gracefully: callers get a neutral result when Redis is unreachable.
"""

import os
import time
from typing import Optional, Dict, Any

import redis
from upstash_redis import Redis as UpstashRedis
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class RedisConnectionError(Exception):
    """Raised when Redis connection fails."""
    pass


class RedisService:
    """Thin Redis wrapper shared by the rate limiter and health checks."""

    def __init__(self, redis_url: Optional[str] = None, redis_token: Optional[str] = None, client=None):
        """
        Initialize the Redis service.

        Args:
            redis_url: Redis connection URL (redis://host:port) or Upstash HTTP URL
            redis_token: Upstash authentication token; selects the HTTP client
            client: Pre-built client, mainly for tests
        """
        self.redis_url = redis_url or os.getenv("REDIS_URL")
        self.redis_token = redis_token or os.getenv("REDIS_TOKEN")

        if client is not None:
            self.client = client
            return

        if not self.redis_url:
            logger.warning("No REDIS_URL configured, Redis operations will be disabled")
            self.client = None
            return

        try:
            if self.redis_token:
                self.client = UpstashRedis(url=self.redis_url, token=self.redis_token)
            else:
                self.client = redis.from_url(self.redis_url, decode_responses=True)

            self._test_connection()

            logger.info("Redis service initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Redis service: {str(e)}")
            self.client = None

    def _test_connection(self) -> None:
        """Test Redis connection."""
        if not self.client:
            return

        try:
            result = self.client.ping()
            # redis-py answers True, Upstash answers "PONG"
            if result not in (True, "PONG"):
                raise RedisConnectionError("Redis ping failed")
        except RedisConnectionError:
            raise
        except Exception as e:
            logger.error(f"Redis connection test failed: {str(e)}")
            raise RedisConnectionError(f"Redis connection failed: {str(e)}")

    def is_available(self) -> bool:
        """Check if Redis service is available."""
        return self.client is not None

    def _handle_redis_error(self, operation: str, error: Exception) -> None:
        logger.error(f"Redis {operation} failed: {str(error)}")

    def incr_with_ttl(self, key: str, ttl_seconds: int) -> Optional[int]:
        """
        Atomically increment a counter, starting its TTL on first use.

        Returns:
            The counter value after increment, or None when Redis is unavailable
        """
        if not self.is_available():
            return None

        with tracer.start_as_current_span("redis.incr_with_ttl") as span:
            span.set_attributes({
                "redis.operation": "incr",
                "redis.key": key,
                "redis.ttl": ttl_seconds
            })

            try:
                count = int(self.client.incr(key))
                if count == 1:
                    self.client.expire(key, ttl_seconds)

                span.set_attribute("redis.result", "success")
                return count

            except Exception as e:
                span.set_attribute("redis.result", "error")
                self._handle_redis_error("INCR", e)
                return None

    def get(self, key: str) -> Optional[str]:
        """Get value by key, or None if missing or unavailable."""
        if not self.is_available():
            return None

        with tracer.start_as_current_span("redis.get") as span:
            span.set_attributes({
                "redis.operation": "get",
                "redis.key": key
            })

            try:
                result = self.client.get(key)
                span.set_attribute("redis.result", "hit" if result else "miss")
                return result

            except Exception as e:
                span.set_attribute("redis.result", "error")
                self._handle_redis_error("GET", e)
                return None

    def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> bool:
        if not self.is_available():
            return False

        try:
            return bool(self.client.setex(key, ttl_seconds, value))
        except Exception as e:
            self._handle_redis_error("SET", e)
            return False

    def delete(self, key: str) -> bool:
        if not self.is_available():
            return False

        try:
            return bool(self.client.delete(key))
        except Exception as e:
            self._handle_redis_error("DELETE", e)
            return False

    def health_check(self) -> Dict[str, Any]:
        """
        Perform Redis health check.

        Returns:
            Health check results
        """
        if not self.is_available():
            return {
                "status": "unavailable",
                "message": "Redis client not initialized",
                "timestamp": time.time()
            }

        try:
            start_time = time.time()

            test_key = f"health:check:{int(start_time)}"
            self.set_with_ttl(test_key, "test", 10)
            value = self.get(test_key)
            self.delete(test_key)

            response_time = (time.time() - start_time) * 1000

            if value == "test":
                return {
                    "status": "healthy",
                    "response_time_ms": round(response_time, 2),
                    "timestamp": time.time()
                }
            return {
                "status": "degraded",
                "message": "Redis operations not working correctly",
                "response_time_ms": round(response_time, 2),
                "timestamp": time.time()
            }

        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
                "timestamp": time.time()
            }
