# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Health Check Service

Reports the health of the storage backend and of the optional Redis
instance that backs public lookup rate limiting.
"""

import os
import time
from typing import Dict, Any, Optional
from opentelemetry import trace

from ..models.base import utcnow

tracer = trace.get_tracer(__name__)


class HealthCheckService:
    """Service for dependency health monitoring."""

    def __init__(self, repository, redis_service=None, service_version: str = "1.0.0"):
        self.repository = repository
        self.redis_service = redis_service
        self.service_version = service_version

    def get_comprehensive_health(self) -> Dict[str, Any]:
        """Get health status including all dependencies."""
        with tracer.start_as_current_span("health.comprehensive_check") as span:
            start_time = time.time()

            storage_health = self._check_storage_health()
            redis_health = self._check_redis_health()

            overall_status = self._determine_overall_status(
                storage_health["status"],
                redis_health["status"]
            )

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": overall_status,
                "service": "ouvidoria-api",
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": utcnow().isoformat(),
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "storage": storage_health,
                    "redis": redis_health
                }
            }

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.storage_status": storage_health["status"],
                "health.redis_status": redis_health["status"]
            })

            return health_data

    def _check_storage_health(self) -> Dict[str, Any]:
        """Check the manifestation store backend."""
        with tracer.start_as_current_span("health.storage_check") as span:
            try:
                start_time = time.time()
                health_info = dict(self.repository.health_check())
                health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)

                span.set_attributes({
                    "storage.status": health_info.get("status", "unknown"),
                    "storage.backend": health_info.get("backend", "unknown")
                })
                return health_info

            except Exception as e:
                span.set_attribute("storage.status", "unhealthy")
                span.record_exception(e)
                return {
                    "status": "unhealthy",
                    "error": str(e)
                }

    def _check_redis_health(self) -> Dict[str, Any]:
        """Check Redis; an unconfigured Redis is reported as disabled."""
        with tracer.start_as_current_span("health.redis_check") as span:
            if self.redis_service is None or not self.redis_service.is_available():
                span.set_attribute("redis.status", "disabled")
                return {"status": "disabled"}

            health_info = self.redis_service.health_check()
            span.set_attribute("redis.status", health_info.get("status", "unknown"))
            return health_info

    def _determine_overall_status(self, storage_status: str, redis_status: str) -> str:
        """Storage decides availability; Redis only degrades it."""
        if storage_status != "healthy":
            return "unhealthy"
        if redis_status in ("healthy", "disabled"):
            return "healthy"
        return "degraded"
