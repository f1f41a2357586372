# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the Redis wrapper and the health check service.
"""

import pytest
from unittest.mock import MagicMock

from ouvidoria.services.health import HealthCheckService
from ouvidoria.services.redis import RedisService


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.ping.return_value = True
    return client


class TestRedisService:

    def test_disabled_without_url(self, monkeypatch):
        monkeypatch.delenv('REDIS_URL', raising=False)
        monkeypatch.delenv('REDIS_TOKEN', raising=False)

        service = RedisService()

        assert service.is_available() is False
        assert service.incr_with_ttl('k', 60) is None
        assert service.health_check()['status'] == 'unavailable'

    def test_incr_sets_ttl_on_first_hit(self, redis_client):
        redis_client.incr.side_effect = [1, 2]
        service = RedisService(client=redis_client)

        assert service.incr_with_ttl('k', 60) == 1
        assert service.incr_with_ttl('k', 60) == 2
        redis_client.expire.assert_called_once_with('k', 60)

    def test_incr_error_returns_none(self, redis_client):
        redis_client.incr.side_effect = ConnectionError('down')
        service = RedisService(client=redis_client)

        assert service.incr_with_ttl('k', 60) is None

    def test_health_check_healthy(self, redis_client):
        redis_client.get.return_value = 'test'
        service = RedisService(client=redis_client)

        assert service.health_check()['status'] == 'healthy'

    def test_health_check_degraded(self, redis_client):
        redis_client.get.return_value = None
        service = RedisService(client=redis_client)

        assert service.health_check()['status'] == 'degraded'


class TestHealthCheckService:

    def test_memory_backend_without_redis(self, repository):
        health = HealthCheckService(repository).get_comprehensive_health()

        assert health['status'] == 'healthy'
        assert health['service'] == 'ouvidoria-api'
        assert health['dependencies']['storage']['backend'] == 'memory'
        assert health['dependencies']['redis'] == {'status': 'disabled'}

    def test_storage_failure_is_unhealthy(self):
        repository = MagicMock()
        repository.health_check.side_effect = RuntimeError('no primary')

        health = HealthCheckService(repository).get_comprehensive_health()

        assert health['status'] == 'unhealthy'
        assert health['dependencies']['storage']['error'] == 'no primary'

    def test_redis_degrades(self, repository, redis_client):
        redis_client.get.return_value = None

        health = HealthCheckService(repository, RedisService(client=redis_client)).get_comprehensive_health()

        assert health['status'] == 'degraded'

    def test_health_endpoint_unhealthy(self, app):
        app.health_service.repository = MagicMock()
        app.health_service.repository.health_check.return_value = {'status': 'unhealthy', 'backend': 'mongodb'}

        response = app.test_client().get('/api/healthz')

        assert response.status_code == 503
        assert response.get_json()['status'] == 'unhealthy'
