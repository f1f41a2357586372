# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

from ouvidoria.app import create_app
from ouvidoria.services.gateway import build_gateway
from ouvidoria.services.repository_local import InMemoryManifestacaoRepository

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'


class FixedClock:
    """Deterministic clock; call ``advance`` to move time forward."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository():
    return InMemoryManifestacaoRepository()


@pytest.fixture
def gateway(repository, clock):
    return build_gateway(repository, clock=clock)


@pytest.fixture
def app_config() -> Dict[str, Any]:
    return {
        'ENVIRONMENT': 'test',
        'STORAGE_BACKEND': 'memory',
        'RATE_LIMIT_ENABLED': False,
        'OTEL_ENABLED': False,
        'BASE_URL': 'http://localhost:5000',
        'CORS_ORIGINS': 'http://localhost:5173',
    }


@pytest.fixture
def app(app_config, repository, clock):
    application = create_app(app_config, repository=repository, clock=clock)
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def identified_draft() -> Dict[str, Any]:
    """Identified submission payload as sent by the citizen portal."""
    return {
        "tipo": "RECLAMACAO",
        "orgao": "Secretaria de Saúde",
        "assunto": "Demora no atendimento",
        "relato": "Aguardei quatro horas na UBS central.",
        "anonimo": False,
        "nome": "Maria Silva",
        "email": "maria@example.com",
        "telefone": "61 99999-0000",
        "dataFato": "2025-03-01",
        "horarioFato": "14:30",
        "local": "UBS Central",
        "anexos": [{"url": "uploads/2025/foto.jpg", "tipo": "IMAGEM"}]
    }


@pytest.fixture
def anonymous_draft() -> Dict[str, Any]:
    """Anonymous submission that still (wrongly) carries contact data."""
    return {
        "tipo": "DENUNCIA",
        "orgao": "Secretaria de Obras",
        "assunto": "Obra abandonada",
        "relato": "Material de construção largado na calçada.",
        "anonimo": True,
        "nome": "Não deveria ficar",
        "email": "anon@example.com",
        "telefone": "61 90000-0000"
    }


@pytest.fixture
def submitted(gateway, identified_draft):
    """Identifiers of one stored identified manifestation."""
    return gateway.submit_manifestacao(identified_draft)
