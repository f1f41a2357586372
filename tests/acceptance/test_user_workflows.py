# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
User workflow acceptance tests.

A citizen files a manifestation and follows it by protocol while staff
triage it by following the HAL links the API returns.
"""

import pytest
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit

from ouvidoria.app import create_app
from ouvidoria.services.repository_local import InMemoryManifestacaoRepository


def _path(href):
    parts = urlsplit(href)
    return f"{parts.path}?{parts.query}" if parts.query else parts.path


class TickingClock:
    """Clock that moves one second forward on every reading."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def workflow_client():
    app = create_app(
        {
            'ENVIRONMENT': 'test',
            'STORAGE_BACKEND': 'memory',
            'RATE_LIMIT_ENABLED': False,
            'OTEL_ENABLED': False,
            'BASE_URL': 'http://localhost:5000',
        },
        repository=InMemoryManifestacaoRepository(),
        clock=TickingClock(datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc))
    )
    app.config['TESTING'] = True
    return app.test_client()


class TestTriageWorkflow:

    def test_citizen_and_staff_round_trip(self, workflow_client):
        client = workflow_client

        # Citizen files a complaint with a photo
        receipt = client.post('/api/manifestacoes', json={
            'tipo': 'RECLAMACAO',
            'orgao': 'Secretaria de Saúde',
            'assunto': 'Demora no atendimento',
            'relato': 'Esperei quatro horas na UBS.',
            'nome': 'Maria Silva',
            'email': 'maria@example.com',
            'dataFato': '2025-03-01',
            'anexos': [{'url': 'uploads/foto.jpg', 'tipo': 'IMAGEM'}]
        }).get_json()
        lookup_path = _path(receipt['_links']['self']['href'])

        # Staff finds it in the listing and opens the detail
        listing = client.get('/api/admin/manifestacoes?status=RECEBIDA').get_json()
        summary = listing['_embedded']['items'][0]
        assert summary['protocolo'] == receipt['protocolo']

        detail = client.get(_path(summary['_links']['self']['href'])).get_json()
        assert detail['anexos'][0]['tipoLabel'] == 'Imagem'

        # Staff starts the analysis using the advertised affordance
        link = detail['_links']['transition:EM_ANALISE']
        detail = client.open(
            _path(link['href']),
            method=link['method'],
            json={'status': 'EM_ANALISE', 'expectedStatus': detail['status']},
            headers={'X-Actor': 'ana.costa'}
        ).get_json()
        assert detail['status'] == 'EM_ANALISE'

        # Answer and close the analysis in one step
        respond = detail['_links']['respond']
        response = client.open(
            _path(respond['href']),
            method=respond['method'],
            json={'texto': 'Equipe reforçada no turno da tarde.', 'gestorNome': 'Ana Costa', 'status': 'RESPONDIDA'},
            headers={'X-Actor': 'ana.costa'}
        )
        assert response.status_code == 201
        detail = response.get_json()
        assert detail['status'] == 'RESPONDIDA'
        assert list(k for k in detail['_links'] if k.startswith('transition:')) == ['transition:ARQUIVADA']

        # Citizen sees the answer by protocol
        public = client.get(lookup_path).get_json()
        assert public['status'] == 'RESPONDIDA'
        assert public['statusLabel'] == 'Respondida'
        assert public['respostas'][0]['gestorNome'] == 'Ana Costa'

        # Archive and review the trail
        archive = detail['_links']['transition:ARQUIVADA']
        detail = client.open(_path(archive['href']), method='PATCH', json={'status': 'ARQUIVADA'}).get_json()
        assert detail['transicoesPermitidas'] == []

        history = client.get(_path(detail['_links']['history']['href'])).get_json()
        assert [item['action'] for item in history['items']] == ['create', 'status_change', 'add_response', 'status_change']
        assert history['items'][1]['actor'] == 'ana.costa'

    def test_listing_pages_stay_stable(self, workflow_client):
        client = workflow_client
        base = {'tipo': 'SUGESTAO', 'orgao': 'Secretaria de Obras', 'assunto': 'Ciclovia', 'anonimo': True}

        for _ in range(5):
            client.post('/api/manifestacoes', json=base)

        first = client.get('/api/admin/manifestacoes?page_size=2').get_json()
        seen = [item['protocolo'] for item in first['_embedded']['items']]

        # Arrivals after the first page must not shift later pages
        client.post('/api/manifestacoes', json=base)

        page = first
        while 'next' in page['_links']:
            page = client.get(_path(page['_links']['next']['href'])).get_json()
            seen.extend(item['protocolo'] for item in page['_embedded']['items'])

        assert len(seen) == 5
        assert len(set(seen)) == 5
        assert seen == sorted(seen, reverse=True)
